from __future__ import annotations

from .models import CellRange
from .shared.a1 import format_address
from .types import SelectionPhase


class SelectionModel:
    """Rectangular selection driven by pointer begin/extend/end gestures.

    The anchor is where the gesture started and doubles as the active cell;
    the focus follows the pointer while the gesture is in progress.
    """

    def __init__(self) -> None:
        self.phase: SelectionPhase = "idle"
        self._anchor: tuple[int, int] | None = None
        self._focus: tuple[int, int] | None = None

    @property
    def anchor(self) -> tuple[int, int] | None:
        return self._anchor

    @property
    def focus(self) -> tuple[int, int] | None:
        return self._focus

    @property
    def is_selecting(self) -> bool:
        return self.phase == "selecting"

    def begin(self, row: int, col: int) -> None:
        """Start a new selection at ``(row, col)``."""
        if row < 0 or col < 0:
            raise ValueError(f"Selection cell ({row}, {col}) must not be negative.")
        self._anchor = (row, col)
        self._focus = (row, col)
        self.phase = "selecting"

    def extend(self, row: int, col: int) -> bool:
        """Move the focus while a gesture is active.

        Returns:
            True if the focus moved, False when no gesture is in progress.
        """
        if not self.is_selecting or row < 0 or col < 0:
            return False
        self._focus = (row, col)
        return True

    def end(self) -> None:
        """Freeze the current rectangle until the next :meth:`begin`."""
        if self._anchor is not None:
            self.phase = "frozen"

    def clear(self) -> None:
        self.phase = "idle"
        self._anchor = None
        self._focus = None

    def normalized_rectangle(self) -> CellRange | None:
        if self._anchor is None or self._focus is None:
            return None
        return CellRange.from_corners(*self._anchor, *self._focus)

    @property
    def active_cell(self) -> tuple[int, int] | None:
        return self._anchor

    def active_label(self) -> str | None:
        """A1 label of the active cell, as shown beside the formula bar."""
        if self._anchor is None:
            return None
        return format_address(*self._anchor)

    def contains(self, row: int, col: int) -> bool:
        rectangle = self.normalized_rectangle()
        return rectangle is not None and rectangle.contains(row, col)
