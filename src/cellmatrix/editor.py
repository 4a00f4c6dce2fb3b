from __future__ import annotations

import logging
from typing import Final

from pydantic import BaseModel

from . import serializer
from .config import DEFAULT_CONFIG, EngineConfig
from .grid import GridStore
from .merges import MergeRegistry
from .models import CellFormatting, CellRange, CellUpdate
from .selection import SelectionModel
from .types import AggregateName, HorizontalAlignType

logger = logging.getLogger(__name__)

NO_SELECTION_LABEL: Final[str] = "--"
AGGREGATE_PRESETS: Final[dict[AggregateName, str]] = {
    "SUM": "=SUM(A1:A10)",
    "AVERAGE": "=AVERAGE(A1:A10)",
}


class SheetStatus(BaseModel):
    """Summary shown in the editor footer."""

    rows: int
    cols: int
    merges: int


class SpreadsheetEditor:
    """Editing session over one spreadsheet document.

    The host hands over a title and the stored snapshot text, forwards pointer
    gestures and toolbar actions, and calls :meth:`save` to obtain the text it
    should persist.
    """

    def __init__(
        self,
        title: str,
        snapshot_text: str | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.title = title
        loaded = serializer.load(snapshot_text, self.config)
        self.grid: GridStore = loaded.grid
        self.merges: MergeRegistry = loaded.merges
        self.selection = SelectionModel()

    # Gestures

    def begin_selection(self, row: int, col: int) -> None:
        self.selection.begin(row, col)

    def extend_selection(self, row: int, col: int) -> bool:
        return self.selection.extend(row, col)

    def end_selection(self) -> None:
        self.selection.end()

    # Edits on the current selection

    def apply(self, update: CellUpdate) -> bool:
        """Apply ``update`` to the selection and recompute the grid.

        Returns:
            True if the grid changed.
        """
        rectangle = self.selection.normalized_rectangle()
        if rectangle is None:
            return False
        updated = self.grid.set_range(rectangle, update)
        changed = updated is not self.grid
        self.grid = updated
        return changed

    def set_value(self, text: str) -> bool:
        """Write ``text`` into every selected cell, as typed in the formula bar."""
        return self.apply(CellUpdate(raw_value=text))

    def toggle_bold(self) -> bool:
        formatting = self._active_cell_formatting()
        if formatting is None:
            return False
        return self.apply(CellUpdate(bold=not formatting.bold))

    def toggle_italic(self) -> bool:
        formatting = self._active_cell_formatting()
        if formatting is None:
            return False
        return self.apply(CellUpdate(italic=not formatting.italic))

    def toggle_wrap(self) -> bool:
        formatting = self._active_cell_formatting()
        if formatting is None:
            return False
        return self.apply(CellUpdate(wrap=not formatting.wrap))

    def set_align(self, align: HorizontalAlignType) -> bool:
        return self.apply(CellUpdate(align=align))

    def insert_aggregate(self, name: AggregateName) -> bool:
        """Fill the selection with the preset SUM or AVERAGE formula."""
        return self.set_value(AGGREGATE_PRESETS[name])

    def merge_selection(self) -> bool:
        rectangle = self.selection.normalized_rectangle()
        if rectangle is None or not self.grid.in_bounds(
            rectangle.end_row, rectangle.end_col
        ):
            return False
        return self._replace_merges(self.merges.merge(rectangle))

    def unmerge_selection(self) -> bool:
        return self._replace_merges(
            self.merges.unmerge(self.selection.normalized_rectangle())
        )

    def resize_column(self, index: int, delta: float) -> None:
        self.grid = self.grid.resize_column(index, delta)

    def resize_row(self, index: int, delta: float) -> None:
        self.grid = self.grid.resize_row(index, delta)

    def rename(self, title: str) -> None:
        self.title = title

    # Queries

    @property
    def active_label(self) -> str:
        label = self._active_label_in_grid()
        return label if label is not None else NO_SELECTION_LABEL

    @property
    def formula_bar_text(self) -> str:
        """Raw value of the active cell, or an empty string."""
        active = self._active_in_grid()
        if active is None:
            return ""
        return self.grid.cell(*active).raw_value

    def display_value(self, row: int, col: int) -> str:
        return self.grid.display_value(row, col)

    def is_hidden(self, row: int, col: int) -> bool:
        return self.merges.is_hidden(row, col)

    def span_of(self, row: int, col: int) -> tuple[int, int]:
        return self.merges.span_of(row, col)

    def is_selected(self, row: int, col: int) -> bool:
        return self.selection.contains(row, col)

    def selected_range(self) -> CellRange | None:
        return self.selection.normalized_rectangle()

    def status(self) -> SheetStatus:
        return SheetStatus(
            rows=self.grid.row_count,
            cols=self.grid.col_count,
            merges=len(self.merges),
        )

    def save(self) -> str:
        """Serialize the sheet for the host to persist."""
        logger.info("Saving sheet %r.", self.title)
        return serializer.save(self.grid, self.merges)

    def _active_in_grid(self) -> tuple[int, int] | None:
        active = self.selection.active_cell
        if active is None or not self.grid.in_bounds(*active):
            return None
        return active

    def _active_label_in_grid(self) -> str | None:
        if self._active_in_grid() is None:
            return None
        return self.selection.active_label()

    def _active_cell_formatting(self) -> CellFormatting | None:
        active = self._active_in_grid()
        if active is None:
            return None
        return self.grid.cell(*active).formatting

    def _replace_merges(self, merges: MergeRegistry) -> bool:
        changed = merges is not self.merges
        self.merges = merges
        return changed
