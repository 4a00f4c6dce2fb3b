from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, model_validator

from .config import DEFAULT_CONFIG, EngineConfig
from .formula import evaluate_formula, is_formula
from .formula.evaluator import GridView
from .models import Cell, CellRange, CellUpdate

logger = logging.getLogger(__name__)

CellRows = tuple[tuple[Cell, ...], ...]


class GridStore(BaseModel):
    """Immutable cell matrix plus column widths and row heights.

    Every mutation returns a new store; the receiver is never modified, so
    callers can keep earlier values for undo or comparison.
    """

    model_config = ConfigDict(frozen=True)

    cells: CellRows
    col_widths: tuple[PositiveFloat, ...]
    row_heights: tuple[PositiveFloat, ...]
    min_size: PositiveFloat = Field(default=DEFAULT_CONFIG.min_size)
    max_range_cells: int = Field(default=DEFAULT_CONFIG.max_range_cells, gt=0)

    @model_validator(mode="after")
    def _validate_shape(self) -> GridStore:
        if not self.cells or not self.cells[0]:
            raise ValueError("A grid needs at least one row and one column.")
        width = len(self.cells[0])
        if any(len(row) != width for row in self.cells):
            raise ValueError("Every grid row must have the same number of cells.")
        if len(self.col_widths) != width:
            raise ValueError(
                f"col_widths has {len(self.col_widths)} entries; expected {width}."
            )
        if len(self.row_heights) != len(self.cells):
            raise ValueError(
                f"row_heights has {len(self.row_heights)} entries; "
                f"expected {len(self.cells)}."
            )
        return self

    @classmethod
    def empty(cls, config: EngineConfig | None = None) -> GridStore:
        """Create a blank grid with the configured default dimensions."""
        cfg = config or DEFAULT_CONFIG
        blank = Cell()
        row = tuple(blank for _ in range(cfg.default_cols))
        return cls(
            cells=tuple(row for _ in range(cfg.default_rows)),
            col_widths=(cfg.default_col_width,) * cfg.default_cols,
            row_heights=(cfg.default_row_height,) * cfg.default_rows,
            min_size=cfg.min_size,
            max_range_cells=cfg.max_range_cells,
        )

    @property
    def row_count(self) -> int:
        return len(self.cells)

    @property
    def col_count(self) -> int:
        return len(self.cells[0])

    def cell(self, row: int, col: int) -> Cell:
        """Return the cell at ``(row, col)``.

        Raises:
            IndexError: If the coordinates fall outside the grid.
        """
        if not self.in_bounds(row, col):
            raise IndexError(f"Cell ({row}, {col}) is outside the grid.")
        return self.cells[row][col]

    def rows(self) -> GridView:
        """Read-only row view handed to the formula evaluator."""
        return self.cells

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.row_count and 0 <= col < self.col_count

    def display_value(self, row: int, col: int) -> str:
        """Text rendered in the grid: the computed value, else the raw value."""
        cell = self.cell(row, col)
        return cell.computed_value or cell.raw_value

    def set_range(self, selection: CellRange | None, update: CellUpdate) -> GridStore:
        """Apply ``update`` to every cell in ``selection`` and recompute.

        Args:
            selection: Target rectangle; ``None`` or a rectangle reaching
                outside the grid leaves the store unchanged.
            update: Fields to overlay on each targeted cell.

        Returns:
            A new store with the rectangle updated and every formula
            re-evaluated, or ``self`` when the selection is unusable.
        """
        if selection is None:
            return self
        if not (
            self.in_bounds(selection.start_row, selection.start_col)
            and self.in_bounds(selection.end_row, selection.end_col)
        ):
            logger.warning(
                "Ignoring edit for selection %s outside %dx%d grid.",
                selection.to_a1(),
                self.row_count,
                self.col_count,
            )
            return self
        rows = [list(row) for row in self.cells]
        for row, col in selection.iter_cells():
            rows[row][col] = update.apply(rows[row][col])
        edited = self.model_copy(update={"cells": tuple(tuple(row) for row in rows)})
        return edited.recompute()

    def recompute(self) -> GridStore:
        """Re-derive every computed value from the grid as it stands now.

        Formulas read the computed values stored at the start of the pass,
        so formulas that depend on other formulas may observe stale results
        until the next pass.
        """
        snapshot = self.rows()
        formula_count = 0
        rows: list[tuple[Cell, ...]] = []
        for row in snapshot:
            new_row: list[Cell] = []
            for cell in row:
                if is_formula(cell.raw_value):
                    formula_count += 1
                    computed = evaluate_formula(
                        cell.raw_value, snapshot, max_range_cells=self.max_range_cells
                    )
                else:
                    computed = cell.raw_value
                if computed != cell.computed_value:
                    cell = cell.model_copy(update={"computed_value": computed})
                new_row.append(cell)
            rows.append(tuple(new_row))
        logger.debug(
            "Recomputed %dx%d grid with %d formula cells.",
            self.row_count,
            self.col_count,
            formula_count,
        )
        return self.model_copy(update={"cells": tuple(rows)})

    def resize_column(self, index: int, delta: float) -> GridStore:
        """Grow or shrink one column, never below ``min_size``."""
        widths = self._resized(self.col_widths, index, delta, axis="column")
        if widths is None:
            return self
        return self.model_copy(update={"col_widths": widths})

    def resize_row(self, index: int, delta: float) -> GridStore:
        """Grow or shrink one row, never below ``min_size``."""
        heights = self._resized(self.row_heights, index, delta, axis="row")
        if heights is None:
            return self
        return self.model_copy(update={"row_heights": heights})

    def _resized(
        self, sizes: tuple[float, ...], index: int, delta: float, *, axis: str
    ) -> tuple[float, ...] | None:
        if not 0 <= index < len(sizes):
            logger.warning("Ignoring resize of missing %s %d.", axis, index)
            return None
        updated = list(sizes)
        updated[index] = max(self.min_size, sizes[index] + delta)
        return tuple(updated)
