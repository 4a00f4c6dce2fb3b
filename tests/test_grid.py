from __future__ import annotations

from collections.abc import Callable

from pydantic import ValidationError
import pytest

from cellmatrix.config import EngineConfig
from cellmatrix.grid import GridStore
from cellmatrix.models import Cell, CellRange, CellUpdate

GridFactory = Callable[[list[list[str]]], GridStore]


def test_empty_grid_uses_config_dimensions(small_config: EngineConfig) -> None:
    grid = GridStore.empty(small_config)
    assert grid.row_count == 5
    assert grid.col_count == 4
    assert grid.col_widths == (120, 120, 120, 120)
    assert grid.row_heights == (32,) * 5
    assert all(cell == Cell() for row in grid.cells for cell in row)


def test_default_empty_grid_is_50_by_26() -> None:
    grid = GridStore.empty()
    assert (grid.row_count, grid.col_count) == (50, 26)


def test_set_range_formats_exactly_the_rectangle(make_grid: GridFactory) -> None:
    grid = make_grid([["a", "b", "c", "d"]])
    selection = CellRange.from_corners(3, 2, 1, 0)
    updated = grid.set_range(selection, CellUpdate(bold=True))
    for row in range(grid.row_count):
        for col in range(grid.col_count):
            inside = 1 <= row <= 3 and 0 <= col <= 2
            assert updated.cell(row, col).formatting.bold is inside
            if not inside:
                assert updated.cell(row, col) == grid.cell(row, col)
    assert sum(
        cell.formatting.bold for row in updated.cells for cell in row
    ) == 9


def test_set_range_keeps_receiver_unchanged(make_grid: GridFactory) -> None:
    grid = make_grid([["1"]])
    updated = grid.set_range(
        CellRange.from_corners(0, 0, 0, 0), CellUpdate(raw_value="2")
    )
    assert grid.cell(0, 0).raw_value == "1"
    assert updated.cell(0, 0).raw_value == "2"
    assert updated.cell(0, 0).computed_value == "2"


def test_set_range_recomputes_formulas(make_grid: GridFactory) -> None:
    grid = make_grid([["1"], ["2"], ["3"], ["=SUM(A1:A3)"]])
    assert grid.cell(3, 0).computed_value == "6"
    updated = grid.set_range(
        CellRange.from_corners(0, 0, 0, 0), CellUpdate(raw_value="10")
    )
    # The pass still sees the edited cell's previous computed value.
    assert updated.cell(0, 0).computed_value == "10"
    assert updated.cell(3, 0).computed_value == "6"
    assert updated.recompute().cell(3, 0).computed_value == "15"


def test_formula_written_by_set_range_is_evaluated(make_grid: GridFactory) -> None:
    grid = make_grid([["2", "4"]])
    updated = grid.set_range(
        CellRange.from_corners(1, 0, 1, 0), CellUpdate(raw_value="=AVERAGE(A1:B1)")
    )
    assert updated.cell(1, 0).raw_value == "=AVERAGE(A1:B1)"
    assert updated.cell(1, 0).computed_value == "3"


def test_plain_text_computed_equals_raw(make_grid: GridFactory) -> None:
    grid = make_grid([])
    updated = grid.set_range(
        CellRange.from_corners(2, 2, 2, 2), CellUpdate(raw_value="hello")
    )
    assert updated.cell(2, 2).computed_value == "hello"
    assert updated.display_value(2, 2) == "hello"


def test_recompute_reads_values_from_start_of_pass(make_grid: GridFactory) -> None:
    # B1 depends on A1, which is itself a formula evaluated in the same pass.
    grid = make_grid([["=1+1", "=A1*10"]])
    assert grid.cell(0, 0).computed_value == "2"
    assert grid.cell(0, 1).computed_value == "0"
    assert grid.recompute().cell(0, 1).computed_value == "20"


def test_self_reference_does_not_loop(make_grid: GridFactory) -> None:
    grid = make_grid([["=A1+1"]])
    assert grid.cell(0, 0).computed_value == "1"
    assert grid.recompute().cell(0, 0).computed_value == "2"


def test_invalid_formula_keeps_raw_value(make_grid: GridFactory) -> None:
    grid = make_grid([["=SUM(A1"]])
    assert grid.cell(0, 0).raw_value == "=SUM(A1"
    assert grid.cell(0, 0).computed_value == "#VALUE!"


def test_set_range_outside_grid_is_noop(make_grid: GridFactory) -> None:
    grid = make_grid([["1"]])
    outside = CellRange.from_corners(0, 0, 9, 9)
    assert grid.set_range(outside, CellUpdate(bold=True)) is grid
    assert grid.set_range(None, CellUpdate(bold=True)) is grid


def test_resize_column_clamps_to_floor(small_config: EngineConfig) -> None:
    grid = GridStore.empty(small_config)
    assert grid.resize_column(1, 25).col_widths[1] == 145
    shrunk = grid.resize_column(1, -500)
    assert shrunk.col_widths[1] == small_config.min_size
    assert shrunk.col_widths[0] == 120
    assert grid.col_widths[1] == 120


def test_resize_row_clamps_to_floor(small_config: EngineConfig) -> None:
    grid = GridStore.empty(small_config)
    assert grid.resize_row(0, -2).row_heights[0] == 30
    assert grid.resize_row(0, -1.5).row_heights[0] == 30.5


def test_resize_out_of_range_is_noop(small_config: EngineConfig) -> None:
    grid = GridStore.empty(small_config)
    assert grid.resize_column(4, 10) is grid
    assert grid.resize_row(-1, 10) is grid


def test_resize_does_not_recompute(make_grid: GridFactory) -> None:
    grid = make_grid([["1", "=A1"]])
    first_row = (grid.cells[0][0], Cell(raw_value="=A1"), *grid.cells[0][2:])
    stale = grid.model_copy(update={"cells": (first_row, *grid.cells[1:])})
    assert stale.resize_column(0, 10).cell(0, 1).computed_value == ""


def test_rows_exposes_cells_row_major(make_grid: GridFactory) -> None:
    grid = make_grid([["a", "b"]])
    rows = grid.rows()
    assert len(rows) == 5
    assert rows[0][1].raw_value == "b"
    assert rows[0][1] is grid.cell(0, 1)


def test_cell_outside_grid_raises(small_config: EngineConfig) -> None:
    with pytest.raises(IndexError):
        GridStore.empty(small_config).cell(5, 0)


def test_grid_rejects_ragged_rows() -> None:
    with pytest.raises(ValidationError, match="same number of cells"):
        GridStore(
            cells=((Cell(), Cell()), (Cell(),)),
            col_widths=(100, 100),
            row_heights=(30, 30),
        )


def test_grid_rejects_misaligned_metrics() -> None:
    with pytest.raises(ValidationError, match="col_widths"):
        GridStore(cells=((Cell(),),), col_widths=(100, 100), row_heights=(30,))
