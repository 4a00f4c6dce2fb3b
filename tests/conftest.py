from __future__ import annotations

from collections.abc import Callable

import pytest

from cellmatrix.config import EngineConfig
from cellmatrix.grid import GridStore
from cellmatrix.models import Cell

GridFactory = Callable[[list[list[str]]], GridStore]


@pytest.fixture
def small_config() -> EngineConfig:
    """Config for a 5x4 grid so tests stay readable."""
    return EngineConfig(default_rows=5, default_cols=4)


@pytest.fixture
def make_grid(small_config: EngineConfig) -> GridFactory:
    """Build a recomputed grid from raw values laid out row by row.

    Rows shorter than the config width are padded with blank cells.
    """

    def _make(values: list[list[str]]) -> GridStore:
        base = GridStore.empty(small_config)
        rows = [list(row) for row in base.cells]
        for row_index, row_values in enumerate(values):
            for col_index, raw in enumerate(row_values):
                rows[row_index][col_index] = Cell(raw_value=raw)
        grid = base.model_copy(update={"cells": tuple(tuple(row) for row in rows)})
        return grid.recompute()

    return _make
