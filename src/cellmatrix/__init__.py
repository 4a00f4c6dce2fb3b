"""Grid addressing and formula engine for the embedded spreadsheet editor."""

from __future__ import annotations

from .config import DEFAULT_CONFIG, EngineConfig
from .editor import SheetStatus, SpreadsheetEditor
from .errors import CellMatrixError, FormulaError, InvalidAddressError
from .formula import ERROR_MARKER, FORMULA_MARKER, evaluate_formula
from .grid import GridStore
from .merges import MergeRegistry
from .models import (
    Cell,
    CellFormatting,
    CellRange,
    CellUpdate,
    MergeRegion,
    SheetSnapshot,
)
from .selection import SelectionModel
from .serializer import LoadedSheet, load, save

__all__ = [
    "DEFAULT_CONFIG",
    "ERROR_MARKER",
    "FORMULA_MARKER",
    "Cell",
    "CellFormatting",
    "CellMatrixError",
    "CellRange",
    "CellUpdate",
    "EngineConfig",
    "FormulaError",
    "GridStore",
    "InvalidAddressError",
    "LoadedSheet",
    "MergeRegion",
    "MergeRegistry",
    "SelectionModel",
    "SheetSnapshot",
    "SheetStatus",
    "SpreadsheetEditor",
    "evaluate_formula",
    "load",
    "save",
]
