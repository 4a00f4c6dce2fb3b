from __future__ import annotations

from collections.abc import Sequence
import logging
import math
import re
from typing import Final

from cellmatrix.config import DEFAULT_CONFIG
from cellmatrix.errors import FormulaError, InvalidAddressError
from cellmatrix.models import Cell
from cellmatrix.shared.a1 import parse_address, parse_range

from .parser import evaluate_expression

logger = logging.getLogger(__name__)

FORMULA_MARKER: Final[str] = "="
ERROR_MARKER: Final[str] = "#VALUE!"

_RANGE_PATTERN = re.compile(r"([A-Z]+\d+):([A-Z]+\d+)")
_REFERENCE_PATTERN = re.compile(r"\b([A-Z]+\d+)\b(?!\()")
_LEADING_NUMBER_PATTERN = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

GridView = Sequence[Sequence[Cell]]


def is_formula(raw_value: str) -> bool:
    """Return True when ``raw_value`` starts with the formula marker."""
    return raw_value.startswith(FORMULA_MARKER)


def coerce_number(text: str) -> float:
    """Read the leading number of ``text``; anything non-numeric is 0."""
    match = _LEADING_NUMBER_PATTERN.match(text)
    if match is None:
        return 0.0
    value = float(match.group(0))
    return value if math.isfinite(value) else 0.0


def cell_number(grid: GridView, row: int, col: int) -> float:
    """Numeric value of a cell as seen by formulas.

    The computed value wins when present, then the raw value. Blank,
    non-numeric and out-of-bounds cells all read as 0.
    """
    if row < 0 or col < 0 or row >= len(grid) or col >= len(grid[row]):
        return 0.0
    cell = grid[row][col]
    return coerce_number(cell.computed_value or cell.raw_value or "0")


def format_number(value: float) -> str:
    """Render a result the way the grid displays it (``6``, ``2.5``)."""
    if value == 0:
        return "0"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def expand_ranges(
    expression: str, grid: GridView, *, max_cells: int | None = None
) -> str:
    """Replace every ``A1:B2`` range with a list literal of its numbers.

    Cells of the range that lie outside the grid are written as a trailing
    ``;N`` zero count. Only the part inside the grid counts towards
    ``max_cells``.
    """
    limit = DEFAULT_CONFIG.max_range_cells if max_cells is None else max_cells
    grid_rows = len(grid)
    grid_cols = len(grid[0]) if grid_rows else 0

    def _replace(match: re.Match[str]) -> str:
        try:
            start_row, start_col, end_row, end_col = parse_range(match.group(0))
        except InvalidAddressError:
            return "[0]"
        top, bottom = min(start_row, end_row), max(start_row, end_row)
        left, right = min(start_col, end_col), max(start_col, end_col)
        inside_bottom = min(bottom, grid_rows - 1)
        inside_right = min(right, grid_cols - 1)
        inside = max(0, inside_bottom - top + 1) * max(0, inside_right - left + 1)
        if inside > limit:
            raise FormulaError(
                f"Range {match.group(0)} exceeds the {limit} cell limit."
            )
        values = [
            format_number(cell_number(grid, row, col))
            for row in range(top, inside_bottom + 1)
            for col in range(left, inside_right + 1)
        ]
        zeros = (bottom - top + 1) * (right - left + 1) - inside
        padding = f";{zeros}" if zeros else ""
        return "[" + ",".join(values) + padding + "]"

    return _RANGE_PATTERN.sub(_replace, expression)


def substitute_references(expression: str, grid: GridView) -> str:
    """Replace every bare cell reference with the number it points at."""

    def _replace(match: re.Match[str]) -> str:
        try:
            row, col = parse_address(match.group(1))
        except InvalidAddressError:
            return "0"
        return format_number(cell_number(grid, row, col))

    return _REFERENCE_PATTERN.sub(_replace, expression)


def evaluate_formula(
    raw_value: str, grid: GridView, *, max_range_cells: int | None = None
) -> str:
    """Compute the display value of one cell.

    Args:
        raw_value: Text the user entered.
        grid: Read-only view of the grid the formula is evaluated against.
        max_range_cells: Largest range the formula may expand.

    Returns:
        ``raw_value`` itself for non-formulas, the formatted result for a
        valid formula, or ``"#VALUE!"`` when evaluation fails.
    """
    if not is_formula(raw_value):
        return raw_value
    expression = raw_value[len(FORMULA_MARKER) :].upper()
    try:
        expanded = expand_ranges(expression, grid, max_cells=max_range_cells)
        substituted = substitute_references(expanded, grid)
        return format_number(evaluate_expression(substituted))
    except FormulaError as exc:
        logger.debug("Formula %r evaluated to %s: %s", raw_value, exc.code, exc)
        return exc.code
    except Exception as exc:  # evaluation errors never leave the cell
        logger.debug("Formula %r failed: %s", raw_value, exc)
        return ERROR_MARKER
