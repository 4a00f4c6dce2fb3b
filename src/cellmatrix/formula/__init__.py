"""Formula evaluation for grid cells."""

from __future__ import annotations

from .evaluator import (
    ERROR_MARKER,
    FORMULA_MARKER,
    cell_number,
    coerce_number,
    evaluate_formula,
    expand_ranges,
    format_number,
    is_formula,
    substitute_references,
)
from .parser import FUNCTIONS, evaluate_expression, parse

__all__ = [
    "ERROR_MARKER",
    "FORMULA_MARKER",
    "FUNCTIONS",
    "cell_number",
    "coerce_number",
    "evaluate_expression",
    "evaluate_formula",
    "expand_ranges",
    "format_number",
    "is_formula",
    "parse",
    "substitute_references",
]
