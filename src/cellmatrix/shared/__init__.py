from __future__ import annotations

from .a1 import (
    column_index_to_label,
    column_label_to_index,
    format_address,
    parse_address,
    parse_range,
)

__all__ = [
    "column_index_to_label",
    "column_label_to_index",
    "format_address",
    "parse_address",
    "parse_range",
]
