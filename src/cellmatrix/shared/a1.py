from __future__ import annotations

import re

from cellmatrix.errors import InvalidAddressError

_ADDRESS_PATTERN = re.compile(r"^([A-Z]+)([0-9]+)$")
_RANGE_PATTERN = re.compile(r"^([A-Z]+[0-9]+):([A-Z]+[0-9]+)$")
_COLUMN_LABEL_PATTERN = re.compile(r"^[A-Z]+$")


def column_label_to_index(label: str) -> int:
    """Convert a column label (A/AA) to a 0-based column index."""
    if not _COLUMN_LABEL_PATTERN.match(label):
        raise InvalidAddressError(f"Invalid column label: {label!r}")
    index = 0
    for char in label:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def column_index_to_label(index: int) -> str:
    """Convert a 0-based column index to a column label."""
    if index < 0:
        raise InvalidAddressError("Column index must not be negative.")
    chunks: list[str] = []
    current = index + 1
    while current > 0:
        current -= 1
        chunks.append(chr(ord("A") + (current % 26)))
        current //= 26
    return "".join(reversed(chunks))


def parse_address(value: str) -> tuple[int, int]:
    """Parse an A1 address into 0-based ``(row, col)``.

    Args:
        value: Upper-case address such as ``"B12"``.

    Returns:
        Row and column indexes; ``"A1"`` maps to ``(0, 0)``.

    Raises:
        InvalidAddressError: If the text is not letters followed by digits or
            the row number is zero.
    """
    match = _ADDRESS_PATTERN.match(value)
    if match is None:
        raise InvalidAddressError(f"Invalid cell reference: {value!r}")
    row = int(match.group(2)) - 1
    if row < 0:
        raise InvalidAddressError(f"Row numbers start at 1: {value!r}")
    return row, column_label_to_index(match.group(1))


def format_address(row: int, col: int) -> str:
    """Format 0-based coordinates as an A1 address."""
    if row < 0:
        raise InvalidAddressError("Row index must not be negative.")
    return f"{column_index_to_label(col)}{row + 1}"


def parse_range(value: str) -> tuple[int, int, int, int]:
    """Parse ``A1:C3`` into its two corners as given (not normalized)."""
    match = _RANGE_PATTERN.match(value)
    if match is None:
        raise InvalidAddressError(f"Invalid range reference: {value!r}")
    start_row, start_col = parse_address(match.group(1))
    end_row, end_col = parse_address(match.group(2))
    return start_row, start_col, end_row, end_col
