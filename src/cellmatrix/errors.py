from __future__ import annotations


class CellMatrixError(Exception):
    """Base error for the spreadsheet engine."""


class InvalidAddressError(CellMatrixError, ValueError):
    """Raised when an A1 address or column label is malformed."""


class FormulaError(CellMatrixError):
    """Raised while parsing or interpreting a formula expression.

    Attributes:
        code: Marker written to the cell instead of a computed value.
    """

    code: str = "#VALUE!"

    def __init__(self, message: str = "", code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
