from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Final, Self

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    field_validator,
    model_validator,
)

from .shared.a1 import format_address
from .types import HorizontalAlignType

# Flat cell keys used by persisted snapshots, mapped to formatting fields.
_WIRE_FORMATTING_KEYS: Final[dict[str, str]] = {
    "bold": "bold",
    "italic": "italic",
    "align": "align",
    "color": "text_color",
    "textColor": "text_color",
    "bgColor": "background_color",
    "backgroundColor": "background_color",
    "wrap": "wrap",
}
_FORMATTING_WIRE_NAMES: Final[dict[str, str]] = {
    "bold": "bold",
    "italic": "italic",
    "align": "align",
    "text_color": "color",
    "background_color": "bgColor",
    "wrap": "wrap",
}
_RAW_VALUE_KEYS: Final[tuple[str, ...]] = ("value", "rawValue")
_COMPUTED_VALUE_KEYS: Final[tuple[str, ...]] = ("computed", "computedValue")


class CellFormatting(BaseModel):
    """Visual attributes of one cell."""

    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    align: HorizontalAlignType | None = None
    text_color: str | None = None
    background_color: str | None = None
    wrap: bool = False


class Cell(BaseModel):
    """One grid cell: the text the user typed plus its computed display value.

    Persisted snapshots store cells as flat objects
    (``{"value": "=A1", "computed": "3", "bold": true}``); the validator lifts
    those keys into the nested ``formatting`` model so both shapes load.
    """

    model_config = ConfigDict(frozen=True)

    raw_value: str = ""
    computed_value: str = ""
    formatting: CellFormatting = Field(default_factory=CellFormatting)

    @model_validator(mode="before")
    @classmethod
    def _lift_wire_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        for key in _RAW_VALUE_KEYS:
            if key in payload:
                payload.setdefault("raw_value", payload.pop(key))
        for key in _COMPUTED_VALUE_KEYS:
            if key in payload:
                payload.setdefault("computed_value", payload.pop(key))
        flat = {
            _WIRE_FORMATTING_KEYS[key]: payload.pop(key)
            for key in list(payload)
            if key in _WIRE_FORMATTING_KEYS
        }
        if not flat:
            return payload
        nested = payload.get("formatting")
        if isinstance(nested, CellFormatting):
            nested = nested.model_dump()
        merged = dict(nested) if isinstance(nested, dict) else {}
        for name, value in flat.items():
            merged.setdefault(name, value)
        payload["formatting"] = merged
        return payload

    @field_validator("raw_value", "computed_value", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def to_payload(self) -> dict[str, Any]:
        """Return the flat snapshot form, omitting unset formatting."""
        payload: dict[str, Any] = {
            "value": self.raw_value,
            "computed": self.computed_value,
        }
        defaults = CellFormatting()
        for name, wire_name in _FORMATTING_WIRE_NAMES.items():
            value = getattr(self.formatting, name)
            if value != getattr(defaults, name):
                payload[wire_name] = value
        return payload


class CellUpdate(BaseModel):
    """Partial cell change applied to every cell of a selection.

    Fields left as ``None`` keep the cell's current value.
    """

    model_config = ConfigDict(frozen=True)

    raw_value: str | None = None
    bold: bool | None = None
    italic: bool | None = None
    align: HorizontalAlignType | None = None
    text_color: str | None = None
    background_color: str | None = None
    wrap: bool | None = None

    @model_validator(mode="after")
    def _validate_not_empty(self) -> CellUpdate:
        if not self.model_dump(exclude_none=True):
            raise ValueError("CellUpdate must set at least one field.")
        return self

    def apply(self, cell: Cell) -> Cell:
        """Return ``cell`` with the set fields overlaid."""
        changes = self.model_dump(exclude_none=True)
        raw_value = changes.pop("raw_value", cell.raw_value)
        formatting = (
            cell.formatting.model_copy(update=changes) if changes else cell.formatting
        )
        return cell.model_copy(
            update={"raw_value": raw_value, "formatting": formatting}
        )


class CellRange(BaseModel):
    """Inclusive rectangle of cells with 0-based bounds."""

    model_config = ConfigDict(frozen=True)

    start_row: int = Field(
        ge=0,
        validation_alias=AliasChoices("start_row", "startRow", "sr"),
        serialization_alias="startRow",
    )
    start_col: int = Field(
        ge=0,
        validation_alias=AliasChoices("start_col", "startCol", "sc"),
        serialization_alias="startCol",
    )
    end_row: int = Field(
        ge=0,
        validation_alias=AliasChoices("end_row", "endRow", "er"),
        serialization_alias="endRow",
    )
    end_col: int = Field(
        ge=0,
        validation_alias=AliasChoices("end_col", "endCol", "ec"),
        serialization_alias="endCol",
    )

    @model_validator(mode="after")
    def _validate_order(self) -> CellRange:
        if self.start_row > self.end_row or self.start_col > self.end_col:
            raise ValueError(
                "Range start must not be after its end: "
                f"({self.start_row}, {self.start_col}) > ({self.end_row}, {self.end_col})"
            )
        return self

    @classmethod
    def from_corners(cls, row_a: int, col_a: int, row_b: int, col_b: int) -> Self:
        """Build a range from any two opposite corners."""
        return cls(
            start_row=min(row_a, row_b),
            start_col=min(col_a, col_b),
            end_row=max(row_a, row_b),
            end_col=max(col_a, col_b),
        )

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        return self.start_row, self.start_col, self.end_row, self.end_col

    @property
    def row_count(self) -> int:
        return self.end_row - self.start_row + 1

    @property
    def col_count(self) -> int:
        return self.end_col - self.start_col + 1

    @property
    def is_single_cell(self) -> bool:
        return self.row_count == 1 and self.col_count == 1

    def contains(self, row: int, col: int) -> bool:
        return (
            self.start_row <= row <= self.end_row
            and self.start_col <= col <= self.end_col
        )

    def intersects(self, other: CellRange) -> bool:
        return not (
            other.end_row < self.start_row
            or other.start_row > self.end_row
            or other.end_col < self.start_col
            or other.start_col > self.end_col
        )

    def iter_cells(self) -> Iterator[tuple[int, int]]:
        """Yield ``(row, col)`` pairs in row-major order."""
        for row in range(self.start_row, self.end_row + 1):
            for col in range(self.start_col, self.end_col + 1):
                yield row, col

    def to_a1(self) -> str:
        start = format_address(self.start_row, self.start_col)
        end = format_address(self.end_row, self.end_col)
        return f"{start}:{end}"


class MergeRegion(CellRange):
    """Rectangle rendered as a single cell anchored at its top-left corner."""

    @model_validator(mode="after")
    def _validate_multi_cell(self) -> MergeRegion:
        if self.is_single_cell:
            raise ValueError("A merge region must span more than one cell.")
        return self


class SheetSnapshot(BaseModel):
    """Persisted form of a grid, its metrics and its merge regions."""

    grid: list[list[Cell]]
    col_widths: list[PositiveFloat] = Field(
        default_factory=list,
        validation_alias=AliasChoices("col_widths", "colWidths"),
        serialization_alias="colWidths",
    )
    row_heights: list[PositiveFloat] = Field(
        default_factory=list,
        validation_alias=AliasChoices("row_heights", "rowHeights"),
        serialization_alias="rowHeights",
    )
    merges: list[MergeRegion] = Field(default_factory=list)

    @field_validator("grid")
    @classmethod
    def _validate_rectangular(cls, value: list[list[Cell]]) -> list[list[Cell]]:
        if not value or not value[0]:
            raise ValueError("grid must contain at least one cell.")
        width = len(value[0])
        for index, row in enumerate(value):
            if len(row) != width:
                raise ValueError(
                    f"grid row {index} has {len(row)} cells; expected {width}."
                )
        return value

    @model_validator(mode="after")
    def _validate_merges_in_bounds(self) -> SheetSnapshot:
        rows = len(self.grid)
        cols = len(self.grid[0])
        for region in self.merges:
            if region.end_row >= rows or region.end_col >= cols:
                raise ValueError(f"merge {region.to_a1()} lies outside the grid.")
        return self
