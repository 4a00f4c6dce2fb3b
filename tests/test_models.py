from __future__ import annotations

from pydantic import ValidationError
import pytest

from cellmatrix.models import (
    Cell,
    CellFormatting,
    CellRange,
    CellUpdate,
    MergeRegion,
    SheetSnapshot,
)


def test_cell_defaults() -> None:
    cell = Cell()
    assert cell.raw_value == ""
    assert cell.computed_value == ""
    assert cell.formatting == CellFormatting()


def test_cell_reads_flat_snapshot_shape() -> None:
    cell = Cell.model_validate(
        {
            "value": "=A1",
            "computed": "3",
            "bold": True,
            "italic": False,
            "align": "right",
            "color": "#111111",
            "bgColor": "#EEEEEE",
            "wrap": True,
        }
    )
    assert cell.raw_value == "=A1"
    assert cell.computed_value == "3"
    assert cell.formatting == CellFormatting(
        bold=True,
        align="right",
        text_color="#111111",
        background_color="#EEEEEE",
        wrap=True,
    )


def test_cell_reads_camel_case_and_nested_shapes() -> None:
    cell = Cell.model_validate(
        {
            "rawValue": "x",
            "computedValue": "x",
            "formatting": {"italic": True},
            "textColor": "#123456",
        }
    )
    assert cell.raw_value == "x"
    assert cell.formatting.italic
    assert cell.formatting.text_color == "#123456"


def test_cell_coerces_numbers_and_null() -> None:
    cell = Cell.model_validate({"value": 12, "computed": None})
    assert cell.raw_value == "12"
    assert cell.computed_value == ""


def test_cell_rejects_unknown_alignment() -> None:
    with pytest.raises(ValidationError):
        Cell.model_validate({"value": "", "align": "justify"})


def test_cell_payload_omits_default_formatting() -> None:
    cell = Cell(raw_value="a", computed_value="a")
    assert cell.to_payload() == {"value": "a", "computed": "a"}
    styled = Cell(formatting=CellFormatting(italic=True, text_color="#000000"))
    assert styled.to_payload() == {
        "value": "",
        "computed": "",
        "italic": True,
        "color": "#000000",
    }


def test_cell_update_overlays_only_set_fields() -> None:
    cell = Cell(
        raw_value="old",
        computed_value="old",
        formatting=CellFormatting(italic=True, align="left"),
    )
    updated = CellUpdate(bold=True, align="center").apply(cell)
    assert updated.raw_value == "old"
    assert updated.formatting == CellFormatting(bold=True, italic=True, align="center")
    assert CellUpdate(raw_value="").apply(cell).raw_value == ""


def test_cell_update_requires_a_field() -> None:
    with pytest.raises(ValidationError, match="at least one field"):
        CellUpdate()


def test_cell_range_geometry() -> None:
    rect = CellRange.from_corners(4, 3, 1, 1)
    assert rect.bounds == (1, 1, 4, 3)
    assert (rect.row_count, rect.col_count) == (4, 3)
    assert not rect.is_single_cell
    assert rect.contains(2, 2)
    assert not rect.contains(0, 2)
    assert rect.to_a1() == "B2:D5"
    assert list(CellRange.from_corners(0, 0, 1, 1).iter_cells()) == [
        (0, 0),
        (0, 1),
        (1, 0),
        (1, 1),
    ]


def test_cell_range_intersection() -> None:
    rect = CellRange.from_corners(1, 1, 2, 2)
    assert rect.intersects(CellRange.from_corners(2, 2, 5, 5))
    assert not rect.intersects(CellRange.from_corners(3, 0, 4, 4))
    assert not rect.intersects(CellRange.from_corners(0, 3, 0, 3))


def test_cell_range_validation() -> None:
    with pytest.raises(ValidationError, match="must not be after"):
        CellRange(start_row=2, start_col=0, end_row=1, end_col=0)
    with pytest.raises(ValidationError):
        CellRange.from_corners(-1, 0, 0, 0)


def test_cell_range_aliases() -> None:
    rect = CellRange.model_validate({"startRow": 0, "startCol": 1, "endRow": 2, "endCol": 3})
    assert rect == CellRange.model_validate({"sr": 0, "sc": 1, "er": 2, "ec": 3})
    assert rect.model_dump(by_alias=True) == {
        "startRow": 0,
        "startCol": 1,
        "endRow": 2,
        "endCol": 3,
    }


def test_merge_region_requires_multiple_cells() -> None:
    with pytest.raises(ValidationError, match="more than one cell"):
        MergeRegion.from_corners(1, 1, 1, 1)
    assert MergeRegion.from_corners(1, 1, 1, 2).col_count == 2


def test_sheet_snapshot_requires_rectangular_grid() -> None:
    with pytest.raises(ValidationError, match="expected 2"):
        SheetSnapshot.model_validate({"grid": [[{}, {}], [{}]]})
