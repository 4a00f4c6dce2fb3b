from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from .models import CellRange, MergeRegion

logger = logging.getLogger(__name__)


class MergeRegistry(BaseModel):
    """Immutable, ordered set of non-overlapping merge regions."""

    model_config = ConfigDict(frozen=True)

    regions: tuple[MergeRegion, ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.regions)

    def overlapping(self, selection: CellRange) -> list[MergeRegion]:
        """Return the regions that share at least one cell with ``selection``."""
        return [region for region in self.regions if region.intersects(selection)]

    def merge(self, selection: CellRange | None) -> MergeRegistry:
        """Register ``selection`` as a new merge region.

        Single-cell selections are a no-op. A selection that overlaps an
        existing region is rejected and the registry is returned unchanged.
        """
        if selection is None or selection.is_single_cell:
            return self
        overlapped = self.overlapping(selection)
        if overlapped:
            logger.warning(
                "Merge %s overlaps existing merged ranges: %s.",
                selection.to_a1(),
                ", ".join(region.to_a1() for region in overlapped),
            )
            return self
        region = MergeRegion.from_corners(*selection.bounds)
        return self.model_copy(update={"regions": (*self.regions, region)})

    def unmerge(self, selection: CellRange | None) -> MergeRegistry:
        """Remove the region whose bounds equal ``selection`` exactly."""
        if selection is None or selection.is_single_cell:
            return self
        remaining = tuple(
            region for region in self.regions if region.bounds != selection.bounds
        )
        if len(remaining) == len(self.regions):
            return self
        return self.model_copy(update={"regions": remaining})

    def region_at(self, row: int, col: int) -> MergeRegion | None:
        """Return the region covering ``(row, col)``, if any."""
        for region in self.regions:
            if region.contains(row, col):
                return region
        return None

    def is_hidden(self, row: int, col: int) -> bool:
        """True when the cell is covered by a region it does not anchor."""
        return any(
            region.contains(row, col)
            and (row, col) != (region.start_row, region.start_col)
            for region in self.regions
        )

    def span_of(self, row: int, col: int) -> tuple[int, int]:
        """Return ``(row_span, col_span)`` for rendering the cell."""
        for region in self.regions:
            if region.start_row == row and region.start_col == col:
                return region.row_count, region.col_count
        return 1, 1
