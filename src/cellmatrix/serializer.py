from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple

from pydantic import ValidationError

from .config import DEFAULT_CONFIG, EngineConfig
from .grid import GridStore
from .merges import MergeRegistry
from .models import SheetSnapshot
from .utils import warn_once

logger = logging.getLogger(__name__)


class LoadedSheet(NamedTuple):
    grid: GridStore
    merges: MergeRegistry


def save(grid: GridStore, merges: MergeRegistry) -> str:
    """Encode a grid, its metrics and its merges as snapshot JSON."""
    payload: dict[str, Any] = {
        "grid": [[cell.to_payload() for cell in row] for row in grid.cells],
        "colWidths": list(grid.col_widths),
        "rowHeights": list(grid.row_heights),
        "merges": [region.model_dump(by_alias=True) for region in merges.regions],
    }
    text = json.dumps(payload, ensure_ascii=False)
    logger.debug(
        "Saved %dx%d grid with %d merges (%d bytes).",
        grid.row_count,
        grid.col_count,
        len(merges),
        len(text),
    )
    return text


def default_sheet(config: EngineConfig | None = None) -> LoadedSheet:
    """Blank grid of default dimensions with no merges."""
    return LoadedSheet(GridStore.empty(config), MergeRegistry())


def load(text: str | None, config: EngineConfig | None = None) -> LoadedSheet:
    """Decode snapshot JSON produced by :func:`save`.

    Args:
        text: Snapshot text; may be empty, ``None`` or garbage.
        config: Defaults used for missing metrics and for the fallback grid.

    Returns:
        The decoded sheet, or a default empty sheet when the input is absent
        or cannot be decoded. This function does not raise.
    """
    cfg = config or DEFAULT_CONFIG
    try:
        snapshot = parse_snapshot(text)
        if snapshot is None:
            return default_sheet(cfg)
        return _build_sheet(snapshot, cfg)
    except (ValueError, ValidationError, RecursionError) as exc:
        logger.warning("Snapshot could not be loaded; using an empty grid: %s", exc)
        return default_sheet(cfg)


def parse_snapshot(text: str | None) -> SheetSnapshot | None:
    """Validate snapshot text.

    Returns:
        ``None`` for absent or empty snapshots (``""`` or ``"{}"``).

    Raises:
        ValueError: If the text is not valid JSON or not a snapshot object.
        pydantic.ValidationError: If the snapshot content is invalid.
    """
    if text is None or not text.strip():
        return None
    data = json.loads(text)
    if isinstance(data, list):
        warn_once(
            "legacy-snapshot",
            "Loading a legacy snapshot that stores only the grid array.",
        )
        data = {"grid": data}
    if not isinstance(data, dict):
        raise ValueError("Snapshot JSON must be an object or a grid array.")
    if not data:
        return None
    if "grid" not in data:
        raise ValueError("Snapshot JSON has no 'grid' entry.")
    return SheetSnapshot.model_validate(data)


def _fit_metrics(sizes: list[float], count: int, default: float) -> tuple[float, ...]:
    if len(sizes) != count and sizes:
        logger.warning(
            "Snapshot has %d sizes for %d lines; padding or truncating.",
            len(sizes),
            count,
        )
    fitted = list(sizes[:count])
    fitted.extend([default] * (count - len(fitted)))
    return tuple(fitted)


def _build_sheet(snapshot: SheetSnapshot, config: EngineConfig) -> LoadedSheet:
    rows = len(snapshot.grid)
    cols = len(snapshot.grid[0])
    grid = GridStore(
        cells=tuple(tuple(row) for row in snapshot.grid),
        col_widths=_fit_metrics(snapshot.col_widths, cols, config.default_col_width),
        row_heights=_fit_metrics(
            snapshot.row_heights, rows, config.default_row_height
        ),
        min_size=config.min_size,
        max_range_cells=config.max_range_cells,
    )
    return LoadedSheet(grid, MergeRegistry(regions=tuple(snapshot.merges)))
