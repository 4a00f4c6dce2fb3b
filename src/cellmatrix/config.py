from __future__ import annotations

from collections.abc import Mapping
import os
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, model_validator

_ENV_PREFIX: Final[str] = "CELLMATRIX_"
_ENV_FIELDS: Final[tuple[str, ...]] = (
    "default_rows",
    "default_cols",
    "default_col_width",
    "default_row_height",
    "min_size",
    "max_range_cells",
)


class EngineConfig(BaseModel):
    """Sizing and limit settings for a spreadsheet session."""

    model_config = ConfigDict(frozen=True)

    default_rows: int = Field(
        default=50, gt=0, description="Row count of a freshly created grid."
    )
    default_cols: int = Field(
        default=26, gt=0, description="Column count of a freshly created grid."
    )
    default_col_width: float = Field(
        default=120, gt=0, description="Initial width of every column."
    )
    default_row_height: float = Field(
        default=32, gt=0, description="Initial height of every row."
    )
    min_size: float = Field(
        default=30, gt=0, description="Floor applied to column widths and row heights."
    )
    max_range_cells: int = Field(
        default=10_000,
        gt=0,
        description="Largest range a formula may expand before it is rejected.",
    )

    @model_validator(mode="after")
    def _validate_defaults_above_floor(self) -> EngineConfig:
        if self.default_col_width < self.min_size:
            raise ValueError("default_col_width must not be below min_size.")
        if self.default_row_height < self.min_size:
            raise ValueError("default_row_height must not be below min_size.")
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a config from ``CELLMATRIX_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Validated configuration; unset variables keep their defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        source = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for name in _ENV_FIELDS:
            raw = source.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip():
                overrides[name] = raw.strip()
        return cls.model_validate(overrides)


DEFAULT_CONFIG: Final[EngineConfig] = EngineConfig()
