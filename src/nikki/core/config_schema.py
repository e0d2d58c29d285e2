"""Pydantic models for config validation.

Opt-in schema validation for ``Config.config_data``.  Call
``Config.validated()`` to obtain a typed, validated ``NikkiConfig``
instance.  Dict-based access keeps working unchanged.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    log_dir: Path | None = None

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class DatabaseConfig(BaseModel):
    """Name of the on-disk journal database."""

    name: str = "nikki"

    @field_validator("name")
    @classmethod
    def _plain_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError("database name must be a non-empty file stem")
        return v


class SearchWeights(BaseModel):
    """Relative influence of each searchable field."""

    content: float = 0.7
    tags: float = 0.2
    category: float = 0.1

    @model_validator(mode="after")
    def _ordered_and_normalised(self) -> SearchWeights:
        if not math.isclose(self.content + self.tags + self.category, 1.0, abs_tol=1e-6):
            raise ValueError("search weights must sum to 1.0")
        if not self.content >= self.tags >= self.category >= 0:
            raise ValueError("search weights must rank content >= tags >= category >= 0")
        return self


class SearchSettings(BaseModel):
    """Fuzzy search tuning."""

    threshold: float = 0.3
    weights: SearchWeights = SearchWeights()

    @field_validator("threshold")
    @classmethod
    def _in_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        return v


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    file: str | None = None


class NikkiConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.nikki-data"))
    database: DatabaseConfig = DatabaseConfig()
    search: SearchSettings = SearchSettings()
    logging: LoggingConfig = LoggingConfig()
