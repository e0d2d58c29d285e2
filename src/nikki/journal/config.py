"""Configuration dataclasses for the journal store and search.

These are pure data containers with sensible defaults. ``from_config``
builds them from the validated ``NikkiConfig``, so YAML and env overrides
go through the same checks as ``Config.validated()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.config import Config


@dataclass
class StoreConfig:
    """Where the journal database lives.

    Attributes:
        data_dir: Directory holding the database file.
        name: Database name; the file is ``<data_dir>/<name>.sqlite3``.
        timeout: Seconds SQLite waits on a locked database before failing.
    """

    data_dir: Path = field(default_factory=lambda: Path("~/.nikki-data").expanduser())
    name: str = "nikki"
    timeout: float = 5.0

    @property
    def path(self) -> Path:
        return Path(self.data_dir).expanduser() / f"{self.name}.sqlite3"

    @classmethod
    def from_config(cls, config: Config) -> StoreConfig:
        """Raises ConfigurationError if the configuration does not validate."""
        settings = config.validated()
        return cls(data_dir=settings.paths.data_dir, name=settings.database.name)


@dataclass
class SearchConfig:
    """Settings for fuzzy relevance search.

    Attributes:
        threshold: Match tolerance, 0 = exact only, 1 = anything matches.
            A field matches when its fuzzy score reaches ``(1 - threshold) * 100``.
        content_weight: Influence of a content match.
        tags_weight: Influence of a tag match.
        category_weight: Influence of a category match.
    """

    threshold: float = 0.3
    content_weight: float = 0.7
    tags_weight: float = 0.2
    category_weight: float = 0.1

    def __post_init__(self):
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")

    @classmethod
    def from_config(cls, config: Config) -> SearchConfig:
        """Raises ConfigurationError if threshold or weights do not validate."""
        search = config.validated().search
        return cls(
            threshold=search.threshold,
            content_weight=search.weights.content,
            tags_weight=search.weights.tags,
            category_weight=search.weights.category,
        )
