"""Shared type aliases used across nikki."""

from pathlib import Path
from typing import Any

# Path types
PathLike = str | Path

# JSON-safe record as written to storage
Record = dict[str, Any]
