"""
Snapshot sources: where the daemon gets the readings for each refresh.

The engine never fetches data itself.  A source is any object with an async
``load()`` returning a SiteSnapshot; errors (missing file, invalid JSON,
pydantic ValidationError) propagate to the caller, which decides how to
surface them.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-111)

TODO:
- None
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

from energyflow.src.models import SiteSnapshot


class SnapshotSource(Protocol):
    """Anything that can produce the current SiteSnapshot."""

    async def load(self) -> SiteSnapshot: ...


class JsonFileSource:
    """Reads a SiteSnapshot from a JSON file on every load.

    The file layout mirrors the model::

        {"ts": "...", "buildings": [...], "meters": [...], "readings": [...]}

    Args:
        path: Filesystem path of the JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def load(self) -> SiteSnapshot:
        """Read and validate the file.

        Raises:
            FileNotFoundError: If the file does not exist.
            pydantic.ValidationError: If the content does not match the model.
        """
        raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        return SiteSnapshot.model_validate_json(raw)
