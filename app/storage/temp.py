"""Temporary filesystem storage for staged uploads and generated documents."""

from __future__ import annotations

import uuid
from pathlib import Path

import aiofiles
import aiofiles.os
import structlog

logger = structlog.get_logger(__name__)


class TempStore:
    """Allocates uniquely named paths under one directory.

    Names are uuid4-based, so concurrent requests (and threads) sharing the
    same directory never collide. The store knows nothing about requests;
    callers decide when a path is tracked and when it is deleted.
    """

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def ensure_dir(self) -> Path:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        return self.base_dir

    def allocate(self, suffix: str = "") -> Path:
        """Return a fresh, not yet created path inside the store."""
        return self.ensure_dir() / f"{uuid.uuid4().hex}{suffix}"

    def open_for_write(self, path: Path):
        """Async binary writer (``async with store.open_for_write(p) as f``)."""
        return aiofiles.open(path, "wb")

    async def remove(self, path: Path) -> None:
        """Delete *path*; raises FileNotFoundError if it does not exist."""
        await aiofiles.os.remove(path)
        logger.debug("temp_file_removed", path=str(path))
