"""Reconciliation of temporary files created during one request."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable

import aiofiles.os
import structlog

from app.schemas.common import CleanupReport

logger = structlog.get_logger(__name__)

Remover = Callable[[Path], Awaitable[None]]


def _key(path: Path) -> str:
    return str(path.absolute())


class TempFileReconciler:
    """Tracks every temporary path a request creates and deletes them all at the end.

    ``track`` is idempotent by absolute path. ``reconcile`` attempts each
    tracked path exactly once, runs the deletions concurrently, waits for all
    of them and aggregates the outcome into a CleanupReport. Deletion failures are
    counted, never raised, so it can run on any exit path without replacing
    the primary error.
    """

    def __init__(self, remover: Remover | None = None):
        self._remover: Remover = remover or aiofiles.os.remove
        self._tracked: dict[str, Path] = {}
        self._done: set[str] = set()

    def track(self, path: Path | str) -> Path:
        path = Path(path)
        self._tracked.setdefault(_key(path), path)
        return path

    @property
    def tracked(self) -> list[Path]:
        return list(self._tracked.values())

    @property
    def pending(self) -> list[Path]:
        return [p for k, p in self._tracked.items() if k not in self._done]

    async def reconcile(self) -> CleanupReport:
        """Delete all tracked paths not yet attempted."""
        batch = self.pending
        self._done.update(_key(p) for p in batch)

        report = CleanupReport()
        if not batch:
            return report

        outcomes = await asyncio.gather(
            *(self._remover(p) for p in batch),
            return_exceptions=True,
        )

        for path, outcome in zip(batch, outcomes):
            if outcome is None:
                report.deleted += 1
            elif isinstance(outcome, FileNotFoundError):
                report.missing += 1
            elif isinstance(outcome, Exception):
                report.failed += 1
                report.errors.append(f"{path}: {outcome}")
                logger.warning("temp_file_delete_failed", path=str(path), error=str(outcome))
            else:
                # CancelledError and friends: the batch itself was interrupted.
                raise outcome

        logger.info(
            "temp_files_reconciled",
            deleted=report.deleted,
            missing=report.missing,
            failed=report.failed,
        )
        return report
