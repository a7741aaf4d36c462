"""File response that reconciles temporary files once sending ends."""

from __future__ import annotations

from pathlib import Path

import anyio
import structlog
from fastapi.responses import FileResponse
from starlette.types import Receive, Scope, Send

from app.reconcile.engine import TempFileReconciler

logger = structlog.get_logger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


class ReconcilingFileResponse(FileResponse):
    """Streams a finished document, then deletes every tracked temp file.

    Reconciliation runs whether the send completes, fails, or is cancelled
    by a client disconnect.
    """

    def __init__(self, path: Path, reconciler: TempFileReconciler, filename: str = "document.pdf", **kwargs):
        kwargs.setdefault("media_type", PDF_MEDIA_TYPE)
        super().__init__(
            path=str(path),
            filename=filename,
            content_disposition_type="inline",
            **kwargs,
        )
        self.reconciler = reconciler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except Exception as exc:
            logger.error("response_stream_failed", error=str(exc))
            raise
        finally:
            with anyio.CancelScope(shield=True):
                await self.reconciler.reconcile()
