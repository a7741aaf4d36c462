"""Router: POST /generate — turn uploaded images into a single PDF."""

from __future__ import annotations

import anyio
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.dependencies import get_settings, require_captcha
from app.errors import AssemblyError, MalformedUpload, NoFilesUploaded, UploadTooLarge
from app.reconcile.engine import TempFileReconciler
from app.services.multipart_ingest import ingest_upload
from app.services.pdf_builder import assemble_document
from app.services.streaming import ReconcilingFileResponse
from app.storage.temp import TempStore

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["generate"])


async def _build_document(request: Request, settings: Settings, store: TempStore, reconciler: TempFileReconciler):
    try:
        upload = await ingest_upload(
            request,
            store,
            reconciler,
            max_bytes=settings.max_upload_bytes,
            max_field_bytes=settings.max_field_bytes,
        )
        if not upload.files:
            raise NoFilesUploaded()
        return await run_in_threadpool(assemble_document, upload.files, upload.options, store, reconciler)
    except UploadTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc))
    except (MalformedUpload, NoFilesUploaded) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except AssemblyError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.post(
    "/generate",
    dependencies=[Depends(require_captcha)],
    responses={200: {"content": {"application/pdf": {}}}},
)
async def generate_pdf(request: Request, settings: Settings = Depends(get_settings)):
    """Assemble the uploaded `files` parts into one PDF, one page per image.

    Form parts:
    - `files` (repeated): image bytes, pages follow upload order
    - `layout`: `portrait` (default) or `landscape`; anything else is ignored

    Every temporary file created here is deleted once the response has been
    sent, or immediately if the request fails first.
    """
    store = TempStore(settings.temp_path)
    reconciler = TempFileReconciler(remover=store.remove)

    try:
        output = await _build_document(request, settings, store, reconciler)
    except BaseException:
        with anyio.CancelScope(shield=True):
            await reconciler.reconcile()
        raise

    return ReconcilingFileResponse(output, reconciler=reconciler)
