"""Multipart ingestion — stream a generate request body into staged files and options.

The body is fed chunk by chunk into a ``python-multipart`` parser. Parser
callbacks are synchronous, so they only record events; after every network
chunk the recorded events are drained asynchronously, which is where file
bytes are written to disk. Nothing larger than one network chunk is held in
memory for a file part.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional

import structlog
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import Request

from app.errors import MalformedUpload, UploadTooLarge
from app.reconcile.engine import TempFileReconciler
from app.schemas.common import GenerationOptions, Layout, StagedFile, UploadSession
from app.storage.temp import TempStore

logger = structlog.get_logger(__name__)

FILES_FIELD = "files"
LAYOUT_FIELD = "layout"
STAGED_SUFFIX = ".upload"

# Part kinds
_FILE = "file"
_FIELD = "field"
_SKIP = "skip"
_DEFERRED = "deferred"  # nameless file part, staged on its first byte


def parse_boundary(content_type: Optional[str]) -> bytes:
    """Extract the multipart boundary from a Content-Type header value."""
    if not content_type:
        raise MalformedUpload("Missing Content-Type header")
    media_type, params = parse_options_header(content_type)
    if media_type != b"multipart/form-data":
        raise MalformedUpload(f"Expected multipart/form-data, got {media_type.decode('latin-1')}")
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedUpload("Missing multipart boundary")
    return boundary


class MultipartIngestor:
    """Consumes one multipart body. Single use."""

    def __init__(
        self,
        store: TempStore,
        reconciler: TempFileReconciler,
        max_bytes: int,
        max_field_bytes: int = 64 * 1024,
    ):
        self.store = store
        self.reconciler = reconciler
        self.max_bytes = max_bytes
        self.max_field_bytes = max_field_bytes

        self.files: list[StagedFile] = []
        self.options = GenerationOptions()
        self.total_bytes = 0

        self._events: list[tuple[str, bytes]] = []
        self._ended = False

        # Current part state
        self._header_field = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._kind: Optional[str] = None
        self._name = ""
        self._field_value = bytearray()
        self._staged: Optional[StagedFile] = None
        self._writer = None

    # -- parser callbacks (sync, record only) --------------------------------

    def _callbacks(self) -> dict:
        def data_event(name: str):
            def cb(data: bytes, start: int, end: int) -> None:
                self._events.append((name, data[start:end]))
            return cb

        def notify_event(name: str):
            def cb() -> None:
                self._events.append((name, b""))
            return cb

        return {
            "on_part_begin": notify_event("part_begin"),
            "on_part_data": data_event("part_data"),
            "on_part_end": notify_event("part_end"),
            "on_header_field": data_event("header_field"),
            "on_header_value": data_event("header_value"),
            "on_header_end": notify_event("header_end"),
            "on_headers_finished": notify_event("headers_finished"),
            "on_end": notify_event("end"),
        }

    # -- event handling -------------------------------------------------------

    async def _drain(self) -> None:
        events, self._events = self._events, []
        for kind, data in events:
            if kind == "part_begin":
                self._begin_part()
            elif kind == "header_field":
                self._header_field += data
            elif kind == "header_value":
                self._header_value += data
            elif kind == "header_end":
                self._headers[self._header_field.lower()] = self._header_value
                self._header_field = b""
                self._header_value = b""
            elif kind == "headers_finished":
                await self._headers_finished()
            elif kind == "part_data":
                await self._part_data(data)
            elif kind == "part_end":
                await self._part_end()
            elif kind == "end":
                self._ended = True

    def _begin_part(self) -> None:
        self._header_field = b""
        self._header_value = b""
        self._headers = {}
        self._kind = None
        self._name = ""
        self._field_value = bytearray()
        self._staged = None

    async def _headers_finished(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if disposition is None:
            raise MalformedUpload("Multipart part without Content-Disposition")
        _, params = parse_options_header(disposition)
        self._name = params.get(b"name", b"").decode("utf-8", errors="replace")

        if b"filename" not in params:
            self._kind = _FIELD
            return

        filename = params[b"filename"].decode("utf-8", errors="replace")
        if self._name != FILES_FIELD:
            logger.warning("unexpected_file_part", field=self._name, filename=filename)
            self._kind = _SKIP
            return

        # Browsers send an empty, nameless part when no file was picked.
        if not filename:
            self._kind = _DEFERRED
            return

        await self._stage(filename)

    async def _stage(self, filename: Optional[str]) -> None:
        # Tracked before the file exists: a partial write is still cleaned up.
        path = self.reconciler.track(self.store.allocate(STAGED_SUFFIX))
        self._staged = StagedFile(path=path, field_name=self._name, filename=filename or None)
        self.files.append(self._staged)
        self._writer = await self.store.open_for_write(path)
        self._kind = _FILE

    async def _part_data(self, data: bytes) -> None:
        if self._kind == _FIELD:
            self._field_value.extend(data)
            if len(self._field_value) > self.max_field_bytes:
                raise MalformedUpload(f"Field '{self._name}' exceeds {self.max_field_bytes} bytes")
            return

        # Every file byte counts toward the request ceiling, staged or not.
        self.total_bytes += len(data)
        if self.total_bytes > self.max_bytes:
            logger.warning(
                "upload_too_large",
                limit=self.max_bytes,
                staged_files=len(self.files),
            )
            raise UploadTooLarge(self.max_bytes)

        if self._kind == _DEFERRED and data:
            await self._stage(None)

        if self._kind == _FILE:
            await self._writer.write(data)
            self._staged.size_bytes += len(data)

    async def _part_end(self) -> None:
        if self._kind == _FILE:
            await self._close_writer()
            logger.info(
                "file_staged",
                index=len(self.files) - 1,
                filename=self._staged.filename,
                size_bytes=self._staged.size_bytes,
            )
        elif self._kind == _DEFERRED:
            logger.info("empty_file_part_skipped", field=self._name)
        elif self._kind == _FIELD:
            self._apply_field(self._name, bytes(self._field_value))
        self._kind = None

    def _apply_field(self, name: str, raw: bytes) -> None:
        value = raw.decode("utf-8", errors="replace")
        if name != LAYOUT_FIELD:
            logger.warning("unknown_field", field=name)
            return
        self.options = GenerationOptions.from_form_value(value)
        if self.options.layout is Layout.PORTRAIT and value != Layout.PORTRAIT.value:
            logger.info("invalid_layout", value=value[:32])

    async def _close_writer(self) -> None:
        if self._writer is not None:
            writer, self._writer = self._writer, None
            await writer.close()

    # -- entry point ----------------------------------------------------------

    async def consume(self, content_type: Optional[str], chunks: AsyncIterator[bytes]) -> UploadSession:
        parser = MultipartParser(parse_boundary(content_type), self._callbacks())
        try:
            async for chunk in chunks:
                try:
                    parser.write(chunk)
                except MultipartParseError as exc:
                    raise MalformedUpload(f"Invalid multipart body: {exc}") from exc
                await self._drain()
            parser.finalize()
            await self._drain()
        finally:
            await self._close_writer()

        if not self._ended:
            raise MalformedUpload("Multipart body ended before the closing boundary")

        logger.info(
            "upload_ingested",
            files=len(self.files),
            total_bytes=self.total_bytes,
            layout=self.options.layout.value,
        )
        return UploadSession(files=self.files, options=self.options, total_bytes=self.total_bytes)


async def ingest_upload(
    request: Request,
    store: TempStore,
    reconciler: TempFileReconciler,
    max_bytes: int,
    max_field_bytes: int = 64 * 1024,
) -> UploadSession:
    """Stream *request*'s multipart body into *store*.

    Args:
        request: Incoming request; its body is read exactly once.
        store: Where `files` parts are staged.
        reconciler: Receives every staged path before its first byte is written.
        max_bytes: Aggregate ceiling on file-part bytes for the whole request.
        max_field_bytes: Ceiling on a single form field value.

    Returns:
        UploadSession with files in stream order and the decoded options.

    Raises:
        UploadTooLarge: The ceiling was exceeded; everything staged so far is tracked.
        MalformedUpload: The body is not a complete multipart/form-data stream.
    """
    ingestor = MultipartIngestor(store, reconciler, max_bytes, max_field_bytes)
    return await ingestor.consume(request.headers.get("content-type"), request.stream())
