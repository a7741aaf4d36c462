"""Domain errors raised by the generation pipeline."""

from __future__ import annotations


class DocGenerationError(Exception):
    """Base class for failures inside the upload -> PDF pipeline."""


class UploadTooLarge(DocGenerationError):
    """Aggregate uploaded bytes exceeded the per-request ceiling."""

    def __init__(self, limit: int):
        super().__init__(f"Upload exceeds the {limit} byte limit")
        self.limit = limit


class MalformedUpload(DocGenerationError):
    """The request body is not a parseable multipart/form-data stream."""


class NoFilesUploaded(DocGenerationError):
    """The request carried no `files` parts."""

    def __init__(self):
        super().__init__("No files uploaded")


class AssemblyError(DocGenerationError):
    """An image could not be read or encoded into the output document."""


class VerificationUnavailable(DocGenerationError):
    """The hCaptcha verification service could not be reached."""
