"""Test helpers: image fixtures, multipart encoding, stub verifier."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable, Union

from PIL import Image

VALID_TOKEN = "10000000-aaaa-bbbb-cccc-000000000001"
BOUNDARY = "----docgen-test-boundary"

Part = tuple[str, Union[str, tuple[str, bytes, str]]]


def make_png(width: int, height: int, color: tuple = (200, 30, 30), mode: str = "RGB") -> bytes:
    """Encode a solid-colour PNG of the given pixel size."""
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def multipart_body(parts: Iterable[Part], boundary: str = BOUNDARY) -> bytes:
    """Encode *parts* in order as a multipart/form-data body.

    A part value is either a plain string (form field) or a
    ``(filename, data, content_type)`` tuple (file part).
    """
    out = bytearray()
    for name, value in parts:
        out += f"--{boundary}\r\n".encode()
        if isinstance(value, tuple):
            filename, data, content_type = value
            out += (
                f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                f"Content-Type: {content_type}\r\n\r\n"
            ).encode()
            out += data
        else:
            out += f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode()
            out += value.encode()
        out += b"\r\n"
    out += f"--{boundary}--\r\n".encode()
    return bytes(out)


def multipart_content_type(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


def listing(path: Path) -> set[str]:
    """Names currently present in *path* (empty if it does not exist yet)."""
    if not path.exists():
        return set()
    return {p.name for p in path.iterdir()}


class StubVerifier:
    """Stands in for HCaptchaVerifier; accepts only VALID_TOKEN."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.calls: list[str] = []

    async def verify(self, token: str) -> bool:
        self.calls.append(token)
        return token == VALID_TOKEN
