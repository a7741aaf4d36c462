"""Shared schema types used across the application."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# A4 in PostScript points (width, height), portrait.
A4_SIZE: tuple[float, float] = (595.28, 841.89)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Layout(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------

class GenerationOptions(BaseModel):
    """Options decoded from the form fields of a generate request."""
    model_config = ConfigDict(frozen=True)

    layout: Layout = Field(Layout.PORTRAIT, description="Page orientation for the whole document")

    @classmethod
    def from_form_value(cls, value: Optional[str]) -> "GenerationOptions":
        """Build options from a raw `layout` value; anything unrecognised yields the default."""
        for layout in Layout:
            if value == layout.value:
                return cls(layout=layout)
        return cls()


class PageGeometry(BaseModel):
    """Page size in points."""
    model_config = ConfigDict(frozen=True)

    width: float
    height: float

    @classmethod
    def for_layout(cls, layout: Layout) -> "PageGeometry":
        width, height = A4_SIZE
        if layout is Layout.LANDSCAPE:
            width, height = height, width
        return cls(width=width, height=height)

    def as_tuple(self) -> tuple[float, float]:
        return (self.width, self.height)


class Placement(BaseModel):
    """Where an image lands on its page (lower-left origin, points)."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class StagedFile(BaseModel):
    """An uploaded file part persisted to a temporary path."""
    path: Path = Field(..., description="Temporary path owned by the request's TempStore")
    field_name: str = Field(..., description="Multipart field name the part arrived under")
    filename: Optional[str] = Field(None, description="Client-supplied filename, informational only")
    size_bytes: int = Field(0, ge=0, description="Bytes written so far")


class UploadSession(BaseModel):
    """Result of ingesting one multipart body."""
    files: list[StagedFile] = Field(default_factory=list, description="Staged files in stream order")
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    total_bytes: int = Field(0, ge=0, description="Aggregate bytes staged")


class CleanupReport(BaseModel):
    """Outcome of a reconciliation pass over tracked temporary paths."""
    deleted: int = 0
    missing: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.deleted + self.missing + self.failed
