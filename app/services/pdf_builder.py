"""PDF builder — lay out staged images one per page on A4 with reportlab."""

from __future__ import annotations

from pathlib import Path

import structlog
from pypdf import PdfReader
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from app.errors import AssemblyError, NoFilesUploaded
from app.reconcile.engine import TempFileReconciler
from app.schemas.common import GenerationOptions, PageGeometry, Placement, StagedFile
from app.storage.temp import TempStore

logger = structlog.get_logger(__name__)


def fit_and_center(image_width: float, image_height: float, page: PageGeometry) -> Placement:
    """Largest aspect-preserving box inside *page*, centered on both axes."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")
    scale = min(page.width / image_width, page.height / image_height)
    width = image_width * scale
    height = image_height * scale
    return Placement(
        x=(page.width - width) / 2,
        y=(page.height - height) / 2,
        width=width,
        height=height,
    )


def get_page_count(pdf_path: str) -> int:
    """Return the total number of pages in a PDF."""
    reader = PdfReader(pdf_path)
    return len(reader.pages)


def assemble_document(
    files: list[StagedFile],
    options: GenerationOptions,
    store: TempStore,
    reconciler: TempFileReconciler,
) -> Path:
    """Write one PDF page per staged image, in order.

    Args:
        files: Staged images in upload order (must be non-empty).
        options: Decoded generation options; layout applies to every page.
        store: Allocates the output path.
        reconciler: Receives the output path before any byte is written.

    Returns:
        Path of the finished PDF.

    Raises:
        NoFilesUploaded: *files* is empty.
        AssemblyError: An image could not be read or the PDF could not be written.
    """
    if not files:
        raise NoFilesUploaded()

    page = PageGeometry.for_layout(options.layout)
    out_path = reconciler.track(store.allocate(".pdf"))

    try:
        canvas = Canvas(str(out_path), pagesize=page.as_tuple())
        for index, staged in enumerate(files):
            image = ImageReader(str(staged.path))
            image_width, image_height = image.getSize()
            placement = fit_and_center(image_width, image_height, page)
            canvas.drawImage(
                image,
                placement.x,
                placement.y,
                width=placement.width,
                height=placement.height,
                mask="auto",
            )
            # Closes this image's page; save() adds no trailing blank page.
            canvas.showPage()
            logger.debug("page_drawn", page=index + 1, filename=staged.filename)
        canvas.save()
        page_count = get_page_count(str(out_path))
    except Exception as exc:
        logger.error("document_assembly_failed", error=str(exc), output=out_path.name)
        raise AssemblyError(f"Could not assemble document: {exc}") from exc

    if page_count != len(files):
        raise AssemblyError(f"Expected {len(files)} pages, wrote {page_count}")

    logger.info(
        "document_assembled",
        pages=page_count,
        layout=options.layout.value,
        size_bytes=out_path.stat().st_size,
    )
    return out_path
