"""
Shared fixtures: in-memory PDFs built with PyMuPDF and a reference
viewport.
"""

from typing import Iterable, Optional, Sequence, Tuple

import fitz
import pytest
from PIL import Image

from core.page.matrix import AffineMatrix
from core.page.models import DecodedPage, TextRun, Viewport

# (x, baseline y in top-left page coordinates, text, font size)
TextSpec = Tuple[float, float, str, float]


def make_pdf(
    texts: Iterable[TextSpec] = ((50, 100, "Hello", 12),),
    width: float = 400,
    height: float = 300,
    pages: int = 1,
    rotation: int = 0,
) -> bytes:
    """Build a PDF whose first page carries *texts*."""
    doc = fitz.open()
    try:
        for index in range(pages):
            page = doc.new_page(width=width, height=height)
            if index == 0:
                for x, y, text, size in texts:
                    page.insert_text((x, y), text, fontsize=size, fontname="helv")
            else:
                page.insert_text((50, 100), f"Page {index + 1}", fontsize=12)
            if rotation:
                page.set_rotation(rotation)
        return doc.tobytes()
    finally:
        doc.close()


def make_run(
    content: str = "Hello",
    matrix: Sequence[float] = (12, 0, 0, 12, 50, 700),
    width: float = 40.0,
    color: str = "#000000",
) -> TextRun:
    return TextRun(
        content=content,
        run_transform=AffineMatrix.from_sequence(matrix),
        width_in_document_units=width,
        color=color,
    )


def make_decoded(
    runs: Optional[Sequence[TextRun]] = None,
    viewport: Optional[Viewport] = None,
    fill: str = "white",
) -> DecodedPage:
    viewport = viewport or Viewport.for_page(400, 300, 1.5)
    image = Image.new("RGB", (int(viewport.width_px), int(viewport.height_px)), fill)
    return DecodedPage(viewport=viewport, background_image=image, runs=list(runs or []))


@pytest.fixture
def reference_viewport() -> Viewport:
    """600x800 px at scale 1.5 with the usual bottom-left → top-left flip."""
    return Viewport(
        width_px=600,
        height_px=800,
        scale=1.5,
        document_to_screen=AffineMatrix(1.5, 0, 0, -1.5, 0, 800),
    )


@pytest.fixture
def hello_pdf() -> bytes:
    return make_pdf()


@pytest.fixture
def background() -> Image.Image:
    return Image.new("RGB", (300, 400), "white")
