"""
Page model for the overlay pipeline.
Provides the displayed page size, the screen viewport, background
rendering and text-run access for a single page.
"""

import logging
from typing import Optional, Tuple

import fitz
from PIL import Image

from .matrix import AffineMatrix
from .models import Viewport
from .text_layer import PageTextLayer

logger = logging.getLogger(__name__)


class PageModel:
    """
    Wraps one page of an open ``fitz.Document``.

    The page is loaded on first access and text extraction is deferred
    until :attr:`text_layer` is read, so a caller that only needs the
    viewport or the background never pays for it.
    """

    def __init__(self, doc: fitz.Document, page_index: int):
        self._doc = doc
        self.page_index = page_index
        self._page: Optional[fitz.Page] = None
        self._text_layer: Optional[PageTextLayer] = None

    @property
    def page(self) -> fitz.Page:
        if self._page is None:
            self._page = self._doc.load_page(self.page_index)
        return self._page

    @property
    def size_pt(self) -> Tuple[float, float]:
        """Displayed ``(width, height)`` in points, rotation applied."""
        rect = self.page.rect
        return rect.width, rect.height

    def viewport(self, scale: float = 1.5) -> Viewport:
        """
        Screen viewport at *scale*.

        The document→screen matrix chains PDF space → unrotated page
        space → rotated page space → pixels, i.e. exactly the mapping
        ``get_pixmap`` uses for the background.
        """
        mat = (
            fitz.Matrix(self.page.transformation_matrix)
            * self.page.rotation_matrix
            * fitz.Matrix(scale, scale)
        )
        width, height = self.size_pt
        return Viewport(
            width_px=width * scale,
            height_px=height * scale,
            scale=scale,
            document_to_screen=AffineMatrix.from_sequence(mat),
        )

    @property
    def text_layer(self) -> PageTextLayer:
        if self._text_layer is None:
            self._text_layer = PageTextLayer(self.page)
        return self._text_layer

    def render_background(self, scale: float = 1.5) -> Image.Image:
        """Rasterize the page (rotation applied) to an RGB image."""
        pix = self.page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        logger.debug("Rendered page %d at %gx: %dx%d", self.page_index, scale, pix.width, pix.height)
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

    def __repr__(self) -> str:
        width, height = self.size_pt
        return f"PageModel(page={self.page_index}, size={width:.0f}x{height:.0f}pt)"
