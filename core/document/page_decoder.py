"""
PDF page decoding for the overlay pipeline.

Turns raw document bytes into a :class:`DecodedPage`: the screen
viewport, a rasterized background and the page's text runs.  Only the
first page is decoded; later pages are treated as absent.
"""

import logging
from pathlib import Path
from typing import Union

import fitz  # PyMuPDF

from core.exceptions import DecodeError
from core.page.models import DecodedPage
from core.page.page_model import PageModel

logger = logging.getLogger(__name__)


def open_pdf(data: bytes) -> fitz.Document:
    """
    Open a PDF document from memory.

    Raises:
        DecodeError: If the bytes are not a readable, unencrypted PDF
            with at least one page.
    """
    if not data:
        raise DecodeError("Empty document")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise DecodeError(f"Failed to open PDF: {e}") from e

    if doc.needs_pass:
        doc.close()
        raise DecodeError("Document is encrypted")
    if doc.page_count == 0:
        doc.close()
        raise DecodeError("Document has no pages")
    return doc


class PDFPageDecoder:
    """Decodes the first page of a PDF at a fixed render scale."""

    def __init__(self, render_scale: float = 1.5):
        if render_scale <= 0:
            raise ValueError(f"render_scale must be positive, got {render_scale}")
        self.render_scale = render_scale

    def decode_page(self, data: bytes, render_background: bool = True) -> DecodedPage:
        """
        Decode the first page of *data*.

        Args:
            data:              Raw PDF bytes
            render_background: Rasterize the page.  Callers that only need
                               the viewport and runs pass ``False`` and get
                               ``background_image=None``.

        Returns:
            DecodedPage with viewport, background image and text runs

        Raises:
            DecodeError: On malformed input or a page that cannot be
                rendered.
        """
        doc = open_pdf(data)
        try:
            if doc.page_count > 1:
                logger.info(
                    "Document has %d pages; only the first is decoded",
                    doc.page_count,
                )

            model = PageModel(doc, 0)
            background = None
            try:
                viewport = model.viewport(self.render_scale)
                if render_background:
                    background = model.render_background(self.render_scale)
                runs = list(model.text_layer.runs)
            except DecodeError:
                raise
            except Exception as e:
                raise DecodeError(f"Failed to decode page 1: {e}") from e

            logger.debug(
                "Decoded %r: %d runs, background %s",
                model,
                len(runs),
                background.size if background is not None else "skipped",
            )
            return DecodedPage(
                viewport=viewport,
                background_image=background,
                runs=runs,
                page_count=doc.page_count,
            )
        finally:
            doc.close()

    def decode_file(self, file_path: Union[str, Path]) -> DecodedPage:
        """Read *file_path* and decode its first page."""
        path = Path(file_path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeError(f"Cannot read '{path}': {e}") from e
        return self.decode_page(data)

    def __repr__(self) -> str:
        return f"PDFPageDecoder(scale={self.render_scale:g})"
