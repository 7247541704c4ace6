"""
Core backend for the page overlay editor.
Page decoding, geometry and text runs. Scenes, export and HTTP live in ``overlay``.
"""

from .document import PayloadPageReader, PDFPageDecoder
from .exceptions import DecodeError, ExportError, OverlayError, SceneError, TransformError
from .page import AffineMatrix, DecodedPage, PageModel, PageTextLayer, TextRun, Viewport

__all__ = [
    "AffineMatrix",
    "DecodedPage",
    "DecodeError",
    "ExportError",
    "OverlayError",
    "PageModel",
    "PageTextLayer",
    "PayloadPageReader",
    "PDFPageDecoder",
    "SceneError",
    "TextRun",
    "TransformError",
    "Viewport",
]
