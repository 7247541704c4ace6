"""
Page geometry, viewport and text-run extraction for PDF pages.
"""

from .matrix import AffineMatrix
from .models import DecodedPage, TextRun, Viewport
from .page_model import PageModel
from .text_layer import PageTextLayer

__all__ = [
    "AffineMatrix",
    "DecodedPage",
    "PageModel",
    "PageTextLayer",
    "TextRun",
    "Viewport",
]
