"""
Span-level text run extraction for PDF pages.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import fitz

from .matrix import AffineMatrix
from .models import TextRun

logger = logging.getLogger(__name__)


def _hex_color(color: int) -> str:
    """Convert a PyMuPDF sRGB integer to ``#rrggbb``."""
    return "#{:06x}".format(int(color) & 0xFFFFFF)


class PageTextLayer:
    """
    Extracts the text runs of a PDF page.

    Each PyMuPDF span becomes one :class:`TextRun` whose transform is
    rebuilt in PDF space (origin bottom-left) from the span size, the
    line direction and the baseline origin of its first glyph.  Runs are
    kept in extraction order, including whitespace-only ones; filtering is
    left to the overlay pipeline.
    """

    def __init__(self, page: fitz.Page):
        self.page = page
        self.runs: List[TextRun] = []
        self._to_pdf = ~fitz.Matrix(page.transformation_matrix)

        self._extract_runs()

    def _extract_runs(self):
        """Walk blocks → lines → spans of the page's raw text dictionary."""
        flags = fitz.TEXT_PRESERVE_WHITESPACE | fitz.TEXT_PRESERVE_LIGATURES

        text_dict = self.page.get_text("rawdict", flags=flags)

        for block_data in text_dict.get("blocks", []):
            # Skip image blocks
            if block_data.get("type") != 0:
                continue

            for line_data in block_data.get("lines", []):
                direction = tuple(line_data.get("dir", (1.0, 0.0)))

                for span_data in line_data.get("spans", []):
                    run = self._run_from_span(span_data, direction)
                    if run is not None:
                        self.runs.append(run)

        logger.debug("Extracted %d text runs", len(self.runs))

    def _run_from_span(
        self, span_data: dict, direction: Tuple[float, float]
    ) -> Optional[TextRun]:
        chars = span_data.get("chars", [])
        if not chars:
            return None

        size = float(span_data.get("size", 0.0))
        origin = fitz.Point(chars[0].get("origin", span_data.get("origin", (0, 0))))

        # Map the baseline origin and one unit along the line direction
        # into PDF space; the difference is the run's x-axis there.
        anchor = origin * self._to_pdf
        ahead = fitz.Point(origin.x + direction[0], origin.y + direction[1]) * self._to_pdf
        ux, uy = ahead.x - anchor.x, ahead.y - anchor.y
        norm = math.hypot(ux, uy) or 1.0
        ux, uy = ux / norm, uy / norm

        transform = AffineMatrix(
            size * ux, size * uy, -size * uy, size * ux, anchor.x, anchor.y
        )

        return TextRun(
            content="".join(c.get("c", "") for c in chars),
            run_transform=transform,
            width_in_document_units=_advance(chars, origin, direction),
            font_name=span_data.get("font", ""),
            color=_hex_color(span_data.get("color", 0)),
        )

    @property
    def full_text(self) -> str:
        """Concatenated run content, one run per line."""
        return "\n".join(r.content for r in self.runs)

    def __len__(self) -> int:
        return len(self.runs)


def _advance(
    chars: Sequence[dict], origin: fitz.Point, direction: Tuple[float, float]
) -> float:
    """
    Extent of the glyph boxes along *direction*, measured from the
    baseline origin of the first glyph.
    """
    dx, dy = direction
    extent = 0.0
    for char in chars:
        x0, y0, x1, y1 = char.get("bbox", (0, 0, 0, 0))
        for px, py in ((x0, y0), (x1, y0), (x0, y1), (x1, y1)):
            extent = max(extent, (px - origin.x) * dx + (py - origin.y) * dy)
    return extent
