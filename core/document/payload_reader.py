"""
Reader for the JSON payload served by the parse endpoint.

The payload describes the first page only::

    {"width": 612, "height": 792,
     "texts": [{"text": "Hello", "x": 72, "y": 60, "fontSize": 12,
                "color": "#000000", "width": 28.4}]}

Coordinates are PDF points with a top-left origin and ``y`` at the top
of the glyph box.  ``width`` is optional.
"""

import logging
import math
from typing import Any, Dict, List

from PIL import Image

from core.exceptions import DecodeError
from core.page.matrix import AffineMatrix
from core.page.models import DecodedPage, TextRun, Viewport

logger = logging.getLogger(__name__)

# Advance estimate when a payload omits the run width
_AVG_GLYPH_WIDTH = 0.5


def _number(entry: Dict[str, Any], key: str, default: Any = None) -> float:
    value = entry.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise DecodeError(f"Payload field '{key}' is not a number: {value!r}")
    if not math.isfinite(value):
        raise DecodeError(f"Payload field '{key}' is not finite: {value!r}")
    return value


class PayloadPageReader:
    """
    Rebuilds a :class:`DecodedPage` from a parse-endpoint payload.

    There is no raster in the payload, so the background is a blank page
    of *background_fill*.
    """

    def __init__(self, render_scale: float = 1.5, background_fill: str = "white"):
        self.render_scale = render_scale
        self.background_fill = background_fill

    def read(self, payload: Dict[str, Any]) -> DecodedPage:
        """
        Raises:
            DecodeError: If the payload is not a mapping, lacks page
                dimensions, or holds malformed text entries.
        """
        if not isinstance(payload, dict):
            raise DecodeError("Payload must be a JSON object")

        width = _number(payload, "width")
        height = _number(payload, "height")
        if width <= 0 or height <= 0:
            raise DecodeError(f"Invalid page size {width}x{height}")

        viewport = Viewport.for_page(width, height, self.render_scale)
        background = Image.new(
            "RGB",
            (max(1, round(viewport.width_px)), max(1, round(viewport.height_px))),
            self.background_fill,
        )

        texts = payload.get("texts") or []
        if not isinstance(texts, list):
            raise DecodeError("Payload 'texts' must be a list")

        runs = [self._run_from_entry(entry, height) for entry in texts]
        logger.debug("Read payload page %gx%g with %d runs", width, height, len(runs))

        return DecodedPage(viewport=viewport, background_image=background, runs=runs)

    @staticmethod
    def _run_from_entry(entry: Dict[str, Any], page_height: float) -> TextRun:
        if not isinstance(entry, dict):
            raise DecodeError(f"Text entry must be an object, got {type(entry).__name__}")

        text = str(entry.get("text", ""))
        size = _number(entry, "fontSize")
        x = _number(entry, "x")
        y = _number(entry, "y")
        if entry.get("width") is not None:
            width = _number(entry, "width")
        else:
            width = _AVG_GLYPH_WIDTH * size * len(text)

        # y is the glyph-box top in a top-left system; the run transform
        # wants the baseline in PDF space.
        baseline = page_height - (y + size)
        return TextRun(
            content=text,
            run_transform=AffineMatrix(size, 0.0, 0.0, size, x, baseline),
            width_in_document_units=width,
            color=str(entry.get("color", "#000000")),
        )


def runs_to_payload(
    width: float, height: float, entries: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """Assemble the endpoint payload from per-run entries."""
    return {"width": width, "height": height, "texts": entries}
