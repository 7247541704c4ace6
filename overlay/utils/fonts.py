"""
Fallback typeface resolution for editable text.

Document fonts are not reproduced.  A family name is mapped to the
first installed TrueType candidate, falling back to Pillow's built-in
font.
"""

import logging
from functools import lru_cache
from typing import Dict, Tuple

from PIL import ImageFont

logger = logging.getLogger(__name__)

# Family → candidate font files, tried in order
_FAMILY_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "helvetica": (
        "Helvetica.ttc",
        "Arial.ttf",
        "LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "DejaVuSans.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    ),
    "times": (
        "Times.ttc",
        "Times New Roman.ttf",
        "LiberationSerif-Regular.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSerif-Regular.ttf",
        "DejaVuSerif.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf",
    ),
    "courier": (
        "Courier.ttc",
        "Courier New.ttf",
        "LiberationMono-Regular.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
        "DejaVuSansMono.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    ),
}


@lru_cache(maxsize=64)
def load_font(family: str, size: int) -> ImageFont.ImageFont:
    """
    Load *family* at *size* pixels.

    Unknown families use the Helvetica candidates.  When no candidate is
    installed, Pillow's default font is returned at the requested size.
    """
    size = max(1, int(round(size)))
    candidates = _FAMILY_CANDIDATES.get(family.lower(), _FAMILY_CANDIDATES["helvetica"])
    for name in (family,) + candidates:
        try:
            return ImageFont.truetype(name, size)
        except (OSError, IOError):
            continue

    logger.debug("No TrueType font for %r; using Pillow default", family)
    return ImageFont.load_default(size=size)


def measure_text(text: str, family: str, size: float) -> float:
    """Advance width of *text* in pixels."""
    if not text:
        return 0.0
    return float(load_font(family, size).getlength(text))
