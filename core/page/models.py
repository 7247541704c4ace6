"""
Page geometry and text-run data models.

These are the values handed from the page decoder to the overlay
pipeline.  All of them are immutable for the lifetime of a decoded page.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from PIL import Image

from .matrix import AffineMatrix


@dataclass(frozen=True)
class Viewport:
    """
    Screen-space view of one page at a fixed render scale.

    ``document_to_screen`` maps PDF points (origin bottom-left) to canvas
    pixels (origin top-left), so it already contains the vertical flip.
    """

    width_px: float
    height_px: float
    scale: float
    document_to_screen: AffineMatrix

    @classmethod
    def for_page(cls, width_pt: float, height_pt: float, scale: float) -> "Viewport":
        """Viewport for an unrotated page whose media box starts at the origin."""
        return cls(
            width_px=width_pt * scale,
            height_px=height_pt * scale,
            scale=scale,
            document_to_screen=AffineMatrix(scale, 0.0, 0.0, -scale, 0.0, height_pt * scale),
        )

    @property
    def size(self):
        return (self.width_px, self.height_px)

    def __repr__(self) -> str:
        return (
            f"Viewport({self.width_px:.0f}x{self.height_px:.0f}px, "
            f"scale={self.scale:g})"
        )


@dataclass(frozen=True)
class TextRun:
    """A contiguous span of text sharing one transform, as decoded."""

    content: str
    run_transform: AffineMatrix
    width_in_document_units: float
    font_name: str = ""
    color: str = "#000000"

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()


@dataclass
class DecodedPage:
    """
    Output of the page decoder: viewport, rasterized background and text
    runs in original order.  ``background_image`` is ``None`` when the
    decoder was asked to skip rasterization.
    """

    viewport: Viewport
    background_image: Optional[Image.Image]
    runs: List[TextRun] = field(default_factory=list)
    page_count: int = 1

    @property
    def visible_runs(self) -> List[TextRun]:
        return [r for r in self.runs if not r.is_blank]

    def __repr__(self) -> str:
        return (
            f"DecodedPage({self.viewport!r}, runs={len(self.runs)}, "
            f"pages={self.page_count})"
        )
