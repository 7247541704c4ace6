"""
Visual elements of an editable page scene.

Elements are plain dataclasses; their order inside a
:class:`~overlay.scene.scene_model.SceneModel` is the paint order.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from PIL import Image


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class VisualElement:
    """Common geometry and interaction flags for every element."""

    element_id: str = field(default_factory=_new_id)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    selectable: bool = False
    evented: bool = False

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """``(x0, y0, x1, y1)`` in screen pixels."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass
class BackgroundImage(VisualElement):
    """
    The rendered page.  ``scale_x`` / ``scale_y`` stretch the decoder's
    raster to exactly fill the viewport.
    """

    image: Optional[Image.Image] = None
    scale_x: float = 1.0
    scale_y: float = 1.0

    def __repr__(self) -> str:
        size = self.image.size if self.image is not None else None
        return (
            f"BackgroundImage({self.element_id}, raster={size}, "
            f"scale=({self.scale_x:.3f}, {self.scale_y:.3f}))"
        )


@dataclass
class OcclusionPatch(VisualElement):
    """Opaque rectangle hiding the original glyphs of one run."""

    fill: str = "white"

    def __repr__(self) -> str:
        return (
            f"OcclusionPatch({self.element_id}, "
            f"[{self.x:.1f},{self.y:.1f} {self.width:.1f}x{self.height:.1f}], "
            f"fill={self.fill})"
        )


@dataclass
class EditableText(VisualElement):
    """In-place editable text anchored at its top-left corner."""

    text: str = ""
    font_size: float = 12.0
    font_family: str = "Helvetica"
    fill: str = "#000000"
    selectable: bool = True
    evented: bool = True

    def __repr__(self) -> str:
        preview = self.text[:40].replace("\n", " ")
        return (
            f"EditableText({self.element_id}, "
            f"[{self.x:.1f},{self.y:.1f}], {self.font_size:.1f}px, '{preview}')"
        )
