"""
Overlay builder: transformed runs → editable scene.

The scene is laid out as::

    background
    patch-0000, text-0000
    patch-0001, text-0001
    ...

Each patch hides the original glyphs of one run and is painted directly
under the editable text that replaces them.
"""

import logging
from typing import Iterable, Optional

from PIL import Image, ImageStat

from core.page.models import Viewport

from .scene import BackgroundImage, EditableText, OcclusionPatch, SceneModel
from .transform import TransformedRun

logger = logging.getLogger(__name__)

BACKGROUND_ID = "background"

# Patches are taller than the font size so descenders do not bleed through
DEFAULT_PATCH_HEIGHT_FACTOR = 1.2
DEFAULT_FONT_FAMILY = "Helvetica"


def patch_id(index: int) -> str:
    return f"patch-{index:04d}"


def text_id(index: int) -> str:
    return f"text-{index:04d}"


def build(
    background: Image.Image,
    runs: Iterable[TransformedRun],
    viewport: Viewport,
    patch_fill: str = "white",
    patch_height_factor: float = DEFAULT_PATCH_HEIGHT_FACTOR,
    sample_patch_fill: bool = False,
    font_family: str = DEFAULT_FONT_FAMILY,
    text_fill: str = "#000000",
    preserve_text_color: bool = False,
) -> SceneModel:
    """
    Build the editable scene for one page.

    Args:
        background:          Rasterized page at any resolution.
        runs:                Transformed, non-blank runs in original order.
        viewport:            Page viewport; all element geometry is in its
                             pixel space.
        patch_fill:          Patch colour (the page's background tone).
        patch_height_factor: Patch height as a multiple of the font size.
        sample_patch_fill:   Use the median background colour under each
                             patch instead of *patch_fill*.
        font_family:         Fallback typeface for editable text.
        text_fill:           Text colour.
        preserve_text_color: Use each run's decoded colour instead of
                             *text_fill*.

    Returns:
        A new :class:`SceneModel`.  Neither *background* nor *runs* is
        modified; the scene holds its own copy of the raster.
    """
    if patch_height_factor < 1.0:
        raise ValueError(
            f"patch_height_factor must be >= 1.0 to cover the glyph box, got {patch_height_factor}"
        )

    scene = SceneModel(viewport)
    image = background.copy()
    scene.add(
        BackgroundImage(
            element_id=BACKGROUND_ID,
            x=0.0,
            y=0.0,
            width=viewport.width_px,
            height=viewport.height_px,
            image=image,
            scale_x=viewport.width_px / image.width,
            scale_y=viewport.height_px / image.height,
        )
    )

    pairs = 0
    for index, run in enumerate(runs):
        patch_height = run.font_size_px * patch_height_factor
        fill = patch_fill
        if sample_patch_fill:
            fill = _sample_fill(image, viewport, run, patch_height) or patch_fill

        scene.add(
            OcclusionPatch(
                element_id=patch_id(index),
                x=run.screen_x,
                y=run.screen_y,
                width=run.width_px,
                height=patch_height,
                fill=fill,
                selectable=False,
                evented=False,
            )
        )
        scene.add(
            EditableText(
                element_id=text_id(index),
                x=run.screen_x,
                y=run.screen_y,
                width=run.width_px,
                height=run.font_size_px,
                text=run.text,
                font_size=run.font_size_px,
                font_family=font_family,
                fill=run.color if preserve_text_color else text_fill,
            )
        )
        pairs += 1

    logger.debug("Built scene with %d patch/text pairs", pairs)
    return scene


def _sample_fill(
    image: Image.Image,
    viewport: Viewport,
    run: TransformedRun,
    patch_height: float,
) -> Optional[str]:
    """
    Median colour of the raster under a patch, as ``#rrggbb``.  ``None``
    when the patch lies outside the raster.
    """
    sx = image.width / viewport.width_px
    sy = image.height / viewport.height_px
    box = (
        max(0, int(run.screen_x * sx)),
        max(0, int(run.screen_y * sy)),
        min(image.width, int((run.screen_x + run.width_px) * sx) + 1),
        min(image.height, int((run.screen_y + patch_height) * sy) + 1),
    )
    if box[2] <= box[0] or box[3] <= box[1]:
        return None

    region = image.crop(box).convert("RGB")
    r, g, b = (int(v) for v in ImageStat.Stat(region).median)
    return f"#{r:02x}{g:02x}{b:02x}"
