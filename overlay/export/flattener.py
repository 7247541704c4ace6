"""
Flatten a scene to one raster and wrap it as a single-page PDF.

Export is lossy and one-way: the original vector text is gone once the
page is rasterized.
"""

import io
import logging
import math
from typing import Optional, Tuple

import fitz
from PIL import Image, ImageDraw
from tqdm import tqdm

from core.exceptions import ExportError
from overlay.scene import BackgroundImage, EditableText, OcclusionPatch, SceneModel
from overlay.utils.fonts import load_font

logger = logging.getLogger(__name__)


def page_orientation(width: float, height: float) -> str:
    """``"landscape"`` when wider than tall, else ``"portrait"``."""
    return "landscape" if width > height else "portrait"


def canvas_size(scene: SceneModel) -> Tuple[int, int]:
    """
    Pixel size of the export canvas: the viewport, grown to include any
    element extending past its right or bottom edge.
    """
    _, _, x1, y1 = scene.bounding_box()
    width = math.ceil(max(scene.viewport.width_px, x1))
    height = math.ceil(max(scene.viewport.height_px, y1))
    return max(1, width), max(1, height)


def flatten(
    scene: SceneModel,
    raster_format: str = "PNG",
    disable_tqdm: bool = True,
) -> bytes:
    """
    Paint every element of *scene* in z-order and encode the result.

    The canvas origin is the viewport origin; anything left of or above
    it is clipped.

    Raises:
        ExportError: If the scene is disposed or painting/encoding fails.
    """
    if scene.is_disposed:
        raise ExportError("Cannot flatten a disposed scene")

    size = canvas_size(scene)
    try:
        canvas = Image.new("RGB", size, "white")
        draw = ImageDraw.Draw(canvas)

        for element in tqdm(
            scene.elements, desc="Painting", unit="el", disable=disable_tqdm
        ):
            if isinstance(element, BackgroundImage):
                _paint_background(canvas, element)
            elif isinstance(element, OcclusionPatch):
                draw.rectangle(
                    [element.x, element.y, element.x + element.width, element.y + element.height],
                    fill=element.fill,
                )
            elif isinstance(element, EditableText):
                if element.text:
                    font = load_font(element.font_family, element.font_size)
                    draw.text((element.x, element.y), element.text, font=font, fill=element.fill)
            else:
                logger.debug("No painter for %s; skipped", element.kind)

        buf = io.BytesIO()
        canvas.save(buf, format=raster_format)
    except Exception as e:
        raise ExportError(f"Rasterization failed: {e}") from e

    logger.debug("Flattened %d elements to %dx%d %s", len(scene), size[0], size[1], raster_format)
    return buf.getvalue()


def _paint_background(canvas: Image.Image, element: BackgroundImage) -> None:
    if element.image is None:
        return
    box = (max(1, round(element.width)), max(1, round(element.height)))
    image = element.image
    if image.size != box:
        image = image.resize(box, Image.Resampling.LANCZOS)
    canvas.paste(image.convert("RGB"), (round(element.x), round(element.y)))


def wrap(raster: bytes, page_size_px: Optional[Tuple[int, int]] = None) -> bytes:
    """
    Wrap *raster* as a one-page PDF whose page size in points equals the
    raster's pixel size.

    Args:
        raster:       Encoded image bytes from :func:`flatten`.
        page_size_px: Expected ``(width, height)``; must match the raster
                      when given.

    Raises:
        ExportError: If the raster cannot be read, does not match
            *page_size_px*, or the PDF cannot be written.
    """
    try:
        with Image.open(io.BytesIO(raster)) as img:
            width, height = img.size
    except Exception as e:
        raise ExportError(f"Unreadable raster: {e}") from e

    if page_size_px is not None and tuple(page_size_px) != (width, height):
        raise ExportError(
            f"Raster is {width}x{height}px but page size {tuple(page_size_px)} was requested"
        )

    orientation = page_orientation(width, height)
    long_side, short_side = max(width, height), min(width, height)
    if orientation == "landscape":
        page_w, page_h = long_side, short_side
    else:
        page_w, page_h = short_side, long_side

    try:
        doc = fitz.open()
        try:
            page = doc.new_page(width=page_w, height=page_h)
            page.insert_image(page.rect, stream=raster)
            doc.set_metadata({"creator": "page-overlay-editor", "subject": orientation})
            data = doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()
    except Exception as e:
        raise ExportError(f"Failed to write PDF: {e}") from e

    logger.info("Wrapped %dx%d raster as %s page", width, height, orientation)
    return data
