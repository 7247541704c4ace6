import io

import fitz
import pytest
from PIL import Image

from core.exceptions import ExportError
from core.page.models import Viewport
from overlay.export import canvas_size, flatten, page_orientation, wrap
from overlay.scene import BackgroundImage, EditableText, OcclusionPatch, SceneModel


def _scene(width_pt=200, height_pt=100, scale=1.0, fill="black"):
    viewport = Viewport.for_page(width_pt, height_pt, scale)
    scene = SceneModel(viewport)
    image = Image.new("RGB", (int(width_pt), int(height_pt)), fill)
    scene.add(
        BackgroundImage(
            element_id="background",
            width=viewport.width_px,
            height=viewport.height_px,
            image=image,
            scale_x=scale,
            scale_y=scale,
        )
    )
    return scene


def _raster_size(raster):
    with Image.open(io.BytesIO(raster)) as img:
        return img.size


def test_raster_covers_viewport():
    scene = _scene(scale=2.0)

    raster = flatten(scene)

    assert _raster_size(raster) == (400, 200)


def test_raster_grows_for_element_past_edge():
    scene = _scene()
    scene.add(EditableText(element_id="text-0000", x=180, y=90, width=60, height=30, text="Edge"))

    assert canvas_size(scene) == (240, 120)
    assert _raster_size(flatten(scene)) == (240, 120)


def test_patch_hides_background():
    scene = _scene(fill="black")
    scene.add(OcclusionPatch(element_id="patch-0000", x=20, y=20, width=40, height=20, fill="white"))
    scene.add(EditableText(element_id="text-0000", x=20, y=20, width=40, height=16, text=""))

    with Image.open(io.BytesIO(flatten(scene))) as img:
        rgb = img.convert("RGB")
        assert rgb.getpixel((40, 30)) == (255, 255, 255)
        assert rgb.getpixel((5, 5)) == (0, 0, 0)


def test_text_is_painted():
    scene = _scene(fill="white")
    scene.add(
        EditableText(
            element_id="text-0000",
            x=10,
            y=10,
            width=150,
            height=40,
            text="WWWW",
            font_size=40,
        )
    )

    with Image.open(io.BytesIO(flatten(scene))) as img:
        lo, _ = img.convert("L").getextrema()
    assert lo < 128


def test_flatten_disposed_scene_raises():
    scene = _scene()
    scene.dispose()

    with pytest.raises(ExportError):
        flatten(scene)


def test_wrap_page_matches_raster_size():
    raster = flatten(_scene(width_pt=300, height_pt=120))

    pdf = wrap(raster, (300, 120))

    with fitz.open(stream=pdf, filetype="pdf") as doc:
        assert doc.page_count == 1
        rect = doc[0].rect
        assert (rect.width, rect.height) == pytest.approx((300, 120))
        assert doc.metadata["subject"] == "landscape"


def test_wrap_portrait():
    raster = flatten(_scene(width_pt=100, height_pt=250))

    with fitz.open(stream=wrap(raster), filetype="pdf") as doc:
        assert doc[0].rect.height == pytest.approx(250)
        assert doc.metadata["subject"] == "portrait"


def test_wrap_size_mismatch_raises():
    raster = flatten(_scene())

    with pytest.raises(ExportError):
        wrap(raster, (10, 10))


def test_wrap_unreadable_raster_raises():
    with pytest.raises(ExportError):
        wrap(b"not an image")


@pytest.mark.parametrize(
    "size, expected",
    [((300, 200), "landscape"), ((200, 300), "portrait"), ((200, 200), "portrait")],
)
def test_page_orientation(size, expected):
    assert page_orientation(*size) == expected
