import fitz
import pytest

from conftest import make_decoded, make_pdf, make_run
from core.exceptions import DecodeError
from overlay.pipeline import LoadStats, OverlayConfig, OverlayPipeline


@pytest.fixture
def pipeline():
    return OverlayPipeline(OverlayConfig(render_scale=1.5))


def test_load_builds_scene_from_pdf(pipeline, hello_pdf):
    loaded = pipeline.load(hello_pdf)

    scene = loaded.scene
    assert [e.element_id for e in scene] == ["background", "patch-0000", "text-0000"]
    assert scene.get_text("text-0000") == "Hello"
    assert loaded.stats.runs_placed == 1
    assert loaded.stats.elements == 3
    assert "PAGE LOADED" in loaded.stats.summary()


def test_build_scene_counts_blank_and_skipped(pipeline):
    decoded = make_decoded(
        [
            make_run("keep", (12, 0, 0, 12, 50, 200)),
            make_run("  "),
            make_run("bad", (0, 0, 0, 0, 50, 100)),
        ]
    )

    stats = LoadStats()
    scene = pipeline.build_scene(decoded, stats)

    assert (stats.runs_total, stats.runs_placed, stats.runs_blank, stats.runs_skipped) == (3, 1, 1, 1)
    assert [e.text for e in scene.text_elements()] == ["keep"]


def test_load_propagates_decode_errors(pipeline):
    with pytest.raises(DecodeError):
        pipeline.load(b"garbage")


def test_export_after_edit(pipeline):
    loaded = pipeline.load(make_pdf(width=200, height=100, texts=[(20, 40, "Old", 12)]))
    loaded.scene.set_text("text-0000", "New")

    data = pipeline.export(loaded.scene)

    with fitz.open(stream=data, filetype="pdf") as doc:
        assert doc.page_count == 1
        assert (doc[0].rect.width, doc[0].rect.height) == pytest.approx((300, 150))
        # flattened: no extractable text remains
        assert doc[0].get_text().strip() == ""
    assert loaded.scene.get_text("text-0000") == "New"


def test_export_grows_page_for_moved_element(pipeline):
    loaded = pipeline.load(make_pdf(width=200, height=100, texts=[(20, 40, "Edge", 12)]))
    text = loaded.scene.get("text-0000")
    loaded.scene.set_position("text-0000", 290, 10)

    data = pipeline.export(loaded.scene)

    with fitz.open(stream=data, filetype="pdf") as doc:
        assert doc[0].rect.width >= 290 + text.width - 1


def test_load_payload_builds_scene_end_to_end(pipeline):
    payload = {
        "width": 200,
        "height": 100,
        "texts": [
            {"text": "Invoice", "x": 20, "y": 10, "fontSize": 14, "width": 50},
            {"text": "  ", "x": 20, "y": 40, "fontSize": 12},
        ],
    }

    loaded = pipeline.load_payload(payload)
    scene = loaded.scene

    assert [e.element_id for e in scene] == ["background", "patch-0000", "text-0000"]
    assert scene.background.image.size == (300, 150)
    text = scene.get("text-0000")
    assert (text.x, text.y) == pytest.approx((30, 15))
    assert text.font_size == pytest.approx(21)
    assert loaded.stats.runs_blank == 1

    with fitz.open(stream=pipeline.export(scene), filetype="pdf") as doc:
        assert doc.page_count == 1


def test_load_rejects_page_without_raster():
    class RunsOnlyDecoder:
        def decode_page(self, data):
            decoded = make_decoded([make_run()])
            decoded.background_image = None
            return decoded

    with pytest.raises(DecodeError):
        OverlayPipeline(decoder=RunsOnlyDecoder()).load(b"any")
