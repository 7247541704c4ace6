import logging

import fitz
import pytest

from conftest import make_pdf
from core.document import PDFPageDecoder, open_pdf
from core.exceptions import DecodeError
from core.page import PageModel
from overlay.transform import transform_runs


@pytest.fixture
def decoder():
    return PDFPageDecoder(render_scale=1.5)


def test_viewport_and_background(decoder, hello_pdf):
    page = decoder.decode_page(hello_pdf)

    assert page.viewport.size == pytest.approx((600, 450))
    assert page.viewport.scale == 1.5
    assert page.background_image.size == (600, 450)
    assert page.background_image.mode == "RGB"
    assert page.page_count == 1


def test_text_run_in_pdf_space(decoder, hello_pdf):
    page = decoder.decode_page(hello_pdf)

    assert [r.content for r in page.visible_runs] == ["Hello"]
    run = page.visible_runs[0]
    m = run.run_transform
    assert m.first_column_norm == pytest.approx(12, abs=0.01)
    # baseline at y=100 from the top of a 300pt page
    assert (m.e, m.f) == pytest.approx((50, 200), abs=0.5)
    assert run.width_in_document_units > 0


def test_run_lands_where_it_was_drawn(decoder, hello_pdf):
    page = decoder.decode_page(hello_pdf)

    (placed,) = transform_runs(page.runs, page.viewport)

    assert placed.screen_x == pytest.approx(75, abs=0.5)
    assert placed.screen_y == pytest.approx(132, abs=0.5)
    assert placed.font_size_px == pytest.approx(18, abs=0.05)


def test_runs_keep_document_order(decoder):
    pdf = make_pdf(texts=[(50, 60, "first", 12), (50, 120, "second", 10), (50, 200, "third", 14)])

    page = decoder.decode_page(pdf)

    assert [r.content for r in page.visible_runs] == ["first", "second", "third"]


def test_only_first_page_is_decoded(decoder, caplog):
    pdf = make_pdf(pages=3)

    with caplog.at_level(logging.INFO, logger="core.document.page_decoder"):
        page = decoder.decode_page(pdf)

    assert page.page_count == 3
    assert [r.content for r in page.visible_runs] == ["Hello"]
    assert any("only the first" in rec.getMessage() for rec in caplog.records)


def test_rotated_page_swaps_viewport(decoder):
    page = decoder.decode_page(make_pdf(rotation=90))

    assert page.viewport.size == pytest.approx((450, 600))
    assert page.background_image.size == (450, 600)

    (placed,) = transform_runs(page.runs, page.viewport)
    assert placed.font_size_px == pytest.approx(18, abs=0.05)
    assert 0 <= placed.screen_x <= 450
    assert 0 <= placed.screen_y + placed.font_size_px <= 600


def test_page_without_text(decoder):
    page = decoder.decode_page(make_pdf(texts=[]))

    assert page.visible_runs == []


@pytest.mark.parametrize("data", [b"", b"definitely not a pdf", b"%PDF-1.7\n%%EOF"])
def test_malformed_input_raises(decoder, data):
    with pytest.raises(DecodeError):
        decoder.decode_page(data)


def test_open_pdf_rejects_empty():
    with pytest.raises(DecodeError):
        open_pdf(b"")


def test_decode_file(decoder, tmp_path, hello_pdf):
    path = tmp_path / "hello.pdf"
    path.write_bytes(hello_pdf)

    assert decoder.decode_file(path).visible_runs[0].content == "Hello"

    with pytest.raises(DecodeError):
        decoder.decode_file(tmp_path / "missing.pdf")


def test_render_scale_must_be_positive():
    with pytest.raises(ValueError):
        PDFPageDecoder(render_scale=0)


def test_page_model_text_layer(hello_pdf):
    with fitz.open(stream=hello_pdf, filetype="pdf") as doc:
        model = PageModel(doc, 0)

        assert model.size_pt == pytest.approx((400, 300))
        assert len(model.text_layer) == 1
        assert model.text_layer.full_text == "Hello"
        assert model.text_layer.runs[0].color == "#000000"
        assert "400x300" in repr(model)


def test_runs_only_decode_skips_raster(decoder, hello_pdf):
    page = decoder.decode_page(hello_pdf, render_background=False)

    assert page.background_image is None
    assert page.viewport.size == pytest.approx((600, 450))
    assert [r.content for r in page.visible_runs] == ["Hello"]
