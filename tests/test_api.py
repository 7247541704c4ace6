import io

import pytest

from conftest import make_pdf
from core.page import PageModel
from overlay.api import create_app
from overlay.pipeline import OverlayConfig


@pytest.fixture
def client():
    app = create_app(OverlayConfig(render_scale=1.5))
    app.config["TESTING"] = True
    return app.test_client()


def _post(client, data, name="doc.pdf"):
    return client.post(
        "/api/parse-pdf",
        data={"file": (io.BytesIO(data), name)},
        content_type="multipart/form-data",
    )


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_parse_reports_first_page_in_points(client, hello_pdf):
    response = _post(client, hello_pdf)

    assert response.status_code == 200
    body = response.get_json()
    assert (body["width"], body["height"]) == (400, 300)
    (entry,) = body["texts"]
    assert entry["text"] == "Hello"
    assert entry["x"] == pytest.approx(50, abs=0.5)
    # top of the glyph box: baseline 100 minus font size 12
    assert entry["y"] == pytest.approx(88, abs=0.5)
    assert entry["fontSize"] == pytest.approx(12, abs=0.05)
    assert entry["color"] == "#000000"
    assert entry["width"] > 0


def test_parse_ignores_later_pages(client):
    response = _post(client, make_pdf(pages=2))

    assert [t["text"] for t in response.get_json()["texts"]] == ["Hello"]


def test_parse_without_file(client):
    response = client.post("/api/parse-pdf", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_parse_garbage(client):
    response = _post(client, b"this is not a pdf")

    assert response.status_code == 422
    assert response.get_json()["error"].startswith("Error parsing PDF")


def test_cors_header(client):
    response = client.get("/api/health", headers={"Origin": "http://localhost:3000"})

    assert response.headers.get("Access-Control-Allow-Origin") == "*"


def test_parse_does_not_rasterize(client, hello_pdf, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("background rendered")

    monkeypatch.setattr(PageModel, "render_background", fail)

    response = _post(client, hello_pdf)

    assert response.status_code == 200
    assert response.get_json()["texts"][0]["text"] == "Hello"
