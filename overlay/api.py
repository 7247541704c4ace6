"""
HTTP parse endpoint.

``POST /api/parse-pdf`` accepts one PDF (multipart field ``file``) and
returns the first page's geometry and text runs as JSON, in PDF points
with a top-left origin.  Pages after the first are not reported.
"""

import logging
from http import HTTPStatus
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from core.document.page_decoder import PDFPageDecoder
from core.document.payload_reader import runs_to_payload
from core.exceptions import DecodeError

from .pipeline import OverlayConfig
from .transform import transform_runs

logger = logging.getLogger(__name__)


def create_app(config: Optional[OverlayConfig] = None) -> Flask:
    cfg = config or OverlayConfig()
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = cfg.max_upload_mb * 1024 * 1024
    app.config["OVERLAY"] = cfg

    CORS(app, resources={r"/api/*": {"origins": "*"}}, send_wildcard=True)

    decoder = PDFPageDecoder(render_scale=cfg.render_scale)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/parse-pdf")
    def parse_pdf():
        upload = request.files.get("file")
        if upload is None:
            return jsonify({"error": "No file uploaded"}), HTTPStatus.BAD_REQUEST

        data = upload.read()
        try:
            # Only geometry and runs are reported; skip the raster
            decoded = decoder.decode_page(data, render_background=False)
            payload = _page_payload(decoded)
        except DecodeError as e:
            logger.warning("Rejected upload '%s': %s", upload.filename, e)
            return jsonify({"error": f"Error parsing PDF: {e}"}), HTTPStatus.UNPROCESSABLE_ENTITY

        logger.info(
            "Parsed '%s': %d text runs (page 1 of %d)",
            upload.filename,
            len(payload["texts"]),
            decoded.page_count,
        )
        return jsonify(payload)

    @app.errorhandler(HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    def handle_too_large(error):
        return jsonify({"error": "File too large"}), HTTPStatus.REQUEST_ENTITY_TOO_LARGE

    return app


def _page_payload(decoded) -> Dict[str, Any]:
    """Screen-space runs scaled back to PDF points."""
    viewport = decoded.viewport
    scale = viewport.scale
    entries = [
        {
            "text": run.text,
            "x": round(run.screen_x / scale, 3),
            "y": round(run.screen_y / scale, 3),
            "fontSize": round(run.font_size_px / scale, 3),
            "color": run.color,
            "width": round(run.width_px / scale, 3),
        }
        for run in transform_runs(decoded.runs, viewport)
    ]
    return runs_to_payload(
        round(viewport.width_px / scale, 3),
        round(viewport.height_px / scale, 3),
        entries,
    )
