"""
Overlay pipeline orchestrator: PDF → runs → editable scene → PDF.

Coordinates the synchronous part of the editing workflow:

1. **Decode** — open the document with PyMuPDF, render the first page
   as the background raster and extract its text runs.
2. **Place** — map every run from document space to screen space,
   dropping blank runs and skipping runs with defective geometry.
3. **Build** — lay out the background, one occlusion patch and one
   editable text element per placed run.
4. **Export** — flatten the (possibly edited) scene to a raster and wrap
   it as a single-page PDF.

Usage::

    from overlay.pipeline import OverlayConfig, OverlayPipeline

    pipeline = OverlayPipeline(OverlayConfig(render_scale=2.0))
    loaded = pipeline.load(Path("input.pdf").read_bytes())
    loaded.scene.set_text("text-0000", "Edited")
    Path("output.pdf").write_bytes(pipeline.export(loaded.scene))
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.document.page_decoder import PDFPageDecoder
from core.document.payload_reader import PayloadPageReader
from core.exceptions import DecodeError
from core.page.models import DecodedPage

from .builder import build
from .export.flattener import canvas_size, flatten, wrap
from .scene import SceneModel
from .transform import transform_runs

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------


@dataclass
class OverlayConfig:
    """
    All tuneable parameters for the overlay pipeline.

    Attributes:
        render_scale:        Pixels per PDF point for the viewport and
                             background raster.
        patch_fill:          Occlusion patch colour (page background tone).
        patch_height_factor: Patch height as a multiple of the font size.
        sample_patch_fill:   Sample each patch colour from the background.
        font_family:         Fallback typeface for editable text.
        text_fill:           Editable text colour.
        preserve_text_color: Use the decoded run colour instead of
                             ``text_fill``.
        raster_format:       Pillow format name for the flattened raster.
        disable_tqdm:        Suppress progress bars.
        max_upload_mb:       Upload size limit for the HTTP endpoint.
    """

    render_scale: float = 1.5

    patch_fill: str = "white"
    patch_height_factor: float = 1.2
    sample_patch_fill: bool = False

    font_family: str = "Helvetica"
    text_fill: str = "#000000"
    preserve_text_color: bool = False

    raster_format: str = "PNG"
    disable_tqdm: bool = True

    max_upload_mb: int = 50


# ------------------------------------------------------------------
# Result
# ------------------------------------------------------------------


@dataclass
class LoadStats:
    """Counts and per-phase timing for one decode + build."""

    page_count: int = 0
    runs_total: int = 0
    runs_placed: int = 0
    runs_blank: int = 0
    runs_skipped: int = 0
    elements: int = 0

    time_decode: float = 0.0
    time_place: float = 0.0
    time_build: float = 0.0

    def summary(self) -> str:
        """Format a human-readable summary of the load."""
        return (
            f"{'=' * 60}\n"
            f"PAGE LOADED\n"
            f"{'=' * 60}\n"
            f"  Pages in document: {self.page_count} (first page decoded)\n"
            f"  Runs:     {self.runs_placed} placed, {self.runs_blank} blank, "
            f"{self.runs_skipped} skipped\n"
            f"  Elements: {self.elements}\n"
            f"\n"
            f"  Decode: {self.time_decode:.2f}s\n"
            f"  Place:  {self.time_place:.3f}s\n"
            f"  Build:  {self.time_build:.3f}s\n"
            f"{'=' * 60}"
        )


@dataclass
class LoadedPage:
    """A freshly built scene together with the stats of its load."""

    scene: SceneModel
    stats: LoadStats = field(default_factory=LoadStats)


# ------------------------------------------------------------------
# Pipeline
# ------------------------------------------------------------------


class OverlayPipeline:
    """
    Synchronous decode → place → build → export pipeline.

    Every method is blocking; the editing session runs them in worker
    threads.
    """

    def __init__(self, config: Optional[OverlayConfig] = None, decoder=None):
        self.config = config or OverlayConfig()
        self.decoder = decoder or PDFPageDecoder(render_scale=self.config.render_scale)
        self.payload_reader = PayloadPageReader(render_scale=self.config.render_scale)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self, data: bytes) -> LoadedPage:
        """
        Decode *data* and build its editable scene.

        Raises:
            DecodeError: If the document cannot be decoded.
        """
        t0 = time.perf_counter()
        decoded = self.decoder.decode_page(data)
        return self._load_decoded(decoded, time.perf_counter() - t0)

    def load_payload(self, payload: Dict[str, Any]) -> LoadedPage:
        """
        Build the editable scene from a parse-endpoint payload instead of
        decoding a PDF in process.  The background is a blank page.

        Raises:
            DecodeError: If the payload is malformed.
        """
        t0 = time.perf_counter()
        decoded = self.payload_reader.read(payload)
        return self._load_decoded(decoded, time.perf_counter() - t0)

    def _load_decoded(self, decoded: DecodedPage, time_decode: float) -> LoadedPage:
        stats = LoadStats(time_decode=time_decode)
        if decoded.background_image is None:
            raise DecodeError("Decoded page has no background raster")

        try:
            scene = self.build_scene(decoded, stats)
        finally:
            # The scene holds its own copy of the raster
            decoded.background_image.close()
        logger.info(
            "Loaded page: %d runs placed, %d skipped, %d elements",
            stats.runs_placed,
            stats.runs_skipped,
            stats.elements,
        )
        return LoadedPage(scene=scene, stats=stats)

    def build_scene(
        self, decoded: DecodedPage, stats: Optional[LoadStats] = None
    ) -> SceneModel:
        """Place the runs of *decoded* and build the scene."""
        cfg = self.config
        stats = stats if stats is not None else LoadStats()
        stats.page_count = decoded.page_count
        stats.runs_total = len(decoded.runs)

        t0 = time.perf_counter()
        placed = transform_runs(decoded.runs, decoded.viewport)
        stats.time_place = time.perf_counter() - t0
        stats.runs_placed = len(placed)
        stats.runs_blank = sum(1 for r in decoded.runs if r.is_blank)
        stats.runs_skipped = stats.runs_total - stats.runs_blank - stats.runs_placed

        t0 = time.perf_counter()
        scene = build(
            decoded.background_image,
            placed,
            decoded.viewport,
            patch_fill=cfg.patch_fill,
            patch_height_factor=cfg.patch_height_factor,
            sample_patch_fill=cfg.sample_patch_fill,
            font_family=cfg.font_family,
            text_fill=cfg.text_fill,
            preserve_text_color=cfg.preserve_text_color,
        )
        stats.time_build = time.perf_counter() - t0
        stats.elements = len(scene)
        return scene

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def flatten(self, scene: SceneModel) -> bytes:
        """Rasterize *scene* (see :func:`overlay.export.flatten`)."""
        return flatten(
            scene,
            raster_format=self.config.raster_format,
            disable_tqdm=self.config.disable_tqdm,
        )

    def export(self, scene: SceneModel) -> bytes:
        """
        Flatten *scene* and wrap it as a single-page PDF.

        Raises:
            ExportError: If rasterization or wrapping fails.  The scene
                is not modified.
        """
        t0 = time.perf_counter()
        raster = self.flatten(scene)
        data = wrap(raster, canvas_size(scene))
        logger.info(
            "Exported page: %.1f KB in %.2fs",
            len(data) / 1024,
            time.perf_counter() - t0,
        )
        return data
