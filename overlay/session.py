"""
Editing session: owns the current scene for one editing surface.

Decode and export block on PyMuPDF / Pillow, so both run in worker
threads while the event loop stays free.  Every upload takes a sequence
number; a decode whose number is no longer current when it finishes is
discarded (its scene disposed), so the installed scene always belongs to
the latest upload.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Type

from core.exceptions import ExportError, OverlayError, SceneError

from .pipeline import LoadedPage, LoadStats, OverlayConfig, OverlayPipeline
from .scene import SceneModel, VisualElement

logger = logging.getLogger(__name__)

SceneCallback = Callable[[SceneModel], None]


class EditingSession:
    """
    Single-document editing session.

    Usage::

        session = EditingSession(on_scene_ready=surface.show)
        await session.upload(pdf_bytes)
        session.mutate("text-0002", {"text": "Total: 42"})
        pdf = await session.export()
    """

    def __init__(
        self,
        config: Optional[OverlayConfig] = None,
        decoder=None,
        on_scene_ready: Optional[SceneCallback] = None,
    ):
        self.pipeline = OverlayPipeline(config, decoder=decoder)
        self.on_scene_ready = on_scene_ready
        self.scene: Optional[SceneModel] = None
        self.last_stats: Optional[LoadStats] = None

        self._sequence = 0
        self._pending = 0

    @property
    def config(self) -> OverlayConfig:
        return self.pipeline.config

    @property
    def sequence(self) -> int:
        """Sequence number of the latest upload."""
        return self._sequence

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload(self, data: bytes) -> Optional[SceneModel]:
        """
        Decode *data* and install its scene.

        A newer upload started while this one is decoding supersedes it:
        this call then returns ``None``, disposes whatever it built and
        leaves :attr:`scene` untouched.

        Returns:
            The installed scene, or ``None`` if this upload was superseded.

        Raises:
            DecodeError: If the document cannot be decoded and this upload
                is still current.
        """
        return await self._load(self.pipeline.load, data)

    async def upload_payload(self, payload: Dict[str, Any]) -> Optional[SceneModel]:
        """
        Install the scene described by a parse-endpoint payload.  Shares
        the sequence numbering of :meth:`upload`, so either kind of upload
        supersedes the other.
        """
        return await self._load(self.pipeline.load_payload, payload)

    async def _load(self, loader: Callable[[Any], LoadedPage], source: Any) -> Optional[SceneModel]:
        self._sequence += 1
        ticket = self._sequence
        if self._pending:
            logger.debug("Upload %d supersedes %d in-flight upload(s)", ticket, self._pending)

        self._pending += 1
        try:
            loaded = await asyncio.to_thread(loader, source)
        except OverlayError:
            if ticket != self._sequence:
                logger.info("Upload %d failed after being superseded; ignored", ticket)
                return None
            raise
        finally:
            self._pending -= 1

        if ticket != self._sequence:
            logger.info("Discarding stale result of upload %d", ticket)
            loaded.scene.dispose()
            return None

        self._install(loaded)
        return loaded.scene

    def _install(self, loaded: LoadedPage) -> None:
        previous = self.scene
        self.scene = loaded.scene
        self.last_stats = loaded.stats
        if previous is not None:
            previous.dispose()
        logger.debug("Installed %r", loaded.scene)

        if self.on_scene_ready is not None:
            self.on_scene_ready(loaded.scene)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def mutate(self, element_id: str, patch: Mapping[str, Any]) -> VisualElement:
        """
        Apply a user edit to the current scene.

        Raises:
            SceneError: If no scene is loaded or the edit is invalid.
        """
        return self._require_scene(SceneError).apply(element_id, patch)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export(self) -> bytes:
        """
        Flatten the current scene to a single-page PDF.

        Raises:
            ExportError: If no scene is loaded or export fails.  The scene
                is kept so the export can be retried.
        """
        scene = self._require_scene(ExportError)
        return await asyncio.to_thread(self.pipeline.export, scene)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _require_scene(self, error: Type[OverlayError]) -> SceneModel:
        if self.scene is None:
            raise error("No document loaded")
        return self.scene

    def close(self) -> None:
        """Dispose the current scene; uploads still in flight become stale."""
        self._sequence += 1
        if self.scene is not None:
            self.scene.dispose()
            self.scene = None

    def __repr__(self) -> str:
        return f"EditingSession(uploads={self._sequence}, scene={self.scene!r})"
