"""
Page overlay editor.

Coordinate transforms, overlay building, the editable scene model,
flattening/export, and the async editing session that ties them
together.
"""

from .builder import build
from .pipeline import LoadedPage, LoadStats, OverlayConfig, OverlayPipeline
from .session import EditingSession
from .transform import TransformedRun, transform, transform_runs

__all__ = [
    "EditingSession",
    "LoadedPage",
    "LoadStats",
    "OverlayConfig",
    "OverlayPipeline",
    "TransformedRun",
    "build",
    "transform",
    "transform_runs",
]
