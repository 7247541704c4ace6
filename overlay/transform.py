"""
Coordinate transform engine: document-space text runs → screen-space
glyph boxes.

The viewport matrix already contains the bottom-left → top-left axis
flip, so composing it with a run's transform is the only step needed to
place the baseline anchor on screen.  The anchor is then moved from the
baseline to the top of the glyph box by subtracting the font size.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.exceptions import TransformError
from core.page.models import TextRun, Viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformedRun:
    """A text run placed in screen space.  ``screen_y`` is the box top."""

    text: str
    screen_x: float
    screen_y: float
    font_size_px: float
    width_px: float
    color: str = "#000000"


def _check(matrix, what: str) -> None:
    if not matrix.is_finite:
        raise TransformError(f"{what} has non-finite entries: {matrix!r}")
    if matrix.determinant == 0.0:
        raise TransformError(f"{what} is not invertible: {matrix!r}")


def transform(run: TextRun, viewport: Viewport) -> Optional[TransformedRun]:
    """
    Place *run* on screen.

    Returns:
        The transformed run, or ``None`` when the run's content is blank.

    Raises:
        TransformError: If either matrix is non-finite or singular, or
            the run width is not finite.
    """
    if run.is_blank:
        return None

    _check(run.run_transform, "Run transform")
    _check(viewport.document_to_screen, "Viewport transform")

    composed = viewport.document_to_screen.compose(run.run_transform)
    tx, ty = composed.translation

    # Size comes from the run-local matrix so it is independent of the
    # viewport's flip; shear is ignored.
    font_size = run.run_transform.first_column_norm * viewport.scale
    width = run.width_in_document_units * viewport.scale
    if not composed.is_finite or not math.isfinite(width):
        raise TransformError(f"Run {run.content!r} produced non-finite geometry")

    return TransformedRun(
        text=run.content,
        screen_x=tx,
        screen_y=ty - font_size,
        font_size_px=font_size,
        width_px=max(0.0, width),
        color=run.color,
    )


def transform_runs(runs: Iterable[TextRun], viewport: Viewport) -> List[TransformedRun]:
    """
    Transform *runs* in order, dropping blank runs and skipping (with a
    warning) any run whose geometry is defective.

    Raises:
        TransformError: If the viewport matrix itself is defective.  No
            run could be placed, so the page is rejected as a whole.
    """
    _check(viewport.document_to_screen, "Viewport transform")

    placed: List[TransformedRun] = []
    blank = 0
    for index, run in enumerate(runs):
        try:
            result = transform(run, viewport)
        except TransformError as e:
            logger.warning("Skipping run %d (%r): %s", index, run.content[:40], e)
            continue
        if result is None:
            blank += 1
            continue
        placed.append(result)

    logger.debug("Placed %d runs (%d blank dropped)", len(placed), blank)
    return placed
