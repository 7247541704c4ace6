"""
Mutable in-memory model of one editable page.

The scene owns its elements and the background raster.  Edits are
applied transactionally: a replacement element is built and validated
first and only then swapped into place, so a failing edit leaves the
scene exactly as it was.
"""

import dataclasses
import logging
import math
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from core.exceptions import SceneError
from core.page.models import Viewport
from overlay.utils.fonts import measure_text

from .elements import BackgroundImage, EditableText, OcclusionPatch, VisualElement

logger = logging.getLogger(__name__)

# Keys accepted by ``apply`` per element type
_GEOMETRY_KEYS = {"x", "y", "width", "height"}
_EDITABLE_KEYS = {
    VisualElement: _GEOMETRY_KEYS,
    BackgroundImage: _GEOMETRY_KEYS,
    OcclusionPatch: _GEOMETRY_KEYS | {"fill"},
    EditableText: _GEOMETRY_KEYS | {"text", "font_size", "font_family", "fill"},
}
_NUMERIC_KEYS = _GEOMETRY_KEYS | {"font_size"}


class SceneModel:
    """
    Ordered collection of visual elements over a fixed viewport.

    Usage::

        scene = SceneModel(viewport)
        scene.add(BackgroundImage(...))
        scene.set_text("text-0001", "Edited")
        scene.set_position("text-0001", 120.0, 48.5)
    """

    def __init__(self, viewport: Viewport):
        self.viewport = viewport
        self._elements: List[VisualElement] = []
        self._index: Dict[str, int] = {}
        self._disposed = False

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add(self, element: VisualElement) -> VisualElement:
        """Append *element* on top of the paint order."""
        self._ensure_live()
        if element.element_id in self._index:
            raise SceneError(f"Duplicate element id '{element.element_id}'")
        self._index[element.element_id] = len(self._elements)
        self._elements.append(element)
        return element

    def remove(self, element_id: str) -> VisualElement:
        """Remove and return the element with *element_id*."""
        self._ensure_live()
        element = self.get(element_id)
        del self._elements[self._index[element_id]]
        self._reindex()
        return element

    @property
    def elements(self) -> Tuple[VisualElement, ...]:
        """Elements in paint order (bottom first)."""
        return tuple(self._elements)

    def get(self, element_id: str) -> VisualElement:
        try:
            return self._elements[self._index[element_id]]
        except KeyError:
            raise SceneError(f"Unknown element id '{element_id}'") from None

    def text_elements(self) -> List[EditableText]:
        return [e for e in self._elements if isinstance(e, EditableText)]

    @property
    def background(self) -> Optional[BackgroundImage]:
        for element in self._elements:
            if isinstance(element, BackgroundImage):
                return element
        return None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def get_position(self, element_id: str) -> Tuple[float, float]:
        return self.get(element_id).position

    def set_position(self, element_id: str, x: float, y: float) -> VisualElement:
        return self.apply(element_id, {"x": x, "y": y})

    def get_text(self, element_id: str) -> str:
        element = self.get(element_id)
        if not isinstance(element, EditableText):
            raise SceneError(f"Element '{element_id}' ({element.kind}) has no text")
        return element.text

    def set_text(self, element_id: str, text: str) -> VisualElement:
        return self.apply(element_id, {"text": text})

    def apply(self, element_id: str, patch: Mapping[str, Any]) -> VisualElement:
        """
        Apply *patch* (field name → new value) to one element.

        Text and font changes re-measure the element width with the
        fallback typeface.

        Raises:
            SceneError: For an unknown id, a key the element does not
                allow, a non-finite number, or a non-string text.  The
                scene is unchanged in every failure case.
        """
        self._ensure_live()
        current = self.get(element_id)
        allowed = _EDITABLE_KEYS.get(type(current), _GEOMETRY_KEYS)

        changes: Dict[str, Any] = {}
        for key, value in patch.items():
            if key not in allowed:
                raise SceneError(f"Cannot set '{key}' on {current.kind} '{element_id}'")
            if key in _NUMERIC_KEYS:
                value = _finite(key, value)
                if key != "x" and key != "y" and value < 0:
                    raise SceneError(f"'{key}' must be non-negative, got {value}")
            elif not isinstance(value, str):
                raise SceneError(f"'{key}' must be a string, got {type(value).__name__}")
            changes[key] = value

        updated = dataclasses.replace(current, **changes)
        if isinstance(updated, EditableText) and changes.keys() & {"text", "font_size", "font_family"}:
            if "width" not in changes:
                updated.width = measure_text(updated.text, updated.font_family, updated.font_size)
            if "height" not in changes and "font_size" in changes:
                updated.height = updated.font_size

        self._elements[self._index[element_id]] = updated
        logger.debug("Applied %s to %s", sorted(changes), element_id)
        return updated

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def bounding_box(self) -> Tuple[float, float, float, float]:
        """
        Union of all element boxes, ``(x0, y0, x1, y1)``.  The viewport
        box when the scene is empty.
        """
        if not self._elements:
            return (0.0, 0.0, self.viewport.width_px, self.viewport.height_px)
        boxes = [e.bbox for e in self._elements]
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Release the background raster and drop all elements."""
        if self._disposed:
            return
        for element in self._elements:
            if isinstance(element, BackgroundImage) and element.image is not None:
                element.image.close()
        self._elements.clear()
        self._index.clear()
        self._disposed = True

    def _ensure_live(self) -> None:
        if self._disposed:
            raise SceneError("Scene has been disposed")

    def _reindex(self) -> None:
        self._index = {e.element_id: i for i, e in enumerate(self._elements)}

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[VisualElement]:
        return iter(self.elements)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._index

    def __repr__(self) -> str:
        state = " disposed" if self._disposed else ""
        return f"SceneModel({self.viewport!r}, elements={len(self)}{state})"


def _finite(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise SceneError(f"'{key}' must be a number, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SceneError(f"'{key}' must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise SceneError(f"'{key}' must be finite, got {value!r}")
    return number
