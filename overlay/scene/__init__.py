"""Editable page scene: visual elements and the scene model."""

from .elements import BackgroundImage, EditableText, OcclusionPatch, VisualElement
from .scene_model import SceneModel

__all__ = [
    "BackgroundImage",
    "EditableText",
    "OcclusionPatch",
    "SceneModel",
    "VisualElement",
]
