"""
Error taxonomy shared by the decoder, the overlay pipeline and the
editing session.
"""


class OverlayError(Exception):
    """Base class for page overlay errors."""


class DecodeError(OverlayError):
    """The input document could not be read as a page."""


class TransformError(DecodeError):
    """
    A text run (or the page viewport) carries a non-finite or singular
    matrix.

    Fatal to the offending run only; the page still renders.
    """


class ExportError(OverlayError):
    """Rasterizing or wrapping the scene failed.  The scene is untouched."""


class SceneError(OverlayError):
    """An edit could not be applied.  The scene is left exactly as before."""
