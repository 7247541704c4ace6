"""Scene flattening and single-page PDF export."""

from .flattener import canvas_size, flatten, page_orientation, wrap

__all__ = ["canvas_size", "flatten", "page_orientation", "wrap"]
