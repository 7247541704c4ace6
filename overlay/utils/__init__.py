"""Shared helpers for the overlay pipeline."""

from .fonts import load_font, measure_text

__all__ = ["load_font", "measure_text"]
