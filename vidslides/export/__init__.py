"""PDF and PPTX export module."""

from .document import export_pdf
from .deck import export_pptx, fit_to_canvas, DEFAULT_CANVAS_INCHES

__all__ = [
    "export_pdf",
    "export_pptx",
    "fit_to_canvas",
    "DEFAULT_CANVAS_INCHES",
]
