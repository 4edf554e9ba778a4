"""Extract unique presentation slides from videos into PDF and PPTX."""

__version__ = "0.1.0"
