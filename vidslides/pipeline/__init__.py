"""LangGraph pipeline module."""

from .state import PipelineMetrics, SlidesState
from .nodes import (
    acquire_video_node,
    extract_slides_node,
    export_pdf_node,
    export_pptx_node,
)
from .graph import create_pipeline, SlidesPipeline

__all__ = [
    "PipelineMetrics",
    "SlidesState",
    "acquire_video_node",
    "extract_slides_node",
    "export_pdf_node",
    "export_pptx_node",
    "create_pipeline",
    "SlidesPipeline",
]
