"""LangGraph pipeline definition."""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from langgraph.graph import StateGraph, END

from ..config import SlidesConfig
from ..errors import ConfigError
from .state import PipelineMetrics, SlidesState
from .nodes import (
    acquire_video_node,
    extract_slides_node,
    export_pdf_node,
    export_pptx_node,
)

logger = logging.getLogger(__name__)


def create_pipeline() -> StateGraph:
    """
    Create the LangGraph slide extraction pipeline.

    Pipeline flow:
    acquire_video -> extract_slides -> export_pdf -> export_pptx -> END

    Returns:
        Compiled StateGraph
    """
    workflow = StateGraph(SlidesState)

    workflow.add_node("acquire_video", acquire_video_node)
    workflow.add_node("extract_slides", extract_slides_node)
    workflow.add_node("export_pdf", export_pdf_node)
    workflow.add_node("export_pptx", export_pptx_node)

    workflow.set_entry_point("acquire_video")
    workflow.add_edge("acquire_video", "extract_slides")
    workflow.add_edge("extract_slides", "export_pdf")
    workflow.add_edge("export_pdf", "export_pptx")
    workflow.add_edge("export_pptx", END)

    return workflow.compile()


class SlidesPipeline:
    """
    High-level wrapper for the slide extraction pipeline.

    Errors from any stage propagate as SlidesError subclasses (or
    FileNotFoundError for missing inputs) so the caller can decide how to
    report them.
    """

    def __init__(self, config: Optional[SlidesConfig] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config: Validated configuration (defaults if omitted)
        """
        self.config = config or SlidesConfig()
        self.graph = create_pipeline()

    def process(
        self,
        url: Optional[str] = None,
        video_path: Optional[str] = None,
        frames_dir: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Extract slides from exactly one source.

        Args:
            url: Video page to download
            video_path: Local video file
            frames_dir: Directory of already extracted frames

        Returns:
            Dictionary with slide paths, artifact paths and PipelineMetrics
        """
        sources = [s for s in (url, video_path, frames_dir) if s]
        if len(sources) != 1:
            raise ConfigError("Provide exactly one of url, video_path or frames_dir")

        start_time = time.time()
        output = self.config.output
        output_base = Path(output.base_name).resolve()
        slides_dir = Path(f"{output_base}_frames_dedup")
        if frames_dir and Path(frames_dir).resolve() == slides_dir:
            raise ConfigError(f"Frame directory {frames_dir} is also the output directory")

        workdir = output.resolve_workdir()
        if (frames_dir and output.keep_intermediate
                and Path(frames_dir).resolve() == workdir / "frames_raw"):
            raise ConfigError(
                f"Frame directory {frames_dir} is also the intermediate frames directory"
            )
        workdir.mkdir(parents=True, exist_ok=True)

        initial_state: SlidesState = {
            "url": url,
            "video_path": video_path,
            "frames_dir": frames_dir,
            "workdir": str(workdir),
            "output_base": str(output_base),
            "slides_dir": str(slides_dir),
            "config": self.config,
            "metrics": {},
        }

        logger.info(f"Processing {sources[0]} (workdir {workdir})")
        final_state = self.graph.invoke(initial_state)

        metrics = PipelineMetrics(**final_state.get("metrics", {}))
        metrics.total_time_ms = (time.time() - start_time) * 1000
        logger.info(f"Pipeline completed in {metrics.total_time_ms:.0f}ms")

        return {
            "slide_paths": final_state.get("slide_paths", []),
            "slide_timestamps": final_state.get("slide_timestamps", []),
            "slides_dir": str(slides_dir),
            "pdf_path": final_state.get("pdf_path"),
            "pptx_path": final_state.get("pptx_path"),
            "video_path": final_state.get("video_path"),
            "workdir": str(workdir),
            "metrics": metrics,
        }
