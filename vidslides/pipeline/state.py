"""Pipeline state definitions."""

from typing import Any, Dict, List, Optional, TypedDict

from pydantic import BaseModel


class PipelineMetrics(BaseModel):
    """Pipeline execution metrics."""

    # Timing
    total_time_ms: float = 0.0
    download_time_ms: float = 0.0
    extraction_time_ms: float = 0.0
    export_time_ms: float = 0.0

    # Frame statistics
    candidate_frame_count: int = 0
    skipped_frame_count: int = 0
    slide_count: int = 0
    frame_reduction_ratio: float = 0.0

    # Settings that produced the result
    sampler: str = ""
    scene_threshold: Optional[float] = None
    hamming_threshold: int = 0


class SlidesState(TypedDict, total=False):
    """
    State object passed through the LangGraph pipeline.

    Using TypedDict for LangGraph compatibility.
    """

    # Input (exactly one source)
    url: Optional[str]
    video_path: Optional[str]
    frames_dir: Optional[str]

    # Locations
    workdir: str
    output_base: str
    slides_dir: str

    # Retained slides, in time order
    slide_paths: List[str]
    slide_timestamps: List[Optional[float]]

    # Artifacts
    pdf_path: Optional[str]
    pptx_path: Optional[str]

    # Metrics
    metrics: Dict[str, Any]

    # Configuration (passed through, SlidesConfig)
    config: Any
