"""Video acquisition, loading and candidate sampling module."""

from .frame import Frame, CropRegion, parse_timestamp
from .loader import VideoLoader, VideoMetadata, probe_video
from .sampler import (
    FrameSampler,
    FFmpegSceneSampler,
    OpenCVSceneSampler,
    ImageDirectorySampler,
    read_png_stream,
    create_sampler,
)
from .downloader import VideoDownloader

__all__ = [
    "Frame",
    "CropRegion",
    "parse_timestamp",
    "VideoLoader",
    "VideoMetadata",
    "probe_video",
    "FrameSampler",
    "FFmpegSceneSampler",
    "OpenCVSceneSampler",
    "ImageDirectorySampler",
    "read_png_stream",
    "create_sampler",
    "VideoDownloader",
]
