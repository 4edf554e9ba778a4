"""Video loading utilities using OpenCV."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np

from ..errors import FrameExtractionError

logger = logging.getLogger(__name__)


@dataclass
class VideoMetadata:
    """Video metadata container."""
    path: str
    duration: float  # seconds
    fps: float
    total_frames: int
    width: int
    height: int

    def describe(self) -> str:
        return (
            f"{self.width}x{self.height} @ {self.fps:.2f} fps, "
            f"{self.duration:.1f}s ({self.total_frames} frames)"
        )


class VideoLoader:
    """
    Video loader backed by OpenCV.

    Handles metadata extraction and sequential frame decoding.
    """

    def __init__(self):
        self._cv_cap: Optional[cv2.VideoCapture] = None
        self._metadata: Optional[VideoMetadata] = None

    def load(self, video_path: str) -> VideoMetadata:
        """
        Open a video file and extract metadata.

        Args:
            video_path: Path to video file

        Returns:
            VideoMetadata object

        Raises:
            FileNotFoundError: If the file does not exist
            FrameExtractionError: If OpenCV cannot open the file
        """
        video_path = str(Path(video_path).resolve())

        if not os.path.exists(video_path):
            raise FileNotFoundError(f"Video not found: {video_path}")

        self.close()
        self._cv_cap = cv2.VideoCapture(video_path)

        if not self._cv_cap.isOpened():
            raise FrameExtractionError(f"Could not open video: {video_path}")

        fps = self._cv_cap.get(cv2.CAP_PROP_FPS)
        total_frames = int(self._cv_cap.get(cv2.CAP_PROP_FRAME_COUNT))
        width = int(self._cv_cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cv_cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        duration = total_frames / fps if fps > 0 else 0

        self._metadata = VideoMetadata(
            path=video_path,
            duration=duration,
            fps=fps,
            total_frames=total_frames,
            width=width,
            height=height,
        )
        return self._metadata

    def iter_frames(
        self,
        start: Optional[float] = None,
        end: Optional[float] = None,
    ) -> Iterator[Tuple[float, np.ndarray]]:
        """
        Decode frames sequentially.

        Args:
            start: Seek to this position (seconds) before decoding
            end: Stop after this position (seconds)

        Yields:
            (timestamp in seconds, RGB frame) pairs in decode order
        """
        if self._cv_cap is None or self._metadata is None:
            raise RuntimeError("No video loaded. Call load() first.")

        if start:
            self._cv_cap.set(cv2.CAP_PROP_POS_MSEC, start * 1000.0)

        while True:
            ret, frame = self._cv_cap.read()
            if not ret:
                break

            timestamp = self._cv_cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
            if end is not None and timestamp > end:
                break

            # Convert BGR to RGB
            yield timestamp, cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self) -> None:
        """Release video resources."""
        if self._cv_cap is not None:
            self._cv_cap.release()
            self._cv_cap = None
        self._metadata = None

    def __enter__(self) -> "VideoLoader":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def probe_video(video_path: str) -> VideoMetadata:
    """Read metadata of a video file and release it."""
    with VideoLoader() as loader:
        return loader.load(video_path)
