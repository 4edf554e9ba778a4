"""Candidate frame sampling at slide changes."""

import logging
import re
import struct
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, TextIO, Union

import cv2
import numpy as np

from ..errors import ConfigError, FrameExtractionError
from .frame import PNG_SIGNATURE, CropRegion, Frame, parse_timestamp
from .loader import VideoLoader

logger = logging.getLogger(__name__)

DEFAULT_SCENE_THRESHOLD = 0.30

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp", ".webp")

_SHOWINFO_RE = re.compile(r"Parsed_showinfo.*?\bn:\s*(\d+).*?\bpts_time:\s*([-+]?[\d.]+)")


class FrameSampler(ABC):
    """Abstract base class for candidate frame samplers."""

    @abstractmethod
    def frames(self, source: Union[str, Path]) -> Iterator[Frame]:
        """
        Lazily produce candidate frames from a source.

        Args:
            source: Video file or image directory, depending on sampler

        Yields:
            Frames in non-decreasing time order
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name."""
        pass


class SceneSampler(FrameSampler):
    """
    Common parameters of video scene-change samplers.

    Lower ``scene_threshold`` is more sensitive and yields more candidates.
    """

    def __init__(
        self,
        scene_threshold: float = DEFAULT_SCENE_THRESHOLD,
        crop: Optional[Union[str, CropRegion]] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        fps_limit: Optional[float] = None,
    ):
        """
        Initialize scene sampler.

        Args:
            scene_threshold: Scene change score above which a frame is emitted (0-1)
            crop: Region of the frame to analyse, as CropRegion or "X:Y:W:H"
            start: Start of the time window (HH:MM:SS)
            end: End of the time window (HH:MM:SS)
            fps_limit: Maximum rate of emitted frames
        """
        if not 0.0 < scene_threshold < 1.0:
            raise ConfigError(f"Scene threshold must be in (0, 1), got {scene_threshold}")
        if fps_limit is not None and fps_limit <= 0:
            raise ConfigError(f"fps_limit must be positive, got {fps_limit}")

        self.scene_threshold = scene_threshold
        self.crop = CropRegion.parse(crop) if isinstance(crop, str) else crop
        self.start = start
        self.end = end
        self.fps_limit = fps_limit

        # Validate early so a bad window fails before decoding starts
        self._start_seconds = parse_timestamp(start) if start else None
        self._end_seconds = parse_timestamp(end) if end else None


class FFmpegSceneSampler(SceneSampler):
    """
    Scene-change sampling with ffmpeg's ``select='gt(scene,THR)'`` filter.

    Selected frames are streamed as PNG images over stdout and split one by
    one, so no intermediate frame directory is written. The ``showinfo``
    filter logs the presentation time of each emitted frame to stderr,
    which is captured in a temporary file and read back per frame.
    """

    def __init__(
        self,
        scene_threshold: float = DEFAULT_SCENE_THRESHOLD,
        crop: Optional[Union[str, CropRegion]] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        fps_limit: Optional[float] = None,
        ffmpeg_bin: str = "ffmpeg",
        verbose: bool = False,
    ):
        super().__init__(scene_threshold, crop, start, end, fps_limit)
        self.ffmpeg_bin = ffmpeg_bin
        self.verbose = verbose

    def build_filters(self) -> str:
        """Video filter chain passed to ``-vf``."""
        filters = []
        if self.crop is not None:
            filters.append(f"crop={self.crop.to_ffmpeg()}")
        filters.append(f"select='gt(scene\\,{self.scene_threshold})'")
        if self.fps_limit:
            filters.append(f"fps={self.fps_limit}")
        filters.append("showinfo")
        return ",".join(filters)

    def build_command(self, video_path: Union[str, Path]) -> List[str]:
        """Full ffmpeg command line for a video."""
        cmd = [self.ffmpeg_bin, "-hide_banner", "-nostdin", "-loglevel", "info"]
        # Input options, so both bounds are positions in the source
        if self.start:
            cmd += ["-ss", self.start]
        if self.end:
            cmd += ["-to", self.end]
        cmd += [
            "-i", str(video_path),
            "-vf", self.build_filters(),
            "-fps_mode", "vfr",
            "-f", "image2pipe",
            "-vcodec", "png",
            "-",
        ]
        return cmd

    def frames(self, source: Union[str, Path]) -> Iterator[Frame]:
        """Run ffmpeg on a video file and yield selected frames."""
        video_path = Path(source)
        if not video_path.exists():
            raise FileNotFoundError(f"Video not found: {video_path}")

        cmd = self.build_command(video_path)
        logger.debug(f"Running: {' '.join(cmd)}")

        with tempfile.TemporaryDirectory(prefix="vidslides_") as tmp:
            log_path = Path(tmp) / "ffmpeg.log"
            with open(log_path, "wb") as log_writer, \
                    open(log_path, "r", errors="replace") as log:
                try:
                    proc = subprocess.Popen(
                        cmd,
                        stdout=subprocess.PIPE,
                        stderr=log_writer,
                        stdin=subprocess.DEVNULL,
                    )
                except FileNotFoundError:
                    raise FrameExtractionError(
                        f"'{self.ffmpeg_bin}' is required but was not found"
                    ) from None

                try:
                    yield from self._read_frames(proc.stdout, log)
                    returncode = proc.wait()
                finally:
                    if proc.poll() is None:
                        proc.kill()
                        proc.wait()
                    proc.stdout.close()

                log.seek(0)
                lines = log.readlines()

        if returncode != 0:
            tail = "".join(lines[-10:]).strip()
            raise FrameExtractionError(f"ffmpeg exited with status {returncode}: {tail}")

        if self.verbose:
            for line in lines:
                logger.debug(f"ffmpeg: {line.rstrip()}")

    def _read_frames(self, stream: BinaryIO, log: TextIO) -> Iterator[Frame]:
        for index, payload in enumerate(read_png_stream(stream)):
            yield Frame(
                index=index,
                timestamp=self._next_timestamp(log),
                image=payload,
            )

    def _next_timestamp(self, log: TextIO) -> Optional[float]:
        """Read log lines up to the next showinfo frame record."""
        while True:
            position = log.tell()
            line = log.readline()
            if not line.endswith("\n"):
                # Nothing or only part of a line written yet
                log.seek(position)
                return None
            match = _SHOWINFO_RE.search(line)
            if match:
                timestamp = float(match.group(2))
                if self._start_seconds:
                    # -ss before -i resets timestamps to the seek point
                    timestamp += self._start_seconds
                return timestamp

    @property
    def name(self) -> str:
        return "ffmpeg"


class OpenCVSceneSampler(SceneSampler):
    """
    Scene-change sampling by frame difference with OpenCV.

    The scene score of a frame is the mean absolute grayscale difference
    to the previous decoded frame, scaled to [0, 1]. A frame is emitted
    when its score exceeds ``scene_threshold``.
    """

    def frames(self, source: Union[str, Path]) -> Iterator[Frame]:
        """Decode a video file and yield frames at scene changes."""
        min_interval = 1.0 / self.fps_limit if self.fps_limit else 0.0
        last_emitted: Optional[float] = None
        prev_gray: Optional[np.ndarray] = None
        index = 0

        with VideoLoader() as loader:
            metadata = loader.load(str(source))
            logger.debug(f"Decoding {metadata.path}: {metadata.describe()}")

            for timestamp, frame in loader.iter_frames(
                start=self._start_seconds, end=self._end_seconds
            ):
                if self.crop is not None:
                    frame = self.crop.apply(frame)
                gray = cv2.cvtColor(frame, cv2.COLOR_RGB2GRAY)

                if prev_gray is not None and prev_gray.shape == gray.shape:
                    score = scene_score(prev_gray, gray)
                    due = last_emitted is None or timestamp - last_emitted >= min_interval
                    if score > self.scene_threshold and due:
                        yield Frame(index=index, timestamp=timestamp, image=frame)
                        index += 1
                        last_emitted = timestamp
                prev_gray = gray

    @property
    def name(self) -> str:
        return "opencv"


class ImageDirectorySampler(FrameSampler):
    """
    Yields the image files of a directory in sorted name order.

    Used for frames that were extracted earlier, e.g. a kept
    ``frames_raw`` directory. Timestamps are unknown.
    """

    def __init__(self, suffixes: tuple = IMAGE_SUFFIXES):
        self.suffixes = tuple(s.lower() for s in suffixes)

    def frames(self, source: Union[str, Path]) -> Iterator[Frame]:
        directory = Path(source)
        if not directory.is_dir():
            raise FileNotFoundError(f"Frame directory not found: {directory}")

        files = sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in self.suffixes
        )
        for index, path in enumerate(files):
            yield Frame(index=index, timestamp=None, image=path)

    @property
    def name(self) -> str:
        return "directory"


def scene_score(prev_gray: np.ndarray, curr_gray: np.ndarray) -> float:
    """Mean absolute difference of two grayscale frames, in [0, 1]."""
    diff = cv2.absdiff(prev_gray, curr_gray)
    return float(np.mean(diff)) / 255.0


def read_png_stream(stream: BinaryIO) -> Iterator[bytes]:
    """
    Split a stream of concatenated PNG files.

    A PNG ends with its IEND chunk, so images are delimited by walking the
    chunk headers. A truncated final image is yielded as-is and will fail
    to decode downstream.
    """
    while True:
        signature = _read_exact(stream, len(PNG_SIGNATURE))
        if not signature:
            return
        parts = [signature]
        if signature != PNG_SIGNATURE:
            logger.warning("Unexpected bytes in PNG stream")
            parts.append(stream.read())
            yield b"".join(parts)
            return

        while True:
            header = _read_exact(stream, 8)
            parts.append(header)
            if len(header) < 8:
                yield b"".join(parts)
                return
            length, chunk_type = struct.unpack(">I4s", header)
            body = _read_exact(stream, length + 4)  # data + CRC
            parts.append(body)
            if len(body) < length + 4:
                yield b"".join(parts)
                return
            if chunk_type == b"IEND":
                break

        yield b"".join(parts)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read up to size bytes, fewer only at end of stream."""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def create_sampler(
    strategy: str,
    **kwargs,
) -> FrameSampler:
    """
    Factory function to create a frame sampler.

    Args:
        strategy: Sampling strategy name (ffmpeg, opencv, directory)
        **kwargs: Strategy-specific parameters

    Returns:
        FrameSampler instance
    """
    samplers = {
        "ffmpeg": FFmpegSceneSampler,
        "opencv": OpenCVSceneSampler,
        "directory": ImageDirectorySampler,
    }

    if strategy not in samplers:
        raise ConfigError(f"Unknown sampling strategy: {strategy}. "
                          f"Available: {list(samplers.keys())}")

    return samplers[strategy](**kwargs)
