"""
Frame data model.

A Frame is one candidate still produced by a sampler. The image payload is
kept in whatever form the sampler produced it (encoded PNG bytes from an
ffmpeg pipe, a file on disk, a decoded array) and is only decoded when the
hasher asks for it. Saving a frame writes encoded payloads unchanged.
"""

import io
import re
import shutil
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from ..errors import ConfigError, UnreadableFrameError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

FramePayload = Union[bytes, str, Path, Image.Image, np.ndarray]

_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(?:(\d+):)?(\d+(?:\.\d+)?)$")

_DECODE_ERRORS = (OSError, ValueError, TypeError, SyntaxError, Image.DecompressionBombError)


@dataclass(frozen=True, eq=False)
class Frame:
    """
    Candidate frame from a sampler.

    Attributes:
        index: Ordinal position in the candidate stream (0-based)
        timestamp: Source timestamp in seconds, if the sampler knows it
        image: Encoded bytes, image path, PIL image or RGB array
    """

    index: int
    timestamp: Optional[float]
    image: FramePayload

    def load(self) -> Image.Image:
        """
        Decode the payload into a PIL image.

        Raises:
            UnreadableFrameError: If the payload is not a decodable image
        """
        payload = self.image
        try:
            if isinstance(payload, Image.Image):
                return payload
            if isinstance(payload, np.ndarray):
                return Image.fromarray(payload)
            if isinstance(payload, (bytes, bytearray)):
                with Image.open(io.BytesIO(payload)) as img:
                    img.load()
                    return img.copy()
            with Image.open(payload) as img:
                img.load()
                return img.copy()
        except _DECODE_ERRORS as e:
            raise UnreadableFrameError(f"Cannot decode {self!r}: {e}") from e

    @cached_property
    def size(self) -> tuple:
        """
        (width, height) of the image.

        Encoded payloads are sized from their header, without decoding
        the pixel data.
        """
        payload = self.image
        if isinstance(payload, np.ndarray):
            height, width = payload.shape[:2]
            return width, height
        if isinstance(payload, Image.Image):
            return payload.size
        source = io.BytesIO(payload) if isinstance(payload, (bytes, bytearray)) else payload
        try:
            with Image.open(source) as img:
                return img.size
        except _DECODE_ERRORS as e:
            raise UnreadableFrameError(f"Cannot read size of {self!r}: {e}") from e

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def save(self, path: Union[str, Path]) -> Path:
        """
        Write the frame to disk as PNG.

        Encoded PNG payloads and PNG files are written byte for byte;
        anything else is encoded with Pillow.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.image

        if isinstance(payload, (bytes, bytearray)) and payload[:8] == PNG_SIGNATURE:
            path.write_bytes(payload)
        elif isinstance(payload, (str, Path)) and Path(payload).suffix.lower() == ".png":
            shutil.copyfile(payload, path)
        else:
            self.load().save(path, "PNG")
        return path

    @property
    def filename(self) -> str:
        """File name used for this frame in frame directories."""
        return f"slide_{self.index + 1:05d}.png"

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image payload."""
        ts = f"{self.timestamp:.3f}" if self.timestamp is not None else "None"
        return f"Frame(index={self.index}, timestamp={ts})"


@dataclass(frozen=True)
class CropRegion:
    """Rectangular crop applied to every frame before scene detection."""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def parse(cls, value: str) -> "CropRegion":
        """Parse an ``X:Y:W:H`` string."""
        parts = value.split(":")
        if len(parts) != 4:
            raise ConfigError(f"Crop must be X:Y:W:H, got {value!r}")
        try:
            x, y, w, h = (int(p) for p in parts)
        except ValueError:
            raise ConfigError(f"Crop values must be integers, got {value!r}") from None
        if x < 0 or y < 0 or w <= 0 or h <= 0:
            raise ConfigError(f"Crop region out of range: {value!r}")
        return cls(x, y, w, h)

    def to_ffmpeg(self) -> str:
        """ffmpeg crop filter arguments (W:H:X:Y)."""
        return f"{self.width}:{self.height}:{self.x}:{self.y}"

    def apply(self, frame: np.ndarray) -> np.ndarray:
        """Crop a decoded frame."""
        return frame[self.y:self.y + self.height, self.x:self.x + self.width]


def parse_timestamp(value: str) -> float:
    """
    Convert ``HH:MM:SS[.fff]``, ``MM:SS`` or plain seconds to seconds.

    Raises:
        ConfigError: If the string is not a timestamp
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise ConfigError(f"Invalid timestamp: {value!r}")
    first, second, seconds = match.groups()
    if second is not None:
        hours, minutes = int(first), int(second)
    else:
        hours, minutes = 0, int(first or 0)
    return hours * 3600 + minutes * 60 + float(seconds)
