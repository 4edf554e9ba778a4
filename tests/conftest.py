"""
Test Configuration
==================

Pytest fixtures shared by the slide extraction tests. Images are small
synthetic "slides" whose average hashes are known in advance.
"""

import io

import numpy as np
import pytest
from PIL import Image


def _slide(pattern: str, size: int = 64) -> Image.Image:
    arr = np.zeros((size, size, 3), dtype=np.uint8)
    half = size // 2
    if pattern == "left":
        arr[:, :half] = 255
    elif pattern == "top":
        arr[:half, :] = 255
    elif pattern == "gradient":
        ramp = np.linspace(0, 255, size, dtype=np.uint8)
        arr[:] = ramp[np.newaxis, :, np.newaxis]
    elif pattern == "gray":
        arr[:] = 128
    else:
        raise ValueError(pattern)
    return Image.fromarray(arr)


@pytest.fixture
def make_slide():
    """Factory for synthetic slide images: left, top, gradient, gray."""
    return _slide


@pytest.fixture
def to_png():
    """Encode a PIL image as PNG bytes."""
    def encode(image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
    return encode


@pytest.fixture
def frames_dir(tmp_path, make_slide):
    """
    Directory of candidate frames: a slide, its duplicate, a second slide,
    a noisy copy of it, and the first slide shown again.
    """
    directory = tmp_path / "frames_raw"
    directory.mkdir()

    noisy = np.array(make_slide("top"), dtype=np.int16)
    noisy[10:12, 10:12] = 40  # cursor-sized blemish
    noisy = Image.fromarray(np.clip(noisy, 0, 255).astype(np.uint8))

    images = [
        make_slide("left"),
        make_slide("left"),
        make_slide("top"),
        noisy,
        make_slide("left"),
    ]
    for i, img in enumerate(images, start=1):
        img.save(directory / f"slide_{i:05d}.png")
    return directory


@pytest.fixture
def truncated_png(to_png):
    """
    PNG cut off halfway through its pixel data, as left behind by an
    ffmpeg process killed mid-write. Noise keeps the compressed data large,
    so the cut lands well inside IDAT.
    """
    rng = np.random.default_rng(7)
    noise = Image.fromarray(rng.integers(0, 256, (64, 64, 3), dtype=np.uint8))
    data = to_png(noise)
    return data[:len(data) // 2]
