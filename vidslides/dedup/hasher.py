"""Average-hash perceptual fingerprints."""

from dataclasses import dataclass
from typing import Union

import numpy as np
from PIL import Image

from ..video.frame import Frame

HASH_SIZE = 8
HASH_BITS = HASH_SIZE * HASH_SIZE


@dataclass(frozen=True, eq=False)
class Fingerprint:
    """
    Fixed-width binary fingerprint of an image.

    Fingerprints are compared by Hamming distance only; two near-identical
    slides rarely produce the exact same bits.
    """
    value: int
    bits: int = HASH_BITS

    def distance(self, other: "Fingerprint") -> int:
        """Number of differing bits."""
        if self.bits != other.bits:
            raise ValueError(
                f"Cannot compare {self.bits}-bit and {other.bits}-bit fingerprints"
            )
        return (self.value ^ other.value).bit_count()

    def __repr__(self) -> str:
        width = self.bits // 4
        return f"Fingerprint(0x{self.value:0{width}x})"


def hamming(a: Fingerprint, b: Fingerprint) -> int:
    """Hamming distance between two fingerprints."""
    return a.distance(b)


def average_hash(image: Union[Image.Image, np.ndarray]) -> Fingerprint:
    """
    Compute the 64-bit average hash of an image.

    The image is converted to grayscale, resized to 8x8 with bilinear
    resampling, and each sample becomes one bit: 1 if it is at least the
    mean intensity, 0 otherwise. Bits are packed in raster order with the
    top-left sample as the most significant bit.

    Args:
        image: PIL image or array (RGB or single channel)

    Returns:
        Fingerprint of HASH_BITS bits
    """
    if isinstance(image, np.ndarray):
        image = Image.fromarray(image)

    small = image.convert("L").resize((HASH_SIZE, HASH_SIZE), Image.BILINEAR)
    pixels = np.asarray(small, dtype=np.float64).flatten()
    bits = pixels >= pixels.mean()

    value = 0
    for bit in bits:
        value = (value << 1) | int(bit)
    return Fingerprint(value=value, bits=HASH_BITS)


class AverageHasher:
    """
    Hashes frames with the average-hash algorithm.

    Decoding happens here, so an unreadable frame surfaces as
    UnreadableFrameError from hash().
    """

    def hash(self, frame: Union[Frame, Image.Image, np.ndarray]) -> Fingerprint:
        """Fingerprint a frame or an already decoded image."""
        if isinstance(frame, Frame):
            image = frame.load()
        else:
            image = frame
        return average_hash(image)

    def __call__(self, frame: Union[Frame, Image.Image, np.ndarray]) -> Fingerprint:
        return self.hash(frame)
