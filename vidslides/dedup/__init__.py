"""Perceptual-hash deduplication module."""

from .hasher import AverageHasher, Fingerprint, average_hash, hamming, HASH_BITS
from .deduplicator import (
    StreamingDeduplicator,
    DeduplicationStats,
    DEFAULT_HAMMING_THRESHOLD,
    dedup,
    validate_threshold,
)

__all__ = [
    "AverageHasher",
    "Fingerprint",
    "average_hash",
    "hamming",
    "HASH_BITS",
    "StreamingDeduplicator",
    "DeduplicationStats",
    "DEFAULT_HAMMING_THRESHOLD",
    "dedup",
    "validate_threshold",
]
