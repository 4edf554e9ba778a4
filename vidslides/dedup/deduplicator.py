"""Streaming perceptual-hash frame deduplication."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from ..errors import (
    DeduplicationInvariantError,
    InvalidThresholdError,
    NoCandidatesError,
    NoReadableFramesError,
    UnreadableFrameError,
)
from ..video.frame import Frame
from .hasher import HASH_BITS, AverageHasher, Fingerprint

logger = logging.getLogger(__name__)

DEFAULT_HAMMING_THRESHOLD = 6

Hasher = Callable[[Frame], Fingerprint]


@dataclass
class DeduplicationStats:
    """Counters of a deduplication run, updated while frames stream through."""
    candidate_count: int = 0
    skipped_count: int = 0
    retained_count: int = 0
    threshold: Optional[int] = None
    method: str = "ahash"

    @property
    def readable_count(self) -> int:
        return self.candidate_count - self.skipped_count

    @property
    def reduction_ratio(self) -> float:
        if self.readable_count == 0:
            return 0.0
        return 1.0 - (self.retained_count / self.readable_count)


def validate_threshold(threshold: int) -> int:
    """
    Check a Hamming threshold against the fingerprint width.

    Raises:
        InvalidThresholdError: If threshold is not an integer in [0, 64]
    """
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise InvalidThresholdError(
            f"Hamming threshold must be an integer, got {threshold!r}"
        )
    if not 0 <= threshold <= HASH_BITS:
        raise InvalidThresholdError(
            f"Hamming threshold must be in [0, {HASH_BITS}], got {threshold}"
        )
    return threshold


class StreamingDeduplicator:
    """
    Keeps a frame only if it differs enough from the last kept frame.

    Each candidate is compared with the most recently *retained*
    fingerprint, not with every earlier slide. Bursts of near-identical
    frames (cursor movement, encoder noise) collapse to their first frame,
    while a slide that is shown again later in the talk survives a second
    time. Only the last retained fingerprint is held, so memory does not
    grow with the number of candidates.
    """

    def __init__(
        self,
        threshold: int = DEFAULT_HAMMING_THRESHOLD,
        hasher: Optional[Hasher] = None,
    ):
        """
        Initialize streaming deduplicator.

        Args:
            threshold: Maximum Hamming distance still considered a duplicate
            hasher: Callable mapping a Frame to a Fingerprint (default: aHash)

        Raises:
            InvalidThresholdError: If threshold is outside [0, 64]
        """
        self.threshold = validate_threshold(threshold)
        self.hasher = hasher or AverageHasher()
        self.stats = DeduplicationStats(threshold=self.threshold, method=self.name)

    def deduplicate(self, frames: Iterable[Frame]) -> Iterator[Frame]:
        """
        Lazily filter an ordered stream of candidate frames.

        Retained frames are yielded unchanged and in input order. Counters
        in ``self.stats`` are reset at the start of each run.

        Args:
            frames: Candidate frames in time order

        Yields:
            Frames whose fingerprint is more than ``threshold`` bits away
            from the previously yielded frame

        Raises:
            NoCandidatesError: If the input stream was empty
            NoReadableFramesError: If no candidate could be decoded
        """
        self.stats = DeduplicationStats(threshold=self.threshold, method=self.name)
        stats = self.stats
        last_fp: Optional[Fingerprint] = None

        for frame in frames:
            stats.candidate_count += 1
            try:
                fp = self.hasher(frame)
            except UnreadableFrameError as e:
                stats.skipped_count += 1
                logger.warning(f"Skipping unreadable frame: {e}")
                continue

            if last_fp is None:
                keep = True
            else:
                distance = fp.distance(last_fp)
                keep = distance > self.threshold
                logger.debug(
                    f"{frame!r}: distance {distance} to last slide "
                    f"({'kept' if keep else 'duplicate'})"
                )

            if keep:
                last_fp = fp
                stats.retained_count += 1
                yield frame

        self._check_result(stats)

        logger.info(
            f"Deduplication: {stats.readable_count} -> {stats.retained_count} frames "
            f"({stats.reduction_ratio:.1%} reduction, {stats.skipped_count} skipped)"
        )

    def _check_result(self, stats: DeduplicationStats) -> None:
        if stats.candidate_count == 0:
            raise NoCandidatesError("No candidate frames were produced")
        if stats.readable_count == 0:
            raise NoReadableFramesError(
                f"All {stats.candidate_count} candidate frames were unreadable"
            )
        if stats.retained_count == 0:
            raise DeduplicationInvariantError(
                f"{stats.readable_count} readable frames produced no slides"
            )

    @property
    def name(self) -> str:
        return "ahash"


def dedup(
    frames: Iterable[Frame],
    threshold: int = DEFAULT_HAMMING_THRESHOLD,
    hasher: Optional[Hasher] = None,
) -> Iterator[Frame]:
    """
    Deduplicate a frame stream against the last retained fingerprint.

    Convenience wrapper around StreamingDeduplicator. The threshold is
    validated immediately, before the returned iterator is consumed.
    """
    deduplicator = StreamingDeduplicator(threshold=threshold, hasher=hasher)
    return deduplicator.deduplicate(frames)
