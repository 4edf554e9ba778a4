"""Exception hierarchy for the slide extraction pipeline."""


class SlidesError(RuntimeError):
    """Base exception for the slide extraction pipeline."""


class ConfigError(SlidesError, ValueError):
    """Raised when a configuration value is invalid."""


class InvalidThresholdError(ConfigError):
    """Raised when the Hamming threshold is outside [0, 64]."""


class UnreadableFrameError(SlidesError):
    """Raised when a frame payload cannot be decoded into an image."""


class NoCandidatesError(SlidesError):
    """Raised when the sampler produced no candidate frames at all."""


class NoReadableFramesError(SlidesError):
    """Raised when candidate frames exist but none of them could be decoded."""


class DeduplicationInvariantError(SlidesError):
    """Raised when readable frames went in but no slide came out."""


class FrameExtractionError(SlidesError):
    """Raised when the video decoder fails."""


class VideoDownloadError(SlidesError):
    """Raised when video download fails."""


class ExportError(SlidesError):
    """Raised when PDF or PPTX creation fails."""
