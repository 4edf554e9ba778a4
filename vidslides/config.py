"""
Configuration
=============

Configuration sources (in order of precedence):
    1. Overrides, e.g. from the command line (nested dict)
    2. YAML config file (``configs/config.yaml``)
    3. Default values

The merged result is validated by pydantic models, so invalid values are
rejected before any video is decoded.

Example:
    from vidslides.config import load_config

    config = load_config("configs/config.yaml", {"sampling": {"scene_threshold": 0.2}})
    print(config.dedup.hamming_threshold)
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError, InvalidThresholdError
from .video.frame import CropRegion, parse_timestamp
from .video.downloader import DEFAULT_PLAYER_CLIENTS

logger = logging.getLogger(__name__)


class SamplingConfig(BaseModel):
    """Candidate frame sampling."""

    strategy: Literal["ffmpeg", "opencv", "directory"] = Field(
        default="ffmpeg",
        description="Sampler used to find slide changes",
    )
    scene_threshold: float = Field(
        default=0.30,
        gt=0,
        lt=1,
        description="Scene change score threshold (0.15..0.5 typical, lower = more frames)",
    )
    crop: Optional[str] = Field(default=None, description="Crop region X:Y:W:H")
    start: Optional[str] = Field(default=None, description="Start time HH:MM:SS")
    end: Optional[str] = Field(default=None, description="End time HH:MM:SS")
    fps_limit: Optional[float] = Field(
        default=None,
        gt=0,
        description="Frame rate cap after scene selection",
    )
    ffmpeg_bin: str = Field(default="ffmpeg", description="ffmpeg executable")

    @field_validator("crop")
    @classmethod
    def _check_crop(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            CropRegion.parse(value)
        return value

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_timestamp(value)
        return value


class DedupConfig(BaseModel):
    """Perceptual-hash deduplication."""

    hamming_threshold: int = Field(
        default=6,
        ge=0,
        le=64,
        description="Frames within this many differing bits of the last slide are duplicates",
    )


class DownloadConfig(BaseModel):
    """Video download."""

    max_height: int = Field(default=1080, gt=0, description="Max quality 720/1080/1440/2160")
    min_accept_height: int = Field(
        default=900,
        ge=0,
        description="Minimal height, otherwise try another client",
    )
    prefer_mp4: bool = Field(default=True, description="Try MP4 first (no re-mux)")
    cookies_browser: Optional[str] = Field(
        default=None,
        description="chrome|chromium|opera|brave|firefox",
    )
    cookies_file: Optional[str] = Field(default=None, description="Path to cookies.txt")
    player_clients: List[str] = Field(default_factory=lambda: list(DEFAULT_PLAYER_CLIENTS))
    retries: int = Field(default=10, ge=0)
    fragment_retries: int = Field(default=10, ge=0)
    concurrent_fragments: int = Field(default=5, ge=1)


class OutputConfig(BaseModel):
    """Output locations."""

    base_name: str = Field(default="slides", description="Base name of output files")
    workdir: Optional[str] = Field(
        default=None,
        description="Working folder (default ./slides_work_TIMESTAMP)",
    )
    keep_intermediate: bool = Field(
        default=False,
        description="Also save every candidate frame to <workdir>/frames_raw",
    )

    def resolve_workdir(self) -> Path:
        if self.workdir:
            return Path(self.workdir).resolve()
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return Path(f"slides_work_{stamp}").resolve()


class ExportConfig(BaseModel):
    """Document export."""

    pdf: bool = True
    pptx: bool = True
    canvas_width_in: float = Field(default=13.333, gt=0)
    canvas_height_in: float = Field(default=7.5, gt=0)


class SlidesConfig(BaseModel):
    """Root configuration."""

    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    verbose: bool = False


def load_config(
    path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> SlidesConfig:
    """
    Load and validate configuration.

    Args:
        path: Optional YAML file; missing files fall back to defaults
        overrides: Nested values applied last

    Returns:
        Validated SlidesConfig

    Raises:
        InvalidThresholdError: If the Hamming threshold is out of range
        ConfigError: For any other invalid value
    """
    merged = OmegaConf.create(SlidesConfig().model_dump())

    try:
        if path and Path(path).exists():
            merged = OmegaConf.merge(merged, OmegaConf.load(path))
            logger.info(f"Loaded config from {path}")
        elif path:
            logger.warning(f"Config not found: {path}, using defaults")

        if overrides:
            merged = OmegaConf.merge(merged, OmegaConf.create(overrides))

        data = OmegaConf.to_container(merged, resolve=True)
    except OmegaConfBaseException as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    return validate_config(data)


def validate_config(data: dict) -> SlidesConfig:
    """Validate a plain config dictionary into a SlidesConfig."""
    try:
        return SlidesConfig.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            if error["loc"][-1:] == ("hamming_threshold",):
                raise InvalidThresholdError(
                    f"dedup.hamming_threshold must be an integer in [0, 64], "
                    f"got {error.get('input')!r}"
                ) from e
        raise ConfigError(f"Invalid configuration: {e}") from e
