"""LangGraph pipeline nodes."""

import logging
import time
from pathlib import Path
from typing import Iterable, Iterator

from tqdm import tqdm

from ..config import SlidesConfig
from ..dedup import StreamingDeduplicator
from ..errors import ConfigError, FrameExtractionError, UnreadableFrameError
from ..export import export_pdf, export_pptx
from ..video import Frame, FrameSampler, VideoDownloader, create_sampler, probe_video
from .state import SlidesState

logger = logging.getLogger(__name__)


def acquire_video_node(state: SlidesState) -> SlidesState:
    """
    Make the input available locally.

    Downloads the video when a URL is given; a local video or frame
    directory is only checked.
    """
    start_time = time.time()
    config: SlidesConfig = state["config"]
    metrics = state.get("metrics", {})

    if state.get("frames_dir"):
        frames_dir = Path(state["frames_dir"])
        if not frames_dir.is_dir():
            raise FileNotFoundError(f"Frame directory {frames_dir} not found")
        logger.info(f"[1/5] Using extracted frames from {frames_dir}")
        return {**state, "metrics": metrics}

    video_path = state.get("video_path")
    if not video_path:
        logger.info("[1/5] Downloading video...")
        downloader = VideoDownloader(
            output_dir=state["workdir"],
            max_height=config.download.max_height,
            min_accept_height=config.download.min_accept_height,
            prefer_mp4=config.download.prefer_mp4,
            cookies_file=config.download.cookies_file,
            cookies_browser=config.download.cookies_browser,
            player_clients=config.download.player_clients,
            retries=config.download.retries,
            fragment_retries=config.download.fragment_retries,
            concurrent_fragments=config.download.concurrent_fragments,
            verbose=config.verbose,
        )
        video_path = str(downloader.download(state["url"]))
    elif not Path(video_path).is_file():
        raise FileNotFoundError(f"Video file {video_path} not found")
    else:
        logger.info(f"[1/5] Using local video {video_path}")

    try:
        logger.info(f"Video: {probe_video(video_path).describe()}")
    except FrameExtractionError as e:
        logger.warning(f"Could not read video parameters: {e}")

    metrics["download_time_ms"] = (time.time() - start_time) * 1000

    return {
        **state,
        "video_path": video_path,
        "metrics": metrics,
    }


def extract_slides_node(state: SlidesState) -> SlidesState:
    """
    Sample candidate frames and keep the unique slides.

    Candidates stream from the sampler through the deduplicator one at a
    time; only retained frames are written to the slides directory.
    """
    start_time = time.time()
    config: SlidesConfig = state["config"]
    metrics = state.get("metrics", {})

    sampler = _create_sampler(state)
    source = state.get("frames_dir") or state["video_path"]
    logger.info(f"[2/5] Extracting slide changes with {sampler.name} sampler...")

    candidates: Iterable[Frame] = sampler.frames(source)
    if config.output.keep_intermediate:
        raw_dir = Path(state["workdir"]) / "frames_raw"
        candidates = _save_candidates(candidates, raw_dir)
    candidates = tqdm(candidates, desc="Candidate frames", unit="frame", disable=None)

    threshold = config.dedup.hamming_threshold
    logger.info(f"[3/5] Deduplicating with aHash, threshold {threshold}...")
    deduplicator = StreamingDeduplicator(threshold=threshold)

    slides_dir = Path(state["slides_dir"])
    slides_dir.mkdir(parents=True, exist_ok=True)
    for stale in slides_dir.glob("slide_*.png"):
        stale.unlink()

    slide_paths = []
    slide_timestamps = []
    for frame in deduplicator.deduplicate(candidates):
        slide_paths.append(str(frame.save(slides_dir / frame.filename)))
        slide_timestamps.append(frame.timestamp)

    stats = deduplicator.stats
    logger.info(f"Found {stats.candidate_count} candidate frames")
    logger.info(f"Kept {len(slide_paths)} unique slides")

    metrics["extraction_time_ms"] = (time.time() - start_time) * 1000
    metrics["candidate_frame_count"] = stats.candidate_count
    metrics["skipped_frame_count"] = stats.skipped_count
    metrics["slide_count"] = stats.retained_count
    metrics["frame_reduction_ratio"] = stats.reduction_ratio
    metrics["sampler"] = sampler.name
    metrics["hamming_threshold"] = threshold
    if sampler.name != "directory":
        metrics["scene_threshold"] = config.sampling.scene_threshold

    return {
        **state,
        "slide_paths": slide_paths,
        "slide_timestamps": slide_timestamps,
        "metrics": metrics,
    }


def export_pdf_node(state: SlidesState) -> SlidesState:
    """Write the slides to <output_base>.pdf."""
    config: SlidesConfig = state["config"]
    if not config.export.pdf:
        _remove_stale(Path(f"{state['output_base']}.pdf"))
        return {**state, "pdf_path": None}

    start_time = time.time()
    logger.info("[4/5] Building PDF...")
    pdf_path = export_pdf(state["slide_paths"], f"{state['output_base']}.pdf")

    metrics = state.get("metrics", {})
    metrics["export_time_ms"] = metrics.get("export_time_ms", 0.0) + (time.time() - start_time) * 1000

    return {**state, "pdf_path": str(pdf_path), "metrics": metrics}


def export_pptx_node(state: SlidesState) -> SlidesState:
    """Write the slides to <output_base>.pptx."""
    config: SlidesConfig = state["config"]
    if not config.export.pptx:
        _remove_stale(Path(f"{state['output_base']}.pptx"))
        return {**state, "pptx_path": None}

    start_time = time.time()
    logger.info("[5/5] Building PPTX...")
    pptx_path = export_pptx(
        state["slide_paths"],
        f"{state['output_base']}.pptx",
        canvas_inches=(config.export.canvas_width_in, config.export.canvas_height_in),
    )

    metrics = state.get("metrics", {})
    metrics["export_time_ms"] = metrics.get("export_time_ms", 0.0) + (time.time() - start_time) * 1000

    return {**state, "pptx_path": str(pptx_path), "metrics": metrics}


def _create_sampler(state: SlidesState) -> FrameSampler:
    config: SlidesConfig = state["config"]
    if state.get("frames_dir"):
        return create_sampler("directory")

    sampling = config.sampling
    kwargs = {
        "scene_threshold": sampling.scene_threshold,
        "crop": sampling.crop,
        "start": sampling.start,
        "end": sampling.end,
        "fps_limit": sampling.fps_limit,
    }
    if sampling.strategy == "ffmpeg":
        kwargs["ffmpeg_bin"] = sampling.ffmpeg_bin
        kwargs["verbose"] = config.verbose
    elif sampling.strategy == "directory":
        raise ConfigError("The directory sampler needs a frames directory input")

    return create_sampler(sampling.strategy, **kwargs)


def _remove_stale(path: Path) -> None:
    """Delete a document left over from an earlier run."""
    if path.is_file():
        logger.warning(f"Removing {path} from an earlier run (export disabled)")
        path.unlink()


def _save_candidates(frames: Iterable[Frame], directory: Path) -> Iterator[Frame]:
    """Write every candidate to directory as it streams past."""
    directory.mkdir(parents=True, exist_ok=True)
    for frame in frames:
        try:
            frame.save(directory / frame.filename)
        except UnreadableFrameError as e:
            logger.debug(f"Not saving unreadable candidate: {e}")
        yield frame
