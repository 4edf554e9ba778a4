#!/usr/bin/env python
"""Main entry point: extract slides from a video into PDF and PPTX."""

import argparse
import logging
import sys
from typing import Any, Dict

from vidslides.config import load_config
from vidslides.errors import (
    DeduplicationInvariantError,
    FrameExtractionError,
    InvalidThresholdError,
    NoCandidatesError,
    NoReadableFramesError,
    SlidesError,
    VideoDownloadError,
)
from vidslides.pipeline import SlidesPipeline

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HINTS = {
    NoCandidatesError: "No frames found. Lower --scene-thr, e.g. to 0.20.",
    NoReadableFramesError: "No candidate frame could be decoded. Check the video or --crop.",
    DeduplicationInvariantError: "After deduplication empty. Reduce --hamming, e.g. to 4.",
    InvalidThresholdError: "--hamming must be between 0 and 64.",
    VideoDownloadError: "Try --cookies-file cookies.txt or --cookies-browser firefox.",
    FrameExtractionError: "Check that ffmpeg is installed and the video is readable.",
}


def yes_no(value: str) -> bool:
    value = value.lower()
    if value not in ("yes", "no"):
        raise argparse.ArgumentTypeError(f"expected yes or no, got {value!r}")
    return value == "yes"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download a webinar, extract slides, build PDF and PPTX",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output:
  NAME.pdf, NAME.pptx and folder NAME_frames_dedup with PNG slides.

Examples:
  # up to 1080p max, using Firefox cookies
  python main.py --url "https://www.youtube.com/watch?v=XXXX" --cookies-browser firefox --out webinar

  # up to 2160p max, local file, crop only presentation area
  python main.py --video webinar.mkv --crop "100:80:1720:970" --max-height 2160 --out webinar_4k

  # re-run deduplication on frames kept from an earlier run
  python main.py --frames-dir slides_work_X/frames_raw --hamming 4 --out slides
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", type=str, help="Video URL to download")
    source.add_argument("--video", type=str, help="Path to local video file")
    source.add_argument("--frames-dir", type=str, help="Directory of extracted frames")

    parser.add_argument("--config", type=str, default="configs/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--out", type=str, help="Base name of output files (default slides)")
    parser.add_argument("--workdir", type=str,
                        help="Working folder (default ./slides_work_TIMESTAMP)")
    parser.add_argument("--sampler", choices=["ffmpeg", "opencv"],
                        help="Scene change detector (default ffmpeg)")
    parser.add_argument("--scene-thr", type=float,
                        help="Slide change detection threshold (default 0.30)")
    parser.add_argument("--start", type=str, help="Trim video start HH:MM:SS")
    parser.add_argument("--end", type=str, help="Trim video end HH:MM:SS")
    parser.add_argument("--crop", type=str, help='Crop presentation area "X:Y:W:H"')
    parser.add_argument("--fps-limit", type=float,
                        help="Limit frame extraction rate after select")
    parser.add_argument("--hamming", type=int,
                        help="Deduplication threshold 0..64 (default 6)")
    parser.add_argument("--keep-intermediate", type=yes_no, metavar="yes|no",
                        help="Keep raw candidate frames (default no)")
    parser.add_argument("--cookies-browser", type=str,
                        help="chrome|chromium|opera|brave|firefox")
    parser.add_argument("--cookies-file", type=str,
                        help="Path to cookies.txt (alternative to --cookies-browser)")
    parser.add_argument("--max-height", type=int, help="720|1080|1440|2160 (default 1080)")
    parser.add_argument("--min-accept-height", type=int,
                        help="Minimum resolution to accept (default 900)")
    parser.add_argument("--prefer-mp4", type=yes_no, metavar="yes|no",
                        help="Prioritize MP4 without re-mux (default yes)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose output")
    return parser


def collect_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Map command line options onto the config tree."""
    mapping = {
        "out": ("output", "base_name"),
        "workdir": ("output", "workdir"),
        "keep_intermediate": ("output", "keep_intermediate"),
        "sampler": ("sampling", "strategy"),
        "scene_thr": ("sampling", "scene_threshold"),
        "start": ("sampling", "start"),
        "end": ("sampling", "end"),
        "crop": ("sampling", "crop"),
        "fps_limit": ("sampling", "fps_limit"),
        "hamming": ("dedup", "hamming_threshold"),
        "cookies_browser": ("download", "cookies_browser"),
        "cookies_file": ("download", "cookies_file"),
        "max_height": ("download", "max_height"),
        "min_accept_height": ("download", "min_accept_height"),
        "prefer_mp4": ("download", "prefer_mp4"),
    }

    overrides: Dict[str, Any] = {}
    for option, (section, key) in mapping.items():
        value = getattr(args, option)
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    if args.verbose:
        overrides["verbose"] = True
    return overrides


def hint_for(error: Exception) -> str:
    for error_type, hint in HINTS.items():
        if isinstance(error, error_type):
            return hint
    return ""


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(args.config, collect_overrides(args))
        pipeline = SlidesPipeline(config)
        result = pipeline.process(
            url=args.url,
            video_path=args.video,
            frames_dir=args.frames_dir,
        )
    except (SlidesError, FileNotFoundError) as e:
        logger.error(str(e))
        hint = hint_for(e)
        if hint:
            logger.error(hint)
        return 1

    metrics = result["metrics"]

    print()
    print("Done.")
    print("Files.")
    for key in ("pdf_path", "pptx_path"):
        if result[key]:
            print(f"  {result[key]}")
    print("Slide images.")
    print(f"  {result['slides_dir']}")
    print(
        f"Candidates: {metrics.candidate_frame_count}, "
        f"skipped: {metrics.skipped_frame_count}, "
        f"slides: {metrics.slide_count} "
        f"({metrics.frame_reduction_ratio:.1%} reduction, "
        f"{metrics.total_time_ms / 1000:.1f}s)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
