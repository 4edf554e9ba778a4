"""Video download with yt-dlp."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yt_dlp

from ..errors import FrameExtractionError, VideoDownloadError
from .loader import probe_video

logger = logging.getLogger(__name__)

# YouTube player clients in the order they are tried. web and tv_embedded
# usually give DASH formats when cookies are present.
DEFAULT_PLAYER_CLIENTS = ("web", "tv_embedded", "android", "ios", "tv")


class VideoDownloader:
    """
    Downloads a video at the best quality up to ``max_height``.

    Each player client is tried in turn, first for an AVC/M4A MP4 that needs
    no re-mux (if ``prefer_mp4``), then for any format remuxed to MKV. A
    download below ``min_accept_height`` is discarded and the next client is
    tried, since some clients silently cap the resolution.
    """

    def __init__(
        self,
        output_dir: str,
        max_height: int = 1080,
        min_accept_height: int = 900,
        prefer_mp4: bool = True,
        cookies_file: Optional[str] = None,
        cookies_browser: Optional[str] = None,
        player_clients: Sequence[str] = DEFAULT_PLAYER_CLIENTS,
        retries: int = 10,
        fragment_retries: int = 10,
        concurrent_fragments: int = 5,
        basename: str = "webinar",
        verbose: bool = False,
    ):
        """
        Initialize downloader.

        Args:
            output_dir: Directory the video is written to
            max_height: Highest resolution to request (720/1080/1440/2160)
            min_accept_height: Lowest resolution accepted from a client
            prefer_mp4: Try MP4 without re-mux before the MKV fallback
            cookies_file: cookies.txt path (takes precedence over browser)
            cookies_browser: Browser to read cookies from (chrome, firefox, ...)
            player_clients: YouTube player clients to try, in order
            retries: Download retries per attempt
            fragment_retries: Fragment retries per attempt
            concurrent_fragments: Parallel fragment downloads
            basename: File name stem of the downloaded video
            verbose: Let yt-dlp print its own log
        """
        self.output_dir = Path(output_dir)
        self.max_height = max_height
        self.min_accept_height = min_accept_height
        self.prefer_mp4 = prefer_mp4
        self.cookies_file = cookies_file
        self.cookies_browser = cookies_browser
        self.player_clients = list(player_clients)
        self.retries = retries
        self.fragment_retries = fragment_retries
        self.concurrent_fragments = concurrent_fragments
        self.basename = basename
        self.verbose = verbose

    def download(self, url: str) -> Path:
        """
        Download a video.

        Args:
            url: Video page URL

        Returns:
            Path of the downloaded file

        Raises:
            VideoDownloadError: If no client produced an acceptable file
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Downloading video in max quality <={self.max_height}p...")

        for client in self.player_clients:
            logger.info(f"Trying client {client}")
            self._clear()

            video_path = None
            for ext, options in self._attempts(client):
                video_path = self._run(url, options, ext)
                if video_path is not None:
                    break

            if video_path is None:
                logger.warning(f"Download failed on client {client}. Trying another...")
                continue

            height = self._probe_height(video_path)
            logger.info(f"Got {video_path.name} at {height}p")
            if height >= self.min_accept_height:
                return video_path

            logger.warning("Too low resolution. Trying another client...")
            self._clear()

        raise VideoDownloadError(
            f"Could not get >={self.min_accept_height}p. Try --cookies-file "
            f"cookies.txt or --cookies-browser firefox and/or --max-height 2160."
        )

    def _attempts(self, client: str) -> List[Tuple[str, Dict[str, Any]]]:
        """Download attempts for one client as (extension, options) pairs."""
        attempts = []
        base = self._base_options(client)
        height = self.max_height

        if self.prefer_mp4:
            attempts.append(("mp4", {
                **base,
                "format": (
                    f"bv*[height<={height}][vcodec*=avc1][ext=mp4]"
                    f"+ba[acodec*=mp4a][ext=m4a]/137+140"
                ),
                "format_sort": [f"res:{height}", "res", "codec:avc:m4a", "fps", "br"],
            }))

        attempts.append(("mkv", {
            **base,
            "format": f"bv*[height<={height}]+ba/best",
            "format_sort": [f"res:{height}", "res", "fps", "br", "codec"],
            "postprocessors": [
                {"key": "FFmpegVideoRemuxer", "preferedformat": "mkv"},
            ],
        }))
        return attempts

    def _base_options(self, client: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "outtmpl": str(self.output_dir / f"{self.basename}.%(ext)s"),
            "extractor_args": {"youtube": {"player_client": [client]}},
            "source_address": "0.0.0.0",  # force IPv4
            "retries": self.retries,
            "fragment_retries": self.fragment_retries,
            "concurrent_fragment_downloads": self.concurrent_fragments,
            "noplaylist": True,
            "quiet": not self.verbose,
            "no_warnings": not self.verbose,
            "verbose": self.verbose,
        }
        # cookies priority: file > browser
        if self.cookies_file:
            options["cookiefile"] = self.cookies_file
        elif self.cookies_browser:
            options["cookiesfrombrowser"] = (self.cookies_browser,)
        return options

    def _run(self, url: str, options: Dict[str, Any], ext: str) -> Optional[Path]:
        expected = self.output_dir / f"{self.basename}.{ext}"
        try:
            with yt_dlp.YoutubeDL(options) as ydl:
                ydl.download([url])
        except yt_dlp.utils.DownloadError as e:
            logger.debug(f"yt-dlp ({ext}) failed: {e}")
            return None
        return expected if expected.exists() else None

    def _probe_height(self, video_path: Path) -> int:
        try:
            return probe_video(str(video_path)).height
        except FrameExtractionError as e:
            logger.warning(f"Could not read {video_path}: {e}")
            return 0

    def _clear(self) -> None:
        """Remove leftovers of a previous attempt."""
        for path in self.output_dir.glob(f"{self.basename}.*"):
            if path.is_file():
                path.unlink()
