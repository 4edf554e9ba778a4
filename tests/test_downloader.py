"""Tests for the yt-dlp downloader with client fallback."""

from types import SimpleNamespace

import pytest


class FakeYoutubeDL:
    """Writes an empty video file where yt-dlp would, or fails on request."""

    calls = []
    failing = set()  # (client, ext) pairs that raise DownloadError

    def __init__(self, options):
        self.options = options

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def download(self, urls):
        import yt_dlp

        client = self.options["extractor_args"]["youtube"]["player_client"][0]
        ext = "mkv" if "postprocessors" in self.options else "mp4"
        FakeYoutubeDL.calls.append((client, ext, self.options))
        if (client, ext) in FakeYoutubeDL.failing:
            raise yt_dlp.utils.DownloadError(f"{client} refused {ext}")
        path = self.options["outtmpl"].replace("%(ext)s", ext)
        with open(path, "wb") as f:
            f.write(client.encode())
        return 0


@pytest.fixture
def fake_ytdlp(monkeypatch):
    """Patch yt-dlp and probing; returns a setter for per-client heights."""
    import vidslides.video.downloader as downloader_module

    FakeYoutubeDL.calls = []
    FakeYoutubeDL.failing = set()
    heights = {}

    def fake_probe(path):
        with open(path, "rb") as f:
            client = f.read().decode()
        return SimpleNamespace(height=heights.get(client, 1080))

    monkeypatch.setattr(downloader_module.yt_dlp, "YoutubeDL", FakeYoutubeDL)
    monkeypatch.setattr(downloader_module, "probe_video", fake_probe)
    return heights


URL = "https://www.youtube.com/watch?v=abc"


class TestVideoDownloader:
    """Tests for VideoDownloader.download."""

    def test_first_client_mp4(self, fake_ytdlp, tmp_path):
        from vidslides.video.downloader import VideoDownloader

        path = VideoDownloader(str(tmp_path)).download(URL)

        assert path == tmp_path / "webinar.mp4"
        assert [(c, e) for c, e, _ in FakeYoutubeDL.calls] == [("web", "mp4")]

    def test_mkv_fallback(self, fake_ytdlp, tmp_path):
        """When MP4 is unavailable the remuxed MKV attempt runs."""
        from vidslides.video.downloader import VideoDownloader

        FakeYoutubeDL.failing = {("web", "mp4")}

        path = VideoDownloader(str(tmp_path)).download(URL)

        assert path.name == "webinar.mkv"
        assert [(c, e) for c, e, _ in FakeYoutubeDL.calls] == [("web", "mp4"), ("web", "mkv")]

    def test_low_resolution_tries_next_client(self, fake_ytdlp, tmp_path):
        from vidslides.video.downloader import VideoDownloader

        fake_ytdlp["web"] = 720

        path = VideoDownloader(str(tmp_path), min_accept_height=900).download(URL)

        assert [c for c, _, _ in FakeYoutubeDL.calls] == ["web", "tv_embedded"]
        assert path.read_bytes() == b"tv_embedded"

    def test_all_clients_fail(self, fake_ytdlp, tmp_path):
        from vidslides.errors import VideoDownloadError
        from vidslides.video.downloader import VideoDownloader

        for client in ("web", "android"):
            fake_ytdlp[client] = 480
        downloader = VideoDownloader(str(tmp_path), player_clients=["web", "android"])

        with pytest.raises(VideoDownloadError):
            downloader.download(URL)

        assert list(tmp_path.glob("webinar.*")) == []

    def test_download_errors_everywhere(self, fake_ytdlp, tmp_path):
        from vidslides.errors import VideoDownloadError
        from vidslides.video.downloader import VideoDownloader

        FakeYoutubeDL.failing = {("web", "mp4"), ("web", "mkv")}

        with pytest.raises(VideoDownloadError):
            VideoDownloader(str(tmp_path), player_clients=["web"]).download(URL)

    def test_prefer_mp4_off(self, fake_ytdlp, tmp_path):
        from vidslides.video.downloader import VideoDownloader

        path = VideoDownloader(str(tmp_path), prefer_mp4=False).download(URL)

        assert path.name == "webinar.mkv"
        assert len(FakeYoutubeDL.calls) == 1


class TestDownloadOptions:
    """Tests for the yt-dlp options built per attempt."""

    def test_format_selection(self, tmp_path):
        from vidslides.video.downloader import VideoDownloader

        attempts = VideoDownloader(str(tmp_path), max_height=1440)._attempts("web")

        assert [ext for ext, _ in attempts] == ["mp4", "mkv"]
        mp4, mkv = attempts[0][1], attempts[1][1]
        assert "bv*[height<=1440][vcodec*=avc1][ext=mp4]" in mp4["format"]
        assert mp4["format_sort"][0] == "res:1440"
        assert mkv["format"] == "bv*[height<=1440]+ba/best"
        assert mkv["postprocessors"][0]["preferedformat"] == "mkv"
        assert mp4["extractor_args"] == {"youtube": {"player_client": ["web"]}}

    def test_cookie_file_wins(self, tmp_path):
        from vidslides.video.downloader import VideoDownloader

        options = VideoDownloader(
            str(tmp_path), cookies_file="cookies.txt", cookies_browser="firefox"
        )._base_options("web")

        assert options["cookiefile"] == "cookies.txt"
        assert "cookiesfrombrowser" not in options

    def test_cookie_browser(self, tmp_path):
        from vidslides.video.downloader import VideoDownloader

        options = VideoDownloader(str(tmp_path), cookies_browser="firefox")._base_options("tv")

        assert options["cookiesfrombrowser"] == ("firefox",)
        assert options["quiet"] is True
