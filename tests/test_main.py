"""Tests for the command line entry point."""

import pytest


class TestCommandLine:
    """Tests for argument parsing and exit codes."""

    def test_collect_overrides(self):
        from main import build_parser, collect_overrides

        args = build_parser().parse_args([
            "--video", "talk.mkv",
            "--scene-thr", "0.2",
            "--hamming", "4",
            "--crop", "100:80:1720:970",
            "--start", "00:10:00",
            "--keep-intermediate", "yes",
            "--prefer-mp4", "no",
            "--out", "webinar",
        ])

        assert collect_overrides(args) == {
            "sampling": {"scene_threshold": 0.2, "crop": "100:80:1720:970", "start": "00:10:00"},
            "dedup": {"hamming_threshold": 4},
            "output": {"base_name": "webinar", "keep_intermediate": True},
            "download": {"prefer_mp4": False},
        }

    def test_no_options_no_overrides(self):
        from main import build_parser, collect_overrides

        args = build_parser().parse_args(["--url", "https://example.com/v"])

        assert collect_overrides(args) == {}

    def test_source_required(self):
        from main import main

        with pytest.raises(SystemExit):
            main([])

    def test_sources_exclusive(self):
        from main import main

        with pytest.raises(SystemExit):
            main(["--url", "https://example.com/v", "--video", "talk.mp4"])

    def test_bad_yes_no(self):
        from main import main

        with pytest.raises(SystemExit):
            main(["--video", "talk.mp4", "--keep-intermediate", "maybe"])

    def test_success(self, tmp_path, frames_dir, capsys):
        from main import main

        code = main([
            "--frames-dir", str(frames_dir),
            "--config", str(tmp_path / "none.yaml"),
            "--out", str(tmp_path / "deck"),
            "--workdir", str(tmp_path / "work"),
        ])

        assert code == 0
        out = capsys.readouterr().out
        assert "Done." in out
        assert "deck.pdf" in out
        assert "slides: 3" in out
        assert (tmp_path / "deck.pptx").is_file()

    def test_invalid_threshold_exit_code(self, tmp_path, frames_dir, caplog):
        from main import main

        code = main([
            "--frames-dir", str(frames_dir),
            "--config", str(tmp_path / "none.yaml"),
            "--hamming", "65",
        ])

        assert code == 1
        assert "between 0 and 64" in caplog.text

    def test_no_candidates_exit_code(self, tmp_path, caplog):
        from main import main

        empty = tmp_path / "empty"
        empty.mkdir()

        code = main([
            "--frames-dir", str(empty),
            "--config", str(tmp_path / "none.yaml"),
            "--out", str(tmp_path / "deck"),
            "--workdir", str(tmp_path / "work"),
        ])

        assert code == 1
        assert "--scene-thr" in caplog.text
