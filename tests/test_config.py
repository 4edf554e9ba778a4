"""Tests for configuration loading and validation."""

import pytest


class TestLoadConfig:
    """Tests for merging defaults, YAML and overrides."""

    def test_defaults(self):
        from vidslides.config import load_config

        config = load_config()

        assert config.sampling.strategy == "ffmpeg"
        assert config.sampling.scene_threshold == 0.30
        assert config.dedup.hamming_threshold == 6
        assert config.download.max_height == 1080
        assert config.download.player_clients[0] == "web"
        assert config.output.base_name == "slides"
        assert config.export.pdf and config.export.pptx

    def test_missing_file_uses_defaults(self, tmp_path):
        from vidslides.config import load_config

        config = load_config(str(tmp_path / "absent.yaml"))

        assert config.dedup.hamming_threshold == 6

    def test_yaml_then_overrides(self, tmp_path):
        from vidslides.config import load_config

        path = tmp_path / "config.yaml"
        path.write_text(
            "sampling:\n"
            "  scene_threshold: 0.2\n"
            "  crop: \"100:80:1720:970\"\n"
            "dedup:\n"
            "  hamming_threshold: 4\n"
        )

        config = load_config(str(path), {"dedup": {"hamming_threshold": 10}})

        assert config.sampling.scene_threshold == 0.2
        assert config.sampling.crop == "100:80:1720:970"
        assert config.dedup.hamming_threshold == 10
        assert config.sampling.strategy == "ffmpeg"

    def test_time_overrides_stay_strings(self):
        from vidslides.config import load_config

        config = load_config(overrides={"sampling": {"start": "00:10:00", "end": "01:00:00"}})

        assert config.sampling.start == "00:10:00"
        assert config.sampling.end == "01:00:00"

    @pytest.mark.parametrize("value", [-1, 65, 100])
    def test_hamming_out_of_range(self, value):
        from vidslides.config import load_config
        from vidslides.errors import InvalidThresholdError

        with pytest.raises(InvalidThresholdError):
            load_config(overrides={"dedup": {"hamming_threshold": value}})

    @pytest.mark.parametrize("overrides", [
        {"sampling": {"scene_threshold": 1.5}},
        {"sampling": {"strategy": "magic"}},
        {"sampling": {"crop": "1:2:3"}},
        {"sampling": {"start": "noon"}},
        {"sampling": {"fps_limit": 0}},
    ])
    def test_invalid_values(self, overrides):
        from vidslides.config import load_config
        from vidslides.errors import ConfigError, InvalidThresholdError

        with pytest.raises(ConfigError) as excinfo:
            load_config(overrides=overrides)

        assert not isinstance(excinfo.value, InvalidThresholdError)

    def test_shipped_config_matches_defaults(self):
        """configs/config.yaml mirrors the built-in defaults."""
        from pathlib import Path

        from vidslides.config import SlidesConfig, load_config

        path = Path(__file__).parent.parent / "configs" / "config.yaml"

        assert load_config(str(path)) == SlidesConfig()


class TestOutputConfig:

    def test_explicit_workdir(self, tmp_path):
        from vidslides.config import OutputConfig

        assert OutputConfig(workdir=str(tmp_path)).resolve_workdir() == tmp_path.resolve()

    def test_timestamped_workdir(self):
        from vidslides.config import OutputConfig

        assert OutputConfig().resolve_workdir().name.startswith("slides_work_")
