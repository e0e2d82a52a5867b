"""Tests for clipseqtools.config module."""

from pathlib import Path

import pytest

from clipseqtools.config import (
    BinningConfig,
    Config,
    ConfigurationError,
    DensityConfig,
    ExecutionConfig,
)


class TestDefaults:
    """Tests for default configuration values."""

    def test_defaults(self):
        config = Config()
        assert config.binning.bins == 10
        assert config.binning.length_thres == 300
        assert config.density.span == 25
        assert config.execution.workers == 1
        config.validate()

    def test_to_dict(self):
        assert Config().to_dict()["density"] == {"span": 25}


class TestValidation:
    """Tests for section validation."""

    @pytest.mark.parametrize(
        "section",
        [
            BinningConfig(bins=0),
            BinningConfig(length_thres=-1),
            DensityConfig(span=-1),
            ExecutionConfig(workers=0),
            ExecutionConfig(backend="cluster"),
        ],
    )
    def test_invalid_values(self, section):
        with pytest.raises(ConfigurationError):
            section.validate()

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestLoad:
    """Tests for loading TOML files."""

    def test_none_gives_defaults(self):
        assert Config.load(None) == Config()

    def test_load_toml(self, tmp_path: Path):
        path = tmp_path / "clipseqtools.toml"
        path.write_text('[binning]\nbins = 20\n\n[execution]\nworkers = 4\nbackend = "threads"\n')
        config = Config.load(path)
        assert config.binning.bins == 20
        assert config.binning.length_thres == 300
        assert config.execution.backend == "threads"

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError, match="plotting"):
            Config.from_dict({"plotting": {}})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            Config.from_dict({"binning": {"width": 3}})

    def test_invalid_value_in_file(self, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text("[density]\nspan = -5\n")
        with pytest.raises(ConfigurationError):
            Config.load(path)

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "broken.toml"
        path.write_text("[binning\n")
        with pytest.raises(ConfigurationError):
            Config.load(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "missing.toml")
