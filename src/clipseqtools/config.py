"""Configuration management for clipseqtools.

Settings are explicit objects passed to each analysis; there is no
process-wide state. Configuration can come from:
- Default values
- A TOML configuration file
- Command-line arguments (the CLI overrides loaded values)

Example:
    >>> from clipseqtools.config import Config
    >>> config = Config.load("clipseqtools.toml")
    >>> config.binning.bins
    10

The TOML layout mirrors the attrs classes::

    [binning]
    bins = 20
    length_thres = 300

    [density]
    span = 25

    [execution]
    workers = 4
    backend = "processes"
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import attrs

# =============================================================================
# Default Configuration Values
# =============================================================================

# Positional binning defaults
DEFAULT_BINS = 10
DEFAULT_LENGTH_THRES = 300

# Relative density defaults
DEFAULT_SPAN = 25

# Execution defaults
DEFAULT_WORKERS = 1
DEFAULT_BACKEND = "processes"
VALID_BACKENDS = ("serial", "threads", "processes")


# =============================================================================
# Errors
# =============================================================================


class ConfigurationError(ValueError):
    """Raised for invalid settings or unusable auxiliary inputs.

    Configuration errors are detected before any reads are processed.
    """


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class BinningConfig:
    """Configuration for positional binning.

    Attributes:
        bins: Number of bins each element is split into.
        length_thres: Spliced elements with exonic length not greater
            than this are skipped.
    """

    bins: int = DEFAULT_BINS
    length_thres: int = DEFAULT_LENGTH_THRES

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        if self.bins < 1:
            raise ConfigurationError(f"bins must be at least 1, got {self.bins}")
        if self.length_thres < 0:
            raise ConfigurationError(
                f"length_thres must be non-negative, got {self.length_thres}"
            )


@attrs.define
class DensityConfig:
    """Configuration for relative read density.

    Attributes:
        span: Radius of the window around each reference read midpoint.
    """

    span: int = DEFAULT_SPAN

    def validate(self) -> None:
        if self.span < 0:
            raise ConfigurationError(f"span must be non-negative, got {self.span}")


@attrs.define
class ExecutionConfig:
    """Configuration for per-chromosome execution.

    Attributes:
        workers: Number of parallel workers (1 = serial).
        backend: serial, threads or processes.
    """

    workers: int = DEFAULT_WORKERS
    backend: str = DEFAULT_BACKEND

    def validate(self) -> None:
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if self.backend not in VALID_BACKENDS:
            raise ConfigurationError(
                f"backend must be one of {', '.join(VALID_BACKENDS)}, got {self.backend!r}"
            )


@attrs.define
class Config:
    """Main configuration container.

    Attributes:
        binning: Positional binning configuration.
        density: Relative density configuration.
        execution: Execution configuration.
    """

    binning: BinningConfig = attrs.Factory(BinningConfig)
    density: DensityConfig = attrs.Factory(DensityConfig)
    execution: ExecutionConfig = attrs.Factory(ExecutionConfig)

    def validate(self) -> None:
        """Validate every section."""
        self.binning.validate()
        self.density.validate()
        self.execution.validate()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a configuration from a nested dictionary.

        Raises:
            ConfigurationError: On unknown sections or keys.
        """
        sections = {
            "binning": BinningConfig,
            "density": DensityConfig,
            "execution": ExecutionConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name, {})
            try:
                kwargs[name] = section_cls(**values)
            except TypeError as e:
                raise ConfigurationError(f"Invalid [{name}] section: {e}") from e

        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load configuration from a TOML file.

        Args:
            path: Path to configuration file. If None, returns defaults.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If the configuration file doesn't exist.
            ConfigurationError: If the configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e

        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return attrs.asdict(self)
