"""Logging configuration for clipseqtools.

Every module logs through ``logging.getLogger(__name__)`` under the
``clipseqtools`` logger; ``setup_logging`` installs its handlers once,
from the CLI entry point.

The package logger always passes DEBUG records on, and each handler
applies its own level: the console follows ``-v``/``-q`` while a
``--log-file`` keeps the full debug trace of a run.

Example:
    >>> from clipseqtools.utils.logging import setup_logging
    >>> setup_logging(verbosity=2, log_file="run.log")
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}

PACKAGE_LOGGER = "clipseqtools"


# =============================================================================
# Setup
# =============================================================================


def _console_handler(use_rich: bool) -> logging.Handler:
    if use_rich:
        handler: logging.Handler = RichHandler(
            rich_tracebacks=True,
            show_time=False,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    verbosity: int = 1,
    log_file: Path | str | None = None,
    use_rich: bool = True,
) -> logging.Logger:
    """Install console and optional file handlers on the package logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        verbosity: Console verbosity (0=warning, 1=info, 2=debug).
        log_file: File receiving every record down to DEBUG.
        use_rich: Render console records with rich.

    Returns:
        The ``clipseqtools`` logger.
    """
    console_level = VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console = _console_handler(use_rich)
    console.setLevel(console_level)
    package_logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(file_handler)
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(console_level)

    return package_logger


# =============================================================================
# Progress Logging
# =============================================================================


class ChromosomeProgress:
    """Debug progress for the per-transcript loop of one reference sequence.

    Example:
        >>> progress = ChromosomeProgress(logger, "chr1", total=len(transcripts))
        >>> for transcript in transcripts:
        ...     process(transcript)
        ...     progress.update()
        >>> progress.finish()
    """

    def __init__(
        self,
        logger: logging.Logger,
        rname: str,
        total: int,
        interval: int = 1000,
        unit: str = "transcripts",
    ) -> None:
        self.logger = logger
        self.rname = rname
        self.total = total
        self.interval = interval
        self.unit = unit
        self.count = 0

    def update(self) -> None:
        """Count one item; log every ``interval`` items."""
        self.count += 1
        if self.count % self.interval == 0 and self.count < self.total:
            self.logger.debug(f"{self.rname}: {self.count}/{self.total} {self.unit}")

    def finish(self) -> None:
        self.logger.debug(f"{self.rname}: done, {self.count} {self.unit}")


# =============================================================================
# Timing
# =============================================================================


class Timer:
    """Log how long a command's analysis took.

    Example:
        >>> with Timer("Genome coverage", logger):
        ...     genome_coverage(reads, sizes)
        # Logs: "Genome coverage completed in 1.23s"
    """

    def __init__(self, description: str, logger: logging.Logger) -> None:
        self.description = description
        self.logger = logger
        self.start_time: float = 0
        self.elapsed: float = 0

    def __enter__(self) -> Timer:
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        self.logger.info(f"{self.description} completed in {self.elapsed:.2f}s")
