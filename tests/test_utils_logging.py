"""Tests for clipseqtools.utils.logging module."""

import logging
from pathlib import Path

from clipseqtools.utils.logging import ChromosomeProgress, Timer, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_level_follows_verbosity(self):
        logger = setup_logging(verbosity=0, use_rich=False)
        assert logger.level == logging.WARNING
        assert logger.handlers[0].level == logging.WARNING
        setup_logging(verbosity=2, use_rich=False)
        assert logging.getLogger("clipseqtools").level == logging.DEBUG

    def test_handlers_replaced(self):
        setup_logging(verbosity=1)
        setup_logging(verbosity=1)
        assert len(logging.getLogger("clipseqtools").handlers) == 1

    def test_log_file_gets_debug_when_console_is_quiet(self, tmp_path: Path):
        log_file = tmp_path / "run.log"
        logger = setup_logging(verbosity=0, log_file=log_file, use_rich=False)
        console, file_handler = logger.handlers
        assert console.level == logging.WARNING
        assert file_handler.level == logging.DEBUG

        logging.getLogger("clipseqtools.analysis.coverage").debug("chr1 covered")
        file_handler.flush()
        assert "chr1 covered" in log_file.read_text()
        setup_logging(verbosity=1, use_rich=False)


class TestProgressAndTimer:
    """Tests for ChromosomeProgress and Timer."""

    def test_progress_logs_interval_and_finish(self, caplog):
        logger = logging.getLogger("clipseqtools.progress")
        progress = ChromosomeProgress(logger, "chr1", total=5, interval=2)
        with caplog.at_level(logging.DEBUG, logger="clipseqtools.progress"):
            for _ in range(5):
                progress.update()
            progress.finish()
        assert progress.count == 5
        assert "chr1: 2/5 transcripts" in caplog.text
        assert "chr1: 4/5 transcripts" in caplog.text
        assert "chr1: done, 5 transcripts" in caplog.text

    def test_timer(self, caplog):
        logger = logging.getLogger("clipseqtools.timer")
        with caplog.at_level(logging.INFO, logger="clipseqtools.timer"):
            with Timer("Genome coverage", logger) as timer:
                pass
        assert timer.elapsed >= 0
        assert "Genome coverage completed" in caplog.text
