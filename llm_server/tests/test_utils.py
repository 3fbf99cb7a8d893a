"""Tests for the mapchat.utils helpers."""

import logging

import pytest

from mapchat.utils import Stopwatch, read_text_safely, setup_logging
from mapchat.utils.logging import NOISY_LEVEL_ENV, NOISY_LOGGERS


@pytest.fixture
def restore_levels(monkeypatch):
    """Put root and transport logger levels back after each test."""
    monkeypatch.delenv(NOISY_LEVEL_ENV, raising=False)
    names = ("",) + NOISY_LOGGERS
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_transport_loggers_quiet_by_default(self, restore_levels):
        setup_logging(debug=False)
        assert logging.getLogger().level == logging.INFO
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_debug_lets_transport_info_through(self, restore_levels):
        setup_logging(debug=True)
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.INFO

    def test_env_override(self, restore_levels, monkeypatch):
        monkeypatch.setenv(NOISY_LEVEL_ENV, "error")
        setup_logging(debug=True)
        assert logging.getLogger("uvicorn.access").level == logging.ERROR

    def test_explicit_level_wins(self, restore_levels):
        setup_logging(debug=True, level=logging.WARNING)
        assert logging.getLogger().level == logging.WARNING

    def test_repeat_call_still_quiets_transport(self, restore_levels):
        setup_logging(debug=True)
        setup_logging(debug=False)
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestStopwatch:
    """Tests for Stopwatch."""

    def test_logs_elapsed(self, caplog):
        logger = logging.getLogger("mapchat.tests.timer")
        with caplog.at_level(logging.INFO, logger="mapchat.tests.timer"):
            with Stopwatch("completion call", logger) as sw:
                pass
        assert sw.elapsed >= 0.0
        assert "completion call took" in caplog.text

    def test_marks_failure(self, caplog):
        logger = logging.getLogger("mapchat.tests.timer")
        with caplog.at_level(logging.INFO, logger="mapchat.tests.timer"):
            with pytest.raises(RuntimeError):
                with Stopwatch("completion call", logger):
                    raise RuntimeError("boom")
        assert "(failed)" in caplog.text


class TestReadTextSafely:
    """Tests for read_text_safely()."""

    def test_reads_and_strips(self, tmp_path):
        path = tmp_path / "preamble.txt"
        path.write_text("  Be brief.\n", encoding="utf-8")
        assert read_text_safely(path, strip=True) == "Be brief."

    def test_missing_file_returns_default(self, tmp_path):
        assert read_text_safely(tmp_path / "nope.txt", default="fallback") == "fallback"
