"""Tests for buildbox.logging module."""

from __future__ import annotations

import io
import logging
import os
from unittest.mock import patch

import pytest
from rich.console import Console
from rich.logging import RichHandler

from buildbox.logging import (
    ConsoleLogger,
    _get_log_level,
    _init_logging,
    get_logger,
    set_debug,
)


class TestGetLogLevel:
    """Tests for _get_log_level function."""

    def test_default_is_warning(self) -> None:
        """WARNING when BUILDBOX_DEBUG is unset."""
        with patch.dict(os.environ, {}, clear=True):
            assert _get_log_level() == logging.WARNING

    @pytest.mark.parametrize("value", ["1", "true", "yes", "TRUE", "Yes"])
    def test_debug_values(self, value: str) -> None:
        """Truthy BUILDBOX_DEBUG values enable DEBUG, case-insensitively."""
        with patch.dict(os.environ, {"BUILDBOX_DEBUG": value}):
            assert _get_log_level() == logging.DEBUG

    @pytest.mark.parametrize("value", ["0", "no", "invalid", ""])
    def test_other_values(self, value: str) -> None:
        """Anything else keeps WARNING."""
        with patch.dict(os.environ, {"BUILDBOX_DEBUG": value}):
            assert _get_log_level() == logging.WARNING


class TestGetLogger:
    """Tests for get_logger function."""

    def test_namespaced(self) -> None:
        """Foreign names are moved under the buildbox namespace."""
        assert get_logger("my_module").name == "buildbox.my_module"

    def test_not_double_prefixed(self) -> None:
        """Names already in the namespace are kept."""
        assert get_logger("buildbox.docker").name == "buildbox.docker"
        assert get_logger("buildbox").name == "buildbox"

    def test_prefix_needs_dot(self) -> None:
        """A name merely starting with 'buildbox' is still prefixed."""
        assert get_logger("buildboxer").name == "buildbox.buildboxer"

    def test_same_instance(self) -> None:
        """The same name yields the same logger."""
        assert get_logger("cached_module") is get_logger("cached_module")


class TestHandlers:
    """Tests for handler setup and set_debug."""

    def test_init_idempotent(self) -> None:
        """Repeated initialization installs a single Rich handler."""
        _init_logging()
        _init_logging()
        handlers = logging.getLogger("buildbox").handlers
        assert len([h for h in handlers if isinstance(h, RichHandler)]) <= 1
        assert len(handlers) >= 1

    def test_set_debug(self) -> None:
        """set_debug toggles logger and handler levels."""
        set_debug(True)
        root_logger = logging.getLogger("buildbox")
        assert root_logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in root_logger.handlers)

        set_debug(False)
        assert root_logger.level == logging.WARNING
        assert all(h.level == logging.WARNING for h in root_logger.handlers)

    def test_level_respected(self, caplog: pytest.LogCaptureFixture) -> None:
        """Debug records are dropped at WARNING."""
        set_debug(False)
        with caplog.at_level(logging.WARNING, logger="buildbox"):
            logger = get_logger("level_test")
            logger.debug("Debug message")
            logger.warning("Warning message")
        assert "Debug message" not in caplog.text
        assert "Warning message" in caplog.text


class TestConsoleLogger:
    """Tests for the user-facing ConsoleLogger."""

    def _logger(self) -> tuple[ConsoleLogger, io.StringIO]:
        out = io.StringIO()
        return ConsoleLogger(Console(file=out, color_system=None, width=200)), out

    def test_info_printed_and_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """info goes to the console and the buildbox logger."""
        logger, out = self._logger()
        with caplog.at_level(logging.INFO, logger="buildbox"):
            logger.info("Sourcing init env 'env.sh'")
        assert "Sourcing init env 'env.sh'" in out.getvalue()
        assert "Sourcing init env" in caplog.text

    def test_markup_escaped(self) -> None:
        """Square brackets in messages are printed literally."""
        logger, out = self._logger()
        logger.info("make $#[OUT]")
        assert "make $#[OUT]" in out.getvalue()

    def test_debug_not_printed(self) -> None:
        """debug only reaches the stdlib logger."""
        logger, out = self._logger()
        logger.debug("context: {}")
        assert out.getvalue() == ""

    def test_error_printed_once(self, caplog: pytest.LogCaptureFixture) -> None:
        """Errors are printed with an Error: prefix and traced at DEBUG."""
        logger, out = self._logger()
        with caplog.at_level(logging.DEBUG, logger="buildbox"):
            logger.error("Unsupported build config 'x'")
        assert "Error: Unsupported build config 'x'" in out.getvalue()
        assert [r.levelno for r in caplog.records] == [logging.DEBUG]
