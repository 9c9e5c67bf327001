"""Tests for logging setup."""
import logging
from collections.abc import Generator

import pytest

from core.config import Settings
from core.log_config import ProcessLabelFilter, configure_logging


@pytest.fixture
def root_logger() -> Generator[logging.Logger]:
    """Root logger restored to its previous handlers and level afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test__configure_logging__labels_records(
        self,
        root_logger: logging.Logger,
    ) -> None:
        """Formatted records carry the process label."""
        settings = Settings(
            _env_file=None,
            database_url="sqlite+aiosqlite:///:memory:",
            jwt_secret="secret",
            instance_id="worker-7",
            log_level="warning",
        )

        configure_logging(settings)

        handler = next(
            h for h in root_logger.handlers
            if any(isinstance(f, ProcessLabelFilter) for f in h.filters)
        )
        record = logging.LogRecord("chat.test", logging.WARNING, __file__, 1, "hello", None, None)
        assert handler.filter(record)
        assert "(worker-7) chat.test - WARNING - hello" in handler.format(record)
        assert root_logger.level == logging.WARNING

    def test__configure_logging__does_not_stack_handlers(
        self,
        root_logger: logging.Logger,
        settings: Settings,
    ) -> None:
        """Calling twice leaves a single labelled handler."""
        configure_logging(settings)
        configure_logging(settings)

        labelled = [
            h for h in root_logger.handlers
            if any(isinstance(f, ProcessLabelFilter) for f in h.filters)
        ]
        assert len(labelled) == 1
