"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from domcp.config.logging import bind_workspace, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    domcp = logging.getLogger("domcp")
    domcp_level = domcp.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    domcp.setLevel(domcp_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("domcp").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False)
        assert logging.getLogger("domcp").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("domcp.test")
        log.warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "domcp.test"
        assert "timestamp" in parsed

    def test_stdlib_loggers_get_structured_fields(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)

        logging.getLogger("domcp.infrastructure.store").debug("Saved model for /work/shop")

        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Saved model for /work/shop"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "domcp.infrastructure.store"

    def test_nothing_goes_to_stdout(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("domcp.mcp").warning("stdio must stay clean")
        assert capfd.readouterr().out == ""

    def test_third_party_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)

        logging.getLogger("sqlalchemy.engine").debug("statement noise")
        logging.getLogger("mcp.server").debug("protocol noise")

        assert capfd.readouterr().err == ""

    def test_idempotent_calls(self) -> None:
        """Multiple configure_logging calls don't stack handlers."""
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        ours = [h for h in logging.getLogger().handlers if h.get_name() == "domcp-stderr"]
        assert len(ours) == 1

    def test_bound_workspace_appears_in_records(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        bind_workspace("/work/shop")
        try:
            structlog.get_logger("domcp.test").info("opened")
        finally:
            structlog.contextvars.clear_contextvars()
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["workspace"] == "/work/shop"
