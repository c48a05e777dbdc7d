"""
Unit tests for structlog configuration.
"""

import pytest
import structlog

from menu_analysis.infrastructure.logging_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_renderer() -> None:
    configure_logging("DEBUG", json_output=True)
    assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)


def test_console_renderer_by_default() -> None:
    configure_logging()
    assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)


def test_unknown_level_falls_back_to_info(capsys) -> None:
    configure_logging("LOUD")
    logger = structlog.get_logger("menu_analysis.test")

    logger.debug("hidden event")
    logger.info("visible event")

    out = capsys.readouterr().out
    assert "visible event" in out
    assert "hidden event" not in out
