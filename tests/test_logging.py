"""Tests for logging configuration."""

import logging

import pytest

from markdown_ld._logging import PACKAGE_LOGGER, configure_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved = (logger.handlers[:], logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    logger.handlers[:], logger.level, logger.propagate = saved


def test_explicit_level(package_logger, monkeypatch):
    """An explicit level wins over the environment."""
    monkeypatch.setenv("MDLD_LOG_LEVEL", "ERROR")
    configure_logging("debug")
    assert package_logger.level == logging.DEBUG
    assert len(package_logger.handlers) == 1
    assert package_logger.propagate is False


def test_environment_level(package_logger, monkeypatch):
    """The environment variable wins over the default."""
    monkeypatch.setenv("MDLD_LOG_LEVEL", "INFO")
    configure_logging(default="ERROR")
    assert package_logger.level == logging.INFO


def test_default_level(package_logger, monkeypatch):
    """Without level or environment the default applies."""
    monkeypatch.delenv("MDLD_LOG_LEVEL", raising=False)
    configure_logging(default="ERROR")
    assert package_logger.level == logging.ERROR


def test_reconfigure_keeps_one_handler(package_logger, monkeypatch):
    """Later calls only change the level."""
    monkeypatch.delenv("MDLD_LOG_LEVEL", raising=False)
    configure_logging("INFO")
    configure_logging("DEBUG")
    assert len(package_logger.handlers) == 1
    assert package_logger.level == logging.DEBUG


def test_engine_logs_under_package(package_logger, caplog):
    """Engine modules log below the package logger."""
    package_logger.propagate = True
    with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
        from markdown_ld import parse_markdown

        parse_markdown("```\nunclosed\n", document_id="n1")
    assert any(r.name.startswith(PACKAGE_LOGGER) for r in caplog.records)
    assert any("n1" in r.getMessage() for r in caplog.records)
