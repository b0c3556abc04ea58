"""Tests for logging configuration."""

import logging

from seoaudit.logging_config import get_logger, parse_module_levels, setup_logging


def test_setup_logging_sets_level():
    setup_logging(level="DEBUG")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging(level="warning")
    assert logging.getLogger().level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    setup_logging(level="LOUD")
    assert logging.getLogger().level == logging.INFO


def test_noisy_libraries_quieted():
    setup_logging(level="DEBUG")
    for name in ("httpx", "httpcore", "openai", "anthropic", "playwright"):
        assert logging.getLogger(name).level == logging.WARNING


def test_log_file(tmp_path):
    log_file = tmp_path / "logs" / "seoaudit.log"
    setup_logging(level="INFO", log_file=str(log_file))

    get_logger("seoaudit.test").info("crawl started")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "crawl started" in log_file.read_text()
    setup_logging(level="INFO")


def test_parse_module_levels():
    levels = parse_module_levels("seoaudit.renderer=debug, seoaudit.scorer=WARNING,broken,=INFO")
    assert levels == {"seoaudit.renderer": "DEBUG", "seoaudit.scorer": "WARNING"}
    assert parse_module_levels("") == {}
    assert parse_module_levels(None) == {}


def test_database_logger_held_at_info():
    setup_logging(level="DEBUG")
    assert logging.getLogger("seoaudit.database").level == logging.INFO


def test_module_levels_override_defaults():
    setup_logging(
        level="INFO",
        module_levels={"seoaudit.database": "DEBUG", "seoaudit.async_site_crawler": "ERROR"},
    )
    assert logging.getLogger("seoaudit.database").level == logging.DEBUG
    assert logging.getLogger("seoaudit.async_site_crawler").level == logging.ERROR

    setup_logging(level="INFO", module_levels={"seoaudit.async_site_crawler": "NOTSET"})
