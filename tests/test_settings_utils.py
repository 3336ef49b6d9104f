"""Tests for settings parsing and shared utilities."""

import logging

from ai_categorize.core.settings import Settings
from ai_categorize.core.utils import LOGGER_NAME, get_logger, setup_logging, with_tag


def test_settings_defaults_and_url_cleanup() -> None:
    """Trailing slashes are dropped and an empty SearXNG URL disables search."""
    settings = Settings(
        firefly_url="https://firefly.example/",
        firefly_personal_token="t",
        groq_api_key="k",
        searxng_url="",
    )
    if settings.firefly_url != "https://firefly.example":
        msg = f"Expected trailing slash to be stripped, got {settings.firefly_url}"
        raise AssertionError(msg)
    if settings.searxng_url is not None:
        msg = "Expected an empty SearXNG URL to mean disabled"
        raise AssertionError(msg)
    if (settings.firefly_tag, settings.firefly_history_limit, settings.max_retries) != ("AI categorized", 5, 3):
        msg = "Unexpected defaults"
        raise AssertionError(msg)


def test_with_tag_appends_once() -> None:
    """The completion tag is appended only when missing and order is preserved."""
    if with_tag(["a", "b"], "done") != ["a", "b", "done"]:
        msg = "Expected tag to be appended"
        raise AssertionError(msg)
    if with_tag(["done", "a"], "done") != ["done", "a"]:
        msg = "Expected existing tag to stay in place"
        raise AssertionError(msg)
    if with_tag(["a", "a"], "done") != ["a", "done"]:
        msg = "Expected duplicates to collapse"
        raise AssertionError(msg)


def test_child_loggers_share_project_level() -> None:
    """Component loggers inherit the level configured on the project logger."""
    setup_logging("WARNING")
    child = get_logger(f"{LOGGER_NAME}.queue")
    if child.getEffectiveLevel() != logging.WARNING:
        msg = f"Expected WARNING, got {logging.getLevelName(child.getEffectiveLevel())}"
        raise AssertionError(msg)
    setup_logging("INFO")
