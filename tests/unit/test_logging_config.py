"""Tests for process logging setup."""

import logging

import pytest

import logging_config


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_installs_single_handler():
    logging_config.setup(logging.INFO)
    logging_config.setup(logging.INFO)

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.INFO
    assert root.handlers[0].formatter._fmt == "%(asctime)s | %(levelname)-7s | %(message)s"


def test_noisy_loggers_quieted():
    logging_config.setup(logging.DEBUG)
    for name in logging_config.NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    assert logging.getLogger("swap_sleuth").level == logging.DEBUG


def test_setup_debug_shows_access_logs():
    logging_config.setup_debug()
    assert logging.getLogger("aiohttp.access").level == logging.INFO


def test_setup_minimal():
    logging_config.setup_minimal()
    assert logging.getLogger().level == logging.WARNING


@pytest.mark.parametrize(
    "value,expected",
    [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("15", 15), ("nonsense", logging.INFO)],
)
def test_level_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("LOG_LEVEL", value)
    assert logging_config.level_from_env() == expected


def test_level_from_env_default(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert logging_config.level_from_env(logging.ERROR) == logging.ERROR
