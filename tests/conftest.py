"""Common pytest configuration for clawcron tests.

Usage:
    pytest tests/ -v
    pytest tests/ -v --skip-slow
"""

from __future__ import annotations

import logging

import pytest

from clawcron.infrastructure.config import EngineConfig, reset_config, set_config


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add common command line options."""
    parser.addoption(
        "--skip-slow",
        action="store_true",
        default=False,
        help="Skip tests that exhaust the full iteration ceiling",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: marks test as slow (scans a full year of minutes)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if not config.getoption("--skip-slow"):
        return
    skip_slow = pytest.mark.skip(reason="--skip-slow given")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def default_config():
    """Run every test against default settings, independent of CLAWCRON_* env vars."""
    config = EngineConfig()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture(autouse=True)
def restore_clawcron_logger():
    """Undo handlers and propagation changes made by configure_logging."""
    logger = logging.getLogger("clawcron")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
