"""
Repository-level pytest configuration.

Responsibilities:
  - Register the UI command-line options (--ui-browser, --ui-headed, --ui-wait)
  - Apply them to the configuration store, then seal it before any session starts
  - Initialise loguru once per test process
  - Write the Allure environment widget when --alluredir is used
"""

from __future__ import annotations

from pathlib import Path

import pytest

from easyqa_tools.common import ConfigStore, get_config, get_config_store, init_logger
from easyqa_tools.report_tools.allure_utils import write_environment_properties


def pytest_addoption(parser):
    group = parser.getgroup("ui", "EasyQA UI automation")
    group.addoption(
        "--ui-browser",
        action="store",
        default=None,
        help="Browser for UI tests: chrome, firefox, edge or safari (overrides config)",
    )
    group.addoption(
        "--ui-headed",
        action="store_true",
        default=False,
        help="Run the browser with a visible window",
    )
    group.addoption(
        "--ui-wait",
        action="store",
        type=int,
        default=None,
        help="Element wait timeout in seconds (overrides wait.time.seconds)",
    )


def pytest_configure(config):
    """Apply command-line overrides, then close the configuration write window."""
    init_logger()

    store = get_config_store()
    browser = config.getoption("--ui-browser")
    if browser:
        store.set("browser", browser)
    if config.getoption("--ui-headed"):
        store.set("headless", "false")
    wait_seconds = config.getoption("--ui-wait")
    if wait_seconds is not None:
        store.set("wait.time.seconds", wait_seconds)
    store.seal()


def pytest_sessionstart(session):
    results_dir = getattr(session.config.option, "allure_report_dir", None)
    if results_dir:
        write_environment_properties(
            results_dir,
            {
                "Browser": get_config("browser"),
                "Headless": get_config("headless"),
                "Environment": get_config("env", "QA"),
                "Base.URL": get_config("url"),
            },
        )


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session")
def config_store() -> ConfigStore:
    """The run-wide configuration store (sealed)."""
    return get_config_store()
