"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework.

Components:
    - browser_manager: Per-context browser session registry
    - element_actions: Wait-gated interactions with staleness retry
    - page_base: Base page object for common operations
    - screenshot_manager: Screenshot capture to disk and Allure
    - data_provider: YAML / Excel rows for data-driven tests
    - exceptions: Classified framework failures

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import (
    BrowserKind,
    BrowserSession,
    PlaywrightDriverFactory,
    SessionRegistry,
    SessionSettings,
    get_registry,
)
from .data_provider import DataProvider, DataProviderError
from .element_actions import ActionOutcome, ElementActions, WaitKind
from .exceptions import (
    DriverStartupError,
    ElementNotReadyError,
    InteractionError,
    StaleElementError,
    UIAutomationError,
    UnsupportedBrowserError,
)
from .page_base import BasePage
from .screenshot_manager import ScreenshotManager

__all__ = [
    "ActionOutcome",
    "BasePage",
    "BrowserKind",
    "BrowserSession",
    "DataProvider",
    "DataProviderError",
    "DriverStartupError",
    "ElementActions",
    "ElementNotReadyError",
    "InteractionError",
    "PlaywrightDriverFactory",
    "ScreenshotManager",
    "SessionRegistry",
    "SessionSettings",
    "StaleElementError",
    "UIAutomationError",
    "UnsupportedBrowserError",
    "WaitKind",
    "get_registry",
]
