"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - Named locators resolved against the session page
    - Resilient element interaction through ElementActions
    - Navigation and load-state waits
    - Step logging and screenshots

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import allure
from loguru import logger
from playwright.sync_api import Locator

from easyqa_tools.common import get_config
from easyqa_tools.report_tools.allure_utils import log_step

from .element_actions import ElementActions
from .screenshot_manager import ScreenshotManager


class BasePage:
    """
    Base class for all page objects.

    Subclasses declare ``LOCATORS`` (element name -> selector) and compose
    the interaction methods below into business steps.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/login"
            LOCATORS = {
                "username_input": "#username",
                "password_input": "#password",
                "login_button": "#loginButton",
            }

            def login(self, username: str, password: str):
                self.type_text("username_input", username)
                self.type_text("password_input", password)
                self.click("login_button")
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_TITLE: str = ""
    LOCATORS: Dict[str, str] = {}

    def __init__(
        self,
        session: Any,
        base_url: Optional[str] = None,
        actions: Optional[ElementActions] = None,
    ):
        """
        Initialize page object.

        Args:
            session: BrowserSession owning the page
            base_url: Base URL for the application; ``url`` config when omitted
            actions: Shared ElementActions (one per session keeps one history)
        """
        self.session = session
        self.page = session.page
        self.actions = actions or ElementActions(session)
        if base_url is None:
            base_url = get_config("url", "http://localhost:3000")
        self.base_url = base_url.rstrip("/")

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    def navigate(self, wait_for: str = "load") -> None:
        """
        Navigate to this page.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        self.navigate_to(self.URL_PATH, wait_for=wait_for)

    def navigate_to(self, path: str, wait_for: str = "load") -> None:
        """Navigate to a path below the base URL."""
        full_url = f"{self.base_url}{path}"
        with allure.step(f"Navigate to {path}"):
            self.page.goto(full_url, wait_until=wait_for)
            logger.debug(f"Navigated to: {full_url}")

    def wait_for_page_load(self, state: str = "load", timeout: Optional[float] = None) -> None:
        """
        Wait for the page to reach a stable load state.

        Args:
            state: Playwright load state ('load', 'domcontentloaded', 'networkidle')
            timeout: Timeout in seconds; the action timeout by default
        """
        timeout = timeout if timeout is not None else self.actions.timeout
        self.page.wait_for_load_state(state, timeout=timeout * 1000)

    # =========================================================================
    # Element Interactions
    # =========================================================================

    def element(self, name: str) -> Locator:
        """Resolve a named locator."""
        try:
            selector = self.LOCATORS[name]
        except KeyError:
            raise KeyError(f"{self.__class__.__name__} has no locator named '{name}'") from None
        return self.page.locator(selector)

    def click(self, name: str) -> None:
        self.actions.click(self.element(name), description=name)

    def forced_click(self, name: str) -> None:
        self.actions.forced_click(self.element(name), description=name)

    def type_text(self, name: str, text: str) -> None:
        self.actions.type_text(self.element(name), text, description=name)

    def select(self, name: str, visible_text: str) -> None:
        self.actions.select_by_visible_text(self.element(name), visible_text, description=name)

    def read_text(self, name: str) -> str:
        return self.actions.read_text(self.element(name), description=name)

    def is_displayed(self, name: str) -> bool:
        return self.actions.is_displayed(self.element(name))

    def scroll_to(self, name: str) -> None:
        self.actions.scroll_into_view(self.element(name), description=name)

    def hover(self, name: str) -> None:
        self.actions.hover(self.element(name), description=name)

    # =========================================================================
    # Reporting
    # =========================================================================

    def log_step(self, description: str) -> None:
        """Record a business step in the log and the Allure report."""
        log_step(description)

    def screenshot(self, name: str, full_page: bool = False) -> Optional[Path]:
        """Capture the current page; returns None if capture failed."""
        return ScreenshotManager().capture(self.session, name, full_page=full_page)


__all__ = [
    "BasePage",
]
