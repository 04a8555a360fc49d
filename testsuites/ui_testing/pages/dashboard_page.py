"""
================================================================================
Dashboard Page Object
================================================================================

Landing page after a successful login.

================================================================================
"""

from __future__ import annotations

import allure

from testsuites.ui_testing.framework.page_base import BasePage


class DashboardPage(BasePage):
    """Dashboard page object."""

    URL_PATH = "/dashboard"
    PAGE_TITLE = "Dashboard"
    LOCATORS = {
        "dashboard_title": "h1:has-text('Dashboard')",
        "user_menu": "[data-testid='user-menu']",
        "logout_link": "[data-testid='btn-logout']",
    }

    def is_dashboard_displayed(self) -> bool:
        """Polling predicate: the dashboard heading is visible right now."""
        return self.is_displayed("dashboard_title")

    @allure.step("Verify dashboard loaded")
    def title_text(self) -> str:
        """Wait for the dashboard heading and return its text."""
        return self.read_text("dashboard_title")

    @allure.step("Logout")
    def logout(self) -> None:
        """Open the user menu and log out."""
        self.hover("user_menu")
        self.click("logout_link")
