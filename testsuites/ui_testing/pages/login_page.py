"""
================================================================================
Login Page Object
================================================================================

Login form: username, password and a submit button.

NOTE:
  Selectors follow the demo application's element ids. Real projects should
  prefer stable `data-testid` attributes.

================================================================================
"""

from __future__ import annotations

import allure

from testsuites.ui_testing.framework.page_base import BasePage


class LoginPage(BasePage):
    """Login page object."""

    URL_PATH = "/login"
    PAGE_TITLE = "Login"
    LOCATORS = {
        "username_input": "#username",
        "password_input": "#password",
        "login_button": "#loginButton",
        "error_message": "[data-testid='error-message'], .error-message",
    }

    @allure.step("Open login page")
    def open(self) -> "LoginPage":
        """Navigate to the login page."""
        self.navigate()
        return self

    def is_form_displayed(self) -> bool:
        """Username, password and submit button are all visible."""
        return all(
            self.is_displayed(name)
            for name in ("username_input", "password_input", "login_button")
        )

    @allure.step("Login (username={username})")
    def login(self, username: str, password: str) -> None:
        """Fill the credentials and submit the form."""
        self.log_step(f"Logging in as {username}")
        self.type_text("username_input", username)
        self.type_text("password_input", password)
        self.click("login_button")

    def error_text(self) -> str:
        """Text of the login error banner."""
        return self.read_text("error_message")
