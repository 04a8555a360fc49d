"""
Page objects for the demo application.

Each page declares its named locators and composes ElementActions calls
into business steps; assertions stay in the tests.
"""

from .dashboard_page import DashboardPage
from .login_page import LoginPage

__all__ = [
    "DashboardPage",
    "LoginPage",
]
