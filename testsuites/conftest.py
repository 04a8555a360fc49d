"""
================================================================================
Root Pytest Configuration
================================================================================

This module registers the project-wide markers and tags collected tests by
suite.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests against a real browser"
    )
    config.addinivalue_line(
        "markers", "unit: Framework unit tests (no browser)"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "ui: UI-specific tests"
    )
    config.addinivalue_line(
        "markers", "session: Tests related to browser session lifecycle"
    )
    config.addinivalue_line(
        "markers", "actions: Tests related to element interactions"
    )
    config.addinivalue_line(
        "markers", "auth: Tests related to authentication"
    )


def pytest_collection_modifyitems(config, items):
    """Tag tests by the suite directory they live in."""
    for item in items:
        path = str(item.fspath)
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        if "unit" in path.replace("\\", "/").split("/"):
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "EasyQA UI Automation Framework",
        "=" * 60,
        "",
    ]
