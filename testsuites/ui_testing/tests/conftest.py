"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for browser sessions, page objects and failure capture.

Key Features:
- One browser session per test, keyed by the test's node id
- Page Object fixtures sharing one ElementActions history
- Stub application served through request interception (no live server)
- Screenshot and recent action outcomes attached on failure

If no browser can be launched (e.g. `playwright install` was never run) the
browser tests are skipped instead of erroring.

================================================================================
"""

from typing import Callable, Dict, Generator

import pytest
from loguru import logger

from easyqa_tools.report_tools.allure_utils import attach_json, log_failure, log_success
from testsuites.ui_testing.framework.browser_manager import BrowserSession, SessionRegistry, get_registry
from testsuites.ui_testing.framework.element_actions import ElementActions
from testsuites.ui_testing.framework.exceptions import DriverStartupError
from testsuites.ui_testing.framework.screenshot_manager import ScreenshotManager
from testsuites.ui_testing.pages.dashboard_page import DashboardPage
from testsuites.ui_testing.pages.login_page import LoginPage


# ================================================================================
# Session Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def session_registry() -> Generator[SessionRegistry, None, None]:
    """
    The process-wide registry.

    Tests bind and release their own sessions; whatever is still bound when
    the run ends is released here.
    """
    registry = get_registry()
    yield registry
    registry.release_all()


@pytest.fixture
def browser_session(request, session_registry: SessionRegistry) -> Generator[BrowserSession, None, None]:
    """Function-scoped browser session bound to the test's node id."""
    context_id = request.node.nodeid
    try:
        session = session_registry.acquire_session(context_id)
    except DriverStartupError as e:
        pytest.skip(f"Browser unavailable: {e.message}")
    yield session
    session_registry.release_session(context_id)


@pytest.fixture
def actions(browser_session: BrowserSession) -> ElementActions:
    """ElementActions shared by every page object of the test."""
    return ElementActions(browser_session)


@pytest.fixture
def base_url(config_store) -> str:
    return config_store.get("url", "http://localhost:3000").rstrip("/")


@pytest.fixture
def stub_app(browser_session: BrowserSession, base_url: str) -> Callable[[str, str], None]:
    """
    Serve inline HTML for paths below the base URL.

    Usage:
        stub_app("/login", "<form>...</form>")
        login_page.open()
    """
    pages: Dict[str, str] = {}

    def handle(route):
        path = route.request.url[len(base_url):].split("?")[0] or "/"
        body = pages.get(path)
        if body is None:
            route.fulfill(status=404, content_type="text/html", body="<h1>Not Found</h1>")
        else:
            route.fulfill(status=200, content_type="text/html", body=body)

    browser_session.page.route(f"{base_url}/**", handle)

    def serve(path: str, html: str) -> None:
        pages[path] = html

    return serve


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def login_page(browser_session: BrowserSession, actions: ElementActions, base_url: str) -> LoginPage:
    return LoginPage(browser_session, base_url=base_url, actions=actions)


@pytest.fixture
def dashboard_page(browser_session: BrowserSession, actions: ElementActions, base_url: str) -> DashboardPage:
    return DashboardPage(browser_session, base_url=base_url, actions=actions)


@pytest.fixture
def screenshot_manager(tmp_path) -> ScreenshotManager:
    return ScreenshotManager(output_dir=tmp_path / "screenshots", attach_to_allure=False)


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Report the outcome of browser tests.

    On failure: log it, capture a screenshot and attach the recent action
    outcomes. On success: log a success entry.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when != "call":
        return
    funcargs = getattr(item, "funcargs", {})
    session = funcargs.get("browser_session")
    if session is None:
        return

    if report.failed:
        log_failure(f"Test failed: {item.name}: {call.excinfo.value if call.excinfo else report.longreprtext}")
        path = ScreenshotManager().capture(session, item.name)
        if path is None:
            logger.warning(f"No screenshot captured for {item.name}")
        element_actions = funcargs.get("actions")
        if element_actions is not None and element_actions.outcomes:
            attach_json(
                [o.to_dict() for o in element_actions.outcomes[-10:]],
                name="Recent element actions",
            )
    elif report.passed:
        log_success(f"Test passed: {item.name}")
