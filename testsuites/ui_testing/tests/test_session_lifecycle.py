"""
================================================================================
Session Lifecycle UI Tests
================================================================================

Acquire -> interact -> release -> re-acquire with a real browser, using a
dedicated registry and configuration instead of the suite-wide fixtures.

================================================================================
"""

import time

import allure
import pytest
import yaml

from easyqa_tools.common import ConfigStore
from testsuites.ui_testing.framework.browser_manager import SessionRegistry
from testsuites.ui_testing.framework.element_actions import ElementActions
from testsuites.ui_testing.framework.exceptions import DriverStartupError


DELAYED_BUTTON_HTML = """
<html><body>
  <button id="go" disabled onclick="this.textContent='done'">Go</button>
  <script>
    setTimeout(() => { document.getElementById('go').disabled = false; }, 2000);
  </script>
</body></html>
"""


@pytest.fixture
def chrome_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.dump({"browser": "chrome", "headless": "true", "wait": {"time": {"seconds": 5}}}),
        encoding="utf-8",
    )
    return ConfigStore(path)


@allure.epic("UI Framework")
@allure.feature("Session Registry")
@pytest.mark.e2e
@pytest.mark.session
def test_click_waits_for_delayed_button_then_fresh_session_after_release(chrome_config):
    registry = SessionRegistry(config=chrome_config)
    context = "lifecycle-worker"
    try:
        try:
            session = registry.acquire_session(context)
        except DriverStartupError as e:
            pytest.skip(f"Browser unavailable: {e.message}")

        assert session.timeout_seconds == 5
        assert registry.acquire_session(context) is session

        session.page.route(
            "http://stub.local/**",
            lambda route: route.fulfill(status=200, content_type="text/html", body=DELAYED_BUTTON_HTML),
        )
        session.page.goto("http://stub.local/")

        actions = ElementActions(session)
        button = session.page.locator("#go")
        start = time.monotonic()
        actions.click(button, "delayed button")
        elapsed = time.monotonic() - start

        assert button.inner_text() == "done"
        assert 1.5 <= elapsed < 5
        assert actions.last_outcome.succeeded

        registry.release_session(context)
        assert context not in registry
        assert session.closed

        fresh = registry.acquire_session(context)
        assert fresh is not session
        assert fresh.session_id != session.session_id
        assert not fresh.closed
    finally:
        registry.release_all()
