"""
================================================================================
Screenshot Manager
================================================================================

Screenshot capture for the test lifecycle. Files are written as
``<label>_<YYYYmmdd_HHMMSS>.png`` under the configured screenshots directory
and optionally attached to the Allure report.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from easyqa_tools.common import get_config
from easyqa_tools.report_tools.allure_utils import attach_screenshot


DEFAULT_SCREENSHOT_DIR = Path("test-output") / "screenshots"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class ScreenshotManager:
    """
    Captures page screenshots for a browser session.

    Usage:
        screenshots = ScreenshotManager()
        path = screenshots.capture(session, "test_login")
    """

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        attach_to_allure: bool = True,
    ):
        """
        Args:
            output_dir: Target directory; ``screenshots.dir`` config when omitted
            attach_to_allure: Attach every capture to the current Allure test
        """
        self.output_dir = Path(output_dir or get_config("screenshots.dir", str(DEFAULT_SCREENSHOT_DIR)))
        self.attach_to_allure = attach_to_allure

    def build_path(self, label: str, timestamp: Optional[datetime] = None) -> Path:
        """File path for a capture taken at ``timestamp`` (now by default)."""
        stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
        safe_label = _UNSAFE_CHARS.sub("_", label).strip("_") or "screenshot"
        return self.output_dir / f"{safe_label}_{stamp}.png"

    def capture(self, session: Any, label: str, full_page: bool = False) -> Optional[Path]:
        """
        Save a screenshot of the session's page.

        Args:
            session: BrowserSession (anything exposing ``page``)
            label: Name prefix, usually the test name
            full_page: Capture the full scrollable page

        Returns:
            Path to the saved file, or None if the capture failed
        """
        path = self.build_path(label)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            session.page.screenshot(path=str(path), full_page=full_page)
        except (PlaywrightError, OSError) as e:
            logger.error(f"Failed to capture screenshot '{label}': {e}")
            return None

        logger.info(f"Screenshot captured: {path}")
        if self.attach_to_allure:
            attach_screenshot(path, name=label)
        return path


__all__ = [
    "DEFAULT_SCREENSHOT_DIR",
    "ScreenshotManager",
]
