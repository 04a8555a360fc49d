"""
================================================================================
Browser Manager
================================================================================

Session lifecycle management for UI automation.

Features:
    - One browser session per execution context (pytest node, worker, thread)
    - Lazy, exactly-once session creation per context
    - Browser presets for chrome / firefox / edge / safari
    - Teardown that always unbinds, even when the driver fails to quit

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Hashable, Iterator, List, Optional, Protocol, Tuple
from uuid import uuid4

from loguru import logger
from playwright.sync_api import (
    sync_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from easyqa_tools.common import ConfigurationError, get_config_store, parse_bool

from .exceptions import DriverStartupError, UIAutomationError, UnsupportedBrowserError


ExecutionContext = Hashable


class BrowserKind(str, Enum):
    """Browsers a session can be created for."""

    CHROME = "chrome"
    FIREFOX = "firefox"
    EDGE = "edge"
    SAFARI = "safari"

    @classmethod
    def parse(cls, value: Any) -> "BrowserKind":
        """
        Resolve a configured browser name, case-insensitively.

        Raises:
            UnsupportedBrowserError: If the name is not a supported browser
        """
        normalized = str(value).strip().lower() if value is not None else ""
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedBrowserError(value) from None


@dataclass(frozen=True)
class LaunchProfile:
    """How a browser kind maps onto a Playwright engine."""

    engine: str
    channel: Optional[str] = None
    args: Tuple[str, ...] = ()
    window_maximize_arg: Optional[str] = None


LAUNCH_PROFILES: Dict[BrowserKind, LaunchProfile] = {
    BrowserKind.CHROME: LaunchProfile(
        engine="chromium",
        args=("--no-sandbox", "--disable-dev-shm-usage"),
        window_maximize_arg="--start-maximized",
    ),
    BrowserKind.EDGE: LaunchProfile(
        engine="chromium",
        channel="msedge",
        args=("--no-sandbox", "--disable-dev-shm-usage"),
        window_maximize_arg="--start-maximized",
    ),
    BrowserKind.FIREFOX: LaunchProfile(engine="firefox"),
    BrowserKind.SAFARI: LaunchProfile(engine="webkit"),
}

# Default context options
DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
    "ignore_https_errors": True,
}


@dataclass(frozen=True)
class SessionSettings:
    """Settings resolved from configuration when a session is created."""

    browser: BrowserKind
    headless: bool = True
    timeout_seconds: float = 30.0
    viewport_width: int = 1920
    viewport_height: int = 1080

    @classmethod
    def from_config(cls, config: Any) -> "SessionSettings":
        """
        Read browser, headless, wait.time.seconds and viewport.* from config.

        Raises:
            UnsupportedBrowserError: Unknown browser kind
            ConfigurationError: Non-numeric timeout or viewport values
        """
        browser = BrowserKind.parse(config.get("browser"))
        headless = parse_bool(config.get("headless", "false"))
        try:
            timeout = float(config.get("wait.time.seconds", 30))
            width = int(config.get("viewport.width", 1920))
            height = int(config.get("viewport.height", 1080))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid session setting: {e}") from e
        if timeout <= 0:
            raise ConfigurationError(f"wait.time.seconds must be positive, got {timeout}")
        return cls(
            browser=browser,
            headless=headless,
            timeout_seconds=timeout,
            viewport_width=width,
            viewport_height=height,
        )


@dataclass
class BrowserSession:
    """
    A live browser bound to one execution context.

    ``page`` is the driver handle used by the interaction layer and the
    screenshot service. Only the registry closes a session.
    """

    context_id: ExecutionContext
    browser_kind: BrowserKind
    headless: bool
    timeout_seconds: float
    page: Page
    browser: Optional[Browser] = None
    browser_context: Optional[BrowserContext] = None
    playwright: Optional[Playwright] = None
    session_id: str = field(default_factory=lambda: uuid4().hex[:12])
    created_at: datetime = field(default_factory=datetime.now)
    closed: bool = False

    @property
    def driver(self) -> Page:
        return self.page

    def close(self) -> None:
        """
        Shut the browser down: context, browser, then the Playwright driver.

        Every step is attempted; the first failure is re-raised afterwards.
        Closing twice is a no-op.
        """
        if self.closed:
            return
        self.closed = True

        steps = [
            ("browser context", self.browser_context.close if self.browser_context else None),
            ("browser", self.browser.close if self.browser else None),
            ("playwright", self.playwright.stop if self.playwright else None),
        ]
        first_error: Optional[Exception] = None
        for label, step in steps:
            if step is None:
                continue
            try:
                step()
            except Exception as e:
                logger.warning(f"Error closing {label} of session {self.session_id}: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error
        logger.debug(f"Session {self.session_id} closed")


class DriverFactory(Protocol):
    """Launches a browser session for the given settings."""

    def create(self, context_id: ExecutionContext, settings: SessionSettings) -> BrowserSession:
        ...


class PlaywrightDriverFactory:
    """
    Creates sessions backed by the Playwright sync API.

    Each session owns its own Playwright driver, so a session must be used
    from the thread that created it.
    """

    def build_launch_options(self, settings: SessionSettings) -> Dict[str, Any]:
        """Launch options for ``browser_type.launch()``."""
        profile = LAUNCH_PROFILES[settings.browser]
        args: List[str] = list(profile.args)
        if profile.window_maximize_arg and not settings.headless:
            args.append(profile.window_maximize_arg)

        options: Dict[str, Any] = {"headless": settings.headless, "args": args}
        if profile.channel:
            options["channel"] = profile.channel
        return options

    def build_context_options(self, settings: SessionSettings) -> Dict[str, Any]:
        """
        Context options for ``browser.new_context()``.

        A headed chromium window is started maximized and keeps its native
        size; everything else gets the configured viewport.
        """
        profile = LAUNCH_PROFILES[settings.browser]
        options = dict(DEFAULT_CONTEXT_OPTIONS)
        if profile.window_maximize_arg and not settings.headless:
            options["no_viewport"] = True
        else:
            options["viewport"] = {
                "width": settings.viewport_width,
                "height": settings.viewport_height,
            }
        return options

    def create(self, context_id: ExecutionContext, settings: SessionSettings) -> BrowserSession:
        profile = LAUNCH_PROFILES[settings.browser]
        playwright: Optional[Playwright] = None
        try:
            playwright = sync_playwright().start()
            launcher = getattr(playwright, profile.engine)
            browser = launcher.launch(**self.build_launch_options(settings))
            browser_context = browser.new_context(**self.build_context_options(settings))
            browser_context.set_default_timeout(settings.timeout_seconds * 1000)
            page = browser_context.new_page()
        except Exception as e:
            if playwright is not None:
                try:
                    playwright.stop()
                except Exception as stop_error:
                    logger.debug(f"Ignoring error while stopping Playwright: {stop_error}")
            raise DriverStartupError(settings.browser.value, e) from e

        return BrowserSession(
            context_id=context_id,
            browser_kind=settings.browser,
            headless=settings.headless,
            timeout_seconds=settings.timeout_seconds,
            page=page,
            browser=browser,
            browser_context=browser_context,
            playwright=playwright,
        )


@dataclass
class _Slot:
    """Per-context creation lock plus the number of threads holding or awaiting it."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class SessionRegistry:
    """
    Maps each execution context to at most one live browser session.

    The slot table is guarded by a registry-wide lock that is only held for
    lookups and inserts. Creation happens under a per-context slot lock, so
    launching a browser for one context never blocks another and a context
    can never observe two sessions.

    Usage:
        registry = SessionRegistry()
        session = registry.acquire_session("test_login")
        session.page.goto("https://example.com")
        registry.release_session("test_login")

        # Or scoped
        with registry.session("test_login") as session:
            ...
    """

    def __init__(
        self,
        config: Any = None,
        factory: Optional[DriverFactory] = None,
    ):
        """
        Args:
            config: Object with ``get(key, default)``; the process-wide
                    ConfigStore when omitted
            factory: Session factory; PlaywrightDriverFactory when omitted
        """
        self._config = config
        self._factory = factory or PlaywrightDriverFactory()
        self._sessions: Dict[ExecutionContext, BrowserSession] = {}
        self._slots: Dict[ExecutionContext, _Slot] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> Any:
        return self._config if self._config is not None else get_config_store()

    @contextmanager
    def _slot(self, context: ExecutionContext) -> Iterator[None]:
        """
        Hold the context's creation lock.

        The slot is dropped once nobody holds or awaits it and the context is
        unbound, so the table only ever contains live or contended contexts.
        """
        with self._lock:
            slot = self._slots.get(context)
            if slot is None:
                slot = self._slots[context] = _Slot()
            slot.users += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._lock:
                slot.users -= 1
                if slot.users == 0 and context not in self._sessions:
                    del self._slots[context]

    def acquire_session(self, context: ExecutionContext) -> BrowserSession:
        """
        Return the context's session, creating it on first request.

        Raises:
            UnsupportedBrowserError: Configured browser kind is unknown
            DriverStartupError: The browser could not be launched; the
                                context stays unbound so a later call can retry
        """
        with self._slot(context):
            with self._lock:
                session = self._sessions.get(context)
            if session is not None:
                return session

            settings = SessionSettings.from_config(self.config)
            logger.info(
                f"Setting up {settings.browser.value} browser for {context!r} "
                f"(headless={settings.headless})"
            )
            try:
                session = self._factory.create(context, settings)
            except UIAutomationError:
                raise
            except Exception as e:
                raise DriverStartupError(settings.browser.value, e) from e

            with self._lock:
                self._sessions[context] = session
            logger.info(f"{settings.browser.value} session {session.session_id} ready for {context!r}")
            return session

    def release_session(self, context: ExecutionContext) -> None:
        """
        Tear down and unbind the context's session. No-op when unbound.

        Shutdown errors are logged; the binding is removed regardless.
        """
        with self._slot(context):
            with self._lock:
                session = self._sessions.get(context)
            if session is None:
                return

            logger.info(f"Quitting session {session.session_id} for {context!r}")
            try:
                session.close()
            except Exception as e:
                logger.error(f"Session {session.session_id} did not shut down cleanly: {e}")
            finally:
                with self._lock:
                    self._sessions.pop(context, None)

    def get_session(self, context: ExecutionContext) -> Optional[BrowserSession]:
        """Return the bound session without creating one."""
        with self._lock:
            return self._sessions.get(context)

    def active_contexts(self) -> List[ExecutionContext]:
        with self._lock:
            return list(self._sessions)

    def release_all(self) -> None:
        """Release every bound session (end-of-run sweep)."""
        for context in self.active_contexts():
            self.release_session(context)

    @contextmanager
    def session(self, context: ExecutionContext) -> Iterator[BrowserSession]:
        """Acquire for the duration of a ``with`` block, then release."""
        session = self.acquire_session(context)
        try:
            yield session
        finally:
            self.release_session(context)

    def __contains__(self, context: ExecutionContext) -> bool:
        with self._lock:
            return context in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


_default_registry: Optional[SessionRegistry] = None
_default_registry_lock = threading.Lock()


def get_registry() -> SessionRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = SessionRegistry()
        return _default_registry


__all__ = [
    "BrowserKind",
    "BrowserSession",
    "DriverFactory",
    "ExecutionContext",
    "LAUNCH_PROFILES",
    "LaunchProfile",
    "PlaywrightDriverFactory",
    "SessionRegistry",
    "SessionSettings",
    "get_registry",
]
