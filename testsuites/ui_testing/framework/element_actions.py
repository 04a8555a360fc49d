# ================================================================================
# Element Actions Module
# ================================================================================
#
# Wait-gated UI element interactions with a narrow staleness retry and an
# explicit script-executed click for elements hidden behind overlays.
#
# Key Features:
#   - Visibility / clickability polling bounded by the session timeout
#   - Exactly one retry when the element detaches between wait and action
#   - Forced (JavaScript) click chosen explicitly by the caller
#   - Classified errors; Playwright exceptions never leak to callers
#   - Allure step integration and a bounded history of action outcomes
#
# ================================================================================

import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, List, Optional, TypeVar

import allure
from loguru import logger
from playwright.sync_api import Error as PlaywrightError, Locator

from .exceptions import (
    ElementNotReadyError,
    InteractionError,
    StaleElementError,
    UIAutomationError,
)


T = TypeVar("T")

# Playwright reports a detached node through the message, not a subclass
STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "detached from the dom",
    "detached from document",
    "execution context was destroyed",
)


def is_stale_error(error: BaseException) -> bool:
    """True if a driver error means the element reference went stale."""
    if not isinstance(error, PlaywrightError):
        return False
    message = str(error).lower()
    return any(marker in message for marker in STALE_MARKERS)


class WaitKind(str, Enum):
    """Readiness conditions an action waits for."""

    VISIBILITY = "visibility"
    CLICKABILITY = "clickability"


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one interaction, kept for logging and failure reports."""

    action: str
    element: str
    succeeded: bool
    elapsed: float
    failure: Optional[str] = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "element": self.element,
            "succeeded": self.succeeded,
            "elapsed": round(self.elapsed, 3),
            "failure": self.failure,
            "message": self.message,
        }


class ElementActions:
    """
    Resilient interactions with already-located elements.

    Every action except ``is_displayed`` and ``scroll_into_view`` first waits
    for the element to be visible (or visible and enabled, for clicks), then
    performs the primitive. If the primitive fails because the element went
    stale, the action waits once more using the refreshed condition and
    re-attempts the primitive; a second staleness is fatal.

    Elements are Playwright Locators, which are re-resolved against the live
    DOM on every call, so the retry operates on a fresh node.

    Example:
        actions = ElementActions(session)
        actions.click(page.locator("#submit"), description="Submit button")
        actions.type_text(page.locator("#username"), "testuser", description="Username field")
    """

    DEFAULT_POLL_INTERVAL = 0.25
    SETTLE_DELAY = 0.5
    PROBE_TIMEOUT_MS = 1000
    ACTION_TIMEOUT_MS = 2000
    MIN_ACTION_TIMEOUT_MS = 250
    HISTORY_SIZE = 50

    def __init__(
        self,
        session: Any,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        """
        Initialize ElementActions for a browser session.

        Args:
            session: BrowserSession (anything with ``page`` and ``timeout_seconds``)
            timeout: Wait timeout in seconds; defaults to the session's timeout
            poll_interval: Seconds between readiness checks
        """
        self.session = session
        self.page = session.page
        self.timeout = float(timeout if timeout is not None else session.timeout_seconds)
        self.poll_interval = poll_interval if poll_interval is not None else self.DEFAULT_POLL_INTERVAL
        self._outcomes: Deque[ActionOutcome] = deque(maxlen=self.HISTORY_SIZE)

    @property
    def outcomes(self) -> List[ActionOutcome]:
        """Recent action outcomes, oldest first."""
        return list(self._outcomes)

    @property
    def last_outcome(self) -> Optional[ActionOutcome]:
        return self._outcomes[-1] if self._outcomes else None

    # =========================================================================
    # Waiting
    # =========================================================================

    def wait_until_ready(
        self,
        element: Locator,
        kind: WaitKind = WaitKind.VISIBILITY,
        description: str = "",
        refreshed: bool = False,
    ) -> None:
        """
        Poll until the element satisfies ``kind`` or the timeout elapses.

        A staleness error while polling propagates, unless ``refreshed`` is
        set, in which case it only means "not ready yet". Other driver errors
        are treated as not ready.

        Raises:
            ElementNotReadyError: Condition not met within the timeout
        """
        descriptor = self._describe(element, description)
        logger.debug(f"Waiting for {descriptor} ({kind.value}{', refreshed' if refreshed else ''})")

        start = time.monotonic()
        deadline = start + self.timeout
        last_error: Optional[str] = None
        while True:
            try:
                if self._condition_met(element, kind):
                    return
            except PlaywrightError as e:
                if is_stale_error(e) and not refreshed:
                    raise
                last_error = str(e).strip().splitlines()[0] if str(e).strip() else e.__class__.__name__

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                elapsed = time.monotonic() - start
                logger.error(f"Element not ready ({kind.value}) after {elapsed:.2f}s: {descriptor}")
                raise ElementNotReadyError(kind.value, descriptor, elapsed, last_error)
            time.sleep(min(self.poll_interval, remaining))

    def _condition_met(self, element: Locator, kind: WaitKind) -> bool:
        if not element.is_visible():
            return False
        if kind is WaitKind.CLICKABILITY:
            return element.is_enabled(timeout=self.PROBE_TIMEOUT_MS)
        return True

    # =========================================================================
    # Actions
    # =========================================================================

    @allure.step("Click element: {description}")
    def click(self, element: Locator, description: str = "") -> None:
        """Wait until clickable, then click natively."""
        self._perform(
            "click",
            element,
            description,
            WaitKind.CLICKABILITY,
            lambda timeout: element.click(timeout=timeout),
        )

    @allure.step("Force click element: {description}")
    def forced_click(self, element: Locator, description: str = "") -> None:
        """
        Click through a script instead of the pointer.

        Waits for visibility only, so overlays and occlusion are ignored.
        There is no staleness retry: a vanished node is an InteractionError.
        """
        descriptor = self._describe(element, description)
        start = time.monotonic()
        deadline = start + self.timeout
        try:
            self.wait_until_ready(element, WaitKind.VISIBILITY, descriptor)
            logger.info(f"JS clicking element: {descriptor}")
            element.evaluate("el => el.click()", timeout=self._primitive_timeout_ms(deadline))
        except UIAutomationError as e:
            self._fail("forced_click", descriptor, start, e)
            raise
        except PlaywrightError as e:
            error = InteractionError("forced_click", descriptor, e)
            self._fail("forced_click", descriptor, start, error)
            raise error from e
        self._succeed("forced_click", descriptor, start)

    def type_text(self, element: Locator, text: str, description: str = "") -> None:
        """Wait until visible, clear the field, then type ``text``."""
        descriptor = self._describe(element, description)
        shown = "*" * len(text) if "password" in descriptor.lower() else text

        def primitive(timeout: float) -> None:
            element.clear(timeout=timeout)
            logger.debug(f"Typing '{shown}' into {descriptor}")
            element.press_sequentially(text, timeout=timeout)

        # no decorator: it would record the raw text as a step parameter
        with allure.step(f"Type text into {descriptor}: '{shown}'"):
            self._perform("type_text", element, description, WaitKind.VISIBILITY, primitive)

    @allure.step("Select option '{text}': {description}")
    def select_by_visible_text(self, element: Locator, text: str, description: str = "") -> None:
        """
        Select the option whose visible text equals ``text`` exactly.

        Raises:
            InteractionError: No option carries that visible text
        """
        def primitive(timeout: float) -> None:
            labels = element.evaluate("el => Array.from(el.options, o => o.text)", timeout=timeout)
            if text not in labels:
                raise InteractionError(
                    "select_by_visible_text",
                    self._describe(element, description),
                    reason=f"no option with visible text '{text}'",
                )
            element.select_option(index=labels.index(text), timeout=timeout)

        self._perform("select_by_visible_text", element, description, WaitKind.VISIBILITY, primitive)

    @allure.step("Get text: {description}")
    def read_text(self, element: Locator, description: str = "") -> str:
        """Wait until visible and return the rendered text verbatim."""
        text = self._perform(
            "read_text",
            element,
            description,
            WaitKind.VISIBILITY,
            lambda timeout: element.inner_text(timeout=timeout),
        )
        logger.debug(f"Got text from {self._describe(element, description)}: '{text}'")
        return text

    @allure.step("Hover element: {description}")
    def hover(self, element: Locator, description: str = "") -> None:
        """Wait until visible, then move the pointer to the element centre."""
        self._perform(
            "hover",
            element,
            description,
            WaitKind.VISIBILITY,
            lambda timeout: element.hover(timeout=timeout),
        )

    def is_displayed(self, element: Locator) -> bool:
        """
        Non-waiting visibility probe for polling loops.

        Returns False when the element is missing or stale; never raises.
        """
        try:
            return bool(element.is_visible())
        except PlaywrightError:
            return False

    @allure.step("Scroll to element: {description}")
    def scroll_into_view(self, element: Locator, description: str = "") -> None:
        """
        Scroll the element into view, then pause for layout to settle.

        No readiness wait: the element may only become visible once scrolled.
        """
        descriptor = self._describe(element, description)
        start = time.monotonic()
        try:
            element.evaluate("el => el.scrollIntoView(true)", timeout=self.ACTION_TIMEOUT_MS)
        except PlaywrightError as e:
            error = InteractionError("scroll_into_view", descriptor, e)
            self._fail("scroll_into_view", descriptor, start, error)
            raise error from e
        time.sleep(self.SETTLE_DELAY)
        self._succeed("scroll_into_view", descriptor, start)

    # =========================================================================
    # Internals
    # =========================================================================

    def _perform(
        self,
        action: str,
        element: Locator,
        description: str,
        wait_kind: WaitKind,
        primitive: Callable[[float], T],
    ) -> T:
        descriptor = self._describe(element, description)
        start = time.monotonic()
        deadline = start + self.timeout
        logger.info(f"{action}: {descriptor}")
        try:
            try:
                self.wait_until_ready(element, wait_kind, descriptor)
                result = primitive(self._primitive_timeout_ms(deadline))
            except PlaywrightError as e:
                if not is_stale_error(e):
                    raise InteractionError(action, descriptor, e) from e
                logger.warning(f"Stale element reference during {action} on {descriptor}, retrying once")
                self.wait_until_ready(element, wait_kind, descriptor, refreshed=True)
                try:
                    result = primitive(self._primitive_timeout_ms(deadline))
                except PlaywrightError as retry_error:
                    if is_stale_error(retry_error):
                        raise StaleElementError(action, descriptor, retry_error) from retry_error
                    raise InteractionError(action, descriptor, retry_error) from retry_error
        except UIAutomationError as e:
            self._fail(action, descriptor, start, e)
            raise

        self._succeed(action, descriptor, start)
        return result

    def _primitive_timeout_ms(self, deadline: float) -> float:
        """
        Driver timeout for one primitive once the element is ready.

        Whatever is left of the wait timeout, capped at ACTION_TIMEOUT_MS, so an
        obstructed element fails promptly instead of waiting out a second timeout.
        """
        remaining_ms = (deadline - time.monotonic()) * 1000
        return max(self.MIN_ACTION_TIMEOUT_MS, min(self.ACTION_TIMEOUT_MS, remaining_ms))

    def _succeed(self, action: str, descriptor: str, start: float) -> None:
        elapsed = time.monotonic() - start
        self._outcomes.append(ActionOutcome(action, descriptor, True, elapsed))
        logger.debug(f"{action} succeeded on {descriptor} in {elapsed:.2f}s")

    def _fail(self, action: str, descriptor: str, start: float, error: UIAutomationError) -> None:
        elapsed = time.monotonic() - start
        self._outcomes.append(
            ActionOutcome(action, descriptor, False, elapsed, error.__class__.__name__, error.message)
        )
        logger.error(f"Failed to {action} {descriptor}: {error.message}")

    @staticmethod
    def _describe(element: Any, description: str = "") -> str:
        return description or repr(element)


__all__ = [
    "ActionOutcome",
    "ElementActions",
    "STALE_MARKERS",
    "WaitKind",
    "is_stale_error",
]
