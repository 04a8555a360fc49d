"""
================================================================================
UI Framework Exceptions
================================================================================

Classified failures raised by the session registry and the interaction layer.

Driver (Playwright) exceptions never cross the framework boundary: they are
chained as ``__cause__`` and summarised in ``cause``, so callers and reports
only ever deal with the types below.

================================================================================
"""

from __future__ import annotations

from typing import Optional


class UIAutomationError(Exception):
    """Base exception for all UI framework failures."""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        element: Optional[str] = None,
        cause: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.action = action
        self.element = element
        self.cause = cause


class UnsupportedBrowserError(UIAutomationError):
    """Browser kind not recognised at session creation. Never retried."""

    def __init__(self, browser: Optional[str]):
        super().__init__(f"Unsupported browser: {browser!r}")
        self.browser = browser


class DriverStartupError(UIAutomationError):
    """The browser process or driver connection could not be established."""

    def __init__(self, browser: str, cause: Optional[BaseException] = None):
        detail = _describe_cause(cause)
        message = f"Failed to start {browser} session"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, cause=detail)
        self.browser = browser


class ElementNotReadyError(UIAutomationError):
    """Waiting for visibility or clickability exceeded the timeout."""

    def __init__(
        self,
        wait_kind: str,
        element: str,
        elapsed: float,
        last_error: Optional[str] = None,
    ):
        message = f"Element {element} not ready ({wait_kind}) after {elapsed:.2f}s"
        if last_error:
            message = f"{message}; last error: {last_error}"
        super().__init__(message, element=element, cause=last_error)
        self.wait_kind = wait_kind
        self.elapsed = elapsed


class StaleElementError(UIAutomationError):
    """Element detached from the document and the single retry failed too."""

    def __init__(self, action: str, element: str, cause: Optional[BaseException] = None):
        super().__init__(
            f"Element {element} went stale twice during {action}",
            action=action,
            element=element,
            cause=_describe_cause(cause),
        )


class InteractionError(UIAutomationError):
    """Any other failure while performing the primitive action."""

    def __init__(
        self,
        action: str,
        element: str,
        cause: Optional[BaseException] = None,
        reason: Optional[str] = None,
    ):
        detail = reason or _describe_cause(cause)
        message = f"{action} failed on {element}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, action=action, element=element, cause=detail)


def _describe_cause(cause: Optional[BaseException]) -> Optional[str]:
    if cause is None:
        return None
    # Playwright messages carry a multi-line call log; the first line is enough
    text = str(cause).strip().splitlines()
    return text[0] if text else cause.__class__.__name__


__all__ = [
    "UIAutomationError",
    "UnsupportedBrowserError",
    "DriverStartupError",
    "ElementNotReadyError",
    "StaleElementError",
    "InteractionError",
]
