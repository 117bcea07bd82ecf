from __future__ import annotations

from typing import Any


class BrowserError(Exception):
    pass


class BrowserStartupError(BrowserError):
    """The browser executable could not be started."""


class DiscoveryError(BrowserError):
    """The DevTools HTTP endpoint did not (yet) report a debuggable target."""


class NotConnectedError(BrowserError):
    pass


class ConnectionLostError(BrowserError):
    """The CDP socket closed or errored while the session was still in use."""


class ConnectionTimeoutError(BrowserError):
    pass


class CommandTimeoutError(BrowserError):
    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        super().__init__(f"CDP command {method} (id={request_id}) timed out after {timeout:g}s")
        self.method = method
        self.request_id = request_id
        self.timeout = timeout


class ProtocolError(BrowserError):
    """A CDP response carried an ``error`` payload instead of a ``result``."""

    def __init__(self, error: Any) -> None:
        self.error = error
        self.code: int | None = None
        self.message = str(error)
        if isinstance(error, dict):
            code = error.get("code")
            if isinstance(code, int):
                self.code = code
            if isinstance(error.get("message"), str):
                self.message = error["message"]
        super().__init__(self.message if self.code is None else f"{self.message} (code {self.code})")


class EvaluationError(BrowserError):
    """An evaluated expression threw inside the page."""

    def __init__(self, message: str, *, description: str, expression: str) -> None:
        super().__init__(message)
        self.description = description
        self.expression = expression


class EvaluationSyntaxError(EvaluationError):
    pass


__all__ = [
    "BrowserError",
    "BrowserStartupError",
    "CommandTimeoutError",
    "ConnectionLostError",
    "ConnectionTimeoutError",
    "DiscoveryError",
    "EvaluationError",
    "EvaluationSyntaxError",
    "NotConnectedError",
    "ProtocolError",
]
