"""Drive a headless Chrome over the DevTools protocol.

- process.py: browser subprocess supervision
- discovery.py: DevTools endpoint polling
- connection.py: CDP socket + connection state machine
- correlator.py: request id -> pending result matching
- protocol.py: wire frames and Runtime.evaluate results
- session.py: HeadlessBrowser (click/type/read/wait helpers)
"""

from __future__ import annotations

from .config import BrowserConfig
from .connection import CdpConnection, ConnectionState
from .errors import (
    BrowserError,
    BrowserStartupError,
    CommandTimeoutError,
    ConnectionLostError,
    ConnectionTimeoutError,
    DiscoveryError,
    EvaluationError,
    EvaluationSyntaxError,
    NotConnectedError,
    ProtocolError,
)
from .process import BrowserProcess
from .protocol import EvaluationResult
from .session import HeadlessBrowser

__all__ = [
    "BrowserConfig",
    "BrowserError",
    "BrowserProcess",
    "BrowserStartupError",
    "CdpConnection",
    "CommandTimeoutError",
    "ConnectionLostError",
    "ConnectionState",
    "ConnectionTimeoutError",
    "DiscoveryError",
    "EvaluationError",
    "EvaluationResult",
    "EvaluationSyntaxError",
    "HeadlessBrowser",
    "NotConnectedError",
    "ProtocolError",
]
