"""DevTools endpoint discovery.

The browser does not listen on its debugging port immediately after launch, so
the target list is polled until it answers with at least one target that
exposes a WebSocket debugger URL.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from http.client import HTTPException
from typing import Any
from urllib.error import URLError
from urllib.request import Request, urlopen

from .errors import ConnectionTimeoutError, DiscoveryError

_LOGGER = logging.getLogger("headless_browser.discovery")


def list_targets(url: str, timeout: float = 0.5) -> list[dict[str, Any]]:
    """Fetch the debuggable target list from the DevTools HTTP endpoint."""
    try:
        req = Request(url, headers={"User-Agent": "headless-browser"})
        with urlopen(req, timeout=timeout) as resp:
            payload = json.loads(resp.read().decode())
    except (HTTPException, OSError, URLError, ValueError) as exc:
        raise DiscoveryError(f"DevTools endpoint not ready at {url}: {exc}") from exc
    if not isinstance(payload, list):
        raise DiscoveryError(f"Unexpected target list payload from {url}")
    return [target for target in payload if isinstance(target, dict)]


def fetch_debugger_url(url: str, timeout: float = 0.5) -> str:
    """Return the WebSocket debugger URL of the first target."""
    targets = list_targets(url, timeout=timeout)
    if not targets:
        raise DiscoveryError(f"No debuggable targets reported by {url}")
    ws_url = targets[0].get("webSocketDebuggerUrl")
    if not isinstance(ws_url, str) or not ws_url:
        raise DiscoveryError("First target has no webSocketDebuggerUrl")
    return ws_url


def wait_for_debugger_url(
    url: str,
    *,
    poll_interval: float = 0.1,
    request_timeout: float = 0.5,
    timeout: float | None = None,
    stop: threading.Event | None = None,
) -> str:
    """Poll ``url`` until a debugger URL is available.

    Unbounded when ``timeout`` is None. ``stop`` lets another thread abandon the wait.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    attempts = 0
    while True:
        attempts += 1
        try:
            return fetch_debugger_url(url, timeout=request_timeout)
        except DiscoveryError as exc:
            _LOGGER.debug("discovery attempt %d failed: %s", attempts, exc)
        if stop is not None and stop.is_set():
            raise ConnectionTimeoutError("Discovery aborted")
        if deadline is not None and time.monotonic() >= deadline:
            raise ConnectionTimeoutError(f"DevTools endpoint {url} not ready after {timeout:g}s")
        time.sleep(poll_interval)


__all__ = ["fetch_debugger_url", "list_targets", "wait_for_debugger_url"]
