from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from .errors import CommandTimeoutError, ProtocolError
from .protocol import Response, build_frame

_LOGGER = logging.getLogger("headless_browser.correlator")


class MessageCorrelator:
    """Matches CDP responses to the requests that caused them.

    Each request gets the next id (starting at 1) and a one-shot Future. The
    reader thread fulfils the Future when a response with that id arrives, in
    whatever order responses come back. Responses for unknown ids are dropped.
    """

    def __init__(self, transmit: Callable[[str], None]) -> None:
        self._transmit = transmit
        self._lock = threading.Lock()
        self._next_id = 1
        self._pending: dict[int, Future] = {}
        self._methods: dict[int, str] = {}

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._next_id

    def pending_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._pending)

    def allocate_id(self) -> int:
        with self._lock:
            req_id = self._next_id
            self._next_id += 1
            return req_id

    def post(self, method: str, params: dict[str, Any] | None = None) -> int:
        """Send without a result slot; any response to it is ignored."""
        req_id = self.allocate_id()
        self._transmit(build_frame(req_id, method, params))
        return req_id

    def send(self, method: str, params: dict[str, Any] | None = None) -> tuple[int, Future]:
        fut: Future = Future()
        with self._lock:
            req_id = self._next_id
            self._next_id += 1
            self._pending[req_id] = fut
            self._methods[req_id] = method

        try:
            self._transmit(build_frame(req_id, method, params))
        except Exception:
            self._discard(req_id)
            raise
        _LOGGER.debug("sent id=%d method=%s", req_id, method)
        return req_id, fut

    def wait(self, req_id: int, fut: Future, timeout: float | None = None) -> Any:
        """Block until the slot resolves; with a timeout the slot is dropped on expiry."""
        try:
            return fut.result(timeout=timeout)
        except FutureTimeoutError:
            method = self._discard(req_id) or "?"
            raise CommandTimeoutError(method, req_id, float(timeout or 0)) from None

    def dispatch(self, response: Response) -> bool:
        """Fulfil the slot for ``response``; returns False when the id is unknown."""
        with self._lock:
            fut = self._pending.pop(response.id, None)
            self._methods.pop(response.id, None)
        if fut is None:
            _LOGGER.debug("dropping response for unknown id=%d", response.id)
            return False
        if fut.done():
            return False
        if response.has_result:
            fut.set_result(response.result)
        elif response.has_error:
            fut.set_exception(ProtocolError(response.error))
        else:
            fut.set_result(None)
        return True

    def fail_all(self, exc: BaseException) -> int:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
            self._methods.clear()
        for fut in pending:
            if not fut.done():
                fut.set_exception(exc)
        return len(pending)

    def _discard(self, req_id: int) -> str | None:
        with self._lock:
            self._pending.pop(req_id, None)
            return self._methods.pop(req_id, None)


__all__ = ["MessageCorrelator"]
