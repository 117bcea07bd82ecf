"""CDP WebSocket connection.

The socket is driven by a websocket-client ``WebSocketApp`` on a daemon reader
thread. Callers block on per-request Futures owned by the correlator.

State machine::

    IDLE -> CONNECTING -> CONNECTED -> CLOSED
               \\_____________________/  (socket close/error)

The connection only counts as CONNECTED once ``Network.loadingFinished`` has
been observed after the ``Network.enable`` handshake; an open socket alone is
not enough.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import websocket

from .config import BrowserConfig
from .correlator import MessageCorrelator
from .discovery import wait_for_debugger_url
from .errors import ConnectionLostError, ConnectionTimeoutError, NotConnectedError
from .protocol import NETWORK_ENABLE, NETWORK_LOADING_FINISHED, Notification, parse_message

_LOGGER = logging.getLogger("headless_browser.connection")


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class CdpConnection:
    def __init__(
        self,
        config: BrowserConfig | None = None,
        *,
        app_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.config = config or BrowserConfig()
        self.ws_url: str | None = None
        self.correlator = MessageCorrelator(self._transmit)

        self._app_factory = app_factory or websocket.WebSocketApp
        self._app: Any | None = None
        self._thread: threading.Thread | None = None

        self._lock = threading.Lock()
        self._state = ConnectionState.IDLE
        self._closing = False
        self._fatal: ConnectionLostError | None = None
        self._stop = threading.Event()
        self._socket_closed = threading.Event()
        self._event_sink: Callable[[Notification], None] | None = None

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def connecting(self) -> bool:
        return self.state is ConnectionState.CONNECTING

    @property
    def closing(self) -> bool:
        with self._lock:
            return self._closing

    @property
    def fatal_error(self) -> ConnectionLostError | None:
        with self._lock:
            return self._fatal

    def set_event_sink(self, sink: Callable[[Notification], None] | None) -> None:
        """Attach a callback invoked (on the reader thread) for every notification."""
        self._event_sink = sink

    def mark_closing(self) -> None:
        """Flag an intentional shutdown so the upcoming socket close is not fatal."""
        with self._lock:
            self._closing = True
        self._stop.set()

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Discover the debugger URL and open the socket in the background."""
        with self._lock:
            if self._state is not ConnectionState.IDLE:
                raise RuntimeError(f"Connection already started (state={self._state.value})")
            self._state = ConnectionState.CONNECTING

        try:
            ws_url = wait_for_debugger_url(
                self.config.discovery_url,
                poll_interval=self.config.poll_interval,
                request_timeout=self.config.discovery_timeout,
                timeout=self.config.connect_timeout,
                stop=self._stop,
            )
        except ConnectionTimeoutError:
            with self._lock:
                self._state = ConnectionState.CLOSED
                closing = self._closing
            if closing:
                return
            raise

        self.ws_url = ws_url
        _LOGGER.info("debugger url: %s", ws_url)

        try:
            app = self._app_factory(
                ws_url,
                on_open=self._on_open,
                on_message=self._on_message,
                on_error=self._on_error,
                on_close=self._on_close,
            )
        except Exception:
            with self._lock:
                self._state = ConnectionState.CLOSED
            self._socket_closed.set()
            raise
        with self._lock:
            if self._closing:
                self._state = ConnectionState.CLOSED
                return
            self._app = app

        # Chrome rejects WebSocket upgrades carrying a foreign Origin header.
        thread = threading.Thread(
            target=app.run_forever,
            kwargs={"suppress_origin": True},
            name="headless-browser-cdp",
            daemon=True,
        )
        self._thread = thread
        thread.start()

    def close(self) -> None:
        """Close the socket and wait until its close handler has run.

        Returns promptly when the socket was never created.
        """
        self.mark_closing()
        with self._lock:
            app = self._app
        if app is None:
            with self._lock:
                self._state = ConnectionState.CLOSED
            self._socket_closed.set()
            return

        app.close()
        # run_forever may still be connecting; keep asking until the handler fires.
        while not self._socket_closed.wait(self.config.close_retry_interval):
            thread = self._thread
            if thread is None or not thread.is_alive():
                break
            _LOGGER.debug("socket close pending; retrying")
            app.close()

        with self._lock:
            self._state = ConnectionState.CLOSED
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.config.close_retry_interval)

    # ─────────────────────────────────────────────────────────────────────────
    # Sending
    # ─────────────────────────────────────────────────────────────────────────

    def wait_until_connected(self, timeout: float | None = None) -> None:
        """Poll until CONNECTED; bounded by ``timeout`` (or ``config.connect_timeout``)."""
        limit = self.config.connect_timeout if timeout is None else timeout
        deadline = None if limit is None else time.monotonic() + limit
        while True:
            with self._lock:
                state = self._state
                fatal = self._fatal
            if state is ConnectionState.CONNECTED:
                return
            if state is ConnectionState.CLOSED:
                if fatal is not None:
                    raise fatal
                raise NotConnectedError("CDP connection is closed")
            if state is ConnectionState.IDLE:
                raise NotConnectedError("CDP connection not started (call start() first)")
            if deadline is not None and time.monotonic() >= deadline:
                raise ConnectionTimeoutError(f"CDP connection not ready after {limit:g}s")
            time.sleep(self.config.poll_interval)

    def send(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a CDP command and return its ``result`` payload."""
        self.wait_until_connected()
        req_id, fut = self.correlator.send(method, params)
        fatal = self.fatal_error
        if fatal is not None:
            # Lost between the state check and registration; nothing will answer.
            self.correlator.fail_all(fatal)
        return self.correlator.wait(req_id, fut, timeout=self.config.command_timeout)

    def _transmit(self, frame: str) -> None:
        with self._lock:
            app = self._app
        if app is None:
            raise NotConnectedError("CDP socket is not open")
        try:
            app.send(frame)
        except (websocket.WebSocketException, OSError) as exc:
            raise ConnectionLostError(f"CDP send failed: {exc}") from exc

    # ─────────────────────────────────────────────────────────────────────────
    # Socket handlers (reader thread)
    # ─────────────────────────────────────────────────────────────────────────

    def _on_open(self, ws: Any) -> None:  # noqa: ARG002
        req_id = self.correlator.post(NETWORK_ENABLE)
        _LOGGER.debug("socket open; handshake id=%d", req_id)

    def _on_message(self, ws: Any, message: str | bytes) -> None:  # noqa: ARG002
        msg = parse_message(message)
        if msg is None:
            _LOGGER.debug("dropping unrecognized frame: %.200r", message)
            return
        if isinstance(msg, Notification):
            self._handle_notification(msg)
            return
        self.correlator.dispatch(msg)

    def _handle_notification(self, msg: Notification) -> None:
        if msg.method == NETWORK_LOADING_FINISHED:
            with self._lock:
                became_ready = self._state is ConnectionState.CONNECTING
                if became_ready:
                    self._state = ConnectionState.CONNECTED
            if became_ready:
                _LOGGER.info("connected to %s", self.ws_url)

        sink = self._event_sink
        if sink is not None:
            try:
                sink(msg)
            except Exception:
                _LOGGER.exception("event sink failed for %s", msg.method)

    def _on_error(self, ws: Any, error: Any) -> None:  # noqa: ARG002
        self._mark_closed(f"socket error: {error}")

    def _on_close(self, ws: Any, close_status_code: int | None = None, close_msg: str | None = None) -> None:  # noqa: ARG002
        self._mark_closed(f"socket closed (code={close_status_code}, reason={close_msg or ''})")
        self._socket_closed.set()

    def _mark_closed(self, reason: str) -> None:
        with self._lock:
            was_closed = self._state is ConnectionState.CLOSED
            self._state = ConnectionState.CLOSED
            fatal = None
            if not was_closed and not self._closing:
                fatal = ConnectionLostError(f"CDP connection lost unexpectedly: {reason}")
                self._fatal = fatal

        if fatal is None:
            _LOGGER.debug("%s", reason)
            return
        _LOGGER.error("%s", fatal)
        self.correlator.fail_all(fatal)


__all__ = ["CdpConnection", "ConnectionState"]
