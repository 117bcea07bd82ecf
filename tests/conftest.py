from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from typing import Any

import pytest
import websocket

from headless_browser import connection as connection_module
from headless_browser import process as process_module
from headless_browser.config import BrowserConfig
from headless_browser.connection import CdpConnection


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return
        time.sleep(0.005)
    raise AssertionError("condition not met in time")


class FakeApp:
    """Stands in for websocket.WebSocketApp: run_forever blocks until close()."""

    def __init__(self, url: str, on_open=None, on_message=None, on_error=None, on_close=None) -> None:  # noqa: ANN001
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_error = on_error
        self.on_close = on_close
        self.sent: list[dict[str, Any]] = []
        self.run_kwargs: dict[str, Any] = {}
        self.close_calls = 0
        self._closed = threading.Event()

    def run_forever(self, **kwargs: Any) -> None:
        self.run_kwargs = kwargs
        self.on_open(self)
        self._closed.wait()
        self.on_close(self, 1000, "")

    def send(self, data: str) -> None:
        if self._closed.is_set():
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        self.sent.append(json.loads(data))

    def close(self, **kwargs: Any) -> None:  # noqa: ARG002
        self.close_calls += 1
        self._closed.set()

    # test helpers

    def deliver(self, payload: dict[str, Any]) -> None:
        self.on_message(self, json.dumps(payload))

    def respond(self, request_id: int, result: Any) -> None:
        self.deliver({"id": request_id, "result": result})

    def frames(self, method: str) -> list[dict[str, Any]]:
        return [frame for frame in self.sent if frame.get("method") == method]


class FakePopen:
    """Records how the browser process was spawned and torn down."""

    instances: list[FakePopen] = []

    def __init__(self, cmd: list[str], **kwargs: Any) -> None:
        self.cmd = cmd
        self.kwargs = kwargs
        self.pid = 4242
        self.events: list[str] = []
        self.returncode: int | None = None
        self.stderr = _FakeStream(self.events)
        FakePopen.instances.append(self)

    def poll(self) -> int | None:
        return self.returncode

    def kill(self) -> None:
        self.events.append("kill")
        self.returncode = -9

    def wait(self, timeout: float | None = None) -> int:  # noqa: ARG002
        self.events.append("wait")
        return self.returncode if self.returncode is not None else 0


class _FakeStream:
    def __init__(self, events: list[str]) -> None:
        self._events = events
        self.closed = False

    def close(self) -> None:
        self._events.append("stderr.close")
        self.closed = True


@pytest.fixture
def fake_popen(monkeypatch: pytest.MonkeyPatch) -> type[FakePopen]:
    FakePopen.instances = []
    monkeypatch.setattr(process_module.subprocess, "Popen", FakePopen)
    return FakePopen


@pytest.fixture
def config() -> BrowserConfig:
    return BrowserConfig(
        binary_path="/opt/test/chrome",
        poll_interval=0.005,
        click_delay=0,
        type_delay=0,
        drain_delay=0,
        close_retry_interval=0.05,
    )


@pytest.fixture
def fake_discovery(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    seen: list[str] = []

    def _discover(url: str, **kwargs: Any) -> str:  # noqa: ARG001
        seen.append(url)
        return "ws://127.0.0.1:9292/devtools/page/ABC"

    monkeypatch.setattr(connection_module, "wait_for_debugger_url", _discover)
    return seen


@pytest.fixture
def started(config: BrowserConfig, fake_discovery: list[str]):  # noqa: ARG001
    """A started connection still waiting for Network.loadingFinished."""
    apps: list[FakeApp] = []

    def _factory(url: str, **handlers: Any) -> FakeApp:
        app = FakeApp(url, **handlers)
        apps.append(app)
        return app

    conn = CdpConnection(config, app_factory=_factory)
    conn.start()
    wait_for(lambda: bool(apps) and bool(apps[0].sent))
    yield conn, apps[0]
    conn.close()


@pytest.fixture
def connected(started):
    conn, app = started
    app.deliver({"method": "Network.loadingFinished", "params": {"requestId": "1"}})
    assert conn.connected
    return conn, app
