from __future__ import annotations

import json
import logging
import time
from typing import Any

from . import expressions
from .config import BrowserConfig
from .connection import CdpConnection
from .process import BrowserProcess
from .protocol import RUNTIME_EVALUATE, EvaluationResult, check_for_error_result

_LOGGER = logging.getLogger("headless_browser.session")


class HeadlessBrowser:
    """
    Headless browser driven over the DevTools protocol.

    The browser process is launched on construction; ``start()`` connects to it
    and ``done()`` must be called when finished (the context manager does both)::

        with HeadlessBrowser("https://example.com") as browser:
            browser.type('input[name="city"]', "Stockholm")
            browser.click('button[type="submit"]')
    """

    def __init__(
        self,
        url: str,
        config: BrowserConfig | None = None,
        *,
        connection: CdpConnection | None = None,
    ) -> None:
        self.url = url
        self.config = config or BrowserConfig()
        self.connection = connection or CdpConnection(self.config)
        self.process = BrowserProcess(
            self.config.binary_path,
            url,
            port=self.config.cdp_port,
            extra_flags=self.config.extra_flags,
        )
        self._done = False
        self.process.start()

    def __enter__(self) -> HeadlessBrowser:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.done()

    @property
    def connected(self) -> bool:
        return self.connection.connected

    @property
    def connecting(self) -> bool:
        return self.connection.connecting

    def start(self) -> None:
        """Wait for the debugger to listen, then open and initialise the socket."""
        self.connection.start()

    def send(self, method: str, params: dict[str, Any] | None = None) -> Any:
        return self.connection.send(method, params)

    def evaluate(self, expression: str) -> EvaluationResult:
        """Evaluate ``expression`` in the page without classifying errors."""
        payload = self.send(RUNTIME_EVALUATE, {"expression": expression})
        result = EvaluationResult.from_payload(payload)
        _LOGGER.debug("evaluate %r -> type=%s", expression, result.type)
        return result

    def click(self, selector: str) -> None:
        """Click the element matching ``selector``, e.g. ``"#username"`` or ``'button[type="submit"]'``."""
        command = expressions.click(selector)
        result = self.evaluate(command)
        check_for_error_result(result, command)
        # Give the click handler time to run before the next command.
        time.sleep(self.config.click_delay)

    def get_input_value(self, selector: str) -> str:
        """
        Return the value of the input matching ``selector``.

        Returns the string ``"undefined"`` when the element has no ``value``
        (for example a ``<div>``), and ``""`` when the value is empty or falsy.
        """
        command = expressions.input_value(selector)
        result = self.evaluate(command)
        if result.is_undefined:
            return "undefined"
        check_for_error_result(result, command)
        value = result.value
        if not value:
            return ""
        if isinstance(value, str):
            return value
        # Render non-strings as JS would (true, 42, ...).
        return json.dumps(value)

    def type(self, selector: str, value: str) -> None:
        """Set the value of the input matching ``selector``."""
        command = expressions.set_input_value(selector, value)
        result = self.evaluate(command)
        check_for_error_result(result, command)
        time.sleep(self.config.type_delay)

    def wait_for_ajax(self) -> None:
        """Check that no jQuery AJAX request is in flight (requires jQuery on the page)."""
        result = self.evaluate(expressions.AJAX_IDLE)
        check_for_error_result(result, expressions.AJAX_IDLE)

    def done(self) -> None:
        """Stop the browser and close the socket. Must be called when finished."""
        if self._done:
            return
        self._done = True
        # Let handshake notification traffic drain before tearing down.
        time.sleep(self.config.drain_delay)
        self.connection.mark_closing()
        self.process.terminate()
        self.connection.close()


__all__ = ["HeadlessBrowser"]
