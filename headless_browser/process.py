from __future__ import annotations

import contextlib
import logging
import subprocess

from .config import DEFAULT_CDP_PORT
from .errors import BrowserStartupError

_LOGGER = logging.getLogger("headless_browser.process")


class BrowserProcess:
    """Owns the headless browser subprocess.

    stderr is piped so browser chatter does not reach the caller's terminal;
    stdout is left alone.
    """

    def __init__(
        self,
        binary_path: str,
        url: str,
        *,
        port: int = DEFAULT_CDP_PORT,
        extra_flags: list[str] | None = None,
    ) -> None:
        self.binary_path = binary_path
        self.url = url
        self.port = port
        self.extra_flags = list(extra_flags or [])
        self.process: subprocess.Popen | None = None
        self._terminated = False

    @property
    def command(self) -> list[str]:
        flags = [
            "--headless",
            f"--remote-debugging-port={self.port}",
            "--disable-gpu",
            *self.extra_flags,
        ]
        return [self.binary_path, *flags, self.url]

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    @property
    def running(self) -> bool:
        proc = self.process
        return proc is not None and proc.poll() is None

    def start(self) -> None:
        if self.process is not None:
            raise RuntimeError("Browser process already started")
        cmd = self.command
        try:
            self.process = subprocess.Popen(cmd, stderr=subprocess.PIPE)
        except OSError as exc:
            raise BrowserStartupError(f"Cannot start browser {self.binary_path!r}: {exc}") from exc
        _LOGGER.info("browser launched pid=%s port=%s", self.process.pid, self.port)

    def terminate(self, *, timeout: float = 2.0) -> None:
        """Close the captured stderr stream, then kill the process.

        Only valid once per process.
        """
        proc = self.process
        if proc is None:
            raise RuntimeError("Browser process was never started")
        if self._terminated:
            raise RuntimeError("Browser process already terminated")
        self._terminated = True

        if proc.stderr is not None:
            proc.stderr.close()
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        with contextlib.suppress(subprocess.TimeoutExpired):
            proc.wait(timeout=timeout)
        _LOGGER.info("browser terminated pid=%s", proc.pid)


__all__ = ["BrowserProcess"]
