from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CDP_PORT = 9292

_DARWIN_CANDIDATES: list[str] = [
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
]

_WINDOWS_CANDIDATES: list[str] = [
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
]

_LINUX_CANDIDATES: list[str] = [
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/opt/google/chrome/chrome",
    # Snap builds ignore some profile flags; keep them last.
    "/snap/bin/chromium",
]


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def binary_candidates(platform: str | None = None) -> list[str]:
    """Return the well-known browser locations for ``platform`` (defaults to ``sys.platform``)."""
    plat = platform or sys.platform
    if plat == "darwin":
        return list(_DARWIN_CANDIDATES)
    if plat.startswith("win"):
        return list(_WINDOWS_CANDIDATES)
    return list(_LINUX_CANDIDATES)


def _optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass
class BrowserConfig:
    binary_path: str = ""
    cdp_port: int = DEFAULT_CDP_PORT
    extra_flags: list[str] = field(default_factory=list)
    poll_interval: float = 0.1
    discovery_timeout: float = 0.5
    connect_timeout: float | None = None
    command_timeout: float | None = None
    click_delay: float = 1.0
    type_delay: float = 0.5
    drain_delay: float = 1.0
    close_retry_interval: float = 0.5

    def __post_init__(self) -> None:
        if not self.binary_path:
            self.binary_path = self.detect_binary()

    @property
    def discovery_url(self) -> str:
        return f"http://localhost:{self.cdp_port}/json/list"

    @classmethod
    def detect_binary(cls, platform: str | None = None) -> str:
        for candidate in binary_candidates(platform):
            path = Path(candidate)
            if path.exists() and os.access(str(path), os.X_OK):
                return str(path)
        # Last resort: rely on PATH lookup
        return "google-chrome"

    @classmethod
    def from_env(cls) -> BrowserConfig:
        port = int(os.environ.get("HEADLESS_BROWSER_PORT", str(DEFAULT_CDP_PORT)))
        flags_raw = os.environ.get("HEADLESS_BROWSER_FLAGS", "")
        extra_flags = [flag.strip() for flag in flags_raw.split(",") if flag.strip()]
        poll_interval = float(os.environ.get("HEADLESS_BROWSER_POLL_INTERVAL", "0.1"))
        env_binary = os.environ.get("HEADLESS_BROWSER_BINARY")
        return cls(
            binary_path=expand_path(env_binary) if env_binary else cls.detect_binary(),
            cdp_port=port,
            extra_flags=extra_flags,
            poll_interval=max(0.01, poll_interval),
            connect_timeout=_optional_float(os.environ.get("HEADLESS_BROWSER_CONNECT_TIMEOUT")),
            command_timeout=_optional_float(os.environ.get("HEADLESS_BROWSER_COMMAND_TIMEOUT")),
        )
