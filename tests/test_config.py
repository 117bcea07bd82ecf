from __future__ import annotations

import pytest

from headless_browser import config as config_module
from headless_browser.config import BrowserConfig, binary_candidates


def test_defaults_do_not_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEADLESS_BROWSER_PORT", "1111")
    monkeypatch.setenv("HEADLESS_BROWSER_BINARY", "/env/chrome")
    cfg = BrowserConfig(binary_path="/opt/chrome")
    assert cfg.cdp_port == 9292
    assert cfg.binary_path == "/opt/chrome"
    assert cfg.command_timeout is None
    assert cfg.connect_timeout is None
    assert cfg.discovery_url == "http://localhost:9292/json/list"


def test_from_env_parses_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEADLESS_BROWSER_BINARY", "~/bin/chrome")
    monkeypatch.setenv("HEADLESS_BROWSER_PORT", "9333")
    monkeypatch.setenv("HEADLESS_BROWSER_FLAGS", "--no-sandbox, --lang=en,")
    monkeypatch.setenv("HEADLESS_BROWSER_CONNECT_TIMEOUT", "30")
    monkeypatch.setenv("HEADLESS_BROWSER_COMMAND_TIMEOUT", "0")
    cfg = BrowserConfig.from_env()
    assert cfg.binary_path.endswith("/bin/chrome")
    assert not cfg.binary_path.startswith("~")
    assert cfg.cdp_port == 9333
    assert cfg.extra_flags == ["--no-sandbox", "--lang=en"]
    assert cfg.connect_timeout == 30.0
    assert cfg.command_timeout is None
    assert cfg.discovery_url == "http://localhost:9333/json/list"


def test_detect_binary_falls_back_to_path_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "binary_candidates", lambda platform=None: ["/definitely/missing/chrome"])
    assert BrowserConfig.detect_binary() == "google-chrome"


def test_detect_binary_prefers_first_executable(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    missing = tmp_path / "missing"
    not_exec = tmp_path / "chrome-noexec"
    not_exec.write_text("")
    not_exec.chmod(0o644)
    exe = tmp_path / "chrome"
    exe.write_text("#!/bin/sh\n")
    exe.chmod(0o755)
    monkeypatch.setattr(
        config_module, "binary_candidates", lambda platform=None: [str(missing), str(not_exec), str(exe)]
    )
    assert BrowserConfig.detect_binary() == str(exe)


def test_candidates_per_platform() -> None:
    assert binary_candidates("darwin")[0] == "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
    assert binary_candidates("win32")[0] == "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe"
    assert binary_candidates("linux")[0] == "/usr/bin/google-chrome"
