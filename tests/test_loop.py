"""Tests for the driver loop."""

from __future__ import annotations

import io
import json
import re
from datetime import datetime
from types import TracebackType

import pytest

from nvsnap._collector import collect
from nvsnap._config import MonitorConfig
from nvsnap._gpu_backend import MockDevice
from nvsnap._loop import run
from nvsnap._render import render
from nvsnap._types import OutputMode

_NOW = datetime(2024, 5, 6, 7, 8, 9)


class _ScriptedPoller:
    """Poller that reports the quit key on the ``quit_on``-th wait."""

    def __init__(self, quit_on: int) -> None:
        self.quit_on = quit_on
        self.waits: list[float] = []
        self.entered = False
        self.exited = False

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        return len(self.waits) >= self.quit_on

    def __enter__(self) -> _ScriptedPoller:
        self.entered = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.exited = True


class _Terminal(io.StringIO):
    """In-memory stream that claims to be a terminal."""

    def isatty(self) -> bool:
        return True


@pytest.fixture
def color_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TERM", "xterm")
    for name in ("NO_COLOR", "FORCE_COLOR", "COLORTERM", "TTY_COMPATIBLE", "TTY_INTERACTIVE"):
        monkeypatch.delenv(name, raising=False)


def _ticks(device: MockDevice) -> int:
    return device.reads.count("name")


class TestSingleShot:
    def test_collects_and_renders_once(self) -> None:
        device = MockDevice()
        out = io.StringIO()
        assert run(MonitorConfig(), device, out=out) == 0
        assert out.getvalue() == render(collect(MockDevice()), OutputMode.MULTILINE, False) + "\n"
        assert _ticks(device) == 1

    def test_no_timestamp(self) -> None:
        out = io.StringIO()
        run(MonitorConfig(), MockDevice(), out=out, clock=lambda: _NOW)
        assert "2024-05-06" not in out.getvalue()

    def test_json_on_plain_stream_is_uncolored(self) -> None:
        out = io.StringIO()
        run(MonitorConfig(mode=OutputMode.JSON), MockDevice(gpu_utilization=9), out=out)
        assert json.loads(out.getvalue())["gpu_util_pct"] == 9

    def test_json_on_terminal_is_colored(self, color_env: None) -> None:
        out = _Terminal()
        run(MonitorConfig(mode=OutputMode.JSON), MockDevice(gpu_utilization=9), out=out)
        text = out.getvalue()
        assert "\x1b[" in text
        assert json.loads(re.sub(r"\x1b\[[0-9;]*m", "", text))["gpu_util_pct"] == 9

    def test_poller_unused(self) -> None:
        poller = _ScriptedPoller(quit_on=1)
        run(MonitorConfig(), MockDevice(), out=io.StringIO(), poller=poller)
        assert not poller.entered
        assert poller.waits == []


class TestRepeating:
    def test_quit_key_stops_without_another_cycle(self) -> None:
        device = MockDevice()
        poller = _ScriptedPoller(quit_on=1)
        config = MonitorConfig(loop=True, interval_s=2.5)
        assert run(config, device, out=io.StringIO(), poller=poller, clock=lambda: _NOW) == 0
        assert _ticks(device) == 1
        assert poller.waits == [2.5]

    def test_runs_until_quit(self) -> None:
        device = MockDevice()
        poller = _ScriptedPoller(quit_on=3)
        config = MonitorConfig(loop=True, interval_s=0.5)
        run(config, device, out=io.StringIO(), poller=poller, clock=lambda: _NOW)
        assert _ticks(device) == 3
        assert poller.waits == [0.5, 0.5, 0.5]

    def test_poller_entered_and_exited(self) -> None:
        poller = _ScriptedPoller(quit_on=1)
        run(MonitorConfig(loop=True), MockDevice(), out=io.StringIO(), poller=poller)
        assert poller.entered
        assert poller.exited

    def test_each_tick_has_timestamp(self) -> None:
        out = io.StringIO()
        poller = _ScriptedPoller(quit_on=2)
        run(MonitorConfig(loop=True), MockDevice(), out=out, poller=poller, clock=lambda: _NOW)
        assert out.getvalue().count("2024-05-06 07:08:09") == 2

    def test_no_screen_clear_on_non_terminal(self) -> None:
        out = io.StringIO()
        poller = _ScriptedPoller(quit_on=2)
        run(MonitorConfig(loop=True), MockDevice(), out=out, poller=poller)
        assert "\x1b[2J" not in out.getvalue()

    def test_screen_cleared_each_tick_on_terminal(self, color_env: None) -> None:
        out = _Terminal()
        poller = _ScriptedPoller(quit_on=2)
        run(MonitorConfig(loop=True), MockDevice(), out=out, poller=poller)
        assert out.getvalue().count("\x1b[2J") == 2

    def test_oneline_per_tick(self) -> None:
        out = io.StringIO()
        poller = _ScriptedPoller(quit_on=2)
        config = MonitorConfig(loop=True, mode=OutputMode.ONELINE)
        run(config, MockDevice(), out=out, poller=poller)
        assert out.getvalue().splitlines() == ["GPU 42% | Temp 65C | Fan 30%"] * 2
