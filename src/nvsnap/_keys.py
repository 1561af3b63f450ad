"""Non-blocking quit-key polling for the repeat loop."""

from __future__ import annotations

import logging
import os
import select
import sys
import time
from types import TracebackType
from typing import Protocol, TextIO

logger = logging.getLogger("nvsnap.keys")

# termios is POSIX-only; without it the loop falls back to plain sleeping.
try:
    import termios

    _HAS_TERMIOS = True
except ImportError:
    termios = None  # type: ignore[assignment,unused-ignore]
    _HAS_TERMIOS = False


def _keypresses(text: str) -> list[str]:
    """Plain characters in ``text`` with escape sequences removed.

    CSI (``ESC [ ... final``) and SS3 (``ESC O x``) sequences cover arrows and
    function keys; any other ``ESC x`` pair is an Alt-modified key.
    """
    keys: list[str] = []
    i, n = 0, len(text)
    while i < n:
        char = text[i]
        if char != "\x1b":
            keys.append(char)
            i += 1
            continue
        if i + 1 < n and text[i + 1] == "[":
            i += 2
            while i < n and not "\x40" <= text[i] <= "\x7e":
                i += 1
            i += 1
        else:
            i += 3 if i + 1 < n and text[i + 1] == "O" else 2
    return keys


class Poller(Protocol):
    """Waits between ticks and reports whether the user asked to quit."""

    def wait(self, seconds: float) -> bool: ...

    def __enter__(self) -> Poller: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...


class SleepPoller:
    """Poller for streams without keypress support: sleeps, never quits."""

    def wait(self, seconds: float) -> bool:
        time.sleep(seconds)
        return False

    def __enter__(self) -> SleepPoller:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None


class QuitKeyPoller:
    """Watches a TTY for a quit key while the loop sleeps.

    On enter the terminal is switched to non-canonical, no-echo input so
    single keypresses are readable without Enter; on exit the previous
    attributes are restored. Ctrl-C still raises ``KeyboardInterrupt``.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        quit_keys: str = "qQ",
        slice_s: float = 0.05,
    ) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._fd = self._stream.fileno()
        self._quit_keys = quit_keys
        self._slice_s = slice_s
        self._saved_attrs: list | None = None
        self._hung_up = False

    def __enter__(self) -> QuitKeyPoller:
        assert termios is not None
        self._saved_attrs = termios.tcgetattr(self._fd)
        attrs = termios.tcgetattr(self._fd)
        attrs[3] &= ~(termios.ICANON | termios.ECHO)
        attrs[6][termios.VMIN] = 0
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self._fd, termios.TCSANOW, attrs)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._saved_attrs is None:
            return
        assert termios is not None
        termios.tcsetattr(self._fd, termios.TCSANOW, self._saved_attrs)
        self._saved_attrs = None

    def poll(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for input; True if a quit key arrived."""
        ready, _, _ = select.select([self._fd], [], [], max(timeout, 0.0))
        if not ready:
            return False
        data = os.read(self._fd, 64)
        if not data:
            # Readable but empty: the terminal hung up.
            logger.debug("input closed; quit key disabled")
            self._hung_up = True
            return False
        text = data.decode("utf-8", errors="ignore")
        return any(key in self._quit_keys for key in _keypresses(text))

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds``, returning early with True on a quit key."""
        deadline = time.monotonic() + seconds
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            if self._hung_up:
                time.sleep(remaining)
                return False
            if self.poll(min(self._slice_s, remaining)):
                logger.debug("quit key received")
                return True


def make_poller(stream: TextIO | None = None, *, quit_keys: str = "qQ") -> Poller:
    """Pick a ``QuitKeyPoller`` for interactive terminals, else ``SleepPoller``."""
    stream = stream if stream is not None else sys.stdin
    if _HAS_TERMIOS and stream.isatty():
        return QuitKeyPoller(stream, quit_keys=quit_keys)
    logger.debug("stdin is not a terminal; quit key disabled")
    return SleepPoller()
