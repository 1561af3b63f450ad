"""Driver loop: single-shot or repeat-until-quit."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime
from typing import TextIO

from rich.console import Console

from nvsnap._collector import collect
from nvsnap._config import MonitorConfig
from nvsnap._gpu_backend import DeviceReader
from nvsnap._keys import Poller, make_poller
from nvsnap._render import render
from nvsnap._types import OutputMode

logger = logging.getLogger("nvsnap.loop")


def _colorize(config: MonitorConfig, console: Console) -> bool:
    # JSON highlights itself on color-capable terminals even without -c.
    if config.mode is OutputMode.JSON and console.is_terminal and console.color_system:
        return True
    return config.colorize


def run(
    config: MonitorConfig,
    device: DeviceReader,
    *,
    out: TextIO | None = None,
    poller: Poller | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> int:
    """Collect and print once, or every ``config.interval_s`` until quit.

    Returns the process exit code.
    """
    out = out if out is not None else sys.stdout
    console = Console(file=out)
    colorize = _colorize(config, console)

    if not config.loop:
        out.write(render(collect(device), config.mode, colorize) + "\n")
        out.flush()
        return 0

    if poller is None:
        poller = make_poller(quit_keys=config.quit_keys)

    ticks = 0
    with poller:
        while True:
            console.clear()  # no-op unless out is a terminal
            snapshot = collect(device)
            out.write(render(snapshot, config.mode, colorize, timestamp=clock()) + "\n")
            out.flush()
            ticks += 1
            if poller.wait(config.interval_s):
                logger.debug("quit after %d ticks", ticks)
                return 0
