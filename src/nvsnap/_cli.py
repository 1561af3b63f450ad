"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from nvsnap import __version__
from nvsnap._config import MonitorConfig
from nvsnap._errors import NvsnapError
from nvsnap._gpu_nvml import open_device
from nvsnap._loop import run
from nvsnap._types import OutputMode

logger = logging.getLogger("nvsnap.cli")


def _positive_float(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return seconds


def _discard_stdout() -> None:
    # Point stdout at devnull so the interpreter's final flush does not
    # raise a second BrokenPipeError.
    try:
        fd = sys.stdout.fileno()
    except (OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nvsnap",
        description="Live NVIDIA GPU telemetry as text, a table or JSON.",
    )
    parser.add_argument("-l", "--loop", action="store_true", help="Refresh until the quit key is pressed")
    parser.add_argument(
        "-f", "--freq", type=_positive_float, default=1.0, metavar="SECONDS",
        help="Seconds between refreshes in loop mode (default: 1)",
    )
    parser.add_argument("-c", "--colorize", action="store_true", help="Color the output")
    parser.add_argument(
        "-q", "--quit-key", default="q", metavar="KEY",
        help="Key that ends loop mode (default: q)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument(
        "-m", "--multiline", dest="mode", action="store_const", const=OutputMode.MULTILINE,
        help="One labeled line per metric group (default)",
    )
    modes.add_argument(
        "-o", "--oneline", dest="mode", action="store_const", const=OutputMode.ONELINE,
        help="Utilization, temperature and fan on a single line",
    )
    modes.add_argument(
        "-t", "--tabular", dest="mode", action="store_const", const=OutputMode.TABLE,
        help="Stacked tables",
    )
    modes.add_argument(
        "-j", "--json", dest="mode", action="store_const", const=OutputMode.JSON,
        help="JSON document",
    )
    parser.set_defaults(mode=OutputMode.MULTILINE)
    return parser


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    quit_keys = args.quit_key
    if quit_keys.isalpha():
        quit_keys = quit_keys.lower() + quit_keys.upper()
    return MonitorConfig(
        loop=args.loop,
        interval_s=args.freq,
        mode=args.mode,
        colorize=args.colorize,
        quit_keys=quit_keys,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        device = open_device(config.device_index)
    except NvsnapError as exc:
        print(f"nvsnap: {exc}", file=sys.stderr)
        return 1

    try:
        return run(config, device)
    except KeyboardInterrupt:
        logger.debug("interrupted")
        return 0
    except BrokenPipeError:
        logger.debug("stdout closed by reader")
        _discard_stdout()
        return 0
    finally:
        device.close()


if __name__ == "__main__":
    sys.exit(main())
