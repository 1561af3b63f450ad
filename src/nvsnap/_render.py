"""Presenter: turn a snapshot into multiline, oneline, table or JSON text."""

from __future__ import annotations

import io
import json
from datetime import datetime

from rich import box
from rich.console import Console, Group, RenderableType
from rich.json import JSON
from rich.table import Table
from rich.text import Text

from nvsnap._types import OutputMode, StatsSnapshot

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LABEL = "red"
_VALUE = "cyan"
_UNIT = "yellow"
_HEADER_ROW = "bold bright_green"
_VALUE_ROW = "bright_cyan"


def _console(buf: io.StringIO, colorize: bool, width: int) -> Console:
    # With color_system=None rich drops every style, so renderables can be
    # built once with colors and still come out plain.
    return Console(
        file=buf,
        width=width,
        color_system="standard" if colorize else None,
        force_terminal=colorize,
        no_color=not colorize,
        force_jupyter=False,
        force_interactive=False,
        legacy_windows=False,
        markup=False,
        highlight=False,
        emoji=False,
    )


def _multiline(snapshot: StatsSnapshot, timestamp: datetime | None) -> Text:
    lines: list[Text] = []
    if timestamp is not None:
        lines.append(Text(timestamp.strftime(TIMESTAMP_FORMAT), style=_UNIT))
    lines.extend([
        Text.assemble(("GPU:", _LABEL), " ", (snapshot.device_name, _VALUE)),
        Text.assemble(
            ("Driver Ver:", _LABEL), " ", (snapshot.driver_version, _VALUE), " ",
            ("CUDA Ver:", _LABEL), " ", (f"{snapshot.cuda_version:g}", _VALUE),
        ),
        Text.assemble(("Fan Speed:", _LABEL), " ", (f"{snapshot.fan_speed_pct}%", _VALUE)),
        Text.assemble(
            ("GPU Temp:", _LABEL), " ", (str(snapshot.gpu_temp_c), _VALUE), ("C", _UNIT),
        ),
        Text.assemble(
            ("Power Usage:", _LABEL), " ",
            ("Used:", _VALUE), " ", (f"{snapshot.power_used_w}W", _UNIT), ", ",
            ("Max:", _VALUE), " ", (f"{snapshot.power_cap_w}W", _UNIT),
        ),
        Text.assemble(
            ("Memory Usage:", _LABEL), " ",
            ("Used:", _VALUE), " ", (f"{snapshot.mem_used_gb:.2f}GB", _UNIT), ", ",
            ("Max:", _VALUE), " ", (f"{snapshot.mem_total_gb:.2f}GB", _UNIT),
        ),
        Text.assemble(
            ("GPU Usage:", _LABEL), " ", (f"{snapshot.gpu_util_pct}%", _VALUE), " ",
            ("Encoder:", _LABEL), " ", (f"{snapshot.encoder_util_pct}%", _VALUE), " ",
            ("Decoder:", _LABEL), " ", (f"{snapshot.decoder_util_pct}%", _VALUE),
        ),
    ])
    return Text("\n").join(lines)


def _oneline(snapshot: StatsSnapshot) -> Text:
    return Text.assemble(
        ("GPU", _LABEL), " ", (f"{snapshot.gpu_util_pct}%", _VALUE), " | ",
        ("Temp", _LABEL), " ", (f"{snapshot.gpu_temp_c}C", _VALUE), " | ",
        ("Fan", _LABEL), " ", (f"{snapshot.fan_speed_pct}%", _VALUE),
    )


def _sub_table(headers: list[str], values: list[str]) -> Table:
    table = Table(box=box.ROUNDED, header_style=_HEADER_ROW)
    for header in headers:
        table.add_column(header)
    table.add_row(*values, style=_VALUE_ROW)
    return table


def _tables(snapshot: StatsSnapshot) -> Group:
    """Identity, memory, utilization, fan/temp and power, stacked vertically."""
    return Group(
        _sub_table(
            ["Device Name", "Driver Ver", "Cuda Ver"],
            [snapshot.device_name, snapshot.driver_version, f"{snapshot.cuda_version:g}"],
        ),
        _sub_table(
            ["Memory Used", "Memory Total"],
            [f"{snapshot.mem_used_gb:.2f}", f"{snapshot.mem_total_gb:.2f}"],
        ),
        _sub_table(
            ["GPU Util", "Enc Util", "Dec Util"],
            [
                str(snapshot.gpu_util_pct),
                str(snapshot.encoder_util_pct),
                str(snapshot.decoder_util_pct),
            ],
        ),
        _sub_table(
            ["Fan Speed", "GPU Temp"],
            [str(snapshot.fan_speed_pct), str(snapshot.gpu_temp_c)],
        ),
        _sub_table(
            ["PWR Used", "PWR Max"],
            [str(snapshot.power_used_w), str(snapshot.power_cap_w)],
        ),
    )


def render(
    snapshot: StatsSnapshot,
    mode: OutputMode,
    colorize: bool,
    *,
    timestamp: datetime | None = None,
    width: int = 100,
) -> str:
    """Render ``snapshot`` as text, without a trailing newline.

    ``timestamp`` adds a header line in multiline mode; the driver loop only
    passes it when repeating. Output depends on nothing but the arguments.
    """
    if mode is OutputMode.JSON and not colorize:
        return json.dumps(snapshot.to_dict(), indent=2)

    renderable: RenderableType
    if mode is OutputMode.JSON:
        renderable = JSON.from_data(snapshot.to_dict(), indent=2)
    elif mode is OutputMode.ONELINE:
        renderable = _oneline(snapshot)
    elif mode is OutputMode.TABLE:
        renderable = _tables(snapshot)
    else:
        renderable = _multiline(snapshot, timestamp)

    buf = io.StringIO()
    _console(buf, colorize, width).print(renderable, soft_wrap=True)
    return buf.getvalue().removesuffix("\n")
