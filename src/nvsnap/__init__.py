"""nvsnap: live NVIDIA GPU telemetry snapshots for the terminal."""

from __future__ import annotations

from nvsnap._collector import collect
from nvsnap._config import MonitorConfig
from nvsnap._errors import (
    DeviceNotFoundError,
    NvmlUnavailableError,
    NvsnapError,
    TelemetryReadError,
)
from nvsnap._gpu_backend import DeviceReader, MemoryInfo
from nvsnap._gpu_nvml import NvmlDevice, open_device
from nvsnap._loop import run
from nvsnap._render import render
from nvsnap._types import OutputMode, StatsSnapshot

__version__ = "0.1.0"

__all__ = [
    "DeviceNotFoundError",
    "DeviceReader",
    "MemoryInfo",
    "MonitorConfig",
    "NvmlDevice",
    "NvmlUnavailableError",
    "NvsnapError",
    "OutputMode",
    "StatsSnapshot",
    "TelemetryReadError",
    "__version__",
    "collect",
    "open_device",
    "render",
    "run",
]
