"""Telemetry collector: one best-effort read per field, one snapshot per tick."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from nvsnap._errors import TelemetryReadError
from nvsnap._gpu_backend import DeviceReader, MemoryInfo
from nvsnap._types import StatsSnapshot

logger = logging.getLogger("nvsnap.collector")

T = TypeVar("T")

BYTES_PER_GB = 1024**3
_FALLBACK = StatsSnapshot()


def _best_effort(read: Callable[[], T], default: T, metric: str) -> T:
    """Return ``read()``, or ``default`` when the metric is unsupported."""
    try:
        return read()
    except TelemetryReadError as exc:
        logger.debug("%s unavailable, using %r: %s", metric, default, exc)
        return default


def collect(device: DeviceReader) -> StatsSnapshot:
    """Read every metric from ``device`` and build a snapshot.

    Never raises for a failed read; the field falls back to its default and
    no other field is affected. Nothing is retried or cached.
    """
    cuda_raw = _best_effort(device.cuda_driver_version, 0, "cuda_driver_version")
    power_used_mw = _best_effort(device.power_usage, 0, "power_usage")
    power_cap_mw = _best_effort(device.power_limit, 0, "power_limit")
    memory = _best_effort(device.memory_info, MemoryInfo(used=0, total=0), "memory_info")

    return StatsSnapshot(
        device_name=_best_effort(device.name, _FALLBACK.device_name, "name"),
        driver_version=_best_effort(
            device.driver_version, _FALLBACK.driver_version, "driver_version",
        ),
        cuda_version=cuda_raw / 1000,
        fan_speed_pct=_best_effort(device.fan_speed, _FALLBACK.fan_speed_pct, "fan_speed"),
        gpu_temp_c=_best_effort(device.temperature, _FALLBACK.gpu_temp_c, "temperature"),
        power_used_w=power_used_mw // 1000,  # mW → W
        power_cap_w=power_cap_mw // 1000,
        mem_used_gb=memory.used / BYTES_PER_GB,
        mem_total_gb=memory.total / BYTES_PER_GB,
        gpu_util_pct=_best_effort(
            device.gpu_utilization, _FALLBACK.gpu_util_pct, "gpu_utilization",
        ),
        encoder_util_pct=_best_effort(
            device.encoder_utilization, _FALLBACK.encoder_util_pct, "encoder_utilization",
        ),
        decoder_util_pct=_best_effort(
            device.decoder_utilization, _FALLBACK.decoder_util_pct, "decoder_utilization",
        ),
    )
