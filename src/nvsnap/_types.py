"""Core types: output modes and the telemetry snapshot."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass


class OutputMode(enum.Enum):
    """How a snapshot is presented."""

    MULTILINE = "multiline"
    ONELINE = "oneline"
    TABLE = "table"
    JSON = "json"


@dataclass(frozen=True)
class StatsSnapshot:
    """Immutable capture of one device's telemetry for a single tick.

    Field defaults double as the fallback for a failed read, so
    ``StatsSnapshot()`` is the fully-defaulted snapshot.
    """

    device_name: str = "unknown"
    driver_version: str = "N/A"
    cuda_version: float = 0.0
    fan_speed_pct: int = 0
    gpu_temp_c: int = 0
    power_used_w: int = 0
    power_cap_w: int = 0
    mem_used_gb: float = 0.0
    mem_total_gb: float = 0.0
    gpu_util_pct: int = 0
    encoder_util_pct: int = 0
    decoder_util_pct: int = 0

    def to_dict(self) -> dict[str, str | int | float]:
        """Flat field-name to value mapping, as emitted by JSON output."""
        return asdict(self)
