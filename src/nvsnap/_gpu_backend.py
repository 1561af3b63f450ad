"""Device reader protocol and shared types for telemetry collection."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from nvsnap._errors import TelemetryReadError


@dataclass(frozen=True)
class MemoryInfo:
    """Framebuffer memory in bytes."""

    used: int
    total: int


@runtime_checkable
class DeviceReader(Protocol):
    """Structural protocol for a single GPU's raw telemetry reads.

    Every getter returns the vendor's raw unit (milliwatts, bytes, the
    CUDA version as ``major * 1000 + minor * 10``) and raises
    ``TelemetryReadError`` when the metric cannot be read.
    """

    def name(self) -> str: ...

    def driver_version(self) -> str: ...

    def cuda_driver_version(self) -> int: ...

    def fan_speed(self) -> int: ...

    def temperature(self) -> int: ...

    def power_usage(self) -> int: ...

    def power_limit(self) -> int: ...

    def memory_info(self) -> MemoryInfo: ...

    def gpu_utilization(self) -> int: ...

    def encoder_utilization(self) -> int: ...

    def decoder_utilization(self) -> int: ...

    def close(self) -> None: ...


class MockDevice:
    """Test-only device that returns fixed raw reads without NVML.

    Metrics named in ``failing`` raise ``TelemetryReadError`` when read.
    """

    def __init__(
        self,
        *,
        name: str = "NVIDIA GeForce RTX 4090",
        driver_version: str = "550.54.14",
        cuda_driver_version: int = 12040,
        fan_speed: int = 30,
        temperature: int = 65,
        power_usage: int = 215_500,
        power_limit: int = 450_000,
        memory_used: int = 8 * 1024**3,
        memory_total: int = 24 * 1024**3,
        gpu_utilization: int = 42,
        encoder_utilization: int = 0,
        decoder_utilization: int = 0,
        failing: Iterable[str] = (),
    ) -> None:
        self._values: dict[str, object] = {
            "name": name,
            "driver_version": driver_version,
            "cuda_driver_version": cuda_driver_version,
            "fan_speed": fan_speed,
            "temperature": temperature,
            "power_usage": power_usage,
            "power_limit": power_limit,
            "memory_info": MemoryInfo(used=memory_used, total=memory_total),
            "gpu_utilization": gpu_utilization,
            "encoder_utilization": encoder_utilization,
            "decoder_utilization": decoder_utilization,
        }
        self.failing = frozenset(failing)
        self.reads: list[str] = []
        self.closed = False

    def _read(self, metric: str) -> object:
        self.reads.append(metric)
        if metric in self.failing:
            raise TelemetryReadError(metric, "Not Supported")
        return self._values[metric]

    def name(self) -> str:
        return self._read("name")  # type: ignore[return-value]

    def driver_version(self) -> str:
        return self._read("driver_version")  # type: ignore[return-value]

    def cuda_driver_version(self) -> int:
        return self._read("cuda_driver_version")  # type: ignore[return-value]

    def fan_speed(self) -> int:
        return self._read("fan_speed")  # type: ignore[return-value]

    def temperature(self) -> int:
        return self._read("temperature")  # type: ignore[return-value]

    def power_usage(self) -> int:
        return self._read("power_usage")  # type: ignore[return-value]

    def power_limit(self) -> int:
        return self._read("power_limit")  # type: ignore[return-value]

    def memory_info(self) -> MemoryInfo:
        return self._read("memory_info")  # type: ignore[return-value]

    def gpu_utilization(self) -> int:
        return self._read("gpu_utilization")  # type: ignore[return-value]

    def encoder_utilization(self) -> int:
        return self._read("encoder_utilization")  # type: ignore[return-value]

    def decoder_utilization(self) -> int:
        return self._read("decoder_utilization")  # type: ignore[return-value]

    def close(self) -> None:
        self.closed = True
