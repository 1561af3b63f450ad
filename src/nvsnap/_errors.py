"""Exception taxonomy.

Two tiers only: init-time failures are fatal and end the process, per-metric
read failures are absorbed by the collector and replaced with a fallback.
"""

from __future__ import annotations


class NvsnapError(Exception):
    """Base exception for all nvsnap errors."""


class NvmlUnavailableError(NvsnapError):
    """NVML could not be loaded or initialised."""


class DeviceNotFoundError(NvsnapError):
    """No GPU exists at the requested index."""

    def __init__(self, index: int, reason: str = "") -> None:
        self.index = index
        message = f"no GPU at index {index}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TelemetryReadError(NvsnapError):
    """A single metric could not be read from the device."""

    def __init__(self, metric: str, reason: str = "") -> None:
        self.metric = metric
        self.reason = reason
        super().__init__(f"{metric}: {reason}" if reason else metric)
