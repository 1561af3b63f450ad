"""NVIDIA pynvml device reader."""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

from nvsnap._errors import DeviceNotFoundError, NvmlUnavailableError, TelemetryReadError
from nvsnap._gpu_backend import MemoryInfo

logger = logging.getLogger("nvsnap.gpu.nvml")

# pynvml is imported lazily so that a missing install is reported as a
# fatal init error instead of an ImportError traceback.
try:
    import pynvml

    _HAS_PYNVML = True
except ImportError:
    pynvml = None  # type: ignore[assignment,unused-ignore]
    _HAS_PYNVML = False

T = TypeVar("T")


def _decode(value: str | bytes) -> str:
    # Older pynvml releases return bytes for string queries.
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class NvmlDevice:
    """Single NVIDIA GPU read through NVML.

    Every getter translates ``pynvml.NVMLError`` into ``TelemetryReadError``
    so callers never depend on pynvml's exception hierarchy.
    """

    def __init__(self, handle: Any, *, index: int = 0) -> None:
        self._handle = handle
        self.index = index
        self._closed = False

    def _call(self, metric: str, func: Callable[..., T], *args: Any) -> T:
        assert pynvml is not None
        try:
            return func(*args)
        except pynvml.NVMLError as exc:
            raise TelemetryReadError(metric, str(exc)) from exc

    def name(self) -> str:
        assert pynvml is not None
        return _decode(self._call("name", pynvml.nvmlDeviceGetName, self._handle))

    def driver_version(self) -> str:
        assert pynvml is not None
        return _decode(self._call("driver_version", pynvml.nvmlSystemGetDriverVersion))

    def cuda_driver_version(self) -> int:
        assert pynvml is not None
        return int(self._call("cuda_driver_version", pynvml.nvmlSystemGetCudaDriverVersion))

    def fan_speed(self) -> int:
        assert pynvml is not None
        return int(self._call("fan_speed", pynvml.nvmlDeviceGetFanSpeed, self._handle))

    def temperature(self) -> int:
        assert pynvml is not None
        return int(self._call(
            "temperature",
            pynvml.nvmlDeviceGetTemperature,
            self._handle,
            pynvml.NVML_TEMPERATURE_GPU,
        ))

    def power_usage(self) -> int:
        assert pynvml is not None
        return int(self._call("power_usage", pynvml.nvmlDeviceGetPowerUsage, self._handle))

    def power_limit(self) -> int:
        assert pynvml is not None
        return int(self._call(
            "power_limit", pynvml.nvmlDeviceGetPowerManagementDefaultLimit, self._handle,
        ))

    def memory_info(self) -> MemoryInfo:
        assert pynvml is not None
        mem = self._call("memory_info", pynvml.nvmlDeviceGetMemoryInfo, self._handle)
        return MemoryInfo(used=int(mem.used), total=int(mem.total))

    def gpu_utilization(self) -> int:
        assert pynvml is not None
        util = self._call("gpu_utilization", pynvml.nvmlDeviceGetUtilizationRates, self._handle)
        return int(util.gpu)

    def encoder_utilization(self) -> int:
        assert pynvml is not None
        # Returns [utilization, sampling_period_us].
        util, _ = self._call(
            "encoder_utilization", pynvml.nvmlDeviceGetEncoderUtilization, self._handle,
        )
        return int(util)

    def decoder_utilization(self) -> int:
        assert pynvml is not None
        util, _ = self._call(
            "decoder_utilization", pynvml.nvmlDeviceGetDecoderUtilization, self._handle,
        )
        return int(util)

    def close(self) -> None:
        """Shut NVML down. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        _shutdown()

    def __enter__(self) -> NvmlDevice:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


def _shutdown() -> None:
    assert pynvml is not None
    try:
        pynvml.nvmlShutdown()
    except pynvml.NVMLError:
        logger.debug("nvmlShutdown failed", exc_info=True)


def open_device(index: int = 0) -> NvmlDevice:
    """Initialise NVML and return the device at ``index``.

    This is the only fatal path: raises ``NvmlUnavailableError`` when pynvml
    is missing or NVML fails to initialise, ``DeviceNotFoundError`` when no
    device exists at ``index``.
    """
    if not _HAS_PYNVML:
        raise NvmlUnavailableError("pynvml is not installed (pip install nvidia-ml-py)")
    assert pynvml is not None
    try:
        pynvml.nvmlInit()
    except pynvml.NVMLError as exc:
        raise NvmlUnavailableError(f"NVML initialisation failed: {exc}") from exc

    try:
        handle = pynvml.nvmlDeviceGetHandleByIndex(index)
    except pynvml.NVMLError as exc:
        _shutdown()
        raise DeviceNotFoundError(index, str(exc)) from exc

    logger.debug("opened NVML device %d", index)
    return NvmlDevice(handle, index=index)
