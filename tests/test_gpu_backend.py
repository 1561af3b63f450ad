"""Tests for the device reader protocol and the mock device."""

from __future__ import annotations

import pytest

from nvsnap._errors import TelemetryReadError
from nvsnap._gpu_backend import DeviceReader, MemoryInfo, MockDevice


class TestDeviceReaderProtocol:
    def test_mock_device_satisfies_protocol(self) -> None:
        assert isinstance(MockDevice(), DeviceReader)

    def test_protocol_requires_all_getters(self) -> None:
        class _NameOnly:
            def name(self) -> str:
                return "x"

            def close(self) -> None:
                pass

        assert not isinstance(_NameOnly(), DeviceReader)


class TestMockDevice:
    def test_returns_configured_values(self) -> None:
        device = MockDevice(name="Tesla T4", temperature=51, memory_used=10, memory_total=20)
        assert device.name() == "Tesla T4"
        assert device.temperature() == 51
        assert device.memory_info() == MemoryInfo(used=10, total=20)

    def test_failing_metric_raises(self) -> None:
        device = MockDevice(failing={"fan_speed"})
        with pytest.raises(TelemetryReadError) as excinfo:
            device.fan_speed()
        assert excinfo.value.metric == "fan_speed"

    def test_failing_metric_leaves_others_readable(self) -> None:
        device = MockDevice(failing={"fan_speed"}, temperature=70)
        assert device.temperature() == 70

    def test_reads_are_recorded(self) -> None:
        device = MockDevice()
        device.name()
        device.power_usage()
        assert device.reads == ["name", "power_usage"]

    def test_close(self) -> None:
        device = MockDevice()
        device.close()
        assert device.closed
