"""Monitor configuration."""

from __future__ import annotations

from dataclasses import dataclass

from nvsnap._types import OutputMode


@dataclass(frozen=True)
class MonitorConfig:
    """Immutable run configuration, built once from the command line."""

    loop: bool = False
    interval_s: float = 1.0
    mode: OutputMode = OutputMode.MULTILINE
    colorize: bool = False
    device_index: int = 0
    quit_keys: str = "qQ"

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {self.interval_s}")
        if not self.quit_keys:
            raise ValueError("quit_keys must name at least one key")
