from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "rejudge"
RUNTIME_DIR_ENV = "REJUDGE_RUNTIME_DIR"


def default_runtime_dir() -> Path:
    override = os.environ.get(RUNTIME_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path(PlatformDirs(appname=APP_NAME, appauthor=False).user_data_dir)


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    # Clock.
    step_ms: float = 1.0
    lead_in_ms: float = 2000.0
    tail_margin_ms: float = 1000.0

    # Hold tracking.
    follow_radius_multiplier: float = 2.4
    follow_radius_tolerance: float = 2.0
    tail_grace_ms: float = 25.0

    # MEH on circles and hold heads is recorded as GREAT.
    head_leniency: bool = True

    def __post_init__(self) -> None:
        if not (float(self.step_ms) > 0.0):
            raise ValueError(f"step_ms must be positive, got {self.step_ms}")
        if float(self.lead_in_ms) < 0.0:
            raise ValueError(f"lead_in_ms must be non-negative, got {self.lead_in_ms}")
        if float(self.tail_margin_ms) < 0.0:
            raise ValueError(f"tail_margin_ms must be non-negative, got {self.tail_margin_ms}")
        if float(self.tail_grace_ms) < 0.0:
            raise ValueError(f"tail_grace_ms must be non-negative, got {self.tail_grace_ms}")


DEFAULT_SIMULATION_CONFIG = SimulationConfig()


__all__ = [
    "APP_NAME",
    "DEFAULT_SIMULATION_CONFIG",
    "RUNTIME_DIR_ENV",
    "SimulationConfig",
    "default_runtime_dir",
]
