from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_OUTPUT_DIR = Path("output")
OUTPUT_DIR_ENV = "DEMOREC_OUTPUT_DIR"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Tunables for one pass over a match event stream.

    `tick_rate` is the nominal simulation rate; a `match_start` event carrying a
    positive tick rate overrides it for the session.
    """

    tick_rate: float = 128.0
    buy_time_extension_seconds: float = 10.0
    keyframe_interval_seconds: float = 2.0
    target_fps: float = 128.0
    min_acceptable_fps: float = 90.0
    max_normal_fps: float = 120.0
    frame_rate_samples: int = 500
    max_sample_tick_delta: int = 10
    predicted_speed: float = 450.0
    sector_tolerance_degrees: float = 30.0
    output_dir: Path = DEFAULT_OUTPUT_DIR

    def with_tick_rate(self, tick_rate: float) -> SessionConfig:
        return replace(self, tick_rate=float(tick_rate))

    def buy_time_extension_ticks(self, tick_rate: float | None = None) -> int:
        rate = self.tick_rate if tick_rate is None else float(tick_rate)
        return int(rate * float(self.buy_time_extension_seconds))

    def keyframe_interval_frames(self, tick_rate: float | None = None) -> int:
        rate = self.tick_rate if tick_rate is None else float(tick_rate)
        return max(1, int(round(rate * float(self.keyframe_interval_seconds))))


def resolve_output_dir(default: Path = DEFAULT_OUTPUT_DIR) -> Path:
    raw = os.environ.get(OUTPUT_DIR_ENV)
    if raw is None or not raw.strip():
        return Path(default)
    return Path(raw.strip())
