from __future__ import annotations

"""Capture cadence detection and temporal upsampling of recorded frames."""

from dataclasses import dataclass
import logging

from ..equipment import WEAPON_NONE
from ..geom import Vec3
from ..log import log_event
from .types import FIELDS_ANGLES, FIELDS_ORIGIN, FIELDS_VELOCITY, Frame

logger = logging.getLogger(__name__)

CADENCE_LOW = "low"
CADENCE_NORMAL = "normal"
CADENCE_HIGH = "high"


@dataclass(frozen=True, slots=True)
class FrameRateReport:
    tick_rate: float
    frame_rate: float
    mean_tick_delta: float
    sample_count: int
    target_fps: float
    interpolate: bool
    cadence: str
    complete: bool = True

    @property
    def ratio(self) -> float:
        if self.frame_rate <= 0.0:
            return 1.0
        return self.target_fps / self.frame_rate

    @property
    def factor(self) -> int:
        if not self.interpolate:
            return 1
        return upsample_factor(self.frame_rate, self.target_fps)


def upsample_factor(frame_rate: float, target_fps: float) -> int:
    if frame_rate <= 0.0:
        return 1
    return max(1, int(float(target_fps) / float(frame_rate)))


class FrameRateDetector:
    """Samples tick gaps between consecutive captured ticks until enough are seen.

    The first observed tick only seeds the gap; gaps outside (0, max_delta) are
    pauses or seeks and are ignored.
    """

    def __init__(
        self,
        tick_rate: float,
        *,
        max_samples: int = 500,
        max_tick_delta: int = 10,
        min_acceptable_fps: float = 90.0,
        max_normal_fps: float = 120.0,
        target_fps: float = 128.0,
    ) -> None:
        self.tick_rate = float(tick_rate)
        self.max_samples = max(1, int(max_samples))
        self.max_tick_delta = int(max_tick_delta)
        self.min_acceptable_fps = float(min_acceptable_fps)
        self.max_normal_fps = float(max_normal_fps)
        self.target_fps = float(target_fps)
        self._samples: list[int] = []
        self._last_tick: int | None = None
        self._report: FrameRateReport | None = None

    @property
    def report(self) -> FrameRateReport | None:
        return self._report

    @property
    def complete(self) -> bool:
        return self._report is not None

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def interpolate(self) -> bool:
        return self._report is not None and self._report.interpolate

    def observe(self, tick: int) -> FrameRateReport | None:
        """Feed one captured tick; returns the report on the call that completes detection."""
        if self._report is not None:
            return None
        tick = int(tick)
        if self._last_tick is not None:
            delta = tick - self._last_tick
            if 0 < delta < self.max_tick_delta:
                self._samples.append(delta)
        self._last_tick = tick
        if len(self._samples) < self.max_samples:
            return None
        self._report = self._build_report(complete=True)
        log_event(
            logger,
            logging.INFO,
            "frame_rate_detected",
            tick_rate=report_value(self._report.tick_rate),
            frame_rate=report_value(self._report.frame_rate),
            mean_tick_delta=report_value(self._report.mean_tick_delta),
            cadence=self._report.cadence,
            interpolate=self._report.interpolate,
        )
        return self._report

    def partial_report(self) -> FrameRateReport | None:
        """Best-effort report from the samples seen so far, for streams too short to finish detection."""
        if self._report is not None:
            return self._report
        if not self._samples:
            return None
        return self._build_report(complete=False)

    def _build_report(self, *, complete: bool) -> FrameRateReport:
        mean = float(sum(self._samples)) / float(len(self._samples))
        frame_rate = self.tick_rate / mean
        if frame_rate < self.min_acceptable_fps:
            cadence = CADENCE_LOW
        elif frame_rate > self.max_normal_fps:
            cadence = CADENCE_HIGH
        else:
            cadence = CADENCE_NORMAL
        return FrameRateReport(
            tick_rate=self.tick_rate,
            frame_rate=frame_rate,
            mean_tick_delta=mean,
            sample_count=len(self._samples),
            target_fps=self.target_fps,
            # Only a finished detection may trigger upsampling.
            interpolate=complete and cadence == CADENCE_LOW,
            cadence=cadence,
            complete=complete,
        )


def report_value(value: float) -> float:
    return round(float(value), 4)


def _mid_frame(prev: Frame, current: Frame, following: Frame, after: Frame, t: float) -> Frame:
    mid = Frame(
        buttons=current.buttons,
        impulse=current.impulse,
        actual_velocity=current.actual_velocity.lerp(following.actual_velocity, t),
        predicted_velocity=current.predicted_velocity.lerp(following.predicted_velocity, t),
        predicted_angles=current.predicted_angles.lerp(following.predicted_angles, t),
        origin=Vec3.catmull_rom(prev.origin, current.origin, following.origin, after.origin, t),
        weapon=WEAPON_NONE,
        subtype=current.subtype,
        seed=current.seed,
    )
    if current.has(FIELDS_ORIGIN) and following.has(FIELDS_ORIGIN):
        mid.fields |= FIELDS_ORIGIN
        # Outer control points without the bit fall back to the inner pair.
        p0 = prev.at_origin if prev.has(FIELDS_ORIGIN) else current.at_origin
        p3 = after.at_origin if after.has(FIELDS_ORIGIN) else following.at_origin
        mid.at_origin = Vec3.catmull_rom(p0, current.at_origin, following.at_origin, p3, t)
    if current.has(FIELDS_ANGLES) and following.has(FIELDS_ANGLES):
        mid.fields |= FIELDS_ANGLES
        mid.at_angles = current.at_angles.lerp_angles(following.at_angles, t)
    if current.has(FIELDS_VELOCITY) and following.has(FIELDS_VELOCITY):
        mid.fields |= FIELDS_VELOCITY
        mid.at_velocity = current.at_velocity.lerp(following.at_velocity, t)
    return mid


def upsample_frames(frames: list[Frame], factor: int) -> list[Frame]:
    """Insert `factor - 1` synthetic frames between each captured pair.

    Captured frames are kept as-is; the result has `(len(frames) - 1) * factor + 1`
    frames. Spline neighbours are clamped at both ends of the sequence.
    """
    factor = int(factor)
    if factor <= 1 or len(frames) <= 1:
        return list(frames)

    out: list[Frame] = []
    last = len(frames) - 1
    for idx in range(last):
        current = frames[idx]
        following = frames[idx + 1]
        prev = frames[idx - 1] if idx > 0 else current
        after = frames[idx + 2] if idx + 2 <= last else following
        out.append(current)
        for step in range(1, factor):
            out.append(_mid_frame(prev, current, following, after, float(step) / float(factor)))
    out.append(frames[last])
    return out
