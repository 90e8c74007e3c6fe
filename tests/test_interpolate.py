from __future__ import annotations

import math

from demorec.geom import Angles, Vec3
from demorec.rec.interpolate import FrameRateDetector, upsample_factor, upsample_frames
from demorec.rec.types import FIELDS_ALL, FIELDS_ORIGIN, FIELDS_VELOCITY, Frame


def _frame(x: float, *, yaw: float = 0.0, fields: int = 0, buttons: int = 0, weapon: int = 0) -> Frame:
    return Frame(
        buttons=buttons,
        actual_velocity=Vec3(x * 10.0, 0.0, 0.0),
        predicted_angles=Angles(0.0, yaw),
        origin=Vec3(x, 0.0, 0.0),
        weapon=weapon,
        fields=fields,
        at_origin=Vec3(x, 0.0, 0.0),
        at_velocity=Vec3(x * 10.0, 0.0, 0.0),
    )


def test_detector_flags_low_frame_rate() -> None:
    detector = FrameRateDetector(128.0, max_samples=10)
    tick = 100
    report = None
    for _ in range(11):
        report = detector.observe(tick)
        tick += 2
    assert report is not None
    assert detector.complete
    assert report.frame_rate == 64.0
    assert report.cadence == "low"
    assert report.interpolate
    assert report.factor == 2
    assert math.isclose(report.ratio, 2.0)
    # Further ticks are ignored once detection finished.
    assert detector.observe(tick + 1) is None


def test_detector_ignores_pauses_and_seeds_on_first_tick() -> None:
    detector = FrameRateDetector(128.0, max_samples=3)
    assert detector.observe(1000) is None
    assert detector.sample_count == 0
    detector.observe(1050)
    detector.observe(1050)
    assert detector.sample_count == 0
    detector.observe(1051)
    detector.observe(1052)
    report = detector.observe(1053)
    assert report is not None
    assert report.frame_rate == 128.0
    assert report.cadence == "high"
    assert not report.interpolate


def test_detector_normal_band_and_partial_report() -> None:
    detector = FrameRateDetector(128.0, max_samples=100)
    for tick in (0, 1, 2, 4, 5, 6):
        detector.observe(tick)
    partial = detector.partial_report()
    assert partial is not None
    assert not partial.complete
    assert not partial.interpolate
    assert math.isclose(partial.frame_rate, 128.0 / 1.2)
    assert partial.cadence == "normal"
    assert FrameRateDetector(128.0).partial_report() is None


def test_upsample_factor() -> None:
    assert upsample_factor(64.0, 128.0) == 2
    assert upsample_factor(32.0, 128.0) == 4
    assert upsample_factor(50.0, 128.0) == 2
    assert upsample_factor(100.0, 128.0) == 1
    assert upsample_factor(0.0, 128.0) == 1


def test_upsample_length_is_rate_preserving() -> None:
    frames = [_frame(float(i)) for i in range(7)]
    for factor in (2, 3, 4):
        assert len(upsample_frames(frames, factor)) == (len(frames) - 1) * factor + 1
    assert upsample_frames(frames, 1) == frames
    assert upsample_frames(frames[:1], 4) == frames[:1]


def test_upsample_keeps_captured_frames_and_interpolates_between() -> None:
    frames = [_frame(0.0, buttons=1, weapon=27), _frame(2.0, buttons=2), _frame(4.0), _frame(6.0)]
    out = upsample_frames(frames, 2)
    assert out[0] is frames[0]
    assert out[2] is frames[1]
    first = out[1]
    # The clamped first segment bends toward its start point.
    assert math.isclose(first.origin.x, 0.875)
    assert math.isclose(first.actual_velocity.x, 10.0)
    assert first.buttons == 1
    assert first.weapon == 0
    interior = out[3]
    assert math.isclose(interior.origin.x, 3.0)
    assert interior.buttons == 2


def test_upsample_extended_origin_ignores_neighbours_without_the_bit() -> None:
    def keyframe() -> Frame:
        return Frame(origin=Vec3(1000.0, 0.0, 0.0), fields=FIELDS_ORIGIN, at_origin=Vec3(1000.0, 0.0, 0.0))

    plain = Frame(origin=Vec3(1000.0, 0.0, 0.0))
    out = upsample_frames([keyframe(), keyframe(), plain], 2)
    assert out[1].fields == FIELDS_ORIGIN
    assert math.isclose(out[1].at_origin.x, 1000.0)

    out = upsample_frames([Frame(origin=Vec3(1000.0, 0.0, 0.0)), keyframe(), keyframe()], 2)
    assert out[3].fields == FIELDS_ORIGIN
    assert math.isclose(out[3].at_origin.x, 1000.0)


def test_upsample_angles_take_short_way() -> None:
    out = upsample_frames([_frame(0.0, yaw=170.0), _frame(1.0, yaw=-170.0)], 2)
    assert abs(out[1].predicted_angles.yaw) == 180.0


def test_upsample_extended_fields_need_both_neighbours() -> None:
    frames = [_frame(0.0, fields=FIELDS_ALL), _frame(1.0, fields=FIELDS_ORIGIN | FIELDS_VELOCITY), _frame(2.0)]
    out = upsample_frames(frames, 2)
    assert out[1].fields == FIELDS_ORIGIN | FIELDS_VELOCITY
    assert math.isclose(out[1].at_velocity.x, 5.0)
    assert out[3].fields == 0
