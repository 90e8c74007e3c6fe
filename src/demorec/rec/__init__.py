from __future__ import annotations

from .codec import RecCodecError, dump_rec, dumps, load_rec, loads
from .interpolate import FrameRateDetector, FrameRateReport, upsample_factor, upsample_frames
from .synth import FrameSynthesizer, ParticipantCapture, is_keyframe_index, predict_input_velocity
from .types import (
    FIELDS_ALL,
    FIELDS_ANGLES,
    FIELDS_ORIGIN,
    FIELDS_VELOCITY,
    REC_MAGIC,
    REC_VERSION,
    Frame,
    Recording,
    RecordingHeader,
)

__all__ = [
    "FIELDS_ALL",
    "FIELDS_ANGLES",
    "FIELDS_ORIGIN",
    "FIELDS_VELOCITY",
    "REC_MAGIC",
    "REC_VERSION",
    "Frame",
    "FrameRateDetector",
    "FrameRateReport",
    "FrameSynthesizer",
    "ParticipantCapture",
    "RecCodecError",
    "Recording",
    "RecordingHeader",
    "dump_rec",
    "dumps",
    "is_keyframe_index",
    "load_rec",
    "loads",
    "predict_input_velocity",
    "upsample_factor",
    "upsample_frames",
]
