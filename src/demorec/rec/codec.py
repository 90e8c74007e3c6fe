from __future__ import annotations

"""Binary `.rec` layout (little-endian).

    int32  magic (0xDEADBEEF)
    uint8  version
    int32  timestamp (unix seconds)
    uint8  name length, then UTF-8 name bytes
    f32x3  initial position
    f32x2  initial angles (pitch, yaw)
    int32  tick count
    int32  bookmark count (always 0)
    frames[tick count]

Each frame is a fixed block followed by the extended vectors whose bits are set
in `additional_fields`, in origin, angles, velocity order.
"""

import io
from pathlib import Path
from typing import Any

from construct import Array, Const, ConstError, ConstructError, Float32l, If, Int8ul, Int32sl
from construct import PascalString, StreamError, Struct, Terminated, TerminatedError

from ..geom import Angles, Vec3
from ..storage import atomic_write_bytes
from .types import FIELDS_ANGLES, FIELDS_ORIGIN, FIELDS_VELOCITY, REC_MAGIC, REC_VERSION, Frame, Recording, RecordingHeader


class RecCodecError(ValueError):
    pass


_VEC3 = Array(3, Float32l)
_VEC2 = Array(2, Float32l)

_PREAMBLE = Struct(
    "magic" / Const(REC_MAGIC, Int32sl),
    "version" / Int8ul,
)

_HEADER_V2 = Struct(
    "timestamp" / Int32sl,
    "name" / PascalString(Int8ul, "utf8"),
    "position" / _VEC3,
    "angles" / _VEC2,
    "tick_count" / Int32sl,
    "bookmark_count" / Int32sl,
)

_FRAME_V2 = Struct(
    "buttons" / Int32sl,
    "impulse" / Int32sl,
    "actual_velocity" / _VEC3,
    "predicted_velocity" / _VEC3,
    "predicted_angles" / _VEC2,
    "origin" / _VEC3,
    "weapon" / Int32sl,
    "subtype" / Int32sl,
    "seed" / Int32sl,
    "additional_fields" / Int32sl,
    "at_origin" / If(lambda ctx: ctx.additional_fields & FIELDS_ORIGIN, _VEC3),
    "at_angles" / If(lambda ctx: ctx.additional_fields & FIELDS_ANGLES, _VEC3),
    "at_velocity" / If(lambda ctx: ctx.additional_fields & FIELDS_VELOCITY, _VEC3),
)


def _vec3(values: Any) -> Vec3:
    if values is None:
        return Vec3()
    return Vec3.from_seq([float(v) for v in values])


def _frame_to_raw(frame: Frame) -> dict[str, Any]:
    return {
        "buttons": int(frame.buttons),
        "impulse": int(frame.impulse),
        "actual_velocity": list(frame.actual_velocity.to_tuple()),
        "predicted_velocity": list(frame.predicted_velocity.to_tuple()),
        "predicted_angles": list(frame.predicted_angles.to_tuple()),
        "origin": list(frame.origin.to_tuple()),
        "weapon": int(frame.weapon),
        "subtype": int(frame.subtype),
        "seed": int(frame.seed),
        "additional_fields": int(frame.fields),
        "at_origin": list(frame.at_origin.to_tuple()),
        "at_angles": list(frame.at_angles.to_tuple()),
        "at_velocity": list(frame.at_velocity.to_tuple()),
    }


def _frame_from_raw(raw: Any) -> Frame:
    return Frame(
        buttons=int(raw["buttons"]),
        impulse=int(raw["impulse"]),
        actual_velocity=_vec3(raw["actual_velocity"]),
        predicted_velocity=_vec3(raw["predicted_velocity"]),
        predicted_angles=Angles.from_seq([float(v) for v in raw["predicted_angles"]]),
        origin=_vec3(raw["origin"]),
        weapon=int(raw["weapon"]),
        subtype=int(raw["subtype"]),
        seed=int(raw["seed"]),
        fields=int(raw["additional_fields"]),
        at_origin=_vec3(raw["at_origin"]),
        at_angles=_vec3(raw["at_angles"]),
        at_velocity=_vec3(raw["at_velocity"]),
    )


def dumps(recording: Recording) -> bytes:
    header = recording.header
    if int(header.version) != REC_VERSION:
        raise RecCodecError(f"unsupported rec version: {header.version}")
    header_raw = {
        "timestamp": int(header.timestamp) & 0x7FFF_FFFF,
        "name": str(header.name),
        "position": list(header.initial_position.to_tuple()),
        "angles": list(header.initial_angles.to_tuple()),
        "tick_count": len(recording.frames),
        "bookmark_count": 0,
    }
    out = bytearray()
    try:
        out += _PREAMBLE.build({"version": REC_VERSION})
        out += _HEADER_V2.build(header_raw)
        out += Array(len(recording.frames), _FRAME_V2).build([_frame_to_raw(frame) for frame in recording.frames])
    except ConstructError as exc:
        raise RecCodecError(str(exc)) from exc
    return bytes(out)


def loads(data: bytes) -> Recording:
    stream = io.BytesIO(data)

    try:
        preamble = _PREAMBLE.parse_stream(stream)
    except ConstError as exc:
        raise RecCodecError("invalid magic") from exc
    except StreamError as exc:
        raise RecCodecError("unexpected EOF") from exc
    except ConstructError as exc:
        raise RecCodecError(str(exc)) from exc

    version = int(preamble["version"])
    if version != REC_VERSION:
        raise RecCodecError(f"unsupported rec version: {version}")

    try:
        header_raw = _HEADER_V2.parse_stream(stream)
        bookmark_count = int(header_raw["bookmark_count"])
        if bookmark_count != 0:
            raise RecCodecError(f"unsupported bookmark count: {bookmark_count}")
        tick_count = int(header_raw["tick_count"])
        if tick_count < 0:
            raise RecCodecError(f"invalid tick count: {tick_count}")
        frames_raw = Array(tick_count, _FRAME_V2).parse_stream(stream)
        Terminated.parse_stream(stream)
    except StreamError as exc:
        raise RecCodecError("unexpected EOF") from exc
    except TerminatedError as exc:
        raise RecCodecError("trailing data") from exc
    except UnicodeDecodeError as exc:
        raise RecCodecError("invalid participant name") from exc
    except ConstructError as exc:
        raise RecCodecError(str(exc)) from exc

    header = RecordingHeader(
        name=str(header_raw["name"]),
        timestamp=int(header_raw["timestamp"]),
        initial_position=_vec3(header_raw["position"]),
        initial_angles=Angles.from_seq([float(v) for v in header_raw["angles"]]),
        version=REC_VERSION,
    )
    return Recording(header=header, frames=[_frame_from_raw(raw) for raw in frames_raw])


def load_rec(path: Path) -> Recording:
    return loads(Path(path).read_bytes())


def dump_rec(recording: Recording, path: Path) -> None:
    """Encode first, then replace `path` atomically so a failed write never leaves a partial file."""
    atomic_write_bytes(Path(path), dumps(recording))
