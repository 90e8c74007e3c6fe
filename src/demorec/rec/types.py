from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Literal, TypeAlias

from ..geom import Angles, Vec3

RecFormatVersion: TypeAlias = Literal[2]

REC_MAGIC: Final[int] = -559038737  # 0xDEADBEEF as int32
REC_VERSION: Final[int] = 2

FIELDS_ORIGIN: Final[int] = 1 << 0
FIELDS_ANGLES: Final[int] = 1 << 1
FIELDS_VELOCITY: Final[int] = 1 << 2
FIELDS_ALL: Final[int] = FIELDS_ORIGIN | FIELDS_ANGLES | FIELDS_VELOCITY


@dataclass(slots=True)
class Frame:
    """One tick of recorded input for a single participant.

    `at_*` values are meaningful only where the matching `FIELDS_*` bit is set in
    `fields`.
    """

    buttons: int = 0
    impulse: int = 0
    actual_velocity: Vec3 = Vec3()
    predicted_velocity: Vec3 = Vec3()
    predicted_angles: Angles = Angles()
    origin: Vec3 = Vec3()
    weapon: int = 0
    subtype: int = 0
    seed: int = 0
    fields: int = 0
    at_origin: Vec3 = Vec3()
    at_angles: Vec3 = Vec3()
    at_velocity: Vec3 = Vec3()

    def has(self, mask: int) -> bool:
        return (int(self.fields) & int(mask)) != 0

    @property
    def is_keyframe(self) -> bool:
        return self.has(FIELDS_ORIGIN)


@dataclass(frozen=True, slots=True)
class RecordingHeader:
    name: str
    timestamp: int = 0
    initial_position: Vec3 = Vec3()
    initial_angles: Angles = Angles()
    version: RecFormatVersion = REC_VERSION


@dataclass(slots=True)
class Recording:
    header: RecordingHeader
    frames: list[Frame] = field(default_factory=list)

    @property
    def tick_count(self) -> int:
        return len(self.frames)
