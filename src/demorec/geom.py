from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math

from .math import catmull_rom, lerp, lerp_angle, normalize_degrees


@dataclass(slots=True, frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def with_z(self, z: float) -> Vec3:
        return Vec3(self.x, self.y, float(z))

    def horizontal_is_zero(self) -> bool:
        return self.x == 0.0 and self.y == 0.0

    def horizontal_angle_degrees(self) -> float:
        """Heading of the (x, y) component in [0, 360).

        A zero x component maps to 90 or 270 without consulting atan2, so a fully
        zero vector reports 90.
        """
        if self.x == 0.0:
            return 270.0 if self.y < 0.0 else 90.0
        return normalize_degrees(math.degrees(math.atan2(self.y, self.x)))

    def lerp(self, other: Vec3, t: float) -> Vec3:
        return Vec3(lerp(self.x, other.x, t), lerp(self.y, other.y, t), lerp(self.z, other.z, t))

    def lerp_angles(self, other: Vec3, t: float) -> Vec3:
        return Vec3(lerp_angle(self.x, other.x, t), lerp_angle(self.y, other.y, t), lerp_angle(self.z, other.z, t))

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_seq(cls, values: Sequence[float]) -> Vec3:
        if len(values) < 3:
            raise ValueError(f"expected 3 components, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    @staticmethod
    def catmull_rom(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3, t: float) -> Vec3:
        return Vec3(
            catmull_rom(p0.x, p1.x, p2.x, p3.x, t),
            catmull_rom(p0.y, p1.y, p2.y, p3.y, t),
            catmull_rom(p0.z, p1.z, p2.z, p3.z, t),
        )


@dataclass(slots=True, frozen=True)
class Angles:
    """View angles in degrees: pitch then yaw."""

    pitch: float = 0.0
    yaw: float = 0.0

    def lerp(self, other: Angles, t: float) -> Angles:
        return Angles(lerp_angle(self.pitch, other.pitch, t), lerp_angle(self.yaw, other.yaw, t))

    def to_tuple(self) -> tuple[float, float]:
        return (self.pitch, self.yaw)

    @classmethod
    def from_seq(cls, values: Sequence[float]) -> Angles:
        if len(values) < 2:
            raise ValueError(f"expected 2 components, got {len(values)}")
        return cls(float(values[0]), float(values[1]))
