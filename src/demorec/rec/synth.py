from __future__ import annotations

from dataclasses import dataclass, field

from ..buttons import IN_ATTACK2, button_bits
from ..equipment import WEAPON_NONE, weapon_id
from ..events import ParticipantState
from ..geom import Angles, Vec3
from ..math import normalize_degrees
from .types import FIELDS_ALL, Frame, RecordingHeader

DEFAULT_PREDICTED_SPEED = 450.0
DEFAULT_SECTOR_TOLERANCE = 30.0


def predict_input_velocity(
    previous_predicted: Vec3,
    velocity: Vec3,
    previous_velocity: Vec3,
    yaw: float,
    *,
    speed: float = DEFAULT_PREDICTED_SPEED,
    tolerance: float = DEFAULT_SECTOR_TOLERANCE,
) -> Vec3:
    """Guess the movement keys held on the previous tick from the motion observed now.

    The heading of `velocity` relative to `yaw` is bucketed into overlapping
    forward/back/left/right sectors; diagonals set both axes. Forward is +x and
    left is -y, matching the engine's forwardmove/sidemove convention.
    """
    if velocity.horizontal_is_zero() and previous_velocity.horizontal_is_zero():
        return previous_predicted

    delta = normalize_degrees(velocity.horizontal_angle_degrees() - normalize_degrees(yaw))
    forward = previous_predicted.x
    side = previous_predicted.y
    if tolerance < delta < 180.0 - tolerance:
        side = -speed
    if 90.0 + tolerance < delta < 270.0 - tolerance:
        forward = -speed
    if 180.0 + tolerance < delta < 360.0 - tolerance:
        side = speed
    if delta > 270.0 + tolerance or delta < 90.0 - tolerance:
        forward = speed
    return Vec3(forward, side, previous_predicted.z)


def is_keyframe_index(index: int, interval: int) -> bool:
    """Frame 0 and the last frame of every `interval`-sized window carry extended fields."""
    index = int(index)
    if index == 0:
        return True
    interval = max(1, int(interval))
    return (index + 1) % interval == 0


@dataclass(slots=True)
class ParticipantCapture:
    header: RecordingHeader
    user_id: int = 0
    team: str = ""
    frames: list[Frame] = field(default_factory=list)
    last_weapon: int | None = None
    last_z: float | None = None

    @property
    def name(self) -> str:
        return self.header.name


class FrameSynthesizer:
    """Builds one `Frame` per living participant per captured tick.

    Captures are keyed by participant name, which is also the recording name.
    """

    def __init__(
        self,
        *,
        predicted_speed: float = DEFAULT_PREDICTED_SPEED,
        sector_tolerance: float = DEFAULT_SECTOR_TOLERANCE,
        keyframe_interval: int = 256,
    ) -> None:
        self.predicted_speed = float(predicted_speed)
        self.sector_tolerance = float(sector_tolerance)
        self.keyframe_interval = max(1, int(keyframe_interval))
        self._captures: dict[str, ParticipantCapture] = {}
        self._scoped: dict[int, bool] = {}

    def __len__(self) -> int:
        return len(self._captures)

    def capture(self, name: str) -> ParticipantCapture | None:
        return self._captures.get(name)

    def captures(self) -> list[ParticipantCapture]:
        return list(self._captures.values())

    def init_participant(self, participant: ParticipantState, *, timestamp: int = 0) -> ParticipantCapture:
        """Start a fresh recording from the participant's current spot and view."""
        origin = participant.origin
        header = RecordingHeader(
            name=participant.name,
            timestamp=int(timestamp),
            initial_position=origin,
            initial_angles=participant.angles,
        )
        capture = ParticipantCapture(
            header=header,
            user_id=int(participant.user_id),
            team=participant.team,
            last_z=origin.z,
        )
        self._captures[participant.name] = capture
        return capture

    def scope_toggle_bits(self, participant: ParticipantState) -> int:
        user_id = int(participant.user_id)
        scoped = bool(participant.scoped)
        last = self._scoped.get(user_id)
        self._scoped[user_id] = scoped
        if last is None or last == scoped:
            return 0
        return IN_ATTACK2

    def synthesize(
        self,
        participant: ParticipantState,
        addon: int,
        *,
        tick_rate: float,
        force_keyframe: bool = False,
        timestamp: int = 0,
    ) -> Frame | None:
        if not participant.alive:
            return None
        capture = self._captures.get(participant.name)
        if capture is None:
            capture = self.init_participant(participant, timestamp=timestamp)
        capture.user_id = int(participant.user_id)
        capture.team = participant.team

        origin = participant.origin
        velocity = participant.velocity_vec
        angles = participant.angles

        last_z = origin.z if capture.last_z is None else capture.last_z
        capture.last_z = origin.z
        actual = velocity.with_z((origin.z - last_z) * float(tick_rate))

        current_weapon = weapon_id(participant.active_weapon)
        if capture.last_weapon is None or current_weapon != capture.last_weapon:
            weapon = current_weapon
            capture.last_weapon = current_weapon
        else:
            weapon = WEAPON_NONE

        frame = Frame(
            buttons=button_bits(participant, addon),
            actual_velocity=actual,
            predicted_angles=Angles(angles.pitch, angles.yaw),
            origin=origin,
            weapon=weapon,
        )

        index = len(capture.frames)
        if force_keyframe or is_keyframe_index(index, self.keyframe_interval):
            frame.fields = FIELDS_ALL
            frame.at_origin = origin
            frame.at_angles = Vec3(angles.pitch, angles.yaw, 0.0)
            frame.at_velocity = velocity

        if capture.frames:
            previous = capture.frames[-1]
            previous.predicted_velocity = predict_input_velocity(
                previous.predicted_velocity,
                actual,
                previous.actual_velocity,
                angles.yaw,
                speed=self.predicted_speed,
                tolerance=self.sector_tolerance,
            )

        capture.frames.append(frame)
        return frame

    def take(self, name: str) -> ParticipantCapture | None:
        """Hand a capture over for encoding; the synthesizer forgets it."""
        return self._captures.pop(name, None)

    def reset_scope_state(self) -> None:
        self._scoped.clear()

    def reset(self) -> None:
        self._captures.clear()
        self._scoped.clear()
