from __future__ import annotations

"""Decoded match events, delivered in tick order by an external replay parser.

Streams are JSON Lines: one tagged object per line (`{"kind": "tick_done", ...}`),
optionally gzip-compressed.
"""

import gzip
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Final, TypeAlias

import msgspec

from .geom import Angles, Vec3

_GZIP_MAGIC = b"\x1f\x8b"

TEAM_T: Final[str] = "T"
TEAM_CT: Final[str] = "CT"
TEAM_SPECTATOR: Final[str] = "SPECTATOR"
TEAM_UNASSIGNED: Final[str] = "UNASSIGNED"
PLAYING_TEAMS: Final[tuple[str, str]] = (TEAM_T, TEAM_CT)

BOMB_PLANT_BEGIN: Final[str] = "plant_begin"
BOMB_PLANT_ABORTED: Final[str] = "plant_aborted"
BOMB_PLANTED: Final[str] = "planted"
BOMB_DEFUSE_BEGIN: Final[str] = "defuse_begin"
BOMB_DEFUSE_ABORTED: Final[str] = "defuse_aborted"
BOMB_DEFUSED: Final[str] = "defused"
BOMB_PHASES: Final[frozenset[str]] = frozenset(
    {
        BOMB_PLANT_BEGIN,
        BOMB_PLANT_ABORTED,
        BOMB_PLANTED,
        BOMB_DEFUSE_BEGIN,
        BOMB_DEFUSE_ABORTED,
        BOMB_DEFUSED,
    }
)


class EventStreamError(ValueError):
    pass


class ParticipantState(msgspec.Struct, forbid_unknown_fields=True, frozen=True):
    """Snapshot of one participant as seen by the parser at the event tick."""

    name: str
    user_id: int = 0
    team: str = TEAM_UNASSIGNED
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    velocity: tuple[float, float, float] = (0.0, 0.0, 0.0)
    # Pitch then yaw, in degrees.
    view_angles: tuple[float, float] = (0.0, 0.0)
    alive: bool = True
    scoped: bool = False
    defusing: bool = False
    planting: bool = False
    ducking: bool = False
    walking: bool = False
    reloading: bool = False
    money: int = 0
    active_weapon: str = ""
    inventory: list[str] = msgspec.field(default_factory=list)
    armor: int = 0
    helmet: bool = False
    defuse_kit: bool = False
    crosshair_code: str = ""

    @property
    def origin(self) -> Vec3:
        return Vec3.from_seq(self.position)

    @property
    def velocity_vec(self) -> Vec3:
        return Vec3.from_seq(self.velocity)

    @property
    def angles(self) -> Angles:
        return Angles.from_seq(self.view_angles)

    @property
    def playing(self) -> bool:
        return self.team in PLAYING_TEAMS


class EquipmentRef(msgspec.Struct, forbid_unknown_fields=True, frozen=True):
    """One concrete equipment instance; `id` is stable while the instance exists."""

    id: int
    name: str


class _Event(msgspec.Struct, tag_field="kind", forbid_unknown_fields=True, kw_only=True, frozen=True):
    tick: int = 0
    warmup: bool = False


class MatchStart(_Event, tag="match_start"):
    tick_rate: float = 0.0


class MatchEnd(_Event, tag="match_end"):
    pass


class PlayerConnect(_Event, tag="player_connect"):
    participant: ParticipantState


class RoundStart(_Event, tag="round_start"):
    participants: list[ParticipantState] = msgspec.field(default_factory=list)


class FreezeTimeEnd(_Event, tag="freeze_time_end"):
    participants: list[ParticipantState] = msgspec.field(default_factory=list)


class RoundEnd(_Event, tag="round_end"):
    participants: list[ParticipantState] = msgspec.field(default_factory=list)


class HalfEnded(_Event, tag="half_ended"):
    pass


class TickDone(_Event, tag="tick_done"):
    participants: list[ParticipantState] = msgspec.field(default_factory=list)


class WeaponFire(_Event, tag="weapon_fire"):
    participant: ParticipantState
    weapon: str = ""


class Jump(_Event, tag="jump"):
    participant: ParticipantState


class ItemPickup(_Event, tag="item_pickup"):
    participant: ParticipantState
    item: EquipmentRef


class ItemDrop(_Event, tag="item_drop"):
    participant: ParticipantState
    item: EquipmentRef


class Chat(_Event, tag="chat"):
    sender: str
    text: str = ""
    team_only: bool = False


class BombPhase(_Event, tag="bomb_phase"):
    participant: ParticipantState
    phase: str
    site: str = ""


Event: TypeAlias = (
    MatchStart
    | MatchEnd
    | PlayerConnect
    | RoundStart
    | FreezeTimeEnd
    | RoundEnd
    | HalfEnded
    | TickDone
    | WeaponFire
    | Jump
    | ItemPickup
    | ItemDrop
    | Chat
    | BombPhase
)

_DECODER = msgspec.json.Decoder(Event)
_ENCODER = msgspec.json.Encoder()


def decode_event(data: bytes | str) -> Event:
    try:
        event = _DECODER.decode(data)
    except msgspec.ValidationError as exc:
        raise EventStreamError(f"invalid event: {exc}") from exc
    except msgspec.DecodeError as exc:
        raise EventStreamError(f"malformed event: {exc}") from exc
    if isinstance(event, BombPhase) and event.phase not in BOMB_PHASES:
        raise EventStreamError(f"unknown bomb phase: {event.phase!r}")
    return event


def encode_event(event: Event) -> bytes:
    return _ENCODER.encode(event)


def iter_event_lines(lines: Iterable[bytes | str]) -> Iterator[Event]:
    """Decode JSON Lines, skipping blank lines; errors carry the 1-based line number."""
    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield decode_event(line)
        except EventStreamError as exc:
            raise EventStreamError(f"line {line_no}: {exc}") from exc


def _read_stream_bytes(path: Path) -> bytes:
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise EventStreamError(f"cannot read event stream {path}: {exc}") from exc
    if raw.startswith(_GZIP_MAGIC):
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError) as exc:
            raise EventStreamError(f"corrupt gzip event stream {path}: {exc}") from exc
    return raw


def iter_events_file(path: Path) -> Iterator[Event]:
    yield from iter_event_lines(_read_stream_bytes(path).splitlines())


def load_events_file(path: Path) -> list[Event]:
    return list(iter_events_file(path))


def dumps_events(events: Iterable[Event]) -> bytes:
    return b"".join(encode_event(event) + b"\n" for event in events)


def dump_events_file(events: Iterable[Event], path: Path, *, compress: bool = False) -> None:
    data = dumps_events(events)
    if compress:
        # mtime=0 keeps the output byte-stable.
        data = gzip.compress(data, mtime=0)
    Path(path).write_bytes(data)


__all__ = [
    "BombPhase",
    "Chat",
    "EquipmentRef",
    "Event",
    "EventStreamError",
    "FreezeTimeEnd",
    "HalfEnded",
    "ItemDrop",
    "ItemPickup",
    "Jump",
    "MatchEnd",
    "MatchStart",
    "ParticipantState",
    "PlayerConnect",
    "RoundEnd",
    "RoundStart",
    "TickDone",
    "WeaponFire",
    "decode_event",
    "dump_events_file",
    "dumps_events",
    "encode_event",
    "iter_event_lines",
    "iter_events_file",
    "load_events_file",
]
