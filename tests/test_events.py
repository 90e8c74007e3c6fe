from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from demorec.events import (
    EquipmentRef,
    EventStreamError,
    ItemPickup,
    MatchStart,
    ParticipantState,
    RoundStart,
    TickDone,
    decode_event,
    dump_events_file,
    encode_event,
    iter_event_lines,
    load_events_file,
)


def test_decode_tagged_event_with_defaults() -> None:
    event = decode_event(b'{"kind": "match_start", "tick": 3, "tick_rate": 64}')
    assert event == MatchStart(tick=3, tick_rate=64.0)
    assert event.warmup is False


def test_decode_tick_done_with_participants() -> None:
    line = (
        '{"kind": "tick_done", "tick": 120, "participants": ['
        '{"name": "alice", "user_id": 76561198000000001, "team": "T",'
        ' "position": [1, 2, 3], "velocity": [250.0, 0, 0], "view_angles": [-5.0, 90.0],'
        ' "active_weapon": "weapon_ak47", "inventory": ["ak47", "knife"]}]}'
    )
    event = decode_event(line)
    assert isinstance(event, TickDone)
    (alice,) = event.participants
    assert alice.user_id == 76561198000000001
    assert alice.origin.z == 3.0
    assert alice.angles.yaw == 90.0
    assert alice.playing


def test_encode_event_is_decodable() -> None:
    event = ItemPickup(
        tick=5,
        participant=ParticipantState(name="bob", user_id=2, team="CT"),
        item=EquipmentRef(id=99, name="m4a1"),
    )
    assert decode_event(encode_event(event)) == event


def test_decode_rejects_unknown_kind_and_fields() -> None:
    with pytest.raises(EventStreamError):
        decode_event(b'{"kind": "teleport", "tick": 1}')
    with pytest.raises(EventStreamError):
        decode_event(b'{"kind": "half_ended", "tick": 1, "extra": true}')
    with pytest.raises(EventStreamError):
        decode_event(b'{"kind": "round_start", "tick": ')


def test_decode_rejects_unknown_bomb_phase() -> None:
    line = '{"kind": "bomb_phase", "tick": 1, "participant": {"name": "p"}, "phase": "exploded"}'
    with pytest.raises(EventStreamError, match="bomb phase"):
        decode_event(line)


def test_iter_event_lines_skips_blanks_and_reports_line_numbers() -> None:
    lines = [
        b'{"kind": "match_start", "tick_rate": 128}',
        b"",
        b'{"kind": "round_start", "tick": 10}',
        b'{"kind": "round_start", "tick": "late"}',
    ]
    events = iter_event_lines(lines)
    assert isinstance(next(events), MatchStart)
    assert next(events) == RoundStart(tick=10)
    with pytest.raises(EventStreamError, match="line 4"):
        next(events)


def test_events_file_roundtrip_plain_and_gzip(tmp_path: Path) -> None:
    events = [MatchStart(tick_rate=128.0), RoundStart(tick=10, participants=[ParticipantState(name="p", team="T")])]

    plain = tmp_path / "match.jsonl"
    dump_events_file(events, plain)
    assert load_events_file(plain) == events

    packed = tmp_path / "match.jsonl.gz"
    dump_events_file(events, packed, compress=True)
    assert gzip.decompress(packed.read_bytes()) == plain.read_bytes()
    assert load_events_file(packed) == events


def test_load_events_file_missing_is_stream_error(tmp_path: Path) -> None:
    with pytest.raises(EventStreamError):
        load_events_file(tmp_path / "missing.jsonl")
