from __future__ import annotations

"""Match-level side outputs: chat log, bomb carriers, roster, freeze times, capture info."""

from collections import Counter
import logging

import msgspec

from .economy import round_key
from .equipment import normalize_equipment_name
from .events import TEAM_CT, TEAM_SPECTATOR, TEAM_T, ParticipantState
from .log import log_event
from .rec.interpolate import FrameRateReport

logger = logging.getLogger(__name__)

DEFAULT_FREEZE_SECONDS = 15.0
UNKNOWN_CROSSHAIR = "N/A"


class ChatMessage(msgspec.Struct, forbid_unknown_fields=True):
    round: int
    time: float
    player_name: str
    team: str
    message: str
    is_team_chat: bool


class C4Holder(msgspec.Struct, forbid_unknown_fields=True):
    round: int
    player_name: str


class ParticipantInfo(msgspec.Struct, forbid_unknown_fields=True):
    steamid: int
    crosshair_code: str


class FreezeTimes(msgspec.Struct, forbid_unknown_fields=True):
    rounds: dict[str, float]
    halftime_rounds: list[int]
    most_common: float


class DemoInfo(msgspec.Struct, forbid_unknown_fields=True):
    tick_rate: float
    original_frame_rate: float
    target_frame_rate: float
    interpolated: bool
    interpolation_ratio: float
    sample_count: int
    detection_complete: bool
    note: str


def chat_team_label(team: str | None) -> str:
    if team == TEAM_T:
        return "T"
    if team == TEAM_CT:
        return "CT"
    if team == TEAM_SPECTATOR:
        return "Spectator"
    return "Unknown"


def most_common_duration(durations: list[float], *, default: float = DEFAULT_FREEZE_SECONDS) -> float:
    """Mode of the durations rounded to 0.1 s; ties go to the value seen first."""
    if not durations:
        return float(default)
    buckets = [int(float(duration) * 10.0 + 0.5) for duration in durations]
    counts = Counter(buckets)
    best = max(counts.values())
    for bucket in buckets:
        if counts[bucket] == best:
            return bucket / 10.0
    return float(default)


def demo_info_document(report: FrameRateReport) -> DemoInfo:
    if report.interpolate:
        note = f"interpolated {report.frame_rate:.1f} fps -> {report.target_fps:.0f} fps ({report.ratio:.2f}x)"
    elif not report.complete:
        note = "frame rate detection incomplete; no interpolation"
    else:
        note = f"{report.cadence} frame rate; no interpolation"
    return DemoInfo(
        tick_rate=float(report.tick_rate),
        original_frame_rate=float(report.frame_rate),
        target_frame_rate=float(report.target_fps),
        interpolated=bool(report.interpolate),
        interpolation_ratio=float(report.ratio),
        sample_count=int(report.sample_count),
        detection_complete=bool(report.complete),
        note=note,
    )


class MatchAnalytics:
    def __init__(self) -> None:
        self.chat: list[ChatMessage] = []
        self.c4_holders: list[C4Holder] = []
        self.roster: dict[str, ParticipantInfo] = {}
        self._freeze: dict[int, float | None] = {}

    def record_chat(
        self,
        *,
        round_number: int,
        time: float,
        sender: str,
        team: str | None,
        message: str,
        team_only: bool,
    ) -> ChatMessage:
        entry = ChatMessage(
            round=int(round_number),
            time=float(time),
            player_name=str(sender),
            team=chat_team_label(team),
            message=str(message),
            is_team_chat=bool(team_only),
        )
        self.chat.append(entry)
        log_event(
            logger,
            logging.DEBUG,
            "chat",
            round=entry.round,
            time=entry.time,
            name=entry.player_name,
            team=entry.team,
            team_only=entry.is_team_chat,
        )
        return entry

    def record_c4_holder(self, round_number: int, participants: list[ParticipantState]) -> str | None:
        for participant in participants:
            if participant.team != TEAM_T:
                continue
            if any(normalize_equipment_name(item) == "c4" for item in participant.inventory):
                self.c4_holders.append(C4Holder(round=int(round_number), player_name=participant.name))
                log_event(logger, logging.INFO, "c4_holder", round=int(round_number), name=participant.name)
                return participant.name
        log_event(logger, logging.WARNING, "c4_holder_missing", round=int(round_number))
        return None

    def register_participant(self, participant: ParticipantState) -> bool:
        """Remember a participant's id and crosshair; the first sighting wins."""
        if participant.name in self.roster:
            return False
        self.roster[participant.name] = ParticipantInfo(
            steamid=int(participant.user_id),
            crosshair_code=participant.crosshair_code or UNKNOWN_CROSSHAIR,
        )
        return True

    def record_freeze_time(self, round_number: int, duration: float, *, halftime: bool) -> None:
        self._freeze[int(round_number)] = None if halftime else float(duration)

    def most_common_freeze_duration(self) -> float:
        durations = [value for _, value in sorted(self._freeze.items()) if value is not None]
        return most_common_duration(durations)

    def freeze_times_document(self) -> FreezeTimes:
        common = self.most_common_freeze_duration()
        rounds: dict[str, float] = {}
        halftime_rounds: list[int] = []
        for number in sorted(self._freeze):
            value = self._freeze[number]
            if value is None:
                halftime_rounds.append(number)
                value = common
            rounds[round_key(number)] = round(value, 2)
        return FreezeTimes(rounds=rounds, halftime_rounds=halftime_rounds, most_common=common)

    def chat_document(self) -> list[ChatMessage]:
        return sorted(self.chat, key=lambda entry: entry.round)

    def c4_document(self) -> list[C4Holder]:
        return sorted(self.c4_holders, key=lambda entry: entry.round)

    def roster_document(self) -> dict[str, ParticipantInfo]:
        return dict(self.roster)

    def discard_round(self, round_number: int) -> None:
        number = int(round_number)
        self.chat = [entry for entry in self.chat if entry.round != number]
        self.c4_holders = [entry for entry in self.c4_holders if entry.round != number]
        self._freeze.pop(number, None)

    def reset_rounds(self) -> None:
        self.chat.clear()
        self.c4_holders.clear()
        self._freeze.clear()
