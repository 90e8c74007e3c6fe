from __future__ import annotations

"""One pass over a match event stream: round gating, economy, frame capture and output."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging
from pathlib import Path
import time

from .analytics import MatchAnalytics, demo_info_document
from .buttons import IN_ATTACK, IN_JUMP, IN_USE, PendingButtons
from .config import SessionConfig
from .economy import EconomyReconstructor
from .equipment import final_inventory, is_grenade, normalize_equipment_name, should_filter_transaction
from .events import (
    BOMB_DEFUSE_BEGIN,
    BOMB_PLANT_BEGIN,
    BombPhase,
    Chat,
    Event,
    FreezeTimeEnd,
    HalfEnded,
    ItemDrop,
    ItemPickup,
    Jump,
    MatchEnd,
    MatchStart,
    ParticipantState,
    PlayerConnect,
    RoundEnd,
    RoundStart,
    TickDone,
    WeaponFire,
)
from .log import log_event
from .rec.codec import RecCodecError, dump_rec
from .rec.interpolate import FrameRateDetector, FrameRateReport, upsample_frames
from .rec.synth import FrameSynthesizer, ParticipantCapture
from .rec.types import Recording
from .rounds import Round, RoundStateMachine
from .storage import OutputLayout, write_json_document
from .transactions import ACTION_DROP, WeaponTransactionClassifier, make_record

logger = logging.getLogger(__name__)

PURCHASES_FILE = "purchases.json"
MONEY_FILE = "money.json"
CHAT_FILE = "chat.json"
C4_HOLDERS_FILE = "c4_holders.json"
PLAYERS_INFO_FILE = "players_info.json"
FREEZE_TIMES_FILE = "freeze_times.json"
DEMO_INFO_FILE = "demo_info.json"

# Events that still matter while the match is in warmup.
_WARMUP_PASSTHROUGH = (MatchStart, MatchEnd, PlayerConnect)


@dataclass(frozen=True, slots=True)
class SessionSummary:
    output_root: Path
    rounds_completed: int
    recordings_written: int
    write_failures: int
    frame_rate: FrameRateReport | None = None


class Session:
    """Owns all per-match state; feed events in tick order, then call `finish`."""

    def __init__(
        self,
        layout: OutputLayout,
        config: SessionConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config if config is not None else SessionConfig()
        self.layout = layout
        self._clock = clock
        self.rounds = RoundStateMachine()
        self.classifier = WeaponTransactionClassifier()
        self.economy = EconomyReconstructor()
        self.analytics = MatchAnalytics()
        self.pending = PendingButtons()
        self.synth = FrameSynthesizer(
            predicted_speed=self.config.predicted_speed,
            sector_tolerance=self.config.sector_tolerance_degrees,
            keyframe_interval=self.config.keyframe_interval_frames(),
        )
        self.detector = self._new_detector()
        self._latest: dict[str, ParticipantState] = {}
        self._rounds_completed = 0
        self._recordings_written = 0
        self._write_failures = 0
        self._finished = False
        self._handlers: dict[type, Callable[[Event], None]] = {
            MatchStart: self._on_match_start,
            MatchEnd: self._on_match_end,
            PlayerConnect: self._on_player_connect,
            RoundStart: self._on_round_start,
            FreezeTimeEnd: self._on_freeze_time_end,
            RoundEnd: self._on_round_end,
            HalfEnded: self._on_half_ended,
            TickDone: self._on_tick_done,
            WeaponFire: self._on_weapon_fire,
            Jump: self._on_jump,
            ItemPickup: self._on_item_pickup,
            ItemDrop: self._on_item_drop,
            Chat: self._on_chat,
            BombPhase: self._on_bomb_phase,
        }

    @property
    def tick_rate(self) -> float:
        return float(self.config.tick_rate)

    def _new_detector(self) -> FrameRateDetector:
        return FrameRateDetector(
            self.tick_rate,
            max_samples=self.config.frame_rate_samples,
            max_tick_delta=self.config.max_sample_tick_delta,
            min_acceptable_fps=self.config.min_acceptable_fps,
            max_normal_fps=self.config.max_normal_fps,
            target_fps=self.config.target_fps,
        )

    def _timestamp(self) -> int:
        return int(self._clock())

    def run(self, events: Iterable[Event]) -> SessionSummary:
        for event in events:
            self.handle(event)
        return self.finish()

    def handle(self, event: Event) -> None:
        if event.warmup and not isinstance(event, _WARMUP_PASSTHROUGH):
            self._on_warmup(event)
            return
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported event type: {type(event).__name__}")
        handler(event)

    # -- round lifecycle -------------------------------------------------

    def _on_warmup(self, event: Event) -> None:
        if isinstance(event, RoundStart):
            if self.rounds.enter_warmup(event.tick):
                self._reset_match_state()
        elif isinstance(event, RoundEnd):
            dropped = self.rounds.discard_current()
            if dropped is not None:
                log_event(logger, logging.INFO, "round_discarded", round=dropped.number, reason="warmup")
                self._drop_round(dropped)

    def _reset_match_state(self) -> None:
        self.classifier.reset()
        self.economy.reset()
        self.analytics.reset_rounds()
        self.synth.reset()
        self.pending.clear()

    def _drop_round(self, round_: Round) -> None:
        self.economy.discard_round(round_.number)
        self.analytics.discard_round(round_.number)
        self.synth.reset()

    def _on_match_start(self, event: MatchStart) -> None:
        if event.tick_rate > 0.0 and event.tick_rate != self.tick_rate:
            self.config = self.config.with_tick_rate(event.tick_rate)
            self.synth.keyframe_interval = self.config.keyframe_interval_frames()
            self.detector.tick_rate = self.tick_rate
        log_event(logger, logging.INFO, "match_start", tick=event.tick, tick_rate=self.tick_rate)

    def _on_match_end(self, event: MatchEnd) -> None:
        log_event(logger, logging.INFO, "match_end", tick=event.tick, rounds=self._rounds_completed)

    def _on_player_connect(self, event: PlayerConnect) -> None:
        self.analytics.register_participant(event.participant)

    def _on_round_start(self, event: RoundStart) -> None:
        round_ = self.rounds.start_round(event.tick)
        if round_ is None:
            return
        self.classifier.reset()
        self.synth.reset_scope_state()
        playing = [participant for participant in event.participants if participant.playing]
        self.economy.open_round(round_.number, playing)
        for participant in playing:
            self.analytics.register_participant(participant)
        self._remember(event.participants)
        log_event(logger, logging.INFO, "round_start", round=round_.number, tick=event.tick, participants=len(playing))

    def _on_freeze_time_end(self, event: FreezeTimeEnd) -> None:
        round_ = self.rounds.end_freeze_time(event.tick, self.config.buy_time_extension_ticks())
        if round_ is None:
            return
        playing = [participant for participant in event.participants if participant.playing]
        timestamp = self._timestamp()
        for participant in playing:
            self.synth.init_participant(participant, timestamp=timestamp)
        self.analytics.record_c4_holder(round_.number, playing)
        self._remember(event.participants)
        log_event(
            logger,
            logging.INFO,
            "freeze_time_end",
            round=round_.number,
            tick=event.tick,
            freeze_seconds=round_.freeze_duration(self.tick_rate),
            buy_time_end_tick=round_.buy_time_end_tick,
        )

    def _on_half_ended(self, event: HalfEnded) -> None:
        if self.rounds.mark_halftime(event.tick):
            log_event(logger, logging.INFO, "halftime", tick=event.tick)

    def _on_round_end(self, event: RoundEnd) -> None:
        round_ = self.rounds.end_round(event.tick)
        if round_ is None:
            return
        self._remember(event.participants)
        self.analytics.record_freeze_time(
            round_.number,
            round_.freeze_duration(self.tick_rate),
            halftime=round_.halftime,
        )
        self._log_purchase_stats(round_)
        self.economy.adjust_round(round_.number)

        teams = {participant.name: participant.team for participant in event.participants}
        written = 0
        for capture in self.synth.captures():
            self.synth.take(capture.name)
            team = teams.get(capture.name, capture.team)
            if self._write_capture(round_, capture, team):
                written += 1
        self.pending.discard_before(event.tick)
        self._rounds_completed += 1
        log_event(
            logger,
            logging.INFO,
            "round_end",
            round=round_.number,
            tick=event.tick,
            recordings=written,
            interpolated=self.detector.interpolate,
        )

    def _log_purchase_stats(self, round_: Round) -> None:
        economy = self.economy.get_round(round_.number)
        if economy is None:
            return
        for team, members in economy.teams.items():
            active = 0
            for name, entry in members.items():
                if not entry.transactions and not entry.final_inventory:
                    continue
                active += 1
                log_event(
                    logger,
                    logging.DEBUG,
                    "purchase_stats",
                    round=round_.number,
                    team=team,
                    name=name,
                    transactions=len(entry.transactions),
                    final_inventory=",".join(entry.final_inventory),
                )
            log_event(logger, logging.INFO, "purchase_summary", round=round_.number, team=team, participants=active)

    def _write_capture(self, round_: Round, capture: ParticipantCapture, team: str) -> bool:
        if team not in ("T", "CT"):
            log_event(logger, logging.DEBUG, "rec_skipped", round=round_.number, name=capture.name, team=team)
            return False
        frames = capture.frames
        report = self.detector.report
        if report is not None and report.interpolate:
            original = len(frames)
            frames = upsample_frames(frames, report.factor)
            log_event(
                logger,
                logging.DEBUG,
                "frames_interpolated",
                round=round_.number,
                name=capture.name,
                before=original,
                after=len(frames),
            )
        path = self.layout.rec_path(round_.number, team, capture.name)
        try:
            dump_rec(Recording(header=capture.header, frames=frames), path)
        except (OSError, RecCodecError) as exc:
            self._write_failures += 1
            log_event(
                logger,
                logging.ERROR,
                "rec_write_failed",
                round=round_.number,
                name=capture.name,
                path=str(path),
                error=str(exc),
            )
            return False
        self._recordings_written += 1
        log_event(logger, logging.DEBUG, "rec_written", round=round_.number, name=capture.name, ticks=len(frames))
        return True

    # -- per tick --------------------------------------------------------

    def _remember(self, participants: Iterable[ParticipantState]) -> None:
        for participant in participants:
            self._latest[participant.name] = participant

    def _on_tick_done(self, event: TickDone) -> None:
        self.detector.observe(event.tick)
        self._remember(event.participants)
        round_ = self.rounds.current
        if round_ is None or not self.rounds.capturing:
            return

        for participant in event.participants:
            if not participant.playing:
                continue
            addon = self.pending.take(event.tick, participant.user_id)
            addon |= self.synth.scope_toggle_bits(participant)
            self.synth.synthesize(
                participant,
                addon,
                tick_rate=self.tick_rate,
                force_keyframe=round_.in_freeze_time,
                timestamp=self._timestamp(),
            )

        if round_.inventory_check_due(event.tick):
            round_.inventory_checked = True
            for participant in event.participants:
                if participant.playing:
                    self.economy.record_final_inventory(round_.number, participant, final_inventory(participant))
            log_event(logger, logging.INFO, "inventory_checked", round=round_.number, tick=event.tick)

    def _on_weapon_fire(self, event: WeaponFire) -> None:
        self.pending.add(event.tick, event.participant.user_id, IN_ATTACK)

    def _on_jump(self, event: Jump) -> None:
        self.pending.add(event.tick, event.participant.user_id, IN_JUMP)

    def _on_bomb_phase(self, event: BombPhase) -> None:
        if event.phase in (BOMB_PLANT_BEGIN, BOMB_DEFUSE_BEGIN):
            self.pending.add(event.tick, event.participant.user_id, IN_USE)
        log_event(
            logger,
            logging.INFO,
            "bomb_phase",
            tick=event.tick,
            phase=event.phase,
            name=event.participant.name,
            site=event.site or "-",
        )

    # -- transactions ----------------------------------------------------

    def _on_item_drop(self, event: ItemDrop) -> None:
        item = normalize_equipment_name(event.item.name)
        participant = event.participant
        if is_grenade(item):
            self.pending.add(event.tick, participant.user_id, IN_ATTACK)

        round_ = self.rounds.current
        # Drops outside freeze time are deaths or throws, not gifts.
        if round_ is None or not round_.in_freeze_time:
            return
        if not participant.playing:
            return
        if not self.classifier.register_drop(event.item.id, item, participant.user_id):
            return
        record = make_record(
            time=round_.seconds_since_freeze_start(event.tick, self.tick_rate),
            item=item,
            action=ACTION_DROP,
        )
        self.economy.record_transaction(round_.number, participant, record)

    def _on_item_pickup(self, event: ItemPickup) -> None:
        item = normalize_equipment_name(event.item.name)
        participant = event.participant
        if not should_filter_transaction(item):
            self.pending.add(event.tick, participant.user_id, IN_USE)

        round_ = self.rounds.current
        if round_ is None or not round_.in_buy_time(event.tick):
            return
        if not participant.playing:
            return
        action = self.classifier.classify_pickup(event.item.id, item, participant.user_id)
        if action is None:
            return
        record = make_record(
            time=round_.seconds_since_freeze_start(event.tick, self.tick_rate),
            item=item,
            action=action,
        )
        self.economy.record_transaction(round_.number, participant, record)
        log_event(
            logger,
            logging.DEBUG,
            "transaction",
            round=round_.number,
            name=participant.name,
            item=item,
            action=action,
            time=record.time,
        )

    def _on_chat(self, event: Chat) -> None:
        round_ = self.rounds.current
        if round_ is None or not round_.started:
            return
        sender = self._latest.get(event.sender)
        self.analytics.record_chat(
            round_number=round_.number,
            time=round_.seconds_since_freeze_start(event.tick, self.tick_rate),
            sender=event.sender,
            team=sender.team if sender is not None else None,
            message=event.text,
            team_only=event.team_only,
        )

    # -- output ----------------------------------------------------------

    def finish(self) -> SessionSummary:
        """Write match-level JSON outputs. Idempotent; a round still open is discarded."""
        if not self._finished:
            self._finished = True
            open_round = self.rounds.discard_current()
            if open_round is not None:
                log_event(logger, logging.WARNING, "round_unfinished", round=open_round.number)
                self._drop_round(open_round)
            self._write_documents()
        return SessionSummary(
            output_root=self.layout.root,
            rounds_completed=self._rounds_completed,
            recordings_written=self._recordings_written,
            write_failures=self._write_failures,
            frame_rate=self.detector.partial_report(),
        )

    def _write_documents(self) -> None:
        documents: list[tuple[str, object]] = [
            (PURCHASES_FILE, self.economy.purchases_document()),
            (MONEY_FILE, self.economy.money_document()),
            (CHAT_FILE, self.analytics.chat_document()),
            (C4_HOLDERS_FILE, self.analytics.c4_document()),
            (PLAYERS_INFO_FILE, self.analytics.roster_document()),
            (FREEZE_TIMES_FILE, self.analytics.freeze_times_document()),
        ]
        report = self.detector.partial_report()
        if report is not None:
            documents.append((DEMO_INFO_FILE, demo_info_document(report)))
        for filename, document in documents:
            write_json_document(self.layout.analytics_path(filename), document)
