from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import logging

from .log import log_event

logger = logging.getLogger(__name__)


class RoundPhase(IntEnum):
    WARMUP = 0
    FREEZE_TIME = 1
    ACTIVE = 2
    ENDED = 3


@dataclass(slots=True)
class Round:
    number: int
    freeze_start_tick: int
    freeze_end_tick: int
    end_tick: int | None = None
    in_freeze_time: bool = True
    halftime: bool = False
    started: bool = False
    buy_time_end_tick: int | None = None
    inventory_check_tick: int | None = None
    inventory_checked: bool = False

    def seconds_since_freeze_start(self, tick: int, tick_rate: float) -> float:
        return float(int(tick) - int(self.freeze_start_tick)) / float(tick_rate)

    def in_buy_time(self, tick: int) -> bool:
        """Freeze time, or up to and including the extended buy-time tick."""
        if self.in_freeze_time:
            return True
        return self.buy_time_end_tick is not None and int(tick) <= int(self.buy_time_end_tick)

    def inventory_check_due(self, tick: int) -> bool:
        if self.inventory_checked or self.inventory_check_tick is None:
            return False
        return int(tick) >= int(self.inventory_check_tick)

    def freeze_duration(self, tick_rate: float) -> float:
        return float(int(self.freeze_end_tick) - int(self.freeze_start_tick)) / float(tick_rate)


class RoundStateMachine:
    """Round lifecycle: warmup, freeze time, active play, ended.

    At most one round is open at a time. Round numbers count from 1 and restart
    when the match drops back into warmup after play has begun.
    """

    __slots__ = ("_current", "_game_started", "_round_counter", "_phase")

    def __init__(self) -> None:
        self._current: Round | None = None
        self._game_started = False
        self._round_counter = 0
        self._phase = RoundPhase.WARMUP

    @property
    def current(self) -> Round | None:
        return self._current

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def game_started(self) -> bool:
        return self._game_started

    @property
    def round_counter(self) -> int:
        return self._round_counter

    @property
    def capturing(self) -> bool:
        current = self._current
        return self._game_started and current is not None and current.started

    def enter_warmup(self, tick: int) -> bool:
        """Return True when this drops an already-started match back into warmup."""
        if not self._game_started:
            return False
        log_event(
            logger,
            logging.WARNING,
            "warmup_restart",
            tick=int(tick),
            round=self._current.number if self._current is not None else 0,
        )
        self._game_started = False
        self._round_counter = 0
        self._current = None
        self._phase = RoundPhase.WARMUP
        return True

    def start_round(self, tick: int) -> Round | None:
        current = self._current
        if current is not None and current.started:
            log_event(logger, logging.WARNING, "duplicate_round_start", tick=int(tick), round=current.number)
            return None
        self._game_started = True
        self._round_counter += 1
        round_ = Round(
            number=self._round_counter,
            freeze_start_tick=int(tick),
            freeze_end_tick=int(tick),
            started=True,
        )
        self._current = round_
        self._phase = RoundPhase.FREEZE_TIME
        return round_

    def end_freeze_time(self, tick: int, extension_ticks: int) -> Round | None:
        current = self._current
        if current is None:
            log_event(logger, logging.WARNING, "freeze_end_without_round", tick=int(tick))
            return None
        current.freeze_end_tick = int(tick)
        current.in_freeze_time = False
        current.buy_time_end_tick = int(tick) + int(extension_ticks)
        current.inventory_check_tick = int(tick) + int(extension_ticks)
        self._phase = RoundPhase.ACTIVE
        return current

    def mark_halftime(self, tick: int) -> bool:
        current = self._current
        if current is None:
            log_event(logger, logging.WARNING, "halftime_without_round", tick=int(tick))
            return False
        current.halftime = True
        return True

    def end_round(self, tick: int) -> Round | None:
        current = self._current
        if current is None:
            log_event(logger, logging.WARNING, "round_end_without_round", tick=int(tick))
            return None
        current.end_tick = int(tick)
        self._current = None
        self._phase = RoundPhase.ENDED
        return current

    def discard_current(self) -> Round | None:
        current = self._current
        self._current = None
        return current
