from __future__ import annotations

from demorec.rounds import RoundPhase, RoundStateMachine


def test_round_lifecycle() -> None:
    machine = RoundStateMachine()
    assert machine.phase == RoundPhase.WARMUP
    assert not machine.capturing

    round_ = machine.start_round(100)
    assert round_ is not None
    assert round_.number == 1
    assert round_.in_freeze_time
    assert machine.phase == RoundPhase.FREEZE_TIME
    assert machine.capturing

    machine.end_freeze_time(100 + 15 * 128, 1280)
    assert machine.phase == RoundPhase.ACTIVE
    assert not round_.in_freeze_time
    assert round_.buy_time_end_tick == 100 + 15 * 128 + 1280
    assert round_.inventory_check_tick == round_.buy_time_end_tick
    assert round_.freeze_duration(128.0) == 15.0

    ended = machine.end_round(5000)
    assert ended is round_
    assert ended.end_tick == 5000
    assert machine.current is None
    assert machine.phase == RoundPhase.ENDED

    second = machine.start_round(5200)
    assert second is not None
    assert second.number == 2


def test_duplicate_round_start_is_ignored() -> None:
    machine = RoundStateMachine()
    first = machine.start_round(10)
    assert machine.start_round(20) is None
    assert machine.current is first
    assert machine.round_counter == 1


def test_round_end_and_halftime_without_round_are_noops() -> None:
    machine = RoundStateMachine()
    assert machine.end_round(10) is None
    assert machine.mark_halftime(10) is False
    assert machine.end_freeze_time(10, 1280) is None
    assert machine.round_counter == 0


def test_warmup_restart_resets_counter() -> None:
    machine = RoundStateMachine()
    assert machine.enter_warmup(1) is False
    machine.start_round(10)
    machine.end_round(20)
    machine.start_round(30)
    assert machine.enter_warmup(40) is True
    assert machine.current is None
    assert machine.round_counter == 0
    assert not machine.game_started
    again = machine.start_round(50)
    assert again is not None and again.number == 1


def test_buy_time_and_inventory_check_windows() -> None:
    machine = RoundStateMachine()
    round_ = machine.start_round(0)
    assert round_ is not None
    assert round_.in_buy_time(10_000)
    assert not round_.inventory_check_due(10_000)

    machine.end_freeze_time(1000, 1280)
    assert round_.in_buy_time(2280)
    assert not round_.in_buy_time(2281)
    assert not round_.inventory_check_due(2279)
    assert round_.inventory_check_due(2280)
    assert round_.inventory_check_due(2300)
    round_.inventory_checked = True
    assert not round_.inventory_check_due(2300)
    assert round_.seconds_since_freeze_start(256, 128.0) == 2.0


def test_halftime_flag_does_not_change_phase() -> None:
    machine = RoundStateMachine()
    round_ = machine.start_round(0)
    machine.end_freeze_time(10, 0)
    assert machine.mark_halftime(20)
    assert round_ is not None and round_.halftime
    assert machine.phase == RoundPhase.ACTIVE
