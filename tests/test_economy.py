from __future__ import annotations

from demorec.economy import (
    EconomyReconstructor,
    RoundEconomy,
    actual_cost,
    adjust_money,
    required_money,
    uncovered_inventory_cost,
)
from demorec.events import ParticipantState
from demorec.transactions import ACTION_DROP, ACTION_PICKUP, ACTION_PURCHASE, make_record


def _records(*pairs: tuple[str, str]) -> list:
    return [make_record(time=0.0, item=item, action=action) for item, action in pairs]


def test_actual_cost_counts_drops_and_credits_pickups() -> None:
    records = _records(
        ("ak47", ACTION_PURCHASE),
        ("awp", ACTION_PURCHASE),
        ("awp", ACTION_DROP),
        ("m4a1", ACTION_PICKUP),
    )
    assert actual_cost(records) == 2700 + 4750 + 4750 - 3100


def test_uncovered_inventory_skips_covered_and_starting_pistols() -> None:
    records = _records(("ak47", ACTION_PURCHASE), ("deagle", ACTION_PICKUP))
    inventory = ["glock", "ak47", "deagle", "flashbang", "vesthelm"]
    assert uncovered_inventory_cost(records, inventory) == 200 + 1000


def test_adjust_money_raises_only_when_short() -> None:
    records = _records(("ak47", ACTION_PURCHASE))
    assert required_money(records, ["ak47", "vest"]) == 2700 + 650
    assert adjust_money(800, records, ["ak47", "vest"]) == 3350
    assert adjust_money(16000, records, ["ak47", "vest"]) == 16000


def test_adjust_money_is_idempotent() -> None:
    records = _records(("ak47", ACTION_PURCHASE), ("hegrenade", ACTION_PURCHASE))
    inventory = ["ak47", "smokegrenade", "defuser"]
    for observed in (0, 1000, 3300, 9000):
        once = adjust_money(observed, records, inventory)
        assert adjust_money(once, records, inventory) == once


def test_participant_lives_in_one_team_per_round() -> None:
    economy = RoundEconomy(3)
    entry = economy.register("p", "T")
    assert entry is not None
    entry.starting_money = 1200
    moved = economy.register("p", "CT")
    assert moved is not None
    assert "p" not in economy.teams["T"]
    assert economy.teams["CT"]["p"].starting_money == 1200
    assert economy.money_document() == {"T": {}, "CT": {"p": 1200}}
    assert economy.register("spec", "SPECTATOR") is None


def test_reconstructor_round_flow() -> None:
    reconstructor = EconomyReconstructor()
    alice = ParticipantState(name="alice", team="T", money=800)
    bob = ParticipantState(name="bob", team="CT", money=4000)
    reconstructor.open_round(1, [alice, bob])
    reconstructor.record_transaction(1, alice, make_record(time=1.0, item="ak47", action=ACTION_PURCHASE))
    reconstructor.record_final_inventory(1, bob, ["m4a1", "vesthelm"])

    adjustments = reconstructor.adjust_round(1)
    by_name = {adjustment.name: adjustment for adjustment in adjustments}
    assert by_name["alice"].changed
    assert by_name["alice"].adjusted == 2700
    assert by_name["bob"].required == 4100
    assert by_name["bob"].adjusted == 4100

    assert reconstructor.money_document() == {"round1": {"T": {"alice": 2700}, "CT": {"bob": 4100}}}
    again = reconstructor.adjust_round(1)
    assert not any(adjustment.changed for adjustment in again)

    purchases = reconstructor.purchases_document()
    assert purchases["round1"]["T"]["alice"].purchases[0].item == "ak47"
    assert purchases["round1"]["CT"]["bob"].final_inventory == ["m4a1", "vesthelm"]


def test_documents_are_ordered_by_round_number() -> None:
    reconstructor = EconomyReconstructor()
    for number in (10, 2, 1):
        reconstructor.open_round(number, [ParticipantState(name="p", team="T", money=number)])
    assert list(reconstructor.money_document()) == ["round1", "round2", "round10"]


def test_adjust_missing_round_is_empty() -> None:
    assert EconomyReconstructor().adjust_round(4) == []
