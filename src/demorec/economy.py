from __future__ import annotations

"""Round-start money reconstruction from observed transactions and final inventory."""

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

import msgspec

from .equipment import equipment_price, should_filter_transaction
from .events import PLAYING_TEAMS, TEAM_CT, TEAM_T, ParticipantState
from .log import log_event
from .transactions import ACTION_DROP, ACTION_PICKUP, ACTION_PURCHASE, TransactionRecord

logger = logging.getLogger(__name__)


class PurchaseEntry(msgspec.Struct, forbid_unknown_fields=True):
    purchases: list[TransactionRecord] = msgspec.field(default_factory=list)
    final_inventory: list[str] = msgspec.field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MoneyAdjustment:
    round_number: int
    team: str
    name: str
    observed: int
    required: int

    @property
    def adjusted(self) -> int:
        return max(int(self.observed), int(self.required))

    @property
    def changed(self) -> bool:
        return int(self.observed) < int(self.required)


def _cost_by_action(transactions: Iterable[TransactionRecord], action: str) -> int:
    return sum(equipment_price(record.item) for record in transactions if record.action == action)


def actual_cost(transactions: Iterable[TransactionRecord]) -> int:
    """Purchases plus drops (bought for a teammate) minus pickups (received for free)."""
    records = list(transactions)
    return (
        _cost_by_action(records, ACTION_PURCHASE)
        + _cost_by_action(records, ACTION_DROP)
        - _cost_by_action(records, ACTION_PICKUP)
    )


def uncovered_inventory_cost(transactions: Iterable[TransactionRecord], final_inventory: Iterable[str]) -> int:
    covered = {record.item for record in transactions if record.action in (ACTION_PURCHASE, ACTION_PICKUP)}
    total = 0
    for item in final_inventory:
        if item in covered or should_filter_transaction(item):
            continue
        total += equipment_price(item)
    return total


def required_money(transactions: Iterable[TransactionRecord], final_inventory: Iterable[str]) -> int:
    records = list(transactions)
    return actual_cost(records) + uncovered_inventory_cost(records, final_inventory)


def adjust_money(observed: int, transactions: Iterable[TransactionRecord], final_inventory: Iterable[str]) -> int:
    required = required_money(transactions, final_inventory)
    if int(observed) < required:
        return required
    return int(observed)


@dataclass(slots=True)
class ParticipantRoundEconomy:
    name: str
    team: str
    starting_money: int | None = None
    transactions: list[TransactionRecord] = field(default_factory=list)
    final_inventory: list[str] = field(default_factory=list)

    def required_money(self) -> int:
        return required_money(self.transactions, self.final_inventory)

    def to_entry(self) -> PurchaseEntry:
        return PurchaseEntry(purchases=list(self.transactions), final_inventory=list(self.final_inventory))


class RoundEconomy:
    """Per-round participant economies; each participant lives in exactly one team map."""

    __slots__ = ("number", "teams")

    def __init__(self, number: int) -> None:
        self.number = int(number)
        self.teams: dict[str, dict[str, ParticipantRoundEconomy]] = {TEAM_T: {}, TEAM_CT: {}}

    def register(self, name: str, team: str) -> ParticipantRoundEconomy | None:
        """Return the participant's entry under `team`, moving it from the other team if needed."""
        if team not in PLAYING_TEAMS:
            return None
        members = self.teams[team]
        entry = members.get(name)
        if entry is not None:
            return entry
        previous: ParticipantRoundEconomy | None = None
        for other_team, other_members in self.teams.items():
            if other_team != team and name in other_members:
                previous = other_members.pop(name)
        entry = ParticipantRoundEconomy(name=name, team=team)
        if previous is not None:
            entry.starting_money = previous.starting_money
            entry.transactions = previous.transactions
            entry.final_inventory = previous.final_inventory
        members[name] = entry
        return entry

    def reset_participant(self, name: str, team: str) -> ParticipantRoundEconomy | None:
        for members in self.teams.values():
            members.pop(name, None)
        return self.register(name, team)

    def participants(self) -> list[ParticipantRoundEconomy]:
        return [entry for team in PLAYING_TEAMS for entry in self.teams[team].values()]

    def purchases_document(self) -> dict[str, dict[str, PurchaseEntry]]:
        return {team: {name: entry.to_entry() for name, entry in self.teams[team].items()} for team in PLAYING_TEAMS}

    def money_document(self) -> dict[str, dict[str, int]]:
        return {
            team: {
                name: int(entry.starting_money)
                for name, entry in self.teams[team].items()
                if entry.starting_money is not None
            }
            for team in PLAYING_TEAMS
        }


def round_key(number: int) -> str:
    return f"round{int(number)}"


class EconomyReconstructor:
    __slots__ = ("_rounds",)

    def __init__(self) -> None:
        self._rounds: dict[int, RoundEconomy] = {}

    def reset(self) -> None:
        self._rounds.clear()

    def get_round(self, number: int) -> RoundEconomy | None:
        return self._rounds.get(int(number))

    def rounds(self) -> list[RoundEconomy]:
        return [self._rounds[number] for number in sorted(self._rounds)]

    def open_round(self, number: int, participants: Iterable[ParticipantState]) -> RoundEconomy:
        economy = RoundEconomy(number)
        self._rounds[economy.number] = economy
        for participant in participants:
            entry = economy.reset_participant(participant.name, participant.team)
            if entry is not None:
                entry.starting_money = int(participant.money)
        return economy

    def discard_round(self, number: int) -> None:
        self._rounds.pop(int(number), None)

    def record_transaction(self, number: int, participant: ParticipantState, record: TransactionRecord) -> bool:
        economy = self._rounds.get(int(number))
        if economy is None:
            return False
        entry = economy.register(participant.name, participant.team)
        if entry is None:
            return False
        entry.transactions.append(record)
        return True

    def record_final_inventory(self, number: int, participant: ParticipantState, inventory: list[str]) -> bool:
        economy = self._rounds.get(int(number))
        if economy is None:
            return False
        entry = economy.register(participant.name, participant.team)
        if entry is None:
            return False
        entry.final_inventory = list(inventory)
        return True

    def adjust_round(self, number: int) -> list[MoneyAdjustment]:
        """Raise under-reported starting money so it covers the round's spending.

        Applying this again is a no-op: after the first pass every observed value
        already meets its requirement.
        """
        economy = self._rounds.get(int(number))
        if economy is None:
            log_event(logger, logging.WARNING, "money_missing_round", round=int(number))
            return []
        adjustments: list[MoneyAdjustment] = []
        for team in PLAYING_TEAMS:
            for name, entry in economy.teams[team].items():
                if entry.starting_money is None:
                    log_event(logger, logging.DEBUG, "money_unknown", round=economy.number, team=team, name=name)
                    continue
                adjustment = MoneyAdjustment(
                    round_number=economy.number,
                    team=team,
                    name=name,
                    observed=int(entry.starting_money),
                    required=entry.required_money(),
                )
                if adjustment.changed:
                    entry.starting_money = adjustment.adjusted
                    log_event(
                        logger,
                        logging.INFO,
                        "money_adjusted",
                        round=economy.number,
                        team=team,
                        name=name,
                        observed=adjustment.observed,
                        adjusted=adjustment.adjusted,
                    )
                adjustments.append(adjustment)
        return adjustments

    def purchases_document(self) -> dict[str, dict[str, dict[str, PurchaseEntry]]]:
        return {round_key(economy.number): economy.purchases_document() for economy in self.rounds()}

    def money_document(self) -> dict[str, dict[str, dict[str, int]]]:
        return {round_key(economy.number): economy.money_document() for economy in self.rounds()}
