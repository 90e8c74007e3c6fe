from __future__ import annotations

"""Purchase / pickup / drop classification of equipment instances within one round."""

from typing import Final

import msgspec

from .equipment import equipment_price, equipment_slot, should_filter_transaction

ACTION_PURCHASE: Final[str] = "purchased"
ACTION_PICKUP: Final[str] = "picked_up"
ACTION_DROP: Final[str] = "dropped"


class TransactionRecord(msgspec.Struct, forbid_unknown_fields=True, frozen=True):
    # Seconds since the round's freeze time started.
    time: float
    item: str
    slot: str
    action: str

    @property
    def price(self) -> int:
        return equipment_price(self.item)


def make_record(*, time: float, item: str, action: str) -> TransactionRecord:
    return TransactionRecord(time=float(time), item=str(item), slot=equipment_slot(item), action=str(action))


class WeaponTransactionClassifier:
    """Tracks equipment instance ownership for a single round.

    An instance seen for the first time (and never dropped) is a purchase. An
    instance that was dropped and is picked up by someone other than the dropper
    is a pickup. Everything else (re-pickup of one's own drop, an already owned
    instance) is not a transaction.
    """

    __slots__ = ("_owners", "_bought", "_dropped", "_previous_owners")

    def __init__(self) -> None:
        self._owners: dict[int, int] = {}
        self._bought: dict[int, bool] = {}
        self._dropped: dict[int, bool] = {}
        self._previous_owners: dict[int, int] = {}

    def reset(self) -> None:
        self._owners.clear()
        self._bought.clear()
        self._dropped.clear()
        self._previous_owners.clear()

    def owner(self, equipment_id: int) -> int | None:
        return self._owners.get(int(equipment_id))

    def is_dropped(self, equipment_id: int) -> bool:
        return self._dropped.get(int(equipment_id), False)

    def was_bought(self, equipment_id: int) -> bool:
        return self._bought.get(int(equipment_id), False)

    def classify_pickup(self, equipment_id: int, item: str, user_id: int) -> str | None:
        """Return `ACTION_PURCHASE`, `ACTION_PICKUP` or None for an item entering an inventory."""
        if should_filter_transaction(item):
            return None
        key = int(equipment_id)
        user = int(user_id)

        if self._dropped.get(key, False):
            if self._previous_owners.get(key) == user:
                return None
            self._owners[key] = user
            self._dropped[key] = False
            self._previous_owners[key] = user
            return ACTION_PICKUP

        if key not in self._owners:
            self._owners[key] = user
            self._bought[key] = True
            self._dropped[key] = False
            self._previous_owners[key] = user
            return ACTION_PURCHASE
        return None

    def register_drop(self, equipment_id: int, item: str, user_id: int) -> bool:
        if should_filter_transaction(item):
            return False
        key = int(equipment_id)
        self._dropped[key] = True
        self._previous_owners[key] = int(user_id)
        self._owners.pop(key, None)
        return True
