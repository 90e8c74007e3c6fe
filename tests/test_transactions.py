from __future__ import annotations

from demorec.transactions import (
    ACTION_PICKUP,
    ACTION_PURCHASE,
    WeaponTransactionClassifier,
    make_record,
)


def test_first_sighting_is_purchase_once() -> None:
    classifier = WeaponTransactionClassifier()
    assert classifier.classify_pickup(1, "ak47", 10) == ACTION_PURCHASE
    assert classifier.was_bought(1)
    assert classifier.owner(1) == 10
    assert classifier.classify_pickup(1, "ak47", 10) is None
    assert classifier.classify_pickup(1, "ak47", 11) is None


def test_drop_then_pickup_by_teammate() -> None:
    classifier = WeaponTransactionClassifier()
    assert classifier.classify_pickup(5, "awp", 1) == ACTION_PURCHASE
    assert classifier.register_drop(5, "awp", 1)
    assert classifier.is_dropped(5)
    assert classifier.owner(5) is None

    assert classifier.classify_pickup(5, "awp", 2) == ACTION_PICKUP
    assert classifier.owner(5) == 2
    assert not classifier.is_dropped(5)
    # Never a purchase again, even after another drop.
    classifier.register_drop(5, "awp", 2)
    assert classifier.classify_pickup(5, "awp", 3) == ACTION_PICKUP


def test_self_pickup_of_own_drop_is_ignored() -> None:
    classifier = WeaponTransactionClassifier()
    classifier.classify_pickup(7, "m4a1", 1)
    classifier.register_drop(7, "m4a1", 1)
    assert classifier.classify_pickup(7, "m4a1", 1) is None
    assert classifier.is_dropped(7)


def test_dropped_unknown_instance_is_pickup_not_purchase() -> None:
    classifier = WeaponTransactionClassifier()
    classifier.register_drop(9, "deagle", 1)
    assert classifier.classify_pickup(9, "deagle", 2) == ACTION_PICKUP


def test_filtered_items_are_never_classified() -> None:
    classifier = WeaponTransactionClassifier()
    for item in ("glock", "hkp2000", "usp_silencer", "knife", "c4"):
        assert classifier.classify_pickup(1, item, 1) is None
        assert not classifier.register_drop(1, item, 1)
    assert classifier.owner(1) is None


def test_reset_forgets_instances() -> None:
    classifier = WeaponTransactionClassifier()
    classifier.classify_pickup(1, "ak47", 1)
    classifier.reset()
    assert classifier.classify_pickup(1, "ak47", 2) == ACTION_PURCHASE


def test_make_record_fills_slot() -> None:
    record = make_record(time=1.5, item="ak47", action=ACTION_PURCHASE)
    assert record.slot == "rifle"
    assert record.price == 2700
