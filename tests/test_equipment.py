from __future__ import annotations

from demorec.equipment import (
    EQUIPMENT_TABLE,
    WEAPON_NONE,
    WeaponId,
    equipment_price,
    equipment_slot,
    final_inventory,
    is_grenade,
    normalize_equipment_name,
    should_filter_inventory,
    should_filter_transaction,
    weapon_id,
)
from demorec.events import ParticipantState


def test_catalog_names_are_unique_and_canonical() -> None:
    names = [entry.name for entry in EQUIPMENT_TABLE]
    assert len(names) == len(set(names))
    for name in names:
        assert normalize_equipment_name(name) == name


def test_prices_and_slots() -> None:
    assert equipment_price("ak47") == 2700
    assert equipment_price("m4a1") == 3100
    assert equipment_price("awp") == 4750
    assert equipment_price("vesthelm") == 1000
    assert equipment_price("defuser") == 400
    assert equipment_price("no_such_item") == 0
    assert equipment_slot("ak47") == "rifle"
    assert equipment_slot("nova") == "heavy"
    assert equipment_slot("taser") == "zeus"
    assert equipment_slot("vest") == "gear"
    assert equipment_slot("c4") == "unknown"
    assert equipment_slot("no_such_item") == "unknown"


def test_name_normalization_aliases() -> None:
    assert normalize_equipment_name("weapon_ak47") == "ak47"
    assert normalize_equipment_name("AK-47") == "ak47"
    assert normalize_equipment_name("M4A4") == "m4a1"
    assert normalize_equipment_name("m4a1s") == "m4a1_silencer"
    assert normalize_equipment_name("Glock18") == "glock"
    assert normalize_equipment_name("Desert Eagle") == "deagle"
    assert normalize_equipment_name("kevlar+helmet") == "vesthelm"
    assert normalize_equipment_name("defusekit") == "defuser"


def test_weapon_ids_follow_sourcemod_numbering() -> None:
    assert weapon_id("ak47") == int(WeaponId.AK47) == 27
    assert weapon_id("weapon_awp") == 17
    assert weapon_id("m4a1_silencer") == 60
    assert weapon_id("knife") == 28
    assert weapon_id("") == WEAPON_NONE
    assert weapon_id("unknown_gadget") == WEAPON_NONE


def test_filters() -> None:
    for name in ("glock", "hkp2000", "usp_silencer", "knife", "c4"):
        assert should_filter_transaction(name)
    assert not should_filter_transaction("ak47")
    assert should_filter_inventory("knife")
    assert should_filter_inventory("c4")
    assert not should_filter_inventory("glock")
    assert is_grenade("molotov")
    assert not is_grenade("ak47")


def test_final_inventory_dedups_and_adds_gear() -> None:
    participant = ParticipantState(
        name="p",
        inventory=["knife", "glock", "ak47", "weapon_ak47", "c4", "flashbang"],
        armor=100,
        helmet=True,
        defuse_kit=True,
    )
    assert final_inventory(participant) == ["glock", "ak47", "flashbang", "vesthelm", "defuser"]


def test_final_inventory_vest_without_helmet() -> None:
    assert final_inventory(ParticipantState(name="p", armor=50)) == ["vest"]
    assert final_inventory(ParticipantState(name="p", armor=0)) == []
