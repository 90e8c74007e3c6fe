from __future__ import annotations

"""Equipment names, slots, prices and SourceMod `CSWeaponID` numbering."""

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .events import ParticipantState


class WeaponId(IntEnum):
    NONE = 0
    P228 = 1
    GLOCK = 2
    SCOUT = 3
    HEGRENADE = 4
    XM1014 = 5
    C4 = 6
    MAC10 = 7
    AUG = 8
    SMOKEGRENADE = 9
    ELITE = 10
    FIVESEVEN = 11
    UMP45 = 12
    SG550 = 13
    GALIL = 14
    FAMAS = 15
    USP = 16
    AWP = 17
    MP5NAVY = 18
    M249 = 19
    M3 = 20
    M4A1 = 21
    TMP = 22
    G3SG1 = 23
    FLASHBANG = 24
    DEAGLE = 25
    SG552 = 26
    AK47 = 27
    KNIFE = 28
    P90 = 29
    SHIELD = 30
    KEVLAR = 31
    ASSAULTSUIT = 32
    NIGHTVISION = 33
    GALILAR = 34
    BIZON = 35
    MAG7 = 36
    NEGEV = 37
    SAWEDOFF = 38
    TEC9 = 39
    TASER = 40
    HKP2000 = 41
    MP7 = 42
    MP9 = 43
    NOVA = 44
    P250 = 45
    SCAR17 = 46
    SCAR20 = 47
    SG556 = 48
    SSG08 = 49
    KNIFE_GG = 50
    MOLOTOV = 51
    DECOY = 52
    INCGRENADE = 53
    DEFUSER = 54
    HEAVYASSAULTSUIT = 55
    M4A1_SILENCER = 60
    USP_SILENCER = 61
    CZ75A = 63
    REVOLVER = 64


WEAPON_NONE: Final[int] = int(WeaponId.NONE)

SLOT_PISTOL: Final[str] = "pistol"
SLOT_SMG: Final[str] = "smg"
SLOT_RIFLE: Final[str] = "rifle"
SLOT_SNIPER: Final[str] = "sniper"
SLOT_HEAVY: Final[str] = "heavy"
SLOT_GRENADE: Final[str] = "grenade"
SLOT_GEAR: Final[str] = "gear"
SLOT_KNIFE: Final[str] = "knife"
SLOT_ZEUS: Final[str] = "zeus"
SLOT_UNKNOWN: Final[str] = "unknown"


@dataclass(frozen=True, slots=True)
class EquipmentMeta:
    name: str
    slot: str
    price: int
    weapon_id: WeaponId


EQUIPMENT_TABLE: tuple[EquipmentMeta, ...] = (
    EquipmentMeta("glock", SLOT_PISTOL, 200, WeaponId.GLOCK),
    EquipmentMeta("hkp2000", SLOT_PISTOL, 200, WeaponId.HKP2000),
    EquipmentMeta("usp_silencer", SLOT_PISTOL, 200, WeaponId.USP_SILENCER),
    EquipmentMeta("p250", SLOT_PISTOL, 300, WeaponId.P250),
    EquipmentMeta("deagle", SLOT_PISTOL, 700, WeaponId.DEAGLE),
    EquipmentMeta("fiveseven", SLOT_PISTOL, 500, WeaponId.FIVESEVEN),
    EquipmentMeta("tec9", SLOT_PISTOL, 500, WeaponId.TEC9),
    EquipmentMeta("cz75a", SLOT_PISTOL, 500, WeaponId.CZ75A),
    EquipmentMeta("revolver", SLOT_PISTOL, 600, WeaponId.REVOLVER),
    EquipmentMeta("elite", SLOT_PISTOL, 300, WeaponId.ELITE),
    EquipmentMeta("mp7", SLOT_SMG, 1500, WeaponId.MP7),
    EquipmentMeta("mp9", SLOT_SMG, 1250, WeaponId.MP9),
    # No dedicated id exists for the MP5-SD; bot playback maps it onto the MP5 slot.
    EquipmentMeta("mp5sd", SLOT_SMG, 1500, WeaponId.MP5NAVY),
    EquipmentMeta("ump45", SLOT_SMG, 1200, WeaponId.UMP45),
    EquipmentMeta("p90", SLOT_SMG, 2350, WeaponId.P90),
    EquipmentMeta("bizon", SLOT_SMG, 1400, WeaponId.BIZON),
    EquipmentMeta("mac10", SLOT_SMG, 1050, WeaponId.MAC10),
    EquipmentMeta("ak47", SLOT_RIFLE, 2700, WeaponId.AK47),
    EquipmentMeta("m4a1", SLOT_RIFLE, 3100, WeaponId.M4A1),
    EquipmentMeta("m4a1_silencer", SLOT_RIFLE, 2900, WeaponId.M4A1_SILENCER),
    EquipmentMeta("galilar", SLOT_RIFLE, 2000, WeaponId.GALILAR),
    EquipmentMeta("famas", SLOT_RIFLE, 2250, WeaponId.FAMAS),
    EquipmentMeta("aug", SLOT_RIFLE, 3300, WeaponId.AUG),
    EquipmentMeta("sg556", SLOT_RIFLE, 3000, WeaponId.SG556),
    EquipmentMeta("awp", SLOT_SNIPER, 4750, WeaponId.AWP),
    EquipmentMeta("ssg08", SLOT_SNIPER, 1700, WeaponId.SSG08),
    EquipmentMeta("scar20", SLOT_SNIPER, 5000, WeaponId.SCAR20),
    EquipmentMeta("g3sg1", SLOT_SNIPER, 5000, WeaponId.G3SG1),
    EquipmentMeta("xm1014", SLOT_HEAVY, 2000, WeaponId.XM1014),
    EquipmentMeta("mag7", SLOT_HEAVY, 1300, WeaponId.MAG7),
    EquipmentMeta("sawedoff", SLOT_HEAVY, 1100, WeaponId.SAWEDOFF),
    EquipmentMeta("nova", SLOT_HEAVY, 1050, WeaponId.NOVA),
    EquipmentMeta("m249", SLOT_HEAVY, 5200, WeaponId.M249),
    EquipmentMeta("negev", SLOT_HEAVY, 1700, WeaponId.NEGEV),
    EquipmentMeta("flashbang", SLOT_GRENADE, 200, WeaponId.FLASHBANG),
    EquipmentMeta("smokegrenade", SLOT_GRENADE, 300, WeaponId.SMOKEGRENADE),
    EquipmentMeta("hegrenade", SLOT_GRENADE, 300, WeaponId.HEGRENADE),
    EquipmentMeta("molotov", SLOT_GRENADE, 400, WeaponId.MOLOTOV),
    EquipmentMeta("incgrenade", SLOT_GRENADE, 600, WeaponId.INCGRENADE),
    EquipmentMeta("decoy", SLOT_GRENADE, 50, WeaponId.DECOY),
    EquipmentMeta("vest", SLOT_GEAR, 650, WeaponId.KEVLAR),
    EquipmentMeta("vesthelm", SLOT_GEAR, 1000, WeaponId.ASSAULTSUIT),
    EquipmentMeta("defuser", SLOT_GEAR, 400, WeaponId.DEFUSER),
    EquipmentMeta("taser", SLOT_ZEUS, 200, WeaponId.TASER),
    EquipmentMeta("knife", SLOT_KNIFE, 0, WeaponId.KNIFE),
    EquipmentMeta("c4", SLOT_UNKNOWN, 0, WeaponId.C4),
)

EQUIPMENT_BY_NAME: dict[str, EquipmentMeta] = {entry.name: entry for entry in EQUIPMENT_TABLE}

# Starting pistols, knife and bomb never count as transactions.
TRANSACTION_FILTER: frozenset[str] = frozenset({"glock", "hkp2000", "usp_silencer", "knife", "c4"})
INVENTORY_FILTER: frozenset[str] = frozenset({"knife", "c4"})

_NAME_ALIASES: dict[str, str] = {
    "m4a4": "m4a1",
    "m4a1s": "m4a1_silencer",
    "usps": "usp_silencer",
    "usp": "usp_silencer",
    "p2000": "hkp2000",
    "glock18": "glock",
    "deserteagle": "deagle",
    "dualberettas": "elite",
    "cz75auto": "cz75a",
    "r8revolver": "revolver",
    "galil": "galilar",
    "sg553": "sg556",
    "scout": "ssg08",
    "mp5": "mp5sd",
    "ppbizon": "bizon",
    "mac-10": "mac10",
    "kevlar": "vest",
    "kevlarvest": "vest",
    "kevlar+helmet": "vesthelm",
    "defusekit": "defuser",
    "zeusx27": "taser",
    "zeus": "taser",
    "smoke": "smokegrenade",
    "he": "hegrenade",
    "flash": "flashbang",
    "incendiary": "incgrenade",
    "incendiarygrenade": "incgrenade",
    "decoygrenade": "decoy",
    "bomb": "c4",
}


def normalize_equipment_name(name: str) -> str:
    """Canonical lowercase equipment name (e.g. `weapon_AK-47` -> `ak47`)."""
    text = str(name).strip().lower()
    if text.startswith("weapon_"):
        text = text[len("weapon_") :]
    if text in EQUIPMENT_BY_NAME:
        return text
    alias = _NAME_ALIASES.get(text)
    if alias is not None:
        return alias
    compact = text.replace("-", "").replace(" ", "")
    if compact in EQUIPMENT_BY_NAME:
        return compact
    return _NAME_ALIASES.get(compact, compact)


def equipment_slot(name: str) -> str:
    entry = EQUIPMENT_BY_NAME.get(name)
    if entry is None:
        return SLOT_UNKNOWN
    return entry.slot


def equipment_price(name: str) -> int:
    entry = EQUIPMENT_BY_NAME.get(name)
    if entry is None:
        return 0
    return int(entry.price)


def weapon_id(name: str) -> int:
    if not name:
        return WEAPON_NONE
    entry = EQUIPMENT_BY_NAME.get(normalize_equipment_name(name))
    if entry is None:
        return WEAPON_NONE
    return int(entry.weapon_id)


def is_grenade(name: str) -> bool:
    return equipment_slot(name) == SLOT_GRENADE


def should_filter_transaction(name: str) -> bool:
    return name in TRANSACTION_FILTER


def should_filter_inventory(name: str) -> bool:
    return name in INVENTORY_FILTER


def final_inventory(participant: ParticipantState) -> list[str]:
    """Deduplicated carried equipment plus armor and kit, knife and bomb removed."""
    items: list[str] = []
    seen: set[str] = set()

    def _add(name: str) -> None:
        if name and name not in seen:
            items.append(name)
            seen.add(name)

    for raw in participant.inventory:
        name = normalize_equipment_name(raw)
        if should_filter_inventory(name):
            continue
        _add(name)

    if participant.helmet:
        _add("vesthelm")
    elif participant.armor > 0:
        _add("vest")
    if participant.defuse_kit:
        _add("defuser")
    return items
