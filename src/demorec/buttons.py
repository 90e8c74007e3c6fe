from __future__ import annotations

"""Source engine `IN_*` input bits and the per-tick one-shot button queue."""

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .events import ParticipantState

IN_ATTACK: Final[int] = 1 << 0
IN_JUMP: Final[int] = 1 << 1
IN_DUCK: Final[int] = 1 << 2
IN_FORWARD: Final[int] = 1 << 3
IN_BACK: Final[int] = 1 << 4
IN_USE: Final[int] = 1 << 5
IN_CANCEL: Final[int] = 1 << 6
IN_LEFT: Final[int] = 1 << 7
IN_RIGHT: Final[int] = 1 << 8
IN_MOVELEFT: Final[int] = 1 << 9
IN_MOVERIGHT: Final[int] = 1 << 10
IN_ATTACK2: Final[int] = 1 << 11
IN_RUN: Final[int] = 1 << 12
IN_RELOAD: Final[int] = 1 << 13
IN_ALT1: Final[int] = 1 << 14
IN_ALT2: Final[int] = 1 << 15
IN_SCORE: Final[int] = 1 << 16
IN_SPEED: Final[int] = 1 << 17
IN_WALK: Final[int] = 1 << 18
IN_ZOOM: Final[int] = 1 << 19
IN_WEAPON1: Final[int] = 1 << 20
IN_WEAPON2: Final[int] = 1 << 21
IN_BULLRUSH: Final[int] = 1 << 22
IN_GRENADE1: Final[int] = 1 << 23
IN_GRENADE2: Final[int] = 1 << 24
IN_LOOKSPIN: Final[int] = 1 << 25


def button_bits(participant: ParticipantState, addon: int = 0) -> int:
    """Held-state bits derived from the snapshot, merged with one-shot `addon` bits."""
    bits = int(addon)
    if participant.ducking:
        bits |= IN_DUCK
    elif participant.walking:
        bits |= IN_SPEED
    if participant.reloading:
        bits |= IN_RELOAD
    if participant.defusing or participant.planting:
        bits |= IN_USE
    return bits


class PendingButtons:
    """One-shot bits signalled by discrete events, keyed by (tick, user id).

    Bits are applied to the frame built for that exact tick and consumed there.
    """

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending: dict[tuple[int, int], int] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def add(self, tick: int, user_id: int, bits: int) -> None:
        key = (int(tick), int(user_id))
        self._pending[key] = self._pending.get(key, 0) | int(bits)

    def take(self, tick: int, user_id: int) -> int:
        return self._pending.pop((int(tick), int(user_id)), 0)

    def discard_before(self, tick: int) -> None:
        stale = [key for key in self._pending if key[0] < int(tick)]
        for key in stale:
            del self._pending[key]

    def clear(self) -> None:
        self._pending.clear()
