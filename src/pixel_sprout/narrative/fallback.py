"""Offline narration: direction hints and per-level atmosphere lines."""

from __future__ import annotations

import random
from typing import Dict, Tuple

from ..dungeon.tiles import Position

NEARBY = "very close by"

DIRECTION_HINTS: Dict[str, Tuple[str, ...]] = {
    "north": (
        "I feel a cold draft from the North...",
        "The spirits whisper of something beyond the northern reach.",
        "Listen... the northern passage calls.",
        "Something stirs in the darkness to the North.",
    ),
    "south": (
        "The deeper chambers lie to the South.",
        "I sense warmth rising from the Southern depths.",
        "The path forward spirals down to the South.",
        "Ancient echoes reverberate from the South.",
    ),
    "east": (
        "Seek what lies to the East.",
        "The light grows stronger toward the East.",
        "I feel drawn toward the Eastern reaches.",
        "The way ahead turns East.",
    ),
    "west": (
        "The way is barred to the West... or is it?",
        "Something moves in the Western shadows.",
        "The West holds secrets yet untold.",
        "A path opens to the West.",
    ),
    "north-east": ("The North-East winds carry whispers of your goal.",),
    "north-west": ("The North-West is shrouded in mystery.",),
    "south-east": ("The South-East depths pulse with ancient power.",),
    "south-west": ("The South-West corner calls to you.",),
    NEARBY: (
        "What you seek is very near. Can you not feel it?",
        "Close... so close. Look around you.",
    ),
}

LEVEL_TIPS: Dict[int, Tuple[str, ...]] = {
    1: (
        "The cellar smells of damp earth and forgotten things.",
        "Drips echo through the silence of the Cellar.",
        "Mushrooms glow faintly in the moisture.",
        "The air grows colder as you venture deeper.",
    ),
    2: (
        "The stench of the sewers fills your lungs.",
        "Rats skitter in the darkness of these passages.",
        "Water trickles unseen in the murk.",
        "The sewers pulse with forgotten life.",
    ),
    3: (
        "Ancient tomes line the shelves of the Library.",
        "Dust motes dance in the pale light.",
        "Knowledge sleeps in these endless halls.",
        "The Library breathes with centuries of secrets.",
    ),
    4: (
        "The Deep Dark swallows sound itself.",
        "Nothing survives here that shouldn't.",
        "Shadows writhe with intention.",
        "This place remembers when the world was young.",
    ),
    5: (
        "The Sunken Garden awakens with your presence.",
        "Life stirs beneath the stone and soil.",
        "Flowers bloom impossibly in this forgotten place.",
        "The Golden Seed pulses with ancient power.",
    ),
}


def describe_direction(origin: Position, target: Position, threshold: int = 3) -> str:
    """Coarse compass direction from ``origin`` to ``target``.

    Offsets of ``threshold`` cells or fewer on an axis are ignored; when both
    are that small the target is "very close by".
    """
    dx = target.x - origin.x
    dy = target.y - origin.y
    vertical = "North" if dy < -threshold else "South" if dy > threshold else ""
    horizontal = "West" if dx < -threshold else "East" if dx > threshold else ""
    if vertical and horizontal:
        return f"{vertical}-{horizontal}"
    return vertical or horizontal or NEARBY


class OfflineNarrator:
    """Canned text used when the remote narrator is missing or failing."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def hint(self, direction: str) -> str:
        lines = DIRECTION_HINTS.get(direction.lower(), DIRECTION_HINTS["south"])
        return self._rng.choice(lines)

    def tip(self, level_id: int) -> str:
        return self._rng.choice(LEVEL_TIPS.get(level_id, LEVEL_TIPS[1]))
