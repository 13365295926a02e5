from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple


class Intent(str, Enum):
    """Player commands, independent of the keys or buttons that produce them."""

    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    INTERACT = "interact"
    WAIT = "wait"

    @property
    def delta(self) -> Optional[Tuple[int, int]]:
        return MOVE_DELTAS.get(self)


MOVE_DELTAS: Dict[Intent, Tuple[int, int]] = {
    Intent.MOVE_UP: (0, -1),
    Intent.MOVE_DOWN: (0, 1),
    Intent.MOVE_LEFT: (-1, 0),
    Intent.MOVE_RIGHT: (1, 0),
}

KEY_BINDINGS: Dict[str, Intent] = {
    "w": Intent.MOVE_UP,
    "up": Intent.MOVE_UP,
    "s": Intent.MOVE_DOWN,
    "down": Intent.MOVE_DOWN,
    "a": Intent.MOVE_LEFT,
    "left": Intent.MOVE_LEFT,
    "d": Intent.MOVE_RIGHT,
    "right": Intent.MOVE_RIGHT,
    "e": Intent.INTERACT,
    "space": Intent.INTERACT,
    ".": Intent.WAIT,
    "z": Intent.WAIT,
}


def intent_for_key(key: str) -> Optional[Intent]:
    return KEY_BINDINGS.get(key.strip().lower())
