from enum import Enum, auto


class GameEvent(Enum):
    """Events emitted by GameSession to notify a front end."""

    STATE_CHANGED = auto()
    LEVEL_CHANGED = auto()
    DIALOGUE_UPDATED = auto()
    OVERLAY_CHANGED = auto()
    GAME_ENDED = auto()
