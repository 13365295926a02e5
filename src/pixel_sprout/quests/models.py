from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class QuestStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (QuestStatus.COMPLETED, QuestStatus.FAILED)


class QuestType(str, Enum):
    FETCH_ARTIFACT = "FETCH_ARTIFACT"
    KILL_RATS = "KILL_RATS"
    EXPLORE_ROOMS = "EXPLORE_ROOMS"
    ESCORT_SPIRIT = "ESCORT_SPIRIT"
    FINAL_SEED = "FINAL_SEED"

    @property
    def slug(self) -> str:
        return self.value.lower().replace("_", "-")


class DialoguePhase(str, Enum):
    GIVE = "give"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Objective:
    description: str
    required: int
    current: int = 0
    completed: bool = False

    def __post_init__(self) -> None:
        if self.required < 1:
            raise ValueError("objective.required must be >= 1")


@dataclass(frozen=True)
class QuestReward:
    health: int = 0
    unlock_stairs: bool = False
    reveal_map: bool = False
    artifact: Optional[str] = None


@dataclass(frozen=True)
class Quest:
    id: str
    level_id: int
    type: QuestType
    title: str
    description: str
    giver_entity_id: str
    status: QuestStatus = QuestStatus.NOT_STARTED
    objectives: Tuple[Objective, ...] = ()
    reward: QuestReward = field(default_factory=QuestReward)
    revealed_entity_ids: Tuple[str, ...] = ()
    dialogue_on_give: Tuple[str, ...] = ()
    dialogue_on_active: Tuple[str, ...] = ()
    dialogue_on_complete: Tuple[str, ...] = ()
