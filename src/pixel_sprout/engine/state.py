from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ..dungeon.tiles import GameMap, Position
from ..entities import Entity, find_entity
from ..fov.fog_of_war import Mask
from ..quests.models import Quest, QuestStatus


class LogKind(str, Enum):
    INFO = "info"
    COMBAT = "combat"
    DIALOG = "dialog"
    SUCCESS = "success"


@dataclass(frozen=True)
class LogEntry:
    message: str
    kind: LogKind = LogKind.INFO


@dataclass(frozen=True)
class PendingRemoval:
    entity_id: str
    due_ms: int
    message: Optional[str] = None


@dataclass(frozen=True)
class GameState:
    """One immutable snapshot of a running game.

    Every rule returns a new ``GameState``; the helpers below are thin
    ``dataclasses.replace`` wrappers so callers never mutate a snapshot.
    """

    player: Position
    map: GameMap
    visible: Mask
    explored: Mask
    entities: Tuple[Entity, ...] = ()
    health: int = 20
    max_health: int = 20
    level_id: int = 1
    turn: int = 0
    game_over: bool = False
    game_won: bool = False
    quests: Tuple[Quest, ...] = ()
    active_quest_id: Optional[str] = None
    completed_quest_ids: Tuple[str, ...] = ()
    quest_log: Tuple[str, ...] = ()
    log: Tuple[LogEntry, ...] = ()
    clock_ms: int = 0
    pending_removals: Tuple[PendingRemoval, ...] = ()
    log_limit: int = 20

    @property
    def is_finished(self) -> bool:
        return self.game_over or self.game_won

    # -- log ----------------------------------------------------------------------------

    def log_message(self, message: str, kind: LogKind = LogKind.INFO) -> "GameState":
        entries = (self.log + (LogEntry(message, kind),))[-self.log_limit :]
        return replace(self, log=entries)

    def note_quest(self, message: str, kind: LogKind = LogKind.SUCCESS) -> "GameState":
        logged = self.log_message(message, kind)
        return replace(logged, quest_log=self.quest_log + (message,))

    # -- entities -----------------------------------------------------------------------

    def entity(self, entity_id: Optional[str]) -> Optional[Entity]:
        return find_entity(self.entities, entity_id)

    def with_entity(self, updated: Entity) -> "GameState":
        return replace(self, entities=tuple(updated if e.id == updated.id else e for e in self.entities))

    def without_entity(self, entity_id: str) -> "GameState":
        return replace(self, entities=tuple(e for e in self.entities if e.id != entity_id))

    # -- quests -------------------------------------------------------------------------

    def quest(self, quest_id: Optional[str]) -> Optional[Quest]:
        if quest_id is None:
            return None
        return next((q for q in self.quests if q.id == quest_id), None)

    def with_quest(self, updated: Quest) -> "GameState":
        return replace(self, quests=tuple(updated if q.id == updated.id else q for q in self.quests))

    @property
    def active_quest(self) -> Optional[Quest]:
        quest = self.quest(self.active_quest_id)
        if quest is None or quest.status is not QuestStatus.ACTIVE:
            return None
        return quest
