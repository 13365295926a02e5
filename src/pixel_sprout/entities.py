from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

from .dungeon.tiles import Position


class EntityKind(str, Enum):
    GHOST = "ghost"
    RAT = "rat"
    POTION = "potion"
    SEED = "seed"
    ARTIFACT = "artifact"


class DialogueState(str, Enum):
    IDLE = "idle"
    QUEST_AVAILABLE = "quest_available"
    QUEST_ACTIVE = "quest_active"
    QUEST_COMPLETE = "quest_complete"
    DONE = "done"


HOSTILE_KINDS = frozenset({EntityKind.GHOST, EntityKind.RAT})
NPC_KINDS = HOSTILE_KINDS
PICKUP_KINDS = frozenset({EntityKind.POTION, EntityKind.SEED, EntityKind.ARTIFACT})

DEFAULT_NAMES = {
    EntityKind.GHOST: "Wandering Spirit",
    EntityKind.RAT: "Dungeon Rat",
    EntityKind.POTION: "Mysterious Potion",
    EntityKind.SEED: "The Golden Seed",
    EntityKind.ARTIFACT: "Lost Artifact",
}

GLYPHS = {
    EntityKind.GHOST: "G",
    EntityKind.RAT: "r",
    EntityKind.POTION: "!",
    EntityKind.SEED: "*",
    EntityKind.ARTIFACT: "?",
}

SEED_ENTITY_ID = "golden-seed"


@dataclass(frozen=True)
class Entity:
    """Anything that occupies a cell besides the player.

    Behaviour branches on ``kind``; ``health`` of None means the entity cannot
    be damaged at all. ``dying`` entities are already out of play and only
    wait for their scheduled removal.
    """

    id: str
    kind: EntityKind
    position: Position
    name: str
    health: Optional[int] = None
    max_health: Optional[int] = None
    hidden: bool = False
    quest_id: Optional[str] = None
    dialogue_state: DialogueState = DialogueState.IDLE
    dying: bool = False

    @property
    def glyph(self) -> str:
        return GLYPHS[self.kind]

    @property
    def damageable(self) -> bool:
        return self.health is not None

    @property
    def in_play(self) -> bool:
        return not self.dying and not self.hidden

    @property
    def is_hostile(self) -> bool:
        return self.kind in HOSTILE_KINDS and self.in_play

    @property
    def is_pickup(self) -> bool:
        return self.kind in PICKUP_KINDS and self.in_play

    def moved_to(self, position: Position) -> "Entity":
        return replace(self, position=position)


def make_entity(kind: EntityKind, entity_id: str, position: Position, name: Optional[str] = None, **fields) -> Entity:
    return Entity(id=entity_id, kind=kind, position=position, name=name or DEFAULT_NAMES[kind], **fields)


def find_entity(entities: Iterable[Entity], entity_id: Optional[str]) -> Optional[Entity]:
    if entity_id is None:
        return None
    for entity in entities:
        if entity.id == entity_id:
            return entity
    return None


def entities_at(entities: Iterable[Entity], pos: Position) -> Iterator[Entity]:
    return (e for e in entities if e.position == pos)


def first_of_kind(entities: Iterable[Entity], kind: EntityKind) -> Optional[Entity]:
    return next((e for e in entities if e.kind is kind), None)


def of_kind(entities: Iterable[Entity], kind: EntityKind) -> Tuple[Entity, ...]:
    return tuple(e for e in entities if e.kind is kind)
