"""Per-level quest definitions.

Each level id maps to a factory that inspects the entities actually spawned
on that level. A quest whose giver or target did not spawn is left out.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence

from ..entities import Entity, EntityKind, first_of_kind, of_kind
from .engine import create_quest
from .models import Objective, Quest, QuestReward, QuestType

logger = logging.getLogger(__name__)

QuestFactory = Callable[[int, Sequence[Entity]], List[Quest]]

LEVEL_QUESTS: Dict[int, QuestFactory] = {}


def _register(level_id: int) -> Callable[[QuestFactory], QuestFactory]:
    def decorator(fn: QuestFactory) -> QuestFactory:
        LEVEL_QUESTS[level_id] = fn
        return fn

    return decorator


def quests_for_new_level(level_id: int, entities: Sequence[Entity]) -> List[Quest]:
    factory = LEVEL_QUESTS.get(level_id)
    if factory is None:
        return []
    quests = factory(level_id, entities)
    logger.debug("Level %d quests: %s", level_id, [q.id for q in quests])
    return quests


def _ghost(entities: Sequence[Entity]) -> Optional[Entity]:
    return first_of_kind(entities, EntityKind.GHOST)


def required_kills(rat_count: int) -> int:
    return max(1, math.ceil(rat_count * 0.75))


_KILL_LORE = {
    2: {
        "title": "Vermin Purge",
        "give": (
            "These rats... they are not natural.",
            "The corruption has twisted them into something vile.",
            "Slay at least {n} of them and I can cleanse this area.",
        ),
        "complete": (
            "The corruption weakens. I can feel the air clearing.",
            "You have earned passage below.",
        ),
        "active": (
            "The rats still skitter in the darkness.",
            "{n} must fall before I can open the way.",
        ),
    },
    4: {
        "title": "The Last Stand",
        "give": (
            "We are close to the source now.",
            "The rats here are the strongest yet, guardians of the corruption.",
            "Destroy {n} of them. I will hold the barrier.",
        ),
        "complete": (
            "It is done. The final passage opens.",
            "What lies below... I pray you are ready.",
        ),
        "active": ("Keep fighting. They must not be allowed to regroup.",),
    },
}


def _kill_quest(level_id: int, entities: Sequence[Entity], spirit_gives: bool = True) -> Optional[Quest]:
    rats = of_kind(entities, EntityKind.RAT)
    if not rats:
        return None
    ghost = _ghost(entities) if spirit_gives else None
    giver = ghost or rats[0]
    n = required_kills(len(rats))
    lore = _KILL_LORE.get(
        level_id,
        {
            "title": f"Rat Hunt (Level {level_id})",
            "give": ("Kill {n} rats on this level.",),
            "complete": ("The rats are dealt with. Well done.",),
            "active": ("Keep hunting.",),
        },
    )
    return create_quest(
        level_id,
        QuestType.KILL_RATS,
        giver.id,
        lore["title"],
        f"Defeat {n} corrupted rats to cleanse this level.",
        [Objective("Defeat corrupted rats", required=n)],
        QuestReward(health=10, unlock_stairs=True),
        dialogue_on_give=[line.format(n=n) for line in lore["give"]],
        dialogue_on_complete=[line.format(n=n) for line in lore["complete"]],
        dialogue_on_active=[line.format(n=n) for line in lore["active"]],
    )


@_register(1)
def _cellar(level_id: int, entities: Sequence[Entity]) -> List[Quest]:
    ghost = _ghost(entities)
    if ghost is None:
        return []
    return [
        create_quest(
            level_id,
            QuestType.EXPLORE_ROOMS,
            ghost.id,
            "The Ghost's Plea",
            "A restless spirit calls out from the darkness. Listen to their story and explore the cellar.",
            [Objective("Explore the cellar", required=5)],
            QuestReward(health=5, unlock_stairs=True),
            dialogue_on_give=(
                "Welcome, traveler... I've been trapped in this cellar for so long...",
                "Please, explore these chambers. Help me understand what lies below.",
                "The darkness grows thin here. Perhaps you can help me find peace.",
            ),
            dialogue_on_complete=(
                "Thank you for exploring. Now I understand what must be done.",
                "The path forward is revealed. Go deeper if you dare.",
            ),
            dialogue_on_active=(
                "Have you seen anything unusual in your travels?",
                "The further chambers hold secrets we must uncover.",
            ),
        )
    ]


@_register(2)
def _sewers(level_id: int, entities: Sequence[Entity]) -> List[Quest]:
    quest = _kill_quest(level_id, entities)
    return [quest] if quest is not None else []


@_register(3)
def _library(level_id: int, entities: Sequence[Entity]) -> List[Quest]:
    ghost = _ghost(entities)
    artifact = first_of_kind(entities, EntityKind.ARTIFACT)
    if ghost is None or artifact is None:
        return []
    return [
        create_quest(
            level_id,
            QuestType.FETCH_ARTIFACT,
            ghost.id,
            "The Lost Tome",
            f"An ancient scholar seeks the {artifact.name}, lost somewhere in the library's depths.",
            [
                Objective(f"Find the {artifact.name}", required=1),
                Objective("Return to the spirit", required=1),
            ],
            QuestReward(health=15, unlock_stairs=True, reveal_map=True),
            dialogue_on_give=(
                "The corruption grows thicker below.",
                f"The {artifact.name} lies hidden here; it holds wards against the darkness.",
                "Bring it to me so I may read the incantation.",
            ),
            dialogue_on_complete=(
                "Yes... the words are still legible.",
                "*The spirit reads aloud and the air shimmers*",
                "The path below is warded now. Go safely.",
            ),
            dialogue_on_active=(
                f"The {artifact.name}... I can sense its pages rustling.",
                "It must be in one of the chambers nearby.",
            ),
            revealed_entity_ids=[artifact.id],
        )
    ]


@_register(4)
def _deep_dark(level_id: int, entities: Sequence[Entity]) -> List[Quest]:
    quests: List[Quest] = []
    # The spirit here has its own errand; the rats post the purge themselves.
    kill = _kill_quest(level_id, entities, spirit_gives=False)
    if kill is not None:
        quests.append(kill)
    ghost = _ghost(entities)
    if ghost is not None:
        quests.append(
            create_quest(
                level_id,
                QuestType.ESCORT_SPIRIT,
                ghost.id,
                "Guide the Lost Soul",
                "A trapped spirit needs guidance through the dark maze to find peace.",
                [Objective("Guide the spirit to the exit", required=1)],
                QuestReward(health=20),
                dialogue_on_give=(
                    "I... I'm so lost in this darkness...",
                    "Will you guide me through? I fear I cannot find the way alone.",
                    "Please, help me reach the light above.",
                ),
                dialogue_on_complete=(
                    "We did it! I can feel the light now!",
                    "Thank you for guiding me. I can finally rest.",
                ),
                dialogue_on_active=(
                    "This way? Or that way? Everything looks the same...",
                    "Stay close to me. I feel safer near you.",
                ),
            )
        )
    return quests


@_register(5)
def _sunken_garden(level_id: int, entities: Sequence[Entity]) -> List[Quest]:
    ghost = _ghost(entities)
    if ghost is None:
        return []
    return [
        create_quest(
            level_id,
            QuestType.FINAL_SEED,
            ghost.id,
            "The Golden Seed",
            "At last... the final chamber. The Golden Seed is within reach.",
            [Objective("Retrieve the Golden Seed", required=1)],
            QuestReward(health=50, artifact="The Golden Seed of Life"),
            dialogue_on_give=(
                "We've made it... to the heart of the dungeon.",
                "The Golden Seed lies ahead, guarded by ancient forces.",
                "This is your moment. Go forward and claim your destiny.",
            ),
            dialogue_on_complete=(
                "You did it! You've retrieved the seed!",
                "Nature will bloom again. The world is saved!",
            ),
            dialogue_on_active=(
                "The seed glows softly in this sacred place...",
                "Can you feel it? The power of life itself.",
            ),
        )
    ]
