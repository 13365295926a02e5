"""Quest lifecycle: NOT_STARTED -> ACTIVE -> COMPLETED | FAILED.

Every transition is a pure function over ``GameState``. A transition that is
not allowed returns the very same state object, so callers can test for a
no-op with ``is``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from ..entities import DialogueState, EntityKind
from ..fov.fog_of_war import reveal_all
from ..engine.state import GameState, LogKind
from .models import DialoguePhase, Objective, Quest, QuestReward, QuestStatus, QuestType

logger = logging.getLogger(__name__)

DEFAULT_DIALOGUE = "I have nothing more to say..."


def quest_id_for(level_id: int, quest_type: QuestType) -> str:
    if quest_type is QuestType.FINAL_SEED:
        return "quest-final-seed"
    return f"quest-{quest_type.slug}-{level_id}"


def create_quest(
    level_id: int,
    quest_type: QuestType,
    giver_entity_id: str,
    title: str,
    description: str,
    objectives: Iterable[Objective],
    reward: Optional[QuestReward] = None,
    dialogue_on_give: Sequence[str] = (),
    dialogue_on_complete: Sequence[str] = (),
    dialogue_on_active: Sequence[str] = (),
    revealed_entity_ids: Sequence[str] = (),
    quest_id: Optional[str] = None,
) -> Quest:
    """Build a fresh quest. Objectives are reset to zero progress."""
    fresh = tuple(replace(o, current=0, completed=False) for o in objectives)
    if not fresh:
        raise ValueError("a quest needs at least one objective")
    return Quest(
        id=quest_id or quest_id_for(level_id, quest_type),
        level_id=level_id,
        type=quest_type,
        title=title,
        description=description,
        giver_entity_id=giver_entity_id,
        status=QuestStatus.NOT_STARTED,
        objectives=fresh,
        reward=reward or QuestReward(),
        revealed_entity_ids=tuple(revealed_entity_ids),
        dialogue_on_give=tuple(dialogue_on_give),
        dialogue_on_active=tuple(dialogue_on_active),
        dialogue_on_complete=tuple(dialogue_on_complete),
    )


def _recorded(quest: Quest, state: GameState) -> Quest:
    return state.quest(quest.id) or quest


def _set_giver_dialogue(state: GameState, quest: Quest, dialogue: DialogueState) -> GameState:
    giver = state.entity(quest.giver_entity_id)
    if giver is None:
        return state
    return state.with_entity(replace(giver, dialogue_state=dialogue, quest_id=quest.id))


def start_quest(quest: Quest, state: GameState) -> GameState:
    recorded = state.quest(quest.id)
    if recorded is None:
        logger.debug("start_quest: %s is not part of this game", quest.id)
        return state
    if recorded.status is not QuestStatus.NOT_STARTED:
        return state
    if state.active_quest is not None:
        logger.debug("start_quest: %s blocked by active quest %s", quest.id, state.active_quest_id)
        return state

    started = replace(recorded, status=QuestStatus.ACTIVE)
    reveal = set(started.revealed_entity_ids)
    entities = tuple(replace(e, hidden=False) if e.id in reveal else e for e in state.entities)
    state = replace(state.with_quest(started), entities=entities, active_quest_id=started.id)
    state = _set_giver_dialogue(state, started, DialogueState.QUEST_ACTIVE)
    logger.info("Quest started: %s (%s)", started.title, started.id)
    return state.note_quest(f"Quest Started: {started.title}", LogKind.SUCCESS)


def update_objective(quest: Quest, index: int, new_current: int) -> Quest:
    """Set an objective's progress, clamped to ``[0, required]``.

    An out-of-range index returns ``quest`` unchanged. When every objective is
    complete the returned quest carries status COMPLETED.
    """
    if index < 0 or index >= len(quest.objectives):
        return quest
    objective = quest.objectives[index]
    current = max(0, min(new_current, objective.required))
    updated = replace(objective, current=current, completed=current >= objective.required)
    objectives = quest.objectives[:index] + (updated,) + quest.objectives[index + 1 :]
    status = QuestStatus.COMPLETED if all(o.completed for o in objectives) else quest.status
    return replace(quest, objectives=objectives, status=status)


def _apply_reward(state: GameState, quest: Quest) -> GameState:
    reward = quest.reward
    if reward.health:
        state = replace(state, health=min(state.health + reward.health, state.max_health))
    if reward.unlock_stairs:
        giver = state.entity(quest.giver_entity_id)
        if giver is not None and giver.kind is EntityKind.GHOST:
            state = state.without_entity(giver.id)
            logger.debug("Quest %s: spirit %s departs", quest.id, giver.id)
    if reward.reveal_map:
        state = replace(state, explored=reveal_all(state.explored))
    if reward.artifact:
        state = state.log_message(f"You obtained {reward.artifact}.", LogKind.SUCCESS)
    return state


def complete_quest(quest: Quest, state: GameState) -> GameState:
    """Finish an ACTIVE quest and pay out its reward.

    The check uses the status recorded in ``state``; a quest that is not
    ACTIVE there (or already listed as completed) leaves the state untouched.
    """
    recorded = _recorded(quest, state)
    if recorded.status is not QuestStatus.ACTIVE or quest.id in state.completed_quest_ids:
        return state

    done = replace(quest, status=QuestStatus.COMPLETED)
    state = state.with_quest(done)
    state = _set_giver_dialogue(state, done, DialogueState.QUEST_COMPLETE)
    state = _apply_reward(state, done)
    state = replace(
        state,
        completed_quest_ids=state.completed_quest_ids + (done.id,),
        active_quest_id=None if state.active_quest_id == done.id else state.active_quest_id,
    )
    logger.info("Quest completed: %s (%s)", done.title, done.id)
    return state.note_quest(f"Quest Completed: {done.title}", LogKind.SUCCESS)


def fail_quest(quest: Quest, state: GameState) -> GameState:
    recorded = _recorded(quest, state)
    if recorded.status is not QuestStatus.ACTIVE:
        return state
    failed = replace(recorded, status=QuestStatus.FAILED)
    state = state.with_quest(failed)
    state = _set_giver_dialogue(state, failed, DialogueState.DONE)
    state = replace(state, active_quest_id=None if state.active_quest_id == failed.id else state.active_quest_id)
    logger.info("Quest failed: %s (%s)", failed.title, failed.id)
    return state.note_quest(f"Quest Failed: {failed.title}", LogKind.INFO)


def advance_objective(state: GameState, quest_id: str, index: int, value: int) -> GameState:
    """Progress an ACTIVE quest and complete it once every objective is done."""
    quest = state.quest(quest_id)
    if quest is None or quest.status is not QuestStatus.ACTIVE:
        return state
    updated = update_objective(quest, index, value)
    if updated == quest:
        return state
    if all_objectives_completed(updated):
        return complete_quest(updated, state)
    return state.with_quest(updated)


def seed_level_quests(state: GameState, quests: Sequence[Quest]) -> GameState:
    """Register a freshly entered level's quests.

    A quest still active from an earlier level is failed; it was left behind.
    Givers are linked to their quest, and quests posted by anything other than
    a spirit start straight away since there is nobody to talk to about them.
    """
    leftover = state.active_quest
    if leftover is not None and leftover.level_id != state.level_id:
        state = fail_quest(leftover, state)

    known = {q.id for q in state.quests}
    new = [q for q in quests if q.id not in known]
    if not new:
        return state
    state = replace(state, quests=state.quests + tuple(new))
    for quest in new:
        state = _set_giver_dialogue(state, quest, DialogueState.QUEST_AVAILABLE)

    for quest in new:
        giver = state.entity(quest.giver_entity_id)
        if giver is None or giver.kind is not EntityKind.GHOST:
            state = start_quest(quest, state)
    return state


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_active_quest(state: GameState) -> Optional[Quest]:
    return state.active_quest


def get_quest_by_id(state: GameState, quest_id: str) -> Optional[Quest]:
    return state.quest(quest_id)


def quests_for_level(state: GameState, level_id: Optional[int] = None) -> Tuple[Quest, ...]:
    lvl = state.level_id if level_id is None else level_id
    return tuple(q for q in state.quests if q.level_id == lvl)


def available_quests(state: GameState, giver_entity_id: Optional[str] = None) -> Tuple[Quest, ...]:
    return tuple(
        q
        for q in quests_for_level(state)
        if q.status is QuestStatus.NOT_STARTED and (giver_entity_id is None or q.giver_entity_id == giver_entity_id)
    )


def completed_quests(state: GameState) -> Tuple[Quest, ...]:
    return tuple(q for q in state.quests if q.status is QuestStatus.COMPLETED)


def is_quest_already_completed(state: GameState, quest_id: str) -> bool:
    return quest_id in state.completed_quest_ids


def all_objectives_completed(quest: Quest) -> bool:
    return all(o.completed for o in quest.objectives)


def quest_progress(quest: Quest) -> int:
    """Overall completion in whole percent."""
    required = sum(o.required for o in quest.objectives)
    if required == 0:
        return 0
    current = sum(o.current for o in quest.objectives)
    return round(current * 100 / required)


def objective_status(objective: Objective) -> str:
    return f"{objective.current}/{objective.required}"


def active_objectives(quest: Quest) -> Tuple[Objective, ...]:
    return tuple(o for o in quest.objectives if not o.completed)


def dialogue_for(quest: Quest, phase: DialoguePhase) -> Tuple[str, ...]:
    if phase is DialoguePhase.GIVE:
        return quest.dialogue_on_give
    if phase is DialoguePhase.ACTIVE:
        return quest.dialogue_on_active
    return quest.dialogue_on_complete


def pick_dialogue(lines: Sequence[str], rng: random.Random) -> str:
    if not lines:
        return DEFAULT_DIALOGUE
    return rng.choice(list(lines))


def stairs_unlocked(state: GameState) -> bool:
    """True once every current-level quest that gates the stairs is COMPLETED."""
    gating: List[Quest] = [q for q in quests_for_level(state) if q.reward.unlock_stairs]
    return all(q.status is QuestStatus.COMPLETED for q in gating)
