"""Pure game rules: (state, intent) -> Transition.

Nothing here performs I/O or waits. Side effects the front end has to carry
out (opening a dialogue, asking the narrator for text, announcing a new level)
are returned as effect records alongside the new state.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from ..combat.resolver import BumpOutcome, resolve_bump, strike
from ..config import GameSettings, LevelConfig, level_by_id, load_levels
from ..dungeon.generator import DungeonGenerator
from ..dungeon.tiles import Position, Tile
from ..entities import NPC_KINDS, DialogueState, Entity, EntityKind
from ..fov.fog_of_war import compute_visibility, count_explored
from ..quests.catalog import quests_for_new_level
from ..quests.engine import (
    advance_objective,
    available_quests,
    dialogue_for,
    fail_quest,
    pick_dialogue,
    seed_level_quests,
    stairs_unlocked,
    start_quest,
)
from ..quests.models import DialoguePhase, QuestType
from ..rng import RNGManager
from .intents import Intent
from .scheduler import schedule_removal
from .state import GameState, LogKind

logger = logging.getLogger(__name__)

BARRED_MESSAGE = "The path below is barred by a spectral force. Talk to the Spirit first."


# ---------------------------------------------------------------------------
# Context and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleContext:
    """Everything the rules need besides the state itself."""

    settings: GameSettings
    levels: Tuple[LevelConfig, ...]
    generator: DungeonGenerator
    rngm: RNGManager
    rng: random.Random

    @classmethod
    def build(
        cls,
        settings: Optional[GameSettings] = None,
        levels: Optional[Sequence[LevelConfig]] = None,
        rngm: Optional[RNGManager] = None,
    ) -> "RuleContext":
        settings = settings or GameSettings()
        rngm = rngm or RNGManager(settings.seed)
        return cls(
            settings=settings,
            levels=tuple(levels) if levels is not None else load_levels(),
            generator=DungeonGenerator.from_settings(settings),
            rngm=rngm,
            rng=rngm.context_rng("session"),
        )

    def layout_rng(self, level_id: int) -> random.Random:
        return self.rngm.context_rng("dungeon_layout", level_id)


@dataclass(frozen=True)
class OpenDialogue:
    entity_id: str
    speaker: str
    lines: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RequestDialogue:
    entity_id: str
    utterance: str


@dataclass(frozen=True)
class RequestTip:
    pass


@dataclass(frozen=True)
class LevelEntered:
    level_id: int
    name: str


Effect = Union[OpenDialogue, RequestDialogue, RequestTip, LevelEntered]


@dataclass(frozen=True)
class Transition:
    state: GameState
    effects: Tuple[Effect, ...] = field(default_factory=tuple)
    accepted: bool = True


def _reject(state: GameState) -> Transition:
    return Transition(state, (), accepted=False)


class InteractionKind(str, Enum):
    PICKUP = "pickup"
    DESCEND = "descend"
    TALK = "talk"


@dataclass(frozen=True)
class Interaction:
    kind: InteractionKind
    entity: Optional[Entity] = None

    def __post_init__(self) -> None:
        if self.kind is not InteractionKind.DESCEND and self.entity is None:
            raise ValueError(f"{self.kind.value} interaction needs a target entity")

    @property
    def label(self) -> str:
        entity = self.entity
        if self.kind is InteractionKind.DESCEND or entity is None:
            return "Descend the stairs"
        if self.kind is InteractionKind.PICKUP:
            return f"Pick up {entity.name}"
        if entity.kind is EntityKind.RAT:
            return f"Attack {entity.name}"
        return f"Talk to {entity.name}"


# ---------------------------------------------------------------------------
# Level lifecycle
# ---------------------------------------------------------------------------


def new_game(ctx: RuleContext) -> GameState:
    """Generate the first level and place the player at its start."""
    level = ctx.levels[0]
    generated = ctx.generator.generate(level, ctx.layout_rng(level.id))
    vis = compute_visibility(generated.map, generated.start, ctx.settings.vision_radius)
    state = GameState(
        player=generated.start,
        map=generated.map,
        visible=vis.visible,
        explored=vis.explored,
        entities=generated.entities,
        health=ctx.settings.player_max_health,
        max_health=ctx.settings.player_max_health,
        level_id=level.id,
        log_limit=ctx.settings.log_limit,
    )
    state = seed_level_quests(state, quests_for_new_level(level.id, state.entities))
    state = state.log_message(f"Welcome to {level.name}. Use Arrow Keys/WASD to move.")
    state = state.log_message("Bump into enemies to attack. Talk to spirits for clues.")
    logger.info("New game started on level %d (%s)", level.id, level.name)
    return state


def load_level(state: GameState, level_id: int, ctx: RuleContext) -> Transition:
    """Replace the current level with a freshly generated ``level_id``.

    Raises ``GenerationFailed`` if no valid layout can be produced.
    """
    level = level_by_id(ctx.levels, level_id)
    if level is None:
        return _reject(state.log_message("There is no deeper level."))

    generated = ctx.generator.generate(level, ctx.layout_rng(level.id))
    vis = compute_visibility(generated.map, generated.start, ctx.settings.vision_radius)
    state = replace(
        state,
        player=generated.start,
        map=generated.map,
        visible=vis.visible,
        explored=vis.explored,
        entities=generated.entities,
        level_id=level.id,
        pending_removals=(),
    )
    state = seed_level_quests(state, quests_for_new_level(level.id, state.entities))
    state = state.log_message(f"You descend deeper into {level.name}...", LogKind.SUCCESS)
    logger.info("Entered level %d (%s)", level.id, level.name)
    return Transition(state, (LevelEntered(level.id, level.name),))


# ---------------------------------------------------------------------------
# Quest observers
# ---------------------------------------------------------------------------


def _observe_exploration(state: GameState) -> GameState:
    quest = state.active_quest
    if quest is None or quest.type is not QuestType.EXPLORE_ROOMS:
        return state
    return advance_objective(state, quest.id, 0, count_explored(state.explored))


def _observe_escort(state: GameState) -> GameState:
    quest = state.active_quest
    if quest is None or quest.type is not QuestType.ESCORT_SPIRIT:
        return state
    if state.map.tile_at(state.player) is not Tile.STAIRS:
        return state
    return advance_objective(state, quest.id, 0, 1)


def _observe_kill(state: GameState, victim: Entity) -> GameState:
    quest = state.active_quest
    if victim.kind is not EntityKind.RAT or quest is None or quest.type is not QuestType.KILL_RATS:
        return state
    return advance_objective(state, quest.id, 0, quest.objectives[0].current + 1)


def _observe_pickup(state: GameState, item: Entity) -> GameState:
    quest = state.active_quest
    if quest is None:
        return state
    if quest.type is QuestType.FETCH_ARTIFACT and item.id in quest.revealed_entity_ids:
        return advance_objective(state, quest.id, 0, 1)
    if quest.type is QuestType.FINAL_SEED and item.kind is EntityKind.SEED:
        return advance_objective(state, quest.id, 0, 1)
    return state


def _player_died(state: GameState) -> GameState:
    state = replace(state, health=0, game_over=True)
    quest = state.active_quest
    if quest is not None:
        state = fail_quest(quest, state)
    logger.info("Player died on level %d at turn %d", state.level_id, state.turn)
    return state.log_message("You have perished in the darkness...", LogKind.COMBAT)


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------


def _refresh_fog(state: GameState, ctx: RuleContext) -> GameState:
    vis = compute_visibility(state.map, state.player, ctx.settings.vision_radius, state.explored)
    return replace(state, visible=vis.visible, explored=vis.explored)


def _hostile_at(state: GameState, pos: Position) -> Optional[Entity]:
    return next((e for e in state.entities if e.position == pos and e.is_hostile), None)


def _attack(state: GameState, target: Entity, ctx: RuleContext) -> GameState:
    result = resolve_bump(
        state.health,
        target,
        damage=ctx.settings.player_damage,
        retaliation={EntityKind.RAT: ctx.settings.rat_damage},
    )
    state = replace(state.with_entity(result.target), health=result.attacker_health, turn=state.turn + 1)

    if result.outcome is BumpOutcome.NO_EFFECT:
        state = state.log_message(f"Your strike passes straight through {target.name}.", LogKind.COMBAT)
    elif result.outcome is BumpOutcome.KILLED:
        state = state.log_message(
            f"You strike {target.name} for {result.damage_dealt} damage! It falls.", LogKind.COMBAT
        )
        state = schedule_removal(state, target.id, ctx.settings.bump_removal_delay_ms)
        state = _observe_kill(state, result.target)
    elif result.damage_taken:
        state = state.log_message(
            f"You strike {target.name} for {result.damage_dealt} damage! "
            f"It retaliates for {result.damage_taken} damage.",
            LogKind.COMBAT,
        )
    else:
        state = state.log_message(f"You strike {target.name} for {result.damage_dealt} damage.", LogKind.COMBAT)

    if result.attacker_dead:
        state = _player_died(state)
    return state


def move(state: GameState, dx: int, dy: int, ctx: RuleContext) -> Transition:
    """Step the player one cell, bumping into walls or attacking hostiles."""
    if (abs(dx), abs(dy)) not in ((1, 0), (0, 1)):
        raise ValueError(f"moves are a single cardinal step, got ({dx}, {dy})")
    if state.is_finished:
        return _reject(state)

    target = state.player.offset(dx, dy)
    if not state.map.in_bounds(target):
        return _reject(state)
    if not state.map.is_walkable(target):
        return _reject(state.log_message("You bumped into a wall."))

    blocker = _hostile_at(state, target)
    if blocker is not None:
        return Transition(_attack(state, blocker, ctx))

    state = replace(state, player=target, turn=state.turn + 1)
    state = _refresh_fog(state, ctx)
    state = _observe_exploration(state)
    state = _observe_escort(state)
    return Transition(state)


def wait(state: GameState, ctx: RuleContext) -> Transition:
    if state.is_finished:
        return _reject(state)
    state = replace(
        state,
        turn=state.turn + 1,
        health=min(state.health + ctx.settings.rest_heal, state.max_health),
    )
    state = state.log_message("You rest for a moment...")
    effects: Tuple[Effect, ...] = ()
    if ctx.rng.random() < ctx.settings.tip_chance:
        effects = (RequestTip(),)
    return Transition(state, effects)


def identify_interaction(state: GameState) -> Optional[Interaction]:
    """What INTERACT would do right now, by priority: pickup, stairs, talk."""
    pickup = next((e for e in state.entities if e.position == state.player and e.is_pickup), None)
    if pickup is not None:
        return Interaction(InteractionKind.PICKUP, pickup)
    if state.map.tile_at(state.player) is Tile.STAIRS:
        return Interaction(InteractionKind.DESCEND)
    npc = next(
        (
            e
            for e in state.entities
            if e.kind in NPC_KINDS and e.in_play and e.position.chebyshev(state.player) <= 1
        ),
        None,
    )
    if npc is not None:
        return Interaction(InteractionKind.TALK, npc)
    return None


def _pickup(state: GameState, item: Entity, ctx: RuleContext) -> Transition:
    state = state.without_entity(item.id)
    if item.kind is EntityKind.POTION:
        state = replace(state, health=min(state.health + ctx.settings.potion_heal, state.max_health))
        return Transition(state.log_message("You drank the potion! Health restored.", LogKind.SUCCESS))
    if item.kind is EntityKind.SEED:
        state = _observe_pickup(state, item)
        state = replace(state, game_won=True)
        logger.info("Golden Seed recovered at turn %d", state.turn)
        return Transition(state.log_message("YOU FOUND THE GOLDEN SEED! NATURE IS RESTORED!", LogKind.SUCCESS))
    state = state.log_message(f"You pick up the {item.name}.", LogKind.SUCCESS)
    return Transition(_observe_pickup(state, item))


def _descend(state: GameState, ctx: RuleContext) -> Transition:
    if not stairs_unlocked(state):
        return _reject(state.log_message(BARRED_MESSAGE))
    return load_level(state, state.level_id + 1, ctx)


def _strike_rat(state: GameState, rat: Entity, ctx: RuleContext) -> Transition:
    result = strike(state.health, rat, ctx.settings.player_damage)
    state = state.with_entity(result.target)
    state = state.log_message(
        f"You hit the {rat.name} for {result.damage_dealt} damage! "
        f"({result.target.health}/{result.target.max_health})",
        LogKind.COMBAT,
    )
    if result.outcome is BumpOutcome.KILLED:
        state = schedule_removal(state, rat.id, ctx.settings.talk_removal_delay_ms, f"The {rat.name} dies!")
        state = _observe_kill(state, result.target)
    return Transition(state)


def _talk_to_spirit(state: GameState, ghost: Entity, ctx: RuleContext) -> Transition:
    offered = available_quests(state, ghost.id)
    if offered:
        quest = offered[0]
        started = start_quest(quest, state)
        if started is state:
            return Transition(
                state.log_message(f"{ghost.name} waits for you to finish the task at hand.", LogKind.DIALOG)
            )
        line = pick_dialogue(dialogue_for(quest, DialoguePhase.GIVE), ctx.rng)
        return Transition(started, (OpenDialogue(ghost.id, ghost.name, (line,)),))

    active = state.active_quest
    if active is not None and active.giver_entity_id == ghost.id:
        if active.type is QuestType.FETCH_ARTIFACT and active.objectives[0].completed:
            last = len(active.objectives) - 1
            state = advance_objective(state, active.id, last, active.objectives[last].required)
            line = pick_dialogue(dialogue_for(active, DialoguePhase.COMPLETE), ctx.rng)
            return Transition(state, (OpenDialogue(ghost.id, ghost.name, (line,)),))
        line = pick_dialogue(dialogue_for(active, DialoguePhase.ACTIVE), ctx.rng)
        return Transition(state, (OpenDialogue(ghost.id, ghost.name, (line,)),))

    if ghost.dialogue_state is DialogueState.QUEST_COMPLETE:
        state = state.with_entity(replace(ghost, dialogue_state=DialogueState.DONE))
    return Transition(state, (OpenDialogue(ghost.id, ghost.name), RequestDialogue(ghost.id, "Hello!")))


def interact(state: GameState, ctx: RuleContext) -> Transition:
    if state.is_finished:
        return _reject(state)
    interaction = identify_interaction(state)
    if interaction is None:
        return _reject(state.log_message("Nothing to interact with here."))

    target = interaction.entity
    if interaction.kind is InteractionKind.DESCEND or target is None:
        return _descend(state, ctx)
    if interaction.kind is InteractionKind.PICKUP:
        return _pickup(state, target, ctx)

    if target.kind is EntityKind.RAT:
        return _strike_rat(state, target, ctx)
    return _talk_to_spirit(state, target, ctx)


def apply_intent(state: GameState, intent: Intent, ctx: RuleContext) -> Transition:
    delta = intent.delta
    if delta is not None:
        return move(state, delta[0], delta[1], ctx)
    if intent is Intent.INTERACT:
        return interact(state, ctx)
    if intent is Intent.WAIT:
        return wait(state, ctx)
    raise ValueError(f"Unhandled intent: {intent!r}")
