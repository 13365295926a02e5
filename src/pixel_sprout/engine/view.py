from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import LevelConfig, level_name
from ..dungeon.tiles import Position
from ..fov.fog_of_war import FogTileState, Mask, Visibility, tile_state
from ..quests.engine import objective_status, quest_progress
from .rules import identify_interaction
from .state import GameState, LogEntry

PLAYER_GLYPH = "@"
UNSEEN_GLYPH = " "


@dataclass(frozen=True)
class EntityView:
    id: str
    kind: str
    name: str
    x: int
    y: int
    glyph: str
    health: Optional[int] = None
    max_health: Optional[int] = None
    dying: bool = False


@dataclass(frozen=True)
class ObjectiveView:
    description: str
    status: str
    completed: bool


@dataclass(frozen=True)
class QuestSummary:
    id: str
    title: str
    description: str
    progress: int
    objectives: Tuple[ObjectiveView, ...]


@dataclass(frozen=True)
class StateView:
    """Everything a renderer needs for one frame, as plain values."""

    map_rows: Tuple[str, ...]
    visible: Mask
    explored: Mask
    entities: Tuple[EntityView, ...]
    player: Tuple[int, int]
    health: int
    max_health: int
    level_id: int
    level_name: str
    turn: int
    game_over: bool
    game_won: bool
    active_quest: Optional[QuestSummary]
    recent_log: Tuple[LogEntry, ...]
    interaction_hint: Optional[str]


def snapshot(state: GameState, levels: Sequence[LevelConfig] = (), recent: int = 4) -> StateView:
    quest = state.active_quest
    summary = None
    if quest is not None:
        summary = QuestSummary(
            id=quest.id,
            title=quest.title,
            description=quest.description,
            progress=quest_progress(quest),
            objectives=tuple(ObjectiveView(o.description, objective_status(o), o.completed) for o in quest.objectives),
        )
    interaction = None if state.is_finished else identify_interaction(state)
    return StateView(
        map_rows=tuple(state.map.to_str_lines()),
        visible=state.visible,
        explored=state.explored,
        entities=tuple(
            EntityView(
                id=e.id,
                kind=e.kind.value,
                name=e.name,
                x=e.position.x,
                y=e.position.y,
                glyph=e.glyph,
                health=e.health,
                max_health=e.max_health,
                dying=e.dying,
            )
            for e in state.entities
            if not e.hidden
        ),
        player=state.player.as_tuple(),
        health=state.health,
        max_health=state.max_health,
        level_id=state.level_id,
        level_name=level_name(levels, state.level_id),
        turn=state.turn,
        game_over=state.game_over,
        game_won=state.game_won,
        active_quest=summary,
        recent_log=state.log[-recent:] if recent > 0 else (),
        interaction_hint=interaction.label if interaction is not None else None,
    )


def render_ascii(view: StateView) -> List[str]:
    """Text rendering that honours fog: unseen cells are blank and entities
    only show inside the current field of view."""
    fog = Visibility(view.visible, view.explored)
    rows = [list(row) for row in view.map_rows]
    for y, row in enumerate(rows):
        for x in range(len(row)):
            if tile_state(fog, Position(x, y)) is FogTileState.UNSEEN:
                row[x] = UNSEEN_GLYPH
    for ent in view.entities:
        if view.visible[ent.y][ent.x] and not ent.dying:
            rows[ent.y][ent.x] = ent.glyph
    px, py = view.player
    rows[py][px] = PLAYER_GLYPH
    return ["".join(row) for row in rows]
