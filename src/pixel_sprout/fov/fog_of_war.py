from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..dungeon.tiles import GameMap, Position

logger = logging.getLogger(__name__)

Mask = Tuple[Tuple[bool, ...], ...]


class FogTileState(str, Enum):
    UNSEEN = "unseen"  # never seen
    SEEN = "seen"  # explored, not currently in view
    VISIBLE = "visible"


@dataclass(frozen=True)
class Visibility:
    visible: Mask
    explored: Mask


def blank_mask(game_map: GameMap) -> Mask:
    return tuple(tuple(False for _ in range(game_map.width)) for _ in range(game_map.height))


def reveal_all(mask: Mask) -> Mask:
    return tuple(tuple(True for _ in row) for row in mask)


def count_explored(mask: Mask) -> int:
    return sum(sum(1 for cell in row if cell) for row in mask)


def compute_visibility(
    game_map: GameMap,
    origin: Position,
    radius: int,
    prior_explored: Optional[Mask] = None,
) -> Visibility:
    """Light every cell within Euclidean ``radius`` of ``origin``.

    There is no occlusion: walls inside the circle are visible too. The result's
    ``explored`` mask is ``prior_explored`` with every visible cell added, so
    exploration never shrinks.
    """
    if not game_map.in_bounds(origin):
        raise ValueError(f"origin {origin.as_tuple()} out of bounds")
    if radius < 0:
        raise ValueError("radius must be >= 0")
    if prior_explored is None:
        prior_explored = blank_mask(game_map)
    elif len(prior_explored) != game_map.height or any(len(row) != game_map.width for row in prior_explored):
        raise ValueError("prior_explored does not match map dimensions")

    r2 = radius * radius
    visible = tuple(
        tuple((x - origin.x) ** 2 + (y - origin.y) ** 2 <= r2 for x in range(game_map.width))
        for y in range(game_map.height)
    )
    explored = tuple(
        tuple(seen or lit for seen, lit in zip(seen_row, lit_row))
        for seen_row, lit_row in zip(prior_explored, visible)
    )
    logger.debug("Visibility at %s radius %d: %d explored", origin.as_tuple(), radius, count_explored(explored))
    return Visibility(visible=visible, explored=explored)


def tile_state(visibility: Visibility, pos: Position) -> FogTileState:
    if visibility.visible[pos.y][pos.x]:
        return FogTileState.VISIBLE
    if visibility.explored[pos.y][pos.x]:
        return FogTileState.SEEN
    return FogTileState.UNSEEN
