from __future__ import annotations

from collections import deque
from typing import AbstractSet, Dict, Optional

from .tiles import GameMap, Position


def bfs_distances(game_map: GameMap, start: Position, blocked: AbstractSet[Position] = frozenset()) -> Dict[Position, int]:
    """Step counts from ``start`` to every reachable cell (4-neighbour moves).

    WALL tiles and cells in ``blocked`` are impassable. The start cell itself is
    always included, even if it appears in ``blocked``.
    """
    if not game_map.in_bounds(start):
        raise ValueError(f"Start {start.as_tuple()} is out of bounds")
    dist: Dict[Position, int] = {start: 0}
    queue = deque([start])
    while queue:
        cur = queue.popleft()
        for nxt in game_map.neighbors4(cur):
            if nxt in dist or nxt in blocked or not game_map.is_walkable(nxt):
                continue
            dist[nxt] = dist[cur] + 1
            queue.append(nxt)
    return dist


def find_path_length(
    game_map: GameMap,
    start: Position,
    goal: Position,
    blocked: AbstractSet[Position] = frozenset(),
) -> Optional[int]:
    """Shortest path length from ``start`` to ``goal`` or None if unreachable."""
    if not game_map.in_bounds(goal):
        return None
    if start == goal:
        return 0
    return bfs_distances(game_map, start, blocked).get(goal)


def is_reachable(
    game_map: GameMap,
    start: Position,
    goal: Position,
    blocked: AbstractSet[Position] = frozenset(),
) -> bool:
    return find_path_length(game_map, start, goal, blocked) is not None
