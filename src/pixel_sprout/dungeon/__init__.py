"""Grid model, level generation and path queries.

``generator`` is imported explicitly (``pixel_sprout.dungeon.generator``) since
it depends on the entity and config modules, which themselves use ``tiles``.
"""

from .tiles import CARDINALS, GameMap, Position, Tile
from .pathfinding import bfs_distances, find_path_length, is_reachable

__all__ = [
    "CARDINALS",
    "GameMap",
    "Position",
    "Tile",
    "bfs_distances",
    "find_path_length",
    "is_reachable",
]
