from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


class Tile(str, Enum):
    """Dungeon tile kinds, valued by their display glyph.

    WALL is the only tile that blocks movement. GRASS and WATER are decorative
    floors used by level themes; STAIRS triggers descent on interact.
    """

    WALL = "#"
    FLOOR = "."
    WATER = "~"
    GRASS = '"'
    DOOR = "+"
    STAIRS = ">"

    @property
    def is_walkable(self) -> bool:
        return self is not Tile.WALL

    @property
    def glyph(self) -> str:
        return self.value

    @classmethod
    def from_glyph(cls, glyph: str) -> "Tile":
        try:
            return cls(glyph)
        except ValueError:
            raise ValueError(f"Unknown tile glyph: {glyph!r}") from None


@dataclass(frozen=True, order=True)
class Position:
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def chebyshev(self, other: "Position") -> int:
        return max(abs(self.x - other.x), abs(self.y - other.y))

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)


# Fixed neighbor order keeps BFS and anything built on it deterministic.
CARDINALS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass(frozen=True)
class GameMap:
    """Immutable grid of tiles, indexed ``tiles[y][x]``.

    A level's map is built once by the generator and replaced wholesale on the
    next level; nothing edits it in place.
    """

    tiles: Tuple[Tuple[Tile, ...], ...]

    def __post_init__(self) -> None:
        if not self.tiles or not self.tiles[0]:
            raise ValueError("GameMap must have at least one row and one column")
        width = len(self.tiles[0])
        if any(len(row) != width for row in self.tiles):
            raise ValueError("GameMap rows must all have the same width")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Tile]]) -> "GameMap":
        return cls(tuple(tuple(row) for row in rows))

    @classmethod
    def filled(cls, width: int, height: int, tile: Tile = Tile.WALL) -> "GameMap":
        if width <= 0 or height <= 0:
            raise ValueError("GameMap width/height must be > 0")
        return cls(tuple(tuple(tile for _ in range(width)) for _ in range(height)))

    @classmethod
    def from_ascii(cls, lines: Sequence[str]) -> "GameMap":
        """Build a map from glyph rows; handy in tests and tools."""
        return cls(tuple(tuple(Tile.from_glyph(ch) for ch in line) for line in lines))

    @property
    def width(self) -> int:
        return len(self.tiles[0])

    @property
    def height(self) -> int:
        return len(self.tiles)

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def tile_at(self, pos: Position) -> Tile:
        if not self.in_bounds(pos):
            raise IndexError(f"Position {pos.as_tuple()} out of bounds for {self.width}x{self.height} map")
        return self.tiles[pos.y][pos.x]

    def is_walkable(self, pos: Position) -> bool:
        return self.in_bounds(pos) and self.tiles[pos.y][pos.x].is_walkable

    def neighbors4(self, pos: Position) -> Iterator[Position]:
        for dx, dy in CARDINALS:
            nxt = pos.offset(dx, dy)
            if self.in_bounds(nxt):
                yield nxt

    def find(self, tile: Tile) -> Optional[Position]:
        for y, row in enumerate(self.tiles):
            for x, t in enumerate(row):
                if t is tile:
                    return Position(x, y)
        return None

    def count(self, tile: Tile) -> int:
        return sum(row.count(tile) for row in self.tiles)

    def tile_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for row in self.tiles:
            for t in row:
                counts[t.name] = counts.get(t.name, 0) + 1
        return counts

    def to_str_lines(self) -> List[str]:
        return ["".join(t.glyph for t in row) for row in self.tiles]
