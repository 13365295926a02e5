from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from ..config import GameSettings, LevelConfig
from ..entities import SEED_ENTITY_ID, Entity, EntityKind, make_entity
from ..exceptions import GenerationFailed
from .pathfinding import is_reachable
from .tiles import GameMap, Position, Tile

logger = logging.getLogger(__name__)

Grid = List[List[Tile]]


@dataclass(frozen=True)
class Room:
    x: int
    y: int
    w: int
    h: int

    def center(self) -> Position:
        return Position(self.x + self.w // 2, self.y + self.h // 2)

    def overlaps(self, other: "Room") -> bool:
        # Inclusive bounds: rooms that merely touch still count as overlapping.
        return (
            self.x <= other.x + other.w
            and self.x + self.w >= other.x
            and self.y <= other.y + other.h
            and self.y + self.h >= other.y
        )

    def cells(self) -> Iterator[Position]:
        for y in range(self.y, self.y + self.h):
            for x in range(self.x, self.x + self.w):
                yield Position(x, y)


@dataclass(frozen=True)
class GeneratedLevel:
    level_id: int
    map: GameMap
    entities: Tuple[Entity, ...]
    start: Position
    stairs: Position
    rooms: Tuple[Room, ...]
    attempts: int = 1


def carve_room(grid: Grid, room: Room, floor: Tile) -> None:
    for pos in room.cells():
        grid[pos.y][pos.x] = floor


def carve_corridor(grid: Grid, a: Position, b: Position, floor: Tile) -> None:
    """Carve an L-shaped corridor from ``a`` to ``b``: along x first, then y.

    Only WALL cells are overwritten, so room features survive a corridor
    passing through them.
    """
    x, y = a.x, a.y
    while x != b.x:
        if grid[y][x] is Tile.WALL:
            grid[y][x] = floor
        x += 1 if b.x > x else -1
    while y != b.y:
        if grid[y][x] is Tile.WALL:
            grid[y][x] = floor
        y += 1 if b.y > y else -1
    if grid[y][x] is Tile.WALL:
        grid[y][x] = floor


class DungeonGenerator:
    """Rooms-and-corridors generator with post-hoc connectivity validation.

    Each attempt places up to ``max_rooms`` non-touching rooms, links them in
    x order with L corridors, drops the stairs in the last room and scatters
    the level's entities. The attempt is kept only if the stairs (or the goal
    on the terminal level) can be reached from the start without walking
    through a ghost; otherwise the whole layout is thrown away and retried.
    """

    def __init__(
        self,
        width: int = 25,
        height: int = 18,
        max_rooms: int = 8,
        room_min_size: int = 3,
        room_max_size: int = 6,
        feature_chance: float = 0.4,
        scatter_tries: int = 100,
        max_attempts: int = 10,
        rat_health: int = 8,
        ghost_health: int = 100,
    ) -> None:
        if width < 3 or height < 3:
            raise ValueError("width/height must be >= 3")
        if room_min_size < 1 or room_max_size < room_min_size:
            raise ValueError("invalid room size range")
        self.width = width
        self.height = height
        self.max_rooms = max_rooms
        self.room_min_size = room_min_size
        self.room_max_size = room_max_size
        self.feature_chance = feature_chance
        self.scatter_tries = scatter_tries
        self.max_attempts = max_attempts
        self.rat_health = rat_health
        self.ghost_health = ghost_health

    @classmethod
    def from_settings(cls, settings: GameSettings) -> "DungeonGenerator":
        return cls(
            width=settings.map_width,
            height=settings.map_height,
            max_attempts=settings.generation_attempts,
            rat_health=settings.rat_health,
            ghost_health=settings.ghost_health,
        )

    def generate(self, level: LevelConfig, rng: random.Random) -> GeneratedLevel:
        for attempt in range(1, self.max_attempts + 1):
            result = self._attempt(level, rng, attempt)
            if result is not None:
                logger.info(
                    "Generated level %d (%s): %d rooms, start=%s stairs=%s, attempt %d",
                    level.id,
                    level.name,
                    len(result.rooms),
                    result.start.as_tuple(),
                    result.stairs.as_tuple(),
                    attempt,
                )
                return result
        logger.error("Level %d: no connected layout after %d attempts", level.id, self.max_attempts)
        raise GenerationFailed(level.id, self.max_attempts)

    # -- one attempt -----------------------------------------------------------------

    def _attempt(self, level: LevelConfig, rng: random.Random, attempt: int) -> Optional[GeneratedLevel]:
        theme = level.theme
        grid: Grid = [[theme.wall for _ in range(self.width)] for _ in range(self.height)]

        rooms = self._place_rooms(grid, rng, theme.floor, theme.feature)
        if len(rooms) < 2:
            logger.debug("Level %d attempt %d: only %d room(s), retrying", level.id, attempt, len(rooms))
            return None

        rooms.sort(key=lambda r: r.x)
        for prev, cur in zip(rooms, rooms[1:]):
            carve_corridor(grid, prev.center(), cur.center(), theme.floor)

        start = rooms[0].center()
        goal = rooms[-1].center()
        if not level.terminal:
            grid[goal.y][goal.x] = Tile.STAIRS

        entities = self._scatter(level, grid, rooms, rng, start, goal)
        game_map = GameMap.from_rows(grid)

        if not self._is_valid(game_map, start, goal, entities):
            logger.debug("Level %d attempt %d: goal %s unreachable, retrying", level.id, attempt, goal.as_tuple())
            return None

        return GeneratedLevel(
            level_id=level.id,
            map=game_map,
            entities=tuple(entities),
            start=start,
            stairs=goal,
            rooms=tuple(rooms),
            attempts=attempt,
        )

    @staticmethod
    def _is_valid(game_map: GameMap, start: Position, goal: Position, entities: Sequence[Entity]) -> bool:
        """Goal reachable from start. Ghosts block the way; rats can be fought through."""
        blockers = {e.position for e in entities if e.kind is EntityKind.GHOST}
        return is_reachable(game_map, start, goal, blockers)

    def _place_rooms(self, grid: Grid, rng: random.Random, floor: Tile, feature: Optional[Tile]) -> List[Room]:
        rooms: List[Room] = []
        for _ in range(self.max_rooms):
            w = rng.randint(self.room_min_size, self.room_max_size)
            h = rng.randint(self.room_min_size, self.room_max_size)
            max_x = self.width - w - 1
            max_y = self.height - h - 1
            if max_x < 1 or max_y < 1:
                continue
            room = Room(rng.randint(1, max_x), rng.randint(1, max_y), w, h)
            if any(room.overlaps(other) for other in rooms):
                continue
            carve_room(grid, room, floor)
            if feature is not None and rng.random() < self.feature_chance:
                fx = rng.randint(room.x + 1, max(room.x + 1, room.x + room.w - 2))
                fy = rng.randint(room.y + 1, max(room.y + 1, room.y + room.h - 2))
                grid[fy][fx] = feature
            rooms.append(room)
        return rooms

    def _scatter(
        self,
        level: LevelConfig,
        grid: Grid,
        rooms: Sequence[Room],
        rng: random.Random,
        start: Position,
        goal: Position,
    ) -> List[Entity]:
        entities: List[Entity] = []
        occupied: Set[Position] = set()
        counts = level.entity_counts

        def place(kind: EntityKind, count: int, **fields) -> None:
            for i in range(count):
                pos = self._find_empty(grid, rooms, rng, start, goal, occupied)
                occupied.add(pos)
                entities.append(make_entity(kind, f"{kind.value}-{level.id}-{i}", pos, **fields))

        place(EntityKind.GHOST, counts.ghosts, health=self.ghost_health, max_health=self.ghost_health)
        place(EntityKind.RAT, counts.rats, health=self.rat_health, max_health=self.rat_health)
        place(EntityKind.POTION, counts.potions)
        place(EntityKind.ARTIFACT, counts.artifacts, name=level.artifact_name, hidden=True)

        if level.terminal:
            entities.append(make_entity(EntityKind.SEED, SEED_ENTITY_ID, goal))
        return entities

    def _find_empty(
        self,
        grid: Grid,
        rooms: Sequence[Room],
        rng: random.Random,
        start: Position,
        goal: Position,
        occupied: Set[Position],
    ) -> Position:
        for _ in range(self.scatter_tries):
            room = rng.choice(rooms)
            pos = Position(rng.randint(room.x, room.x + room.w - 1), rng.randint(room.y, room.y + room.h - 1))
            tile = grid[pos.y][pos.x]
            if tile is Tile.WALL or tile is Tile.STAIRS:
                continue
            if pos == start or pos == goal or pos in occupied:
                continue
            return pos
        logger.debug("No free cell after %d tries; falling back to start %s", self.scatter_tries, start.as_tuple())
        return start
