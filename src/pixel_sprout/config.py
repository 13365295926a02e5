from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from importlib.resources import files as resource_files
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .dungeon.tiles import Tile
from .exceptions import ConfigError
from .rng import Seed, coerce_seed

logger = logging.getLogger(__name__)

LEVELS_RESOURCE = "levels.yaml"


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GameSettings:
    """Tunable numbers for a game session.

    Defaults reproduce the standard game; ``from_env`` lets a player or a test
    override individual values through ``PIXEL_SPROUT_*`` variables.
    """

    map_width: int = 25
    map_height: int = 18
    vision_radius: int = 6
    player_max_health: int = 20
    player_damage: int = 5
    rat_damage: int = 3
    rat_health: int = 8
    ghost_health: int = 100
    potion_heal: int = 10
    rest_heal: int = 1
    tip_chance: float = 0.2
    bump_removal_delay_ms: int = 300
    talk_removal_delay_ms: int = 800
    log_limit: int = 20
    generation_attempts: int = 10
    seed: Seed = None

    def __post_init__(self) -> None:
        if self.map_width < 5 or self.map_height < 5:
            raise ValueError("map_width/map_height must be >= 5")
        if self.vision_radius < 0:
            raise ValueError("vision_radius must be >= 0")
        if self.player_max_health <= 0:
            raise ValueError("player_max_health must be > 0")
        if not 0.0 <= self.tip_chance <= 1.0:
            raise ValueError("tip_chance must be within [0, 1]")
        if self.log_limit <= 0 or self.generation_attempts <= 0:
            raise ValueError("log_limit and generation_attempts must be > 0")

    ENV_PREFIX = "PIXEL_SPROUT_"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides: Any) -> "GameSettings":
        env = os.environ if env is None else env
        casters: Dict[str, Callable[[str], Any]] = {
            "SEED": coerce_seed,
            "WIDTH": int,
            "HEIGHT": int,
            "VISION_RADIUS": int,
            "PLAYER_HEALTH": int,
            "TIP_CHANCE": float,
        }
        targets = {
            "SEED": "seed",
            "WIDTH": "map_width",
            "HEIGHT": "map_height",
            "VISION_RADIUS": "vision_radius",
            "PLAYER_HEALTH": "player_max_health",
            "TIP_CHANCE": "tip_chance",
        }
        values: Dict[str, Any] = {}
        for suffix, caster in casters.items():
            key = cls.ENV_PREFIX + suffix
            raw = env.get(key)
            if raw is None or raw == "":
                continue
            try:
                values[targets[suffix]] = caster(raw)
            except ValueError as exc:
                logger.error("Invalid value for %s=%r: %s", key, raw, exc)
                raise ConfigError(f"Invalid value for {key}: {raw!r}") from exc
        values.update({k: v for k, v in overrides.items() if v is not None})
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"Unknown settings: {sorted(unknown)}")
        try:
            return cls(**values)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    def with_seed(self, seed: Seed) -> "GameSettings":
        return replace(self, seed=seed)


# ---------------------------------------------------------------------------
# Level table
# ---------------------------------------------------------------------------


def _coerce_tile(value: Any) -> Any:
    if isinstance(value, str) and value.upper() in Tile.__members__:
        return Tile[value.upper()]
    return value


class LevelTheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    floor: Tile = Field(Tile.FLOOR, description="Tile carved for rooms and corridors")
    wall: Tile = Field(Tile.WALL, description="Tile that fills the map before carving")
    feature: Optional[Tile] = Field(None, description="Decoration stamped inside some rooms")

    @field_validator("floor", "wall", "feature", mode="before")
    @classmethod
    def coerce_tile_names(cls, v: Any) -> Any:
        return _coerce_tile(v)

    @model_validator(mode="after")
    def check_walkability(self) -> "LevelTheme":
        if not self.floor.is_walkable or self.floor is Tile.STAIRS:
            raise ValueError(f"floor tile must be walkable and not STAIRS, got {self.floor.name}")
        if self.wall is not Tile.WALL:
            raise ValueError("wall tile must be WALL")
        if self.feature is not None and (not self.feature.is_walkable or self.feature is Tile.STAIRS):
            raise ValueError(f"feature tile must be walkable and not STAIRS, got {self.feature.name}")
        return self


class EntityCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    ghosts: int = Field(0, ge=0)
    rats: int = Field(0, ge=0)
    potions: int = Field(0, ge=0)
    artifacts: int = Field(0, ge=0)


class LevelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Level number, starting at 1")
    name: str = Field(..., min_length=1)
    theme: LevelTheme = Field(default_factory=LevelTheme)
    entity_counts: EntityCounts = Field(default_factory=EntityCounts)
    artifact_name: str = Field("Lost Artifact", min_length=1)
    terminal: bool = Field(False, description="Last level: no stairs, the Golden Seed waits at the goal")


class LevelTable(BaseModel):
    levels: Tuple[LevelConfig, ...]

    @field_validator("levels")
    @classmethod
    def check_ids(cls, v: Tuple[LevelConfig, ...]) -> Tuple[LevelConfig, ...]:
        if not v:
            raise ValueError("level table must contain at least one level")
        ids = [lvl.id for lvl in v]
        if ids != list(range(1, len(ids) + 1)):
            raise ValueError(f"level ids must be consecutive from 1, got {ids}")
        if any(lvl.terminal for lvl in v[:-1]):
            raise ValueError("only the last level may be terminal")
        if not v[-1].terminal:
            v = v[:-1] + (v[-1].model_copy(update={"terminal": True}),)
        return v


def load_levels(path: Optional[Union[str, Path]] = None) -> Tuple[LevelConfig, ...]:
    """Load and validate the level table.

    Without ``path`` the packaged ``pixel_sprout/data/levels.yaml`` is used.
    The last level is always treated as terminal.
    """
    try:
        if path is None:
            text = resource_files("pixel_sprout.data").joinpath(LEVELS_RESOURCE).read_text(encoding="utf-8")
            logger.debug("Loaded embedded level table resource")
        else:
            text = Path(path).read_text(encoding="utf-8")
            logger.debug("Loaded level table from %s", path)
    except OSError as exc:
        raise ConfigError(f"Cannot read level table: {exc}") from exc

    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Level table is not valid YAML: {exc}") from exc
    if isinstance(raw, list):
        raw = {"levels": raw}

    try:
        table = LevelTable.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid level table: {exc}") from exc
    logger.info("Level table: %s", ", ".join(f"{lvl.id}={lvl.name}" for lvl in table.levels))
    return table.levels


def level_by_id(levels: Iterable[LevelConfig], level_id: int) -> Optional[LevelConfig]:
    for level in levels:
        if level.id == level_id:
            return level
    return None


def level_name(levels: Sequence[LevelConfig], level_id: int, default: str = "the dungeon") -> str:
    level = level_by_id(levels, level_id)
    return level.name if level is not None else default
