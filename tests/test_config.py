import pytest

from pixel_sprout.config import GameSettings, LevelTheme, level_by_id, level_name, load_levels
from pixel_sprout.dungeon.tiles import Tile
from pixel_sprout.exceptions import ConfigError


def test_packaged_level_table(levels):
    assert [lvl.id for lvl in levels] == [1, 2, 3, 4, 5]
    assert [lvl.name for lvl in levels] == [
        "The Damp Cellar",
        "The Sewers",
        "The Ancient Library",
        "The Deep Dark",
        "The Sunken Garden",
    ]
    assert levels[1].theme.feature is Tile.WATER
    assert levels[4].theme.floor is Tile.GRASS
    assert levels[2].artifact_name == "Ancient Tome"
    assert levels[3].entity_counts.rats == 2
    assert [lvl.terminal for lvl in levels] == [False, False, False, False, True]


def test_level_lookup(levels):
    assert level_by_id(levels, 3).name == "The Ancient Library"
    assert level_by_id(levels, 9) is None
    assert level_name(levels, 9) == "the dungeon"


def test_last_level_is_forced_terminal(tmp_path):
    path = tmp_path / "levels.yaml"
    path.write_text(
        "- id: 1\n  name: Only\n  entity_counts: {ghosts: 1}\n",
        encoding="utf-8",
    )
    (only,) = load_levels(path)
    assert only.terminal
    assert only.entity_counts.ghosts == 1


@pytest.mark.parametrize(
    "body",
    [
        "levels:\n  - {id: 1, name: A}\n  - {id: 3, name: B}\n",
        "levels:\n  - {id: 1, name: A, terminal: true}\n  - {id: 2, name: B}\n",
        "levels:\n  - {id: 1, name: A, theme: {floor: WALL}}\n",
        "levels:\n  - {id: 1, name: A, entity_counts: {rats: -1}}\n",
        "levels: []\n",
        "levels: [\n",
    ],
)
def test_invalid_level_tables(tmp_path, body):
    path = tmp_path / "levels.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_levels(path)


def test_missing_level_file(tmp_path):
    with pytest.raises(ConfigError):
        load_levels(tmp_path / "nope.yaml")


def test_theme_accepts_tile_names_and_glyphs():
    assert LevelTheme(floor="grass", feature="~").feature is Tile.WATER
    assert LevelTheme(floor="grass").floor is Tile.GRASS
    with pytest.raises(ValueError):
        LevelTheme(feature="STAIRS")


def test_settings_defaults_and_validation():
    s = GameSettings()
    assert (s.map_width, s.map_height, s.vision_radius) == (25, 18, 6)
    assert s.with_seed(9).seed == 9
    with pytest.raises(ValueError):
        GameSettings(tip_chance=1.5)
    with pytest.raises(ValueError):
        GameSettings(map_width=3)


def test_settings_from_env():
    env = {"PIXEL_SPROUT_SEED": "42", "PIXEL_SPROUT_WIDTH": "30", "PIXEL_SPROUT_TIP_CHANCE": "0"}
    s = GameSettings.from_env(env)
    assert s.seed == 42
    assert s.map_width == 30
    assert s.tip_chance == 0.0
    assert GameSettings.from_env(env, seed=None).seed == 42
    assert GameSettings.from_env(env, seed="abc").seed == "abc"


@pytest.mark.parametrize(
    "env,overrides",
    [
        ({"PIXEL_SPROUT_WIDTH": "wide"}, {}),
        ({"PIXEL_SPROUT_HEIGHT": "2"}, {}),
        ({}, {"colour": "red"}),
    ],
)
def test_settings_from_env_errors(env, overrides):
    with pytest.raises(ConfigError):
        GameSettings.from_env(env, **overrides)
