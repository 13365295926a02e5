import pytest

from pixel_sprout.quests.catalog import LEVEL_QUESTS, quests_for_new_level, required_kills
from pixel_sprout.quests.models import QuestStatus, QuestType
from factories import artifact, ghost, rat


@pytest.mark.parametrize("rats,expected", [(0, 1), (1, 1), (2, 2), (3, 3), (4, 3), (8, 6)])
def test_required_kills(rats, expected):
    assert required_kills(rats) == expected


def test_every_level_has_a_factory():
    assert sorted(LEVEL_QUESTS) == [1, 2, 3, 4, 5]
    assert quests_for_new_level(99, [ghost(1, 1)]) == []


def test_level_one_explore_quest():
    (quest,) = quests_for_new_level(1, [ghost(2, 2)])
    assert quest.type is QuestType.EXPLORE_ROOMS
    assert quest.id == "quest-explore-rooms-1"
    assert quest.title == "The Ghost's Plea"
    assert quest.giver_entity_id == "ghost-1-0"
    assert quest.objectives[0].required == 5
    assert quest.reward.health == 5 and quest.reward.unlock_stairs
    assert quest.status is QuestStatus.NOT_STARTED
    assert len(quest.dialogue_on_give) == 3


def test_level_one_without_spirit_has_no_quest():
    assert quests_for_new_level(1, [rat(2, 2)]) == []


def test_level_two_kill_quest_given_by_spirit_or_rat():
    rats = [rat(2, 2, "rat-2-0"), rat(4, 2, "rat-2-1"), rat(6, 2, "rat-2-2")]
    (by_rat,) = quests_for_new_level(2, rats)
    assert by_rat.type is QuestType.KILL_RATS
    assert by_rat.id == "quest-kill-rats-2"
    assert by_rat.giver_entity_id == "rat-2-0"
    assert by_rat.objectives[0].required == 3
    assert by_rat.reward.health == 10 and by_rat.reward.unlock_stairs
    assert by_rat.title == "Vermin Purge"
    assert any("3" in line for line in by_rat.dialogue_on_give)

    (by_ghost,) = quests_for_new_level(2, [ghost(1, 1, "ghost-2-0")] + rats)
    assert by_ghost.giver_entity_id == "ghost-2-0"


def test_level_two_without_rats_has_no_quest():
    assert quests_for_new_level(2, [ghost(1, 1)]) == []


def test_level_three_fetch_quest():
    tome = artifact(5, 5)
    (quest,) = quests_for_new_level(3, [ghost(1, 1, "ghost-3-0"), tome])
    assert quest.type is QuestType.FETCH_ARTIFACT
    assert quest.title == "The Lost Tome"
    assert [o.description for o in quest.objectives] == ["Find the Ancient Tome", "Return to the spirit"]
    assert quest.revealed_entity_ids == ("artifact-3-0",)
    assert quest.reward.health == 15
    assert quest.reward.unlock_stairs and quest.reward.reveal_map


@pytest.mark.parametrize("entities", [[ghost(1, 1)], [artifact(5, 5)], []])
def test_level_three_needs_spirit_and_artifact(entities):
    assert quests_for_new_level(3, entities) == []


def test_level_four_rat_purge_and_escort():
    entities = [ghost(1, 1, "ghost-4-0"), rat(2, 2, "rat-4-0"), rat(3, 3, "rat-4-1")]
    kill, escort = quests_for_new_level(4, entities)
    assert kill.type is QuestType.KILL_RATS
    assert kill.giver_entity_id == "rat-4-0"
    assert kill.title == "The Last Stand"
    assert kill.objectives[0].required == 2
    assert escort.type is QuestType.ESCORT_SPIRIT
    assert escort.id == "quest-escort-spirit-4"
    assert escort.giver_entity_id == "ghost-4-0"
    assert escort.reward.health == 20
    assert not escort.reward.unlock_stairs


def test_level_four_partial_spawns():
    (only_kill,) = quests_for_new_level(4, [rat(2, 2, "rat-4-0")])
    assert only_kill.type is QuestType.KILL_RATS
    (only_escort,) = quests_for_new_level(4, [ghost(1, 1, "ghost-4-0")])
    assert only_escort.type is QuestType.ESCORT_SPIRIT


def test_level_five_final_seed():
    (quest,) = quests_for_new_level(5, [ghost(1, 1, "ghost-5-0")])
    assert quest.type is QuestType.FINAL_SEED
    assert quest.id == "quest-final-seed"
    assert quest.reward.health == 50
    assert quest.reward.artifact == "The Golden Seed of Life"
    assert not quest.reward.unlock_stairs
    assert quests_for_new_level(5, []) == []
