from dataclasses import replace

import pytest

from pixel_sprout.config import GameSettings
from pixel_sprout.dungeon.tiles import Position
from pixel_sprout.engine.intents import Intent
from pixel_sprout.engine.rules import (
    BARRED_MESSAGE,
    Interaction,
    InteractionKind,
    LevelEntered,
    OpenDialogue,
    RequestDialogue,
    RequestTip,
    RuleContext,
    apply_intent,
    identify_interaction,
    interact,
    load_level,
    move,
    new_game,
    wait,
)
from pixel_sprout.engine.scheduler import tick
from pixel_sprout.entities import DialogueState, EntityKind
from pixel_sprout.quests.engine import stairs_unlocked
from pixel_sprout.quests.models import QuestStatus, QuestType
from factories import STAIRS_ROOM, artifact, ghost, golden_seed, make_state, potion, rat, with_level_quests


# -- movement and combat ---------------------------------------------------------------


def test_wall_bump_logs_and_keeps_position(ctx):
    state = make_state()
    t = move(state, -1, 0, ctx)
    assert not t.accepted
    assert t.state.player == Position(1, 1)
    assert t.state.turn == 0
    assert t.state.log[-1].message == "You bumped into a wall."


def test_out_of_bounds_is_a_silent_noop(ctx):
    state = make_state(rows=["...", "..."], player=(0, 0))
    t = move(state, -1, 0, ctx)
    assert t.state is state
    assert not t.accepted


def test_moves_are_single_cardinal_steps(ctx):
    with pytest.raises(ValueError):
        move(make_state(), 1, 1, ctx)


def test_plain_move_advances_turn_and_fog(ctx):
    state = make_state(radius=1)
    t = apply_intent(state, Intent.MOVE_RIGHT, ctx)
    assert t.accepted
    assert t.state.player == Position(2, 1)
    assert t.state.turn == 1
    assert t.state.explored[1][7]
    assert t.state.visible[1][7]
    assert not state.explored[1][7]


def test_bumping_rat_trades_blows(ctx):
    state = make_state(entities=[rat(2, 1)])
    t = move(state, 1, 0, ctx)
    assert t.state.player == Position(1, 1)
    assert t.state.entity("rat-1-0").health == 3
    assert t.state.health == 17
    assert t.state.turn == 1
    assert "retaliates for 3 damage" in t.state.log[-1].message


def test_killing_rat_schedules_removal(ctx):
    state = make_state(entities=[rat(2, 1, health=3)])
    t = move(state, 1, 0, ctx)
    victim = t.state.entity("rat-1-0")
    assert victim.dying
    assert t.state.health == 20
    assert t.state.log[-1].message == "You strike Dungeon Rat for 5 damage! It falls."

    assert tick(t.state, 299).entity("rat-1-0") is not None
    assert tick(t.state, 300).entity("rat-1-0") is None


def test_dying_rat_does_not_block(ctx):
    state = move(make_state(entities=[rat(2, 1, health=3)]), 1, 0, ctx).state
    t = move(state, 1, 0, ctx)
    assert t.state.player == Position(2, 1)


def test_bumping_ghost_wounds_it_without_retaliation(ctx):
    state = make_state(entities=[ghost(2, 1)])
    t = move(state, 1, 0, ctx)
    assert t.state.player == Position(1, 1)
    assert t.state.entity("ghost-1-0").health == 95
    assert t.state.turn == 1
    assert t.state.health == 20
    assert t.state.log[-1].message == "You strike Wandering Spirit for 5 damage."


def test_ghost_falls_after_twenty_bumps(ctx):
    state = make_state(entities=[ghost(2, 1)])
    for _ in range(19):
        state = move(state, 1, 0, ctx).state
    assert state.entity("ghost-1-0").health == 5
    assert not state.entity("ghost-1-0").dying

    state = move(state, 1, 0, ctx).state
    spirit = state.entity("ghost-1-0")
    assert spirit.dying and spirit.health == 0
    assert state.health == 20
    assert state.log[-1].message == "You strike Wandering Spirit for 5 damage! It falls."
    assert tick(state, 300).entity("ghost-1-0") is None


def test_player_death_ends_game(ctx):
    state = make_state(entities=[rat(2, 1)], health=2)
    t = move(state, 1, 0, ctx)
    assert t.state.health == 0
    assert t.state.game_over
    assert t.state.log[-1].message == "You have perished in the darkness..."

    after = move(t.state, 0, 1, ctx)
    assert after.state is t.state
    assert not after.accepted
    assert not interact(t.state, ctx).accepted
    assert not wait(t.state, ctx).accepted


def test_death_fails_active_quest(ctx):
    state = with_level_quests(make_state(entities=[rat(2, 1, "rat-2-0")], level_id=2, health=3))
    assert state.active_quest.type is QuestType.KILL_RATS
    dead = move(state, 1, 0, ctx).state
    assert dead.game_over
    assert dead.quest("quest-kill-rats-2").status is QuestStatus.FAILED


# -- waiting ------------------------------------------------------------------------------


def test_wait_heals_one_up_to_max(ctx):
    state = make_state(health=15)
    t = wait(state, ctx)
    assert t.state.health == 16
    assert t.state.turn == 1
    assert t.state.log[-1].message == "You rest for a moment..."
    assert wait(make_state(), ctx).state.health == 20


def test_wait_tip_roll(levels):
    always = RuleContext.build(GameSettings(seed=1, tip_chance=1.0), levels)
    never = RuleContext.build(GameSettings(seed=1, tip_chance=0.0), levels)
    assert wait(make_state(), always).effects == (RequestTip(),)
    assert wait(make_state(), never).effects == ()


# -- interaction ------------------------------------------------------------------------


def test_nothing_to_interact_with(ctx):
    t = interact(make_state(), ctx)
    assert not t.accepted
    assert t.state.log[-1].message == "Nothing to interact with here."


def test_drinking_potion(ctx):
    state = make_state(entities=[potion(1, 1)], health=5)
    t = interact(state, ctx)
    assert t.state.health == 15
    assert t.state.entity("potion-1-0") is None
    assert t.state.log[-1].message == "You drank the potion! Health restored."


def test_picking_up_seed_wins(ctx):
    t = interact(make_state(entities=[golden_seed(1, 1)], level_id=5), ctx)
    assert t.state.game_won
    assert t.state.is_finished
    assert t.state.log[-1].message == "YOU FOUND THE GOLDEN SEED! NATURE IS RESTORED!"


def test_interaction_priority(ctx):
    state = make_state(rows=STAIRS_ROOM, entities=[potion(1, 1), ghost(2, 1)])
    assert identify_interaction(state).kind is InteractionKind.PICKUP
    assert identify_interaction(state).label == "Pick up Mysterious Potion"

    state = make_state(rows=STAIRS_ROOM, entities=[ghost(2, 1)])
    assert identify_interaction(state).kind is InteractionKind.DESCEND

    state = make_state(entities=[ghost(2, 2)])
    found = identify_interaction(state)
    assert found.kind is InteractionKind.TALK
    assert found.label == "Talk to Wandering Spirit"

    assert identify_interaction(make_state(entities=[rat(2, 2)])).label == "Attack Dungeon Rat"
    assert identify_interaction(make_state(entities=[ghost(3, 3)])) is None


def test_interaction_needs_target_unless_descending():
    assert Interaction(InteractionKind.DESCEND).label == "Descend the stairs"
    with pytest.raises(ValueError):
        Interaction(InteractionKind.TALK)
    with pytest.raises(ValueError):
        Interaction(InteractionKind.PICKUP)


def test_stairs_are_gated_by_quests(ctx):
    state = with_level_quests(make_state(rows=STAIRS_ROOM, entities=[ghost(5, 2)]))
    assert not stairs_unlocked(state)
    t = interact(state, ctx)
    assert not t.accepted
    assert t.state.level_id == 1
    assert t.state.log[-1].message == BARRED_MESSAGE


def test_descending_loads_next_level(ctx):
    state = make_state(rows=STAIRS_ROOM, health=13, turn=7)
    t = interact(state, ctx)
    assert t.accepted
    assert t.effects == (LevelEntered(2, "The Sewers"),)
    assert t.state.level_id == 2
    assert t.state.health == 13
    assert t.state.turn == 7
    assert t.state.map.width == 25 and t.state.map.height == 18
    assert t.state.log[-1].message == "You descend deeper into The Sewers..."
    assert t.state.active_quest.type is QuestType.KILL_RATS


def test_no_level_beyond_the_last(ctx):
    state = make_state(rows=STAIRS_ROOM, level_id=5)
    t = load_level(state, 6, ctx)
    assert not t.accepted
    assert t.state.log[-1].message == "There is no deeper level."


def test_new_game_sets_up_first_level(ctx):
    state = new_game(ctx)
    assert state.level_id == 1
    assert state.health == state.max_health == 20
    assert state.log[0].message == "Welcome to The Damp Cellar. Use Arrow Keys/WASD to move."
    spirit = next(e for e in state.entities if e.kind is EntityKind.GHOST)
    assert spirit.dialogue_state is DialogueState.QUEST_AVAILABLE
    assert state.quest("quest-explore-rooms-1").status is QuestStatus.NOT_STARTED


# -- quests in play -------------------------------------------------------------------------


def test_talking_to_spirit_gives_quest_then_repeats_active_line(ctx):
    state = with_level_quests(make_state(entities=[ghost(2, 1)]))
    quest = state.quest("quest-explore-rooms-1")

    t = interact(state, ctx)
    (effect,) = t.effects
    assert isinstance(effect, OpenDialogue)
    assert effect.entity_id == "ghost-1-0"
    assert effect.lines[0] in quest.dialogue_on_give
    assert t.state.active_quest.id == quest.id

    again = interact(t.state, ctx)
    assert again.effects[0].lines[0] in quest.dialogue_on_active


def test_exploration_completes_level_one_quest(ctx):
    state = with_level_quests(make_state(entities=[ghost(2, 1)], health=10))
    state = interact(state, ctx).state
    moved = move(state, 0, 1, ctx).state
    assert moved.quest("quest-explore-rooms-1").status is QuestStatus.COMPLETED
    assert moved.health == 15
    assert moved.entity("ghost-1-0") is None
    assert stairs_unlocked(moved)


def test_free_conversation_when_no_quest(ctx):
    t = interact(make_state(entities=[ghost(2, 1)]), ctx)
    assert t.effects == (
        OpenDialogue("ghost-1-0", "Wandering Spirit"),
        RequestDialogue("ghost-1-0", "Hello!"),
    )


def test_talking_to_rat_strikes_without_retaliation(ctx):
    t = interact(make_state(entities=[rat(2, 1)]), ctx)
    assert t.state.health == 20
    assert t.state.entity("rat-1-0").health == 3
    assert t.state.log[-1].message == "You hit the Dungeon Rat for 5 damage! (3/8)"
    assert t.state.pending_removals == ()

    killed = interact(t.state, ctx).state
    assert killed.entity("rat-1-0").dying
    assert tick(killed, 799).entity("rat-1-0") is not None
    gone = tick(killed, 800)
    assert gone.entity("rat-1-0") is None
    assert gone.log[-1].message == "The Dungeon Rat dies!"


def test_kill_quest_posted_by_rat(ctx):
    state = with_level_quests(make_state(entities=[rat(2, 1, "rat-2-0", health=3)], level_id=2, health=8))
    assert state.active_quest.giver_entity_id == "rat-2-0"
    assert not stairs_unlocked(state)

    t = move(state, 1, 0, ctx)
    assert t.state.quest("quest-kill-rats-2").status is QuestStatus.COMPLETED
    assert t.state.health == 18
    assert stairs_unlocked(t.state)


def test_fetch_quest_full_flow(ctx):
    state = with_level_quests(make_state(entities=[ghost(2, 1, "ghost-3-0"), artifact(5, 3)], level_id=3, radius=2))

    hidden_spot = replace(state, player=Position(5, 3))
    assert identify_interaction(hidden_spot) is None

    state = interact(state, ctx).state
    assert not state.entity("artifact-3-0").hidden

    state = interact(replace(state, player=Position(5, 3)), ctx).state
    assert state.entity("artifact-3-0") is None
    assert state.log[-1].message == "You pick up the Ancient Tome."
    quest = state.quest("quest-fetch-artifact-3")
    assert quest.objectives[0].completed
    assert quest.status is QuestStatus.ACTIVE

    t = interact(replace(state, player=Position(1, 1)), ctx)
    done = t.state.quest("quest-fetch-artifact-3")
    assert done.status is QuestStatus.COMPLETED
    assert t.effects[0].lines[0] in done.dialogue_on_complete
    assert t.state.entity("ghost-3-0") is None
    assert all(all(row) for row in t.state.explored)
    assert stairs_unlocked(t.state)


def test_spirit_waits_while_another_quest_is_active(ctx):
    entities = [ghost(3, 1, "ghost-4-0"), rat(6, 3, "rat-4-0")]
    state = with_level_quests(make_state(rows=STAIRS_ROOM, player=(2, 1), entities=entities, level_id=4))
    assert state.active_quest.type is QuestType.KILL_RATS
    t = interact(state, ctx)
    assert t.effects == ()
    assert t.state.log[-1].message == "Wandering Spirit waits for you to finish the task at hand."


def test_escort_completes_on_stairs(ctx):
    state = with_level_quests(
        make_state(rows=STAIRS_ROOM, player=(2, 1), entities=[ghost(3, 1, "ghost-4-0")], level_id=4, health=1)
    )
    state = interact(state, ctx).state
    assert state.active_quest.type is QuestType.ESCORT_SPIRIT

    arrived = move(state, -1, 0, ctx).state
    assert arrived.quest("quest-escort-spirit-4").status is QuestStatus.COMPLETED
    assert arrived.health == 20
    assert arrived.entity("ghost-4-0") is not None


def test_final_seed_quest(ctx):
    state = with_level_quests(make_state(entities=[ghost(2, 1, "ghost-5-0"), golden_seed(1, 2)], level_id=5))
    state = interact(state, ctx).state
    assert state.active_quest.type is QuestType.FINAL_SEED

    won = interact(replace(state, player=Position(1, 2)), ctx).state
    assert won.game_won
    assert won.quest("quest-final-seed").status is QuestStatus.COMPLETED
    assert any(e.message == "You obtained The Golden Seed of Life." for e in won.log)
