"""Tests for the game reducer (apply_command)."""

import random

import pytest

from giftswap.models import GameConfig, GameSetup, ReconciliationSource
from giftswap.events import PickEvent, SkipEvent, SkipReason, StealEvent
from giftswap.engine import (
    ActionRejected,
    EndGameCommand,
    EndTurnCommand,
    GamePhase,
    GameState,
    PickCommand,
    RejectionCode,
    StealCommand,
    TurnAction,
    apply_command,
    new_game,
)


# ============================================================================
# Helper Functions
# ============================================================================

def make_state(players=("P1", "P2", "P3"), gifts=("G1", "G2", "G3"), **config) -> GameState:
    setup = GameSetup(players=list(players), gifts=list(gifts), config=GameConfig(**config))
    return new_game("party", setup, shuffle=False)


def play(state: GameState, *commands) -> GameState:
    for command in commands:
        state = apply_command(state, command).state
    return state


def pick(actor, gift):
    return PickCommand(actor_id=actor, gift_id=gift)


def steal(actor, gift):
    return StealCommand(actor_id=actor, gift_id=gift)


def end(actor=None, force=False):
    return EndTurnCommand(actor_id=actor, force=force)


def rejection_code(state: GameState, command) -> RejectionCode:
    with pytest.raises(ActionRejected) as exc_info:
        apply_command(state, command)
    return exc_info.value.code


# ============================================================================
# Setup
# ============================================================================

class TestNewGame:
    """Tests for new_game."""

    def test_initial_state(self):
        state = make_state()
        assert state.phase == GamePhase.ACTIVE
        assert state.turn_order == ["P1", "P2", "P3"]
        assert state.turn_queue == ["P1", "P2", "P3", "P1"]
        assert state.wrapped_gifts == ["G1", "G2", "G3"]
        assert state.unwrapped_gifts == {}
        assert state.active_actor == "P1"
        assert state.version == 0

    def test_shuffle_is_seeded(self):
        setup = GameSetup(players=["a", "b", "c", "d", "e"], gifts=["1", "2", "3", "4", "5"])
        first = new_game("party", setup, rng=random.Random(7))
        second = new_game("party", setup, rng=random.Random(7))
        assert first.turn_order == second.turn_order
        assert sorted(first.turn_order) == ["a", "b", "c", "d", "e"]

    def test_boomerang_queue(self):
        state = make_state(return_to_start=True)
        assert state.turn_queue == ["P1", "P2", "P3", "P3", "P2", "P1"]


# ============================================================================
# PICK and STEAL
# ============================================================================

class TestPickTransition:
    """Tests for the PICK transition."""

    def test_pick_moves_gift_out_of_pool(self):
        transition = apply_command(make_state(), pick("P1", "G1"))
        state = transition.state
        assert state.wrapped_gifts == ["G2", "G3"]
        assert state.unwrapped_gifts["G1"].owner_id == "P1"
        assert state.unwrapped_gifts["G1"].steal_count == 0
        assert state.turn_action == TurnAction.PICKED
        assert state.turn_index == 0
        assert isinstance(transition.event, PickEvent)
        assert transition.event.turn_index == 0
        assert state.history == [transition.event]

    def test_pick_does_not_advance_turn(self):
        state = play(make_state(), pick("P1", "G1"))
        assert state.active_actor == "P1"
        state = play(state, end("P1"))
        assert state.turn_index == 1
        assert state.active_actor == "P2"

    def test_rejected_pick(self):
        state = make_state()
        assert rejection_code(state, pick("P2", "G1")) == RejectionCode.NOT_YOUR_TURN
        assert rejection_code(state, pick("P1", "G7")) == RejectionCode.GIFT_NOT_FOUND


class TestStealTransition:
    """Tests for the STEAL transition."""

    def test_steal_hands_control_to_victim(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"))
        transition = apply_command(state, steal("P2", "G1"))
        new = transition.state
        gift = new.unwrapped_gifts["G1"]
        assert gift.owner_id == "P2"
        assert gift.steal_count == 1
        assert gift.last_owner_id == "P1"
        assert new.current_victim == "P1"
        assert new.active_actor == "P1"
        assert new.turn_index == 1  # slot not consumed
        assert new.turn_action is None
        assert isinstance(transition.event, StealEvent)
        assert transition.event.previous_owner_id == "P1"
        assert transition.event.exchanged_gift_id is None
        assert transition.event.resulting_steal_count == 1

    def test_victim_pick_closes_the_stealers_slot(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            steal("P2", "G1"),
            pick("P1", "G2"), end("P1"),
        )
        assert state.turn_index == 2
        assert state.active_actor == "P3"
        assert state.current_victim is None
        assert state.owners() == {"G1": "P2", "G2": "P1"}

    def test_gift_freezes_at_max_steals(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            steal("P2", "G1"),
            pick("P1", "G2"), end("P1"),
            steal("P3", "G1"),
            steal("P2", "G2"),
        )
        transition = apply_command(state, steal("P1", "G1"))
        gift = transition.state.unwrapped_gifts["G1"]
        assert gift.steal_count == 3
        assert gift.is_frozen
        assert transition.event.became_frozen
        assert transition.state.current_victim == "P3"

    def test_frozen_gift_cannot_be_stolen(self):
        state = play(make_state(max_steals=1), pick("P1", "G1"), end("P1"), steal("P2", "G1"))
        state = play(state, pick("P1", "G2"), end("P1"))
        assert rejection_code(state, steal("P3", "G1")) == RejectionCode.GIFT_FROZEN

    def test_swap_resets_exchanged_gift(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            pick("P2", "G2"), end("P2"),
            steal("P3", "G1"),
            steal("P1", "G2"),
            pick("P2", "G3"), end("P2"),
        )
        assert state.is_bookend_slot
        assert state.unwrapped_gifts["G2"].steal_count == 1

        transition = apply_command(state, steal("P1", "G1"))
        new = transition.state
        assert new.unwrapped_gifts["G1"].owner_id == "P1"
        assert new.unwrapped_gifts["G1"].steal_count == 2
        exchanged = new.unwrapped_gifts["G2"]
        assert exchanged.owner_id == "P3"
        assert exchanged.steal_count == 0
        assert not exchanged.is_frozen
        assert new.turn_action == TurnAction.STOLEN
        assert new.current_victim is None
        assert transition.event.exchanged_gift_id == "G2"

    def test_steal_back_rejected_in_chain(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"), steal("P2", "G1"))
        assert rejection_code(state, steal("P1", "G1")) == RejectionCode.STEAL_BACK

    def test_steal_back_when_allowed(self):
        state = play(
            make_state(steal_back="ALLOWED"),
            pick("P1", "G1"), end("P1"), steal("P2", "G1"),
        )
        new = apply_command(state, steal("P1", "G1")).state
        assert new.unwrapped_gifts["G1"].owner_id == "P1"
        assert new.unwrapped_gifts["G1"].steal_count == 2
        assert new.current_victim == "P2"


# ============================================================================
# END_TURN
# ============================================================================

class TestEndTurn:
    """Tests for the END_TURN transition."""

    def test_end_after_acting_advances_without_event(self):
        transition = apply_command(play(make_state(), pick("P1", "G1")), end("P1"))
        assert transition.event is None
        assert transition.state.turn_index == 1
        assert transition.state.turn_action is None

    def test_end_clears_steal_back_marks(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            steal("P2", "G1"),
            pick("P1", "G2"), end("P1"),
        )
        assert all(g.last_owner_id is None for g in state.unwrapped_gifts.values())

    def test_must_act_before_ending(self):
        assert rejection_code(make_state(), end("P1")) == RejectionCode.MUST_ACT

    def test_wrong_actor(self):
        assert rejection_code(make_state(), end("P2")) == RejectionCode.NOT_YOUR_TURN

    def test_stealer_cannot_end_while_victim_pending(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"), steal("P2", "G1"))
        assert rejection_code(state, end("P2")) == RejectionCode.NOT_YOUR_TURN

    def test_pending_victim_end_is_noop(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"), steal("P2", "G1"))
        transition = apply_command(state, end("P1"))
        assert transition.noop
        assert transition.state is state
        assert transition.event is None

    def test_forced_skip(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"))
        transition = apply_command(state, end("P2", force=True))
        assert isinstance(transition.event, SkipEvent)
        assert transition.event.reason == SkipReason.FORCED
        assert transition.anomalies
        assert transition.state.turn_index == 2

    def test_voluntary_skip_on_bookend(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            pick("P2", "G2"), end("P2"),
            pick("P3", "G3"), end("P3"),
        )
        transition = apply_command(state, end("P1"))
        assert transition.event.reason == SkipReason.VOLUNTARY
        assert transition.ended
        assert transition.anomalies == []

    def test_no_legal_move_skip(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            steal("P2", "G1"),
            pick("P1", "G2"), end("P1"),
            steal("P3", "G1"),
            steal("P2", "G2"),
            steal("P1", "G1"),
            pick("P3", "G3"), end("P3"),
        )
        assert state.is_bookend_slot
        assert state.held_gift("P1").is_frozen
        transition = apply_command(state, end())
        assert transition.event.reason == SkipReason.NO_LEGAL_MOVE
        assert transition.ended

    def test_boomerang_holder_cannot_pass(self):
        state = play(
            make_state(players=("a", "b"), gifts=("G1", "G2"), return_to_start=True),
            pick("a", "G1"), end("a"),
            pick("b", "G2"), end("b"),
        )
        assert rejection_code(state, end("b")) == RejectionCode.MUST_ACT

    def test_end_after_game_over(self):
        state = play(make_state(), EndGameCommand())
        assert rejection_code(state, end()) == RejectionCode.GAME_ENDED


# ============================================================================
# Whole games
# ============================================================================

class TestFullGames:
    """Scenario tests playing whole games."""

    def test_frozen_bookend_game(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            steal("P2", "G1"),
            pick("P1", "G2"), end("P1"),
            steal("P3", "G1"),
            steal("P2", "G2"),
            steal("P1", "G1"),
            pick("P3", "G3"), end("P3"),
            end("P1"),
        )
        assert state.phase == GamePhase.ENDED
        assert state.active_actor is None
        final = state.final_ownership
        assert final.source == ReconciliationSource.LIVE
        assert final.ownership == {"G1": "P1", "G2": "P2", "G3": "P3"}
        assert final.unclaimed == []

    def test_forced_skip_leaves_wrapped_gift_for_reconciliation(self):
        state = play(
            make_state(),
            pick("P1", "G1"), end("P1"),
            end("P2", force=True),
            pick("P3", "G2"), end("P3"),
            end("P1"),
        )
        assert state.is_ended
        assert state.wrapped_gifts == ["G3"]
        assert state.final_ownership.ownership == {"G1": "P1", "G2": "P3", "G3": "P2"}

    def test_extra_gift_is_unclaimed(self):
        state = play(
            make_state(gifts=("G1", "G2", "G3", "G4")),
            pick("P1", "G1"), end("P1"),
            pick("P2", "G2"), end("P2"),
            pick("P3", "G3"), end("P3"),
            end("P1"),
        )
        assert state.final_ownership.unclaimed == ["G4"]
        assert len(state.final_ownership.ownership) == 3

    def test_boomerang_game(self):
        state = play(
            make_state(players=("a", "b"), gifts=("G1", "G2"), return_to_start=True),
            pick("a", "G1"), end("a"),
            pick("b", "G2"), end("b"),
            steal("b", "G1"), end("b"),
            steal("a", "G1"), end("a"),
        )
        assert state.is_ended
        assert state.final_ownership.ownership == {"G1": "a", "G2": "b"}
        assert state.unwrapped_gifts["G1"].steal_count == 2

    def test_admin_end_game(self):
        state = play(make_state(), pick("P1", "G1"))
        transition = apply_command(state, EndGameCommand(reason="party over"))
        assert transition.ended
        assert transition.event is None
        new = transition.state
        assert new.phase == GamePhase.ENDED
        assert new.turn_action is None
        assert new.final_ownership.ownership == {"G1": "P1", "G2": "P2", "G3": "P3"}

    def test_end_game_twice(self):
        state = play(make_state(), EndGameCommand())
        assert rejection_code(state, EndGameCommand()) == RejectionCode.GAME_ENDED


# ============================================================================
# Reducer guarantees
# ============================================================================

class TestReducerGuarantees:
    """Tests for purity, versioning and repair in the reducer."""

    def test_input_state_is_not_mutated(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"))
        snapshot = state.model_dump()
        apply_command(state, steal("P2", "G1"))
        assert state.model_dump() == snapshot

    def test_rejection_leaves_state_untouched(self):
        state = make_state()
        snapshot = state.model_dump()
        with pytest.raises(ActionRejected):
            apply_command(state, steal("P1", "G1"))
        assert state.model_dump() == snapshot

    def test_every_change_bumps_version(self):
        state = make_state()
        state = play(state, pick("P1", "G1"))
        assert state.version == 1
        state = play(state, end("P1"))
        assert state.version == 2
        state = play(state, EndGameCommand())
        assert state.version == 3

    def test_history_is_append_only(self):
        state = play(make_state(), pick("P1", "G1"), end("P1"))
        before = list(state.history)
        new = play(state, steal("P2", "G1"), pick("P1", "G2"))
        assert new.history[:len(before)] == before
        assert len(new.history) == len(before) + 2

    def test_unknown_command_type(self):
        with pytest.raises(TypeError):
            apply_command(make_state(), "PICK")

    def test_corrupted_ownership_repaired_on_steal(self):
        state = play(
            make_state(players=("P1", "P2", "P3", "P4"), gifts=("G1", "G2", "G3", "G4")),
            pick("P1", "G1"), end("P1"),
            pick("P2", "G2"), end("P2"),
            pick("P3", "G3"), end("P3"),
        )
        state.unwrapped_gifts["G3"].owner_id = "P2"

        transition = apply_command(state, steal("P4", "G1"))
        assert transition.violations
        new = transition.state
        assert new.owners() == {"G1": "P4", "G2": "P2", "G3": "P3"}
        assert new.unwrapped_gifts["G1"].last_owner_id == "P1"
        assert new.wrapped_gifts == ["G4"]
        assert new.current_victim == "P1"
