"""Tests for history replay and end-of-game reconciliation."""

from giftswap.models import Gift, ReconciliationSource
from giftswap.events import PickEvent, SkipEvent, StealEvent
from giftswap.engine import GameState, build_turn_queue
from giftswap.reconciler import (
    duplicate_owners,
    reconcile,
    repair_live_state,
    repair_ownership,
    replay_history,
    replay_ownership,
)


# ============================================================================
# Helper Functions
# ============================================================================

def make_state(owners: dict, history: list, players=("P1", "P2", "P3"), wrapped=()) -> GameState:
    """Build a state directly from a gift -> owner map and a history."""
    return GameState(
        party_id="party",
        turn_order=list(players),
        turn_queue=build_turn_queue(list(players)),
        wrapped_gifts=list(wrapped),
        unwrapped_gifts={gid: Gift(gift_id=gid, owner_id=owner) for gid, owner in owners.items()},
        history=history,
    )


HISTORY = [
    PickEvent(actor_id="P1", gift_id="G1", turn_index=0),
    StealEvent(
        actor_id="P2", gift_id="G1", turn_index=1,
        previous_owner_id="P1", resulting_steal_count=1,
    ),
    PickEvent(actor_id="P1", gift_id="G2", turn_index=1),
    PickEvent(actor_id="P3", gift_id="G3", turn_index=2),
    StealEvent(
        actor_id="P1", gift_id="G3", turn_index=3,
        previous_owner_id="P3", exchanged_gift_id="G2", resulting_steal_count=1,
    ),
    SkipEvent(actor_id="P1", turn_index=3),
]


# ============================================================================
# Replay
# ============================================================================

class TestReplay:
    """Tests for history replay."""

    def test_replay_ownership(self):
        assert replay_ownership(HISTORY) == {"G1": "P2", "G2": "P3", "G3": "P1"}

    def test_replay_history_restores_gift_details(self):
        gifts = replay_history(HISTORY, max_steals=3)
        assert list(gifts) == ["G1", "G2", "G3"]
        assert gifts["G1"].steal_count == 1
        assert gifts["G1"].last_owner_id == "P1"
        assert gifts["G2"].owner_id == "P3"
        assert gifts["G2"].steal_count == 0  # exchanged gifts restart fresh
        assert not gifts["G3"].is_frozen

    def test_replay_marks_frozen(self):
        gifts = replay_history(HISTORY, max_steals=1)
        assert gifts["G1"].is_frozen
        assert gifts["G3"].is_frozen
        assert not gifts["G2"].is_frozen

    def test_empty_history(self):
        assert replay_ownership([]) == {}
        assert replay_history([], max_steals=3) == {}


class TestDuplicates:
    """Tests for duplicate detection and repair."""

    def test_duplicate_owners(self):
        assert duplicate_owners({"G1": "P1", "G2": "P1", "G3": "P2"}) == {"P1": ["G1", "G2"]}
        assert duplicate_owners({"G1": "P1", "G2": "P2"}) == {}

    def test_repair_keeps_first_gift(self):
        repaired, unplaced = repair_ownership(
            {"G1": "P1", "G2": "P1", "G3": "P2"}, ["P1", "P2", "P3"]
        )
        assert repaired == {"G1": "P1", "G3": "P2", "G2": "P3"}
        assert unplaced == []

    def test_repair_reports_unplaced(self):
        repaired, unplaced = repair_ownership(
            {"G1": "P1", "G2": "P1", "G3": "P1"}, ["P1", "P2"]
        )
        assert repaired == {"G1": "P1", "G2": "P2"}
        assert unplaced == ["G3"]


# ============================================================================
# Reconciliation
# ============================================================================

class TestReconcile:
    """Tests for reconcile."""

    def test_consistent_live_map(self):
        state = make_state({"G1": "P2", "G2": "P3", "G3": "P1"}, HISTORY)
        final = reconcile(state)
        assert final.source == ReconciliationSource.LIVE
        assert final.ownership == {"G1": "P2", "G2": "P3", "G3": "P1"}
        assert final.violations == []

    def test_falls_back_to_history_replay(self):
        state = make_state({"G1": "P2", "G2": "P1", "G3": "P1"}, HISTORY)
        final = reconcile(state)
        assert final.source == ReconciliationSource.HISTORY_REPLAY
        assert final.ownership == {"G1": "P2", "G2": "P3", "G3": "P1"}
        assert len(final.violations) == 1

    def test_gifts_missing_from_replay_are_redistributed(self):
        history = [
            PickEvent(actor_id="P1", gift_id="G1"),
            PickEvent(actor_id="P2", gift_id="G3"),
        ]
        state = make_state({"G1": "P1", "G2": "P1", "G3": "P2"}, history)
        final = reconcile(state)
        assert final.source == ReconciliationSource.HISTORY_REPLAY
        assert final.ownership == {"G1": "P1", "G3": "P2", "G2": "P3"}
        assert final.unclaimed == []
        assert len(final.violations) == 2

    def test_repairs_when_replay_conflicts(self):
        history = [
            PickEvent(actor_id="P1", gift_id="G1"),
            PickEvent(actor_id="P1", gift_id="G2"),
        ]
        state = make_state({"G1": "P1", "G2": "P1"}, history, players=("P1", "P2"))
        final = reconcile(state)
        assert final.source == ReconciliationSource.REPAIRED
        assert final.ownership == {"G1": "P1", "G2": "P2"}
        assert len(final.violations) == 2

    def test_repairs_when_history_is_empty(self):
        state = make_state({"G1": "P1", "G2": "P1"}, [], players=("P1", "P2"))
        final = reconcile(state)
        assert final.source == ReconciliationSource.REPAIRED
        assert final.ownership == {"G1": "P1", "G2": "P2"}

    def test_wrapped_gifts_go_to_giftless_players_in_turn_order(self):
        state = make_state(
            {"G1": "P2"},
            [PickEvent(actor_id="P2", gift_id="G1")],
            wrapped=("G2", "G3", "G4"),
        )
        final = reconcile(state)
        assert final.ownership == {"G1": "P2", "G2": "P1", "G3": "P3"}
        assert final.unclaimed == ["G4"]
        assert final.source == ReconciliationSource.LIVE

    def test_every_player_ends_with_one_gift(self):
        state = make_state({"G1": "P1", "G2": "P1", "G3": "P1"}, [])
        final = reconcile(state)
        assert sorted(final.ownership.values()) == ["P1", "P2", "P3"]

    def test_reconcile_is_deterministic(self):
        state = make_state({"G1": "P2", "G2": "P1", "G3": "P1"}, HISTORY, wrapped=("G4",))
        assert reconcile(state) == reconcile(state)

    def test_reconcile_does_not_touch_state(self):
        state = make_state({"G1": "P2", "G2": "P1", "G3": "P1"}, HISTORY)
        snapshot = state.model_dump()
        reconcile(state)
        assert state.model_dump() == snapshot


class TestRepairLiveState:
    """Tests for mid-game ownership repair."""

    def test_consistent_state_untouched(self):
        state = make_state({"G1": "P2", "G2": "P3", "G3": "P1"}, HISTORY)
        assert repair_live_state(state) == []
        assert state.owners() == {"G1": "P2", "G2": "P3", "G3": "P1"}

    def test_rebuilds_from_history(self):
        state = make_state({"G1": "P2", "G2": "P1", "G3": "P1"}, HISTORY)
        violations = repair_live_state(state)
        assert len(violations) == 1
        assert state.owners() == {"G1": "P2", "G2": "P3", "G3": "P1"}
        assert state.unwrapped_gifts["G1"].steal_count == 1

    def test_gifts_missing_from_history_return_to_pool(self):
        history = [PickEvent(actor_id="P1", gift_id="G1")]
        state = make_state({"G1": "P1", "G2": "P1"}, history, wrapped=("G3",))
        repair_live_state(state)
        assert state.owners() == {"G1": "P1"}
        assert state.wrapped_gifts == ["G3", "G2"]
