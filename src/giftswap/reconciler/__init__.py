"""End-of-game reconciler package."""

from giftswap.models import FinalOwnership, ReconciliationSource
from giftswap.reconciler.replay import (
    replay_history,
    replay_ownership,
    duplicate_owners,
    repair_ownership,
)
from giftswap.reconciler.reconciler import reconcile, repair_live_state

__all__ = [
    "FinalOwnership",
    "ReconciliationSource",
    "replay_history",
    "replay_ownership",
    "duplicate_owners",
    "repair_ownership",
    "reconcile",
    "repair_live_state",
]
