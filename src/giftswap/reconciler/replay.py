"""History replay.

The history log is the ground truth for ownership. These functions rebuild
the live gift map from it and detect or repair duplicate ownership.
"""

from typing import Iterable

from giftswap.models import Gift
from giftswap.events.game_events import (
    BaseHistoryEvent,
    PickEvent,
    StealEvent,
)


def replay_history(history: Iterable[BaseHistoryEvent], max_steals: int) -> dict[str, Gift]:
    """Rebuild the unwrapped gift map by applying history from an empty state.

    PICK creates the gift for the actor. STEAL moves it to the actor with the
    recorded steal count and hands any exchanged gift to the previous owner
    as a fresh gift. SKIP entries carry no ownership change.

    Args:
        history: Events in the order they were applied
        max_steals: Freeze threshold of the game

    Returns:
        gift_id -> Gift, in first-unwrap order
    """
    gifts: dict[str, Gift] = {}
    for event in history:
        if isinstance(event, PickEvent):
            gifts[event.gift_id] = Gift(gift_id=event.gift_id, owner_id=event.actor_id)
        elif isinstance(event, StealEvent):
            count = event.resulting_steal_count
            gifts[event.gift_id] = Gift(
                gift_id=event.gift_id,
                owner_id=event.actor_id,
                steal_count=count,
                is_frozen=event.became_frozen or count >= max_steals,
                last_owner_id=event.previous_owner_id,
            )
            if event.exchanged_gift_id:
                gifts[event.exchanged_gift_id] = Gift(
                    gift_id=event.exchanged_gift_id,
                    owner_id=event.previous_owner_id,
                )
    return gifts


def replay_ownership(history: Iterable[BaseHistoryEvent]) -> dict[str, str]:
    """gift_id -> owner_id as reconstructed from history."""
    ownership: dict[str, str] = {}
    for event in history:
        if isinstance(event, PickEvent):
            ownership[event.gift_id] = event.actor_id
        elif isinstance(event, StealEvent):
            ownership[event.gift_id] = event.actor_id
            if event.exchanged_gift_id:
                ownership[event.exchanged_gift_id] = event.previous_owner_id
    return ownership


def duplicate_owners(ownership: dict[str, str]) -> dict[str, list[str]]:
    """Players holding more than one gift, mapped to those gifts."""
    by_owner: dict[str, list[str]] = {}
    for gift_id, owner in ownership.items():
        by_owner.setdefault(owner, []).append(gift_id)
    return {owner: gifts for owner, gifts in by_owner.items() if len(gifts) > 1}


def repair_ownership(
    ownership: dict[str, str],
    players: list[str],
) -> tuple[dict[str, str], list[str]]:
    """Keep the first gift per player and hand the rest to giftless players.

    Gifts are visited in ``ownership`` order. Surplus gifts go to players
    without a gift in ``players`` order; any that still have no taker are
    returned as unplaced.

    Returns:
        (repaired ownership, unplaced gift ids)
    """
    repaired: dict[str, str] = {}
    assigned: set[str] = set()
    surplus: list[str] = []
    for gift_id, owner in ownership.items():
        if owner in assigned:
            surplus.append(gift_id)
        else:
            repaired[gift_id] = owner
            assigned.add(owner)

    giftless = [p for p in players if p not in assigned]
    for gift_id, player in zip(surplus, giftless):
        repaired[gift_id] = player
    unplaced = surplus[len(giftless):]
    return repaired, unplaced
