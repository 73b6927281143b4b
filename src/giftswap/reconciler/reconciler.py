"""End-of-game reconciliation and mid-game ownership repair."""

import logging
from typing import TYPE_CHECKING

from giftswap.models import FinalOwnership, ReconciliationSource
from .replay import (
    duplicate_owners,
    replay_history,
    replay_ownership,
    repair_ownership,
)

if TYPE_CHECKING:
    from giftswap.engine.game_state import GameState

logger = logging.getLogger(__name__)


def _describe_duplicates(duplicates: dict[str, list[str]], where: str) -> str:
    parts = [f"{owner} owns {', '.join(gifts)}" for owner, gifts in duplicates.items()]
    return f"Duplicate ownership in {where}: {'; '.join(parts)}"


def reconcile(state: "GameState") -> FinalOwnership:
    """Build the final gift -> player map for a finished game.

    Starts from the live gift map. If a player owns two gifts there, the
    history is replayed instead; if the replay also conflicts, the first gift
    per player is kept and the rest are handed to giftless players in turn
    order. Wrapped gifts left at the end, and unwrapped gifts the replay
    does not account for, go to players still holding nothing, again in
    turn order. Pure: the same state always yields the same result.
    """
    live = state.owners()
    ownership = dict(live)
    source = ReconciliationSource.LIVE
    violations: list[str] = []
    unclaimed: list[str] = []

    live_duplicates = duplicate_owners(live)
    if live_duplicates:
        message = _describe_duplicates(live_duplicates, "live gift map")
        violations.append(message)
        logger.error("[%s] %s", state.party_id, message)

        replayed = replay_ownership(state.history)
        replay_duplicates = duplicate_owners(replayed)
        if replayed and not replay_duplicates:
            ownership = replayed
            source = ReconciliationSource.HISTORY_REPLAY
            missing = [gid for gid in live if gid not in replayed]
            if missing:
                message = f"History does not account for {', '.join(missing)}"
                violations.append(message)
                logger.warning("[%s] %s; returning them to the pool", state.party_id, message)
        else:
            if replay_duplicates:
                message = _describe_duplicates(replay_duplicates, "history replay")
                violations.append(message)
                logger.error("[%s] %s", state.party_id, message)
            candidate = {gid: replayed.get(gid, owner) for gid, owner in live.items()}
            ownership, unplaced = repair_ownership(candidate, state.turn_order)
            unclaimed.extend(unplaced)
            source = ReconciliationSource.REPAIRED

    holders = set(ownership.values())
    giftless = [p for p in state.turn_order if p not in holders]
    wrapped = [gid for gid in live if gid not in ownership and gid not in unclaimed]
    wrapped += [gid for gid in state.wrapped_gifts if gid not in ownership]
    for gift_id, player in zip(wrapped, giftless):
        ownership[gift_id] = player
    leftover = wrapped[len(giftless):]
    unclaimed.extend(leftover)

    if leftover:
        logger.info("[%s] %d wrapped gifts left unclaimed", state.party_id, len(leftover))
    logger.info(
        "[%s] Final ownership reconciled from %s (%d gifts)",
        state.party_id, source.value, len(ownership),
    )
    return FinalOwnership(
        ownership=ownership,
        source=source,
        violations=violations,
        unclaimed=unclaimed,
    )


def repair_live_state(state: "GameState") -> list[str]:
    """Rebuild a running game's gift map from history if ownership is broken.

    Mutates ``state`` in place and returns the violations found (empty when
    the live map was consistent). Gifts the rebuilt map does not account for
    go back to the wrapped pool.
    """
    duplicates = duplicate_owners(state.owners())
    if not duplicates:
        return []

    violations = [_describe_duplicates(duplicates, "live gift map")]
    logger.error("[%s] %s; rebuilding from history", state.party_id, violations[0])

    rebuilt = replay_history(state.history, state.config.max_steals)
    rebuilt_duplicates = duplicate_owners({gid: g.owner_id for gid, g in rebuilt.items()})
    if rebuilt_duplicates:
        message = _describe_duplicates(rebuilt_duplicates, "history replay")
        violations.append(message)
        logger.error("[%s] %s; keeping first gift per player", state.party_id, message)
        repaired, unplaced = repair_ownership(
            {gid: g.owner_id for gid, g in rebuilt.items()}, state.turn_order
        )
        for gift_id in unplaced:
            rebuilt.pop(gift_id)
        for gift_id, owner in repaired.items():
            rebuilt[gift_id].owner_id = owner

    for gift_id, gift in rebuilt.items():
        live = state.unwrapped_gifts.get(gift_id)
        if live is not None and live.owner_id == gift.owner_id:
            gift.last_owner_id = live.last_owner_id
        else:
            gift.last_owner_id = None

    pool = list(state.wrapped_gifts) + [g for g in state.unwrapped_gifts if g not in state.wrapped_gifts]
    state.unwrapped_gifts = rebuilt
    state.wrapped_gifts = [g for g in pool if g not in rebuilt]
    return violations
