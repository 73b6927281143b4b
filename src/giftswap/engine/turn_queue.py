"""Turn queue construction."""


def build_turn_queue(turn_order: list[str], return_to_start: bool = False) -> list[str]:
    """Build the full sequence of turn slots for a game.

    Standard mode is one forward pass followed by a single bookend turn for
    the first player. Boomerang mode is a forward pass followed by a full
    reverse pass, so the last player gets two consecutive slots at the seam.

    Args:
        turn_order: Shuffled player ids (at least 2, unique)
        return_to_start: True for boomerang mode

    Returns:
        List of player ids, length N+1 (standard) or 2N (boomerang)

    Raises:
        ValueError: If fewer than two players are given
    """
    if len(turn_order) < 2:
        raise ValueError(f"need at least 2 players, got {len(turn_order)}")
    if return_to_start:
        return list(turn_order) + list(reversed(turn_order))
    return list(turn_order) + [turn_order[0]]
