"""Models package."""

from giftswap.models.gift import (
    StealBackRule,
    GameConfig,
    Gift,
    GameSetup,
)
from giftswap.models.ownership import (
    ReconciliationSource,
    FinalOwnership,
)

__all__ = [
    "StealBackRule",
    "GameConfig",
    "Gift",
    "GameSetup",
    "ReconciliationSource",
    "FinalOwnership",
]
