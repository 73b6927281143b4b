"""Commands accepted by the game reducer."""

from typing import Optional, Union
from pydantic import BaseModel


class PickCommand(BaseModel):
    """Unwrap a gift from the pool."""

    actor_id: str
    gift_id: str

    def __str__(self) -> str:
        return f"PICK({self.actor_id}, {self.gift_id})"


class StealCommand(BaseModel):
    """Take an unwrapped gift from its owner."""

    actor_id: str
    gift_id: str

    def __str__(self) -> str:
        return f"STEAL({self.actor_id}, {self.gift_id})"


class EndTurnCommand(BaseModel):
    """Close the current slot.

    ``force`` advances even when the actor still owes a move; used by admins
    and by the bot driver to break livelocks.
    """

    actor_id: Optional[str] = None  # None: whoever is active
    force: bool = False

    def __str__(self) -> str:
        suffix = ", force" if self.force else ""
        return f"END_TURN({self.actor_id or '*'}{suffix})"


class EndGameCommand(BaseModel):
    """Admin override that ends the game immediately."""

    reason: str = "admin"

    def __str__(self) -> str:
        return f"END_GAME({self.reason})"


Command = Union[PickCommand, StealCommand, EndTurnCommand, EndGameCommand]
