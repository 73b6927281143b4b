"""Event formatter for human-readable game logs.

Formats history events as short narrative lines such as
"alice stole G3 from bob (steal 2/3)".
"""

from typing import Optional

from .game_events import (
    BaseHistoryEvent,
    PickEvent,
    StealEvent,
    SkipEvent,
    SkipReason,
)


class EventFormatter:
    """Format history events with display names.

    Takes an optional player id to display name mapping; unknown ids are
    printed as-is.
    """

    def __init__(
        self,
        display_names: Optional[dict[str, str]] = None,
        max_steals: Optional[int] = None,
    ):
        """Initialize formatter.

        Args:
            display_names: Dict mapping player id to display name
            max_steals: Freeze threshold, shown next to steal counts when given
        """
        self.display_names = display_names or {}
        self.max_steals = max_steals

    def format(self, event: BaseHistoryEvent) -> str:
        """Format a single event.

        Args:
            event: The history event to format

        Returns:
            Human-readable string describing the event
        """
        return self._dispatch(event)

    def _dispatch(self, event: BaseHistoryEvent) -> str:
        """Route event to appropriate formatter method."""
        if isinstance(event, PickEvent):
            return self._format_pick(event)
        elif isinstance(event, StealEvent):
            return self._format_steal(event)
        elif isinstance(event, SkipEvent):
            return self._format_skip(event)
        else:
            return str(event)

    def _name(self, player_id: Optional[str]) -> str:
        if player_id is None:
            return "(nobody)"
        return self.display_names.get(player_id, player_id)

    def _format_pick(self, event: PickEvent) -> str:
        return f"{self._name(event.actor_id)} unwrapped {event.gift_id}"

    def _format_steal(self, event: StealEvent) -> str:
        actor = self._name(event.actor_id)
        victim = self._name(event.previous_owner_id)
        if self.max_steals is not None:
            count = f"steal {event.resulting_steal_count}/{self.max_steals}"
        else:
            count = f"steal {event.resulting_steal_count}"
        line = f"{actor} stole {event.gift_id} from {victim} ({count})"
        if event.became_frozen:
            line += ", now frozen"
        if event.exchanged_gift_id:
            line += f"; {victim} receives {event.exchanged_gift_id}"
        return line

    def _format_skip(self, event: SkipEvent) -> str:
        actor = self._name(event.actor_id)
        if event.reason == SkipReason.VOLUNTARY:
            return f"{actor} kept their gift"
        elif event.reason == SkipReason.NO_LEGAL_MOVE:
            return f"{actor} had no legal move and passed"
        return f"{actor} was skipped"
