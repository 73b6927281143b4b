"""Command entry points for human input and bots.

Each command runs load -> apply one transition -> save under a per-party
asyncio lock, so at most one mutation per party is in flight inside this
process. Saves are compare-and-swap on the state version, which protects
against writers in other processes sharing the same store.

The service keeps the latest state of every party it touched in memory. If
the store fails, that cached copy stays authoritative and the caller gets a
warning instead of an error.
"""

import asyncio
import inspect
import logging
import random
from typing import Any, Callable, Optional
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from giftswap.models import GameConfig, GameSetup, StealBackRule
from giftswap.events.game_events import HistoryEvent
from giftswap.engine.game_state import GameState
from giftswap.engine.policy import Rejection
from giftswap.engine.commands import (
    Command,
    PickCommand,
    StealCommand,
    EndTurnCommand,
    EndGameCommand,
)
from giftswap.engine.transitions import (
    ActionRejected,
    Transition,
    apply_command,
    new_game,
)
from giftswap.engine.validator import GameValidator, NoOpValidator
from giftswap.settings import Settings
from .store import GameStore, InMemoryGameStore, PersistenceError, VersionConflict
from .broadcaster import Broadcaster, NullBroadcaster, Notification, NotificationKind

logger = logging.getLogger(__name__)


class GameNotFoundError(LookupError):
    """No game exists for the party."""


class GameSetupError(ValueError):
    """A game could not be started with the given configuration."""


class CommandOutcome(BaseModel):
    """Result of a command: the new state, or the reason it was refused."""

    ok: bool
    state: Optional[GameState] = None
    rejection: Optional[Rejection] = None
    event: Optional[HistoryEvent] = None
    ended: bool = False
    warnings: list[str] = Field(default_factory=list)

    @property
    def reason(self) -> str:
        return self.rejection.reason if self.rejection else ""


StateListener = Callable[[GameState], Any]


class GameService:
    """Runs commands against stored games and fans out notifications."""

    def __init__(
        self,
        store: Optional[GameStore] = None,
        broadcaster: Optional[Broadcaster] = None,
        validator: Optional[GameValidator] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store if store is not None else InMemoryGameStore()
        self.broadcaster = broadcaster if broadcaster is not None else NullBroadcaster()
        self.validator = validator if validator is not None else NoOpValidator()
        self.settings = settings if settings is not None else Settings()
        self._cache: dict[str, GameState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._listeners: list[StateListener] = []

    def _lock(self, party_id: str) -> asyncio.Lock:
        lock = self._locks.get(party_id)
        if lock is None:
            lock = self._locks[party_id] = asyncio.Lock()
        return lock

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback run with the new state after every committed change."""
        self._listeners.append(listener)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start_game(
        self,
        party_id: str,
        players: list[str],
        gifts: list[str],
        max_steals: int = 3,
        return_to_start: bool = False,
        steal_back: StealBackRule = StealBackRule.CHAIN,
        rng: Optional[random.Random] = None,
        shuffle: bool = True,
    ) -> CommandOutcome:
        """Create a game for a party and announce it.

        Raises:
            GameSetupError: Invalid players/gifts/config, or a game is already
                            running for the party
        """
        try:
            setup = GameSetup(
                players=players,
                gifts=gifts,
                config=GameConfig(
                    max_steals=max_steals,
                    return_to_start=return_to_start,
                    steal_back=steal_back,
                ),
            )
        except PydanticValidationError as exc:
            raise GameSetupError(str(exc)) from exc

        async with self._lock(party_id):
            existing = self._cache.get(party_id)
            if existing is None:
                existing = await self._load_from_store(party_id)
            if existing is not None and not existing.is_ended:
                raise GameSetupError(f"A game is already running for {party_id}")

            state = new_game(party_id, setup, rng=rng, shuffle=shuffle)
            expected = None
            if existing is not None:
                state.version = existing.version + 1
                expected = existing.version

            warnings: list[str] = []
            try:
                await self.store.save(state, expected_version=expected)
            except PersistenceError as exc:
                warnings.append(self._persistence_warning(party_id, exc))
            self._cache[party_id] = state

            await self.validator.on_game_start(state)
            await self._publish(NotificationKind.GAME_STARTED, state, {
                "turn_order": list(state.turn_order),
                "turn_queue": list(state.turn_queue),
                "active_actor": state.active_actor,
                "config": state.config.model_dump(mode="json"),
            })

        await self._notify_listeners(state)
        return CommandOutcome(ok=True, state=state, warnings=warnings)

    async def get_state(self, party_id: str) -> GameState:
        """Current state of a party's game.

        Raises:
            GameNotFoundError: The party has no game
        """
        return await self._load(party_id)

    async def delete_game(self, party_id: str) -> bool:
        """Forget a party's game. Returns False if there was none."""
        async with self._lock(party_id):
            cached = self._cache.pop(party_id, None) is not None
            try:
                stored = await self.store.delete(party_id)
            except PersistenceError as exc:
                logger.warning(self._persistence_warning(party_id, exc))
                stored = False
        self._locks.pop(party_id, None)
        if cached or stored:
            logger.info("[%s] Game deleted", party_id)
        return cached or stored

    # =========================================================================
    # Commands
    # =========================================================================

    async def pick(self, party_id: str, actor_id: str, gift_id: str) -> CommandOutcome:
        return await self.execute(party_id, PickCommand(actor_id=actor_id, gift_id=gift_id))

    async def steal(self, party_id: str, actor_id: str, gift_id: str) -> CommandOutcome:
        return await self.execute(party_id, StealCommand(actor_id=actor_id, gift_id=gift_id))

    async def end_turn(
        self,
        party_id: str,
        actor_id: Optional[str] = None,
        force: bool = False,
    ) -> CommandOutcome:
        return await self.execute(party_id, EndTurnCommand(actor_id=actor_id, force=force))

    async def end_game(self, party_id: str, reason: str = "admin") -> CommandOutcome:
        """Admin override: end the game now and reconcile ownership."""
        return await self.execute(party_id, EndGameCommand(reason=reason))

    async def execute(self, party_id: str, command: Command) -> CommandOutcome:
        """Apply one command to a party's game.

        Rule violations come back as ``ok=False`` with a Rejection; the
        stored state is untouched in that case.

        Raises:
            GameNotFoundError: The party has no game
        """
        async with self._lock(party_id):
            before = await self._load(party_id)
            try:
                transition = apply_command(before, command)
            except ActionRejected as exc:
                logger.debug("[%s] %s rejected: %s", party_id, command, exc.rejection)
                return CommandOutcome(ok=False, state=before, rejection=exc.rejection)

            if transition.noop:
                return CommandOutcome(ok=True, state=before)

            warnings: list[str] = []
            try:
                before, transition = await self._commit(party_id, before, command, transition, warnings)
            except ActionRejected as exc:
                return CommandOutcome(
                    ok=False,
                    state=self._cache.get(party_id),
                    rejection=exc.rejection,
                    warnings=warnings,
                )

            if isinstance(command, (PickCommand, StealCommand)):
                await self._publish(NotificationKind.ACTION_STARTED, before, {
                    "type": "PICK" if isinstance(command, PickCommand) else "STEAL",
                    "gift_id": command.gift_id,
                    "actor_id": command.actor_id,
                })

            state = transition.state
            warnings = transition.violations + transition.anomalies + warnings
            await self.validator.on_transition(before, state, transition.event)
            await self._publish(NotificationKind.GAME_UPDATED, state, {
                "event": transition.event.model_dump(mode="json") if transition.event else None,
                "active_actor": state.active_actor,
                "turn_index": state.turn_index,
                "current_victim": state.current_victim,
            })
            if transition.ended:
                await self._on_ended(state)

        await self._notify_listeners(state)
        return CommandOutcome(
            ok=True,
            state=state,
            event=transition.event,
            ended=transition.ended,
            warnings=warnings,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    async def _commit(
        self,
        party_id: str,
        before: GameState,
        command: Command,
        transition: Transition,
        warnings: list[str],
    ) -> tuple[GameState, Transition]:
        """Save a transition with compare-and-swap, retrying once on conflict.

        Returns the state the transition was applied to and the transition
        actually saved. A store holding an older version than the cache is
        overwritten. Raises ActionRejected if the command is no longer legal
        against the freshly loaded state.
        """
        try:
            await self.store.save(transition.state, expected_version=before.version)
        except VersionConflict as exc:
            if exc.actual is not None and exc.actual < before.version:
                # Store missed earlier saves; the cached state is newer
                logger.warning("[%s] %s; store is behind, overwriting", party_id, exc)
                try:
                    await self.store.save(transition.state)
                except PersistenceError as retry_exc:
                    warnings.append(self._persistence_warning(party_id, retry_exc))
                self._cache[party_id] = transition.state
                return before, transition
            logger.warning("[%s] %s; reloading and re-applying %s", party_id, exc, command)
            try:
                fresh = await self._load_from_store(party_id) or before
            except PersistenceError as load_exc:
                warnings.append(self._persistence_warning(party_id, load_exc))
                self._cache[party_id] = transition.state
                return before, transition
            self._cache[party_id] = fresh
            transition = apply_command(fresh, command)
            before = fresh
            try:
                await self.store.save(transition.state, expected_version=fresh.version)
            except PersistenceError as retry_exc:
                warnings.append(self._persistence_warning(party_id, retry_exc))
        except PersistenceError as exc:
            warnings.append(self._persistence_warning(party_id, exc))
        self._cache[party_id] = transition.state
        return before, transition

    async def _on_ended(self, state: GameState) -> None:
        final = state.final_ownership
        await self.validator.on_game_end(state, final)
        await self._publish(NotificationKind.GAME_ENDED, state, {
            "final_ownership": dict(final.ownership),
            "unclaimed": list(final.unclaimed),
            "source": final.source.value,
        })

    async def _load(self, party_id: str) -> GameState:
        state = self._cache.get(party_id)
        if state is not None:
            return state
        state = await self._load_from_store(party_id)
        if state is None:
            raise GameNotFoundError(f"No game for party {party_id}")
        self._cache[party_id] = state
        return state

    async def _load_from_store(self, party_id: str) -> Optional[GameState]:
        return await self.store.load(party_id)

    async def _publish(self, kind: NotificationKind, state: GameState, payload: dict) -> None:
        await self.broadcaster.publish(Notification(
            kind=kind,
            party_id=state.party_id,
            version=state.version,
            payload=payload,
        ))

    async def _notify_listeners(self, state: GameState) -> None:
        for listener in self._listeners:
            result = listener(state)
            if inspect.isawaitable(result):
                await result

    @staticmethod
    def _persistence_warning(party_id: str, exc: Exception) -> str:
        message = f"State for {party_id} not persisted: {exc}"
        logger.warning(message)
        return message
