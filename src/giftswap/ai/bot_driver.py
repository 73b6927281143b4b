"""Drives bot players through the game service.

A bot move is delayed to simulate thinking. The timer cannot be cancelled
once scheduled, so the driver reloads the state after the delay and drops
the move if the active actor or the turn changed in the meantime.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from giftswap.engine.game_state import GameState
from giftswap.settings import Settings
from giftswap.service.game_service import CommandOutcome, GameNotFoundError, GameService
from .autoplay import AutoplayAgent, BotAction, is_bot

logger = logging.getLogger(__name__)


class BotDriver:
    """Plays every pending bot turn of a party.

    Usage:
        driver = BotDriver(service)
        driver.attach()  # bots move automatically after each state change
        ...
        await driver.wait_idle(party_id)
    """

    def __init__(
        self,
        service: GameService,
        agent: Optional[AutoplayAgent] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.service = service
        self.agent = agent or AutoplayAgent(rng=rng)
        self.settings = settings or service.settings
        self.rng = rng or random.Random()
        self._sleep = sleep
        self._attempts: dict[tuple[str, str, int], int] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    # =========================================================================
    # Scheduling
    # =========================================================================

    def attach(self) -> None:
        """Start bot turns automatically whenever a bot becomes active."""
        self.service.subscribe(self._on_state)

    def _on_state(self, state: GameState) -> None:
        if state.is_ended:
            self.forget(state.party_id)
        elif self._wants_move(state):
            self.schedule(state.party_id)

    def schedule(self, party_id: str) -> asyncio.Task:
        """Run ``play_pending`` in the background unless it is already running."""
        task = self._tasks.get(party_id)
        if task is None or task.done():
            task = asyncio.create_task(self.play_pending(party_id))
            self._tasks[party_id] = task
        return task

    async def wait_idle(self, party_id: str) -> None:
        """Wait until no background bot task is running for the party."""
        while True:
            task = self._tasks.get(party_id)
            if task is None or task.done():
                return
            await task

    async def shutdown(self) -> None:
        """Cancel every background bot task."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def forget(self, party_id: str) -> None:
        """Drop bookkeeping for a party whose game ended or was deleted.

        A still-running task is left alone unless it is the caller.
        """
        for key in [k for k in self._attempts if k[0] == party_id]:
            del self._attempts[key]
        task = self._tasks.get(party_id)
        if task is not None and (task.done() or task is asyncio.current_task()):
            del self._tasks[party_id]

    # =========================================================================
    # Turns
    # =========================================================================

    def _wants_move(self, state: GameState) -> bool:
        actor = state.active_actor
        return actor is not None and is_bot(actor, self.settings.bot_prefix)

    def _delay(self) -> float:
        return self.rng.uniform(self.settings.bot_delay_min, self.settings.bot_delay_max)

    async def play_pending(self, party_id: str, max_moves: Optional[int] = None) -> int:
        """Play bot turns until a human is active or the game ends.

        Returns:
            Number of bot turns taken
        """
        moves = 0
        while max_moves is None or moves < max_moves:
            if not await self.take_turn(party_id):
                break
            moves += 1
        return moves

    async def take_turn(self, party_id: str) -> bool:
        """Make one move for the active bot, if any.

        A game deleted while the bot was thinking drops the move.

        Returns:
            True if a command was applied for the bot
        """
        try:
            return await self._take_turn(party_id)
        except GameNotFoundError:
            logger.warning("[%s] Stale bot timer; game no longer exists", party_id)
            self.forget(party_id)
            return False

    async def _take_turn(self, party_id: str) -> bool:
        state = await self.service.get_state(party_id)
        if not self._wants_move(state):
            return False
        actor = state.active_actor
        turn_index = state.turn_index

        await self._sleep(self._delay())

        fresh = await self.service.get_state(party_id)
        if fresh.active_actor != actor or fresh.turn_index != turn_index:
            logger.warning(
                "[%s] Stale bot timer for %s at slot %d; state moved on",
                party_id, actor, turn_index,
            )
            return False

        self._prune(party_id, turn_index)
        key = (party_id, actor, turn_index)
        self._attempts[key] = self._attempts.get(key, 0) + 1
        if self._attempts[key] > self.settings.max_bot_attempts:
            logger.warning(
                "[%s] %s exceeded %d attempts at slot %d; forcing end of turn",
                party_id, actor, self.settings.max_bot_attempts, turn_index,
            )
            outcome = await self.service.end_turn(party_id, actor, force=True)
            return outcome.ok

        decision = self.agent.decide(fresh, actor)
        logger.debug("[%s] Bot decision: %s", party_id, decision)
        outcome = await self.service.execute(party_id, decision.to_command())

        if not outcome.ok:
            logger.warning("[%s] Bot move rejected: %s; retrying once", party_id, outcome.rejection)
            fresh = await self.service.get_state(party_id)
            if fresh.active_actor != actor:
                return False
            decision = self.agent.decide(fresh, actor)
            outcome = await self.service.execute(party_id, decision.to_command())
            if not outcome.ok:
                logger.warning(
                    "[%s] Bot retry rejected: %s; forcing end of turn",
                    party_id, outcome.rejection,
                )
                outcome = await self.service.end_turn(party_id, actor, force=True)
                return outcome.ok

        if decision.action != BotAction.SKIP:
            await self._close_turn(party_id, actor, outcome)
        return True

    async def _close_turn(self, party_id: str, actor: str, outcome: CommandOutcome) -> None:
        """End the turn after a pick or a swap; a plain steal hands control to the victim."""
        state = outcome.state
        if state is None or state.active_actor != actor or not state.has_acted:
            return
        await self._sleep(self.settings.end_turn_delay)
        result = await self.service.end_turn(party_id, actor)
        if not result.ok:
            logger.warning("[%s] Could not end %s's turn: %s", party_id, actor, result.rejection)

    def _prune(self, party_id: str, turn_index: int) -> None:
        """Drop attempt counters of slots that are already closed."""
        stale = [k for k in self._attempts if k[0] == party_id and k[2] < turn_index]
        for key in stale:
            del self._attempts[key]
