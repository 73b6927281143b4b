"""Persistence collaborators.

A store loads and saves the whole GameState of a party. Saves are
compare-and-swap on ``GameState.version``: passing ``expected_version``
makes the save fail with VersionConflict if someone else wrote first.
"""

import asyncio
import logging
import os
from typing import Optional, Protocol
import yaml
from pydantic import ValidationError as PydanticValidationError

from giftswap.engine.game_state import GameState

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """The store could not read or write a state."""


class VersionConflict(PersistenceError):
    """A compare-and-swap save found a different stored version."""

    def __init__(self, party_id: str, expected: Optional[int], actual: Optional[int]):
        self.party_id = party_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Version conflict for {party_id}: expected {expected}, stored {actual}"
        )


class GameStore(Protocol):
    """Keyed store of full game states."""

    async def load(self, party_id: str) -> Optional[GameState]:
        """Return the stored state, or None if the party has no game."""
        ...

    async def save(self, state: GameState, expected_version: Optional[int] = None) -> None:
        """Store ``state``. With ``expected_version``, fail unless the stored
        version equals it (a missing entry counts as a match)."""
        ...

    async def delete(self, party_id: str) -> bool:
        """Remove a party's state. Returns False if there was none."""
        ...


def _check_version(party_id: str, stored: Optional[GameState], expected: Optional[int]) -> None:
    if expected is None or stored is None:
        return
    if stored.version != expected:
        raise VersionConflict(party_id, expected, stored.version)


class InMemoryGameStore:
    """Store that keeps serialised states in a dict.

    States are kept as JSON strings so callers never share mutable objects
    with the store.
    """

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def load(self, party_id: str) -> Optional[GameState]:
        raw = self._data.get(party_id)
        if raw is None:
            return None
        return GameState.model_validate_json(raw)

    async def save(self, state: GameState, expected_version: Optional[int] = None) -> None:
        async with self._lock:
            stored = await self.load(state.party_id)
            _check_version(state.party_id, stored, expected_version)
            self._data[state.party_id] = state.model_dump_json()

    async def delete(self, party_id: str) -> bool:
        async with self._lock:
            return self._data.pop(party_id, None) is not None

    def party_ids(self) -> list[str]:
        return list(self._data)


class YamlFileGameStore:
    """Durable store writing one YAML file per party."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, party_id: str) -> str:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in party_id)
        return os.path.join(self.directory, f"{safe}.yaml")

    def _read(self, party_id: str) -> Optional[GameState]:
        path = self._path(party_id)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            return GameState.model_validate(data)
        except (OSError, yaml.YAMLError, PydanticValidationError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}") from exc

    def _write(self, state: GameState, expected_version: Optional[int]) -> None:
        _check_version(state.party_id, self._read(state.party_id), expected_version)
        path = self._path(state.party_id)
        tmp_path = f"{path}.tmp"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(
                    state.model_dump(mode="json"),
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                )
            os.replace(tmp_path, path)
        except (OSError, yaml.YAMLError) as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc

    def _remove(self, party_id: str) -> bool:
        path = self._path(party_id)
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise PersistenceError(f"Cannot delete {path}: {exc}") from exc

    async def load(self, party_id: str) -> Optional[GameState]:
        return await asyncio.to_thread(self._read, party_id)

    async def save(self, state: GameState, expected_version: Optional[int] = None) -> None:
        await asyncio.to_thread(self._write, state, expected_version)

    async def delete(self, party_id: str) -> bool:
        return await asyncio.to_thread(self._remove, party_id)
