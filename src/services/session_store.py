"""Protocol session store (in memory for now. Could be backed by SQL Alchemy / a key-value store later)"""

import threading
from typing import Protocol
from uuid import UUID, uuid4

from src.core.models import GameModel


class SessionStore(Protocol):
    """Storage of game snapshots, plus one lock per game so that requests on the same game are serialized."""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the snapshot of an existing game."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        ...

    def lock(self, game_id: UUID) -> threading.Lock:
        """The lock guarding one game. Games share nothing, so neither do their locks."""
        ...


class InMemorySessionStore:
    def __init__(self) -> None:
        self._games: dict[UUID, GameModel] = {}
        self._locks: dict[UUID, threading.Lock] = {}
        # guards the two dicts above, never held while a game is being played
        self._registry_lock = threading.Lock()

    def get_game(self, game_id: UUID) -> GameModel | None:
        with self._registry_lock:
            return self._games.get(game_id)

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        game_id = uuid4()
        with self._registry_lock:
            self._games[game_id] = game
            self._locks[game_id] = threading.Lock()
        return game, game_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        with self._registry_lock:
            if game_id not in self._games:
                return None
            self._games[game_id] = game
        return game

    def delete_game(self, game_id: UUID) -> GameModel | None:
        with self._registry_lock:
            self._locks.pop(game_id, None)
            return self._games.pop(game_id, None)

    def lock(self, game_id: UUID) -> threading.Lock:
        with self._registry_lock:
            # unknown games get a throwaway lock: the lookup that follows reports them missing
            return self._locks.get(game_id) or threading.Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._games)
