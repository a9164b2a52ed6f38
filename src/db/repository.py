"""
Storage contract for chess sessions (SQLAlchemy implementation in sql_repository.py).

A stored game is its setup shorthand plus the notation history with timestamps, never a board:
the service rebuilds the position by replaying the history on every request.
"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """Where the service keeps its games between requests"""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Setup, history and pending state of a stored game, or None for an unknown ID."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store a fresh session, returning what was stored and the ID it is known by from now on."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the history (and everything derived from it) after a command. None if the ID is unknown."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Drop the session, handing back its last stored state. None if the ID is unknown."""
        ...
