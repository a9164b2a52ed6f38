"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from pathlib import Path
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    DeclineDrawRequest,
    DeleteGameRequest,
    DrawRequest,
    GameResponse,
    GetGameRequest,
    HistoryEntryView,
    LoadGameRequest,
    MoveRequest,
    OutcomeResponse,
    PersistRequest,
    PersistResponse,
    PieceView,
    PlaybackResponse,
    PositionSnapshot,
    PromotionRequest,
    ResetRequest,
    ResignRequest,
    SelectRequest,
    SwapView,
    UndoRequest,
    UndoResponse,
)
from src.core.config import HISTORY_LOG_PATH
from src.core.exceptions import IllegalMoveError, RepositoryError
from src.core.models import GameModel
from src.core.shared_types import Color
from src.db.history_log import read_history_log, write_history_log
from src.db.repository import GameRepository
from src.engine.game import Game
from src.engine.moves import Swap
from src.engine.notation import Outcome
from src.engine.pieces import Color as EngineColor
from src.engine.pieces import Piece
from src.engine.pieces import PieceType as EnginePieceType
from src.engine.position import timestamp_now
from src.engine.square import Square

logger = logging.getLogger(__name__)


class ChessService:
    """Orchestration of layers for chess game."""

    def __init__(
        self, repository: GameRepository, log_path: str | Path = HISTORY_LOG_PATH
    ) -> None:
        self.repo = repository
        self.log_path = Path(log_path)

    # -- Session lifecycle ---
    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """Start a new game, from the standard position or from a shorthand setup."""
        new_game = Game.new_game(request.setup)
        _, game_id = self.repo.create_game(new_game.to_model())
        logger.info("Created game %s", game_id)
        return self._game_response(game_id, new_game)

    def get_game(self, request: GetGameRequest) -> GameResponse:
        """Retrieve current game state."""
        game = Game.from_model(self._fetch_game(request.game_id))
        return self._game_response(request.game_id, game)

    def reset_game(self, request: ResetRequest) -> GameResponse:
        """Put the pieces back on their setup squares and wipe the history."""
        game = Game.from_model(self._fetch_game(request.game_id))
        game.reset()
        self._store(request.game_id, game)
        logger.info("Reset game %s", request.game_id)
        return self._game_response(request.game_id, game)

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        if self.repo.delete_game(request.game_id) is None:
            raise RepositoryError(f"Game with game_id={request.game_id} not found.")
        logger.info("Deleted game %s", request.game_id)

    # -- Playing ---
    def select(self, request: SelectRequest) -> OutcomeResponse:
        """Pick up a piece: the snapshot then shows where it can go."""
        game = Game.from_model(self._fetch_game(request.game_id))
        outcomes = game.select(Square.from_algebraic(request.square))
        self._store(request.game_id, game)
        return self._outcome_response(request.game_id, game, outcomes)

    def propose_move(self, request: MoveRequest) -> OutcomeResponse:
        """Make a move attempt."""
        game = Game.from_model(self._fetch_game(request.game_id))
        outcomes = game.propose_move(
            Square.from_algebraic(request.from_square),
            Square.from_algebraic(request.to_square),
        )
        self._store(request.game_id, game)
        if Outcome.CHECKMATE in outcomes:
            logger.info("Game %s ended in checkmate", request.game_id)
        return self._outcome_response(request.game_id, game, outcomes)

    def choose_promotion(self, request: PromotionRequest) -> OutcomeResponse:
        """Finish a move that was parked on reaching the last rank."""
        game = Game.from_model(self._fetch_game(request.game_id))
        outcomes = game.choose_promotion(EnginePieceType[request.kind.upper()])
        self._store(request.game_id, game)
        return self._outcome_response(request.game_id, game, outcomes)

    def propose_draw(self, request: DrawRequest) -> OutcomeResponse:
        game = Game.from_model(self._fetch_game(request.game_id))
        outcomes = game.propose_draw(EngineColor[request.color.name])
        self._store(request.game_id, game)
        if Outcome.TIE in outcomes:
            logger.info("Game %s ended in a draw", request.game_id)
        return self._outcome_response(request.game_id, game, outcomes)

    def decline_draw(self, request: DeclineDrawRequest) -> GameResponse:
        game = Game.from_model(self._fetch_game(request.game_id))
        game.decline_draw()
        self._store(request.game_id, game)
        return self._game_response(request.game_id, game)

    def resign(self, request: ResignRequest) -> GameResponse:
        game = Game.from_model(self._fetch_game(request.game_id))
        game.resign()
        self._store(request.game_id, game)
        logger.info("Game %s: %s resigned", request.game_id, game.position.turn.other.name.lower())
        return self._game_response(request.game_id, game)

    def undo_last(self, request: UndoRequest) -> UndoResponse:
        game = Game.from_model(self._fetch_game(request.game_id))
        undone = game.undo_last()
        self._store(request.game_id, game)
        return UndoResponse(
            game_id=request.game_id, undone=undone, snapshot=self._snapshot(game)
        )

    # -- Game logs ---
    def persist_history(self, request: PersistRequest) -> PersistResponse:
        """Write the history of the game to its log file."""
        model = self._fetch_game(request.game_id)
        path = write_history_log(
            request.path or self.log_path, model.history, timestamp_now()
        )
        logger.info(
            "Persisted %d history entries of game %s to %s",
            len(model.history),
            request.game_id,
            path,
        )
        return PersistResponse(game_id=request.game_id, path=str(path))

    def load_game(self, request: LoadGameRequest) -> PlaybackResponse:
        """
        Play back a game log into a new game.
        ----

        A log that cannot be read fails before any game is created.
        A rejected move stops the playback: the moves before it are kept, and the message says what went wrong.
        """
        tokens = read_history_log(request.path)
        game = Game.new_game()
        try:
            applied = game.replay(tokens)
            message = f"Replayed {applied} of {len(tokens)} entries."
            logger.info("Playback of %s finished: %s", request.path, message)
        except IllegalMoveError as error:
            applied = len(game.position.history)
            message = str(error)
            logger.info("Playback of %s aborted: %s", request.path, message)

        _, game_id = self.repo.create_game(game.to_model())
        return PlaybackResponse(
            game_id=game_id,
            applied=applied,
            message=message,
            snapshot=self._snapshot(game),
        )

    # -- Internal helpers --
    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model

    def _store(self, game_id: UUID, game: Game) -> None:
        if self.repo.update_game(game_id, game.to_model()) is None:
            raise RepositoryError(f"Game with {game_id=} not found.")

    def _game_response(self, game_id: UUID, game: Game) -> GameResponse:
        return GameResponse(game_id=game_id, snapshot=self._snapshot(game))

    def _outcome_response(
        self, game_id: UUID, game: Game, outcomes: set[Outcome]
    ) -> OutcomeResponse:
        return OutcomeResponse(
            game_id=game_id,
            outcomes=sorted(outcome.name.lower() for outcome in outcomes),
            snapshot=self._snapshot(game),
        )

    def _snapshot(self, game: Game) -> PositionSnapshot:
        """Everything a client needs to draw the board, built after the command completed."""
        position = game.position
        winner = game.winner
        return PositionSnapshot(
            pieces=[self._piece_view(piece) for piece in position.board.pieces()],
            captured=[self._piece_view(piece) for piece in position.captured],
            history=[
                HistoryEntryView(notation=entry.notation, timestamp=entry.timestamp)
                for entry in position.history
            ],
            reach=[self._swap_view(swap) for swap in position.reach],
            turn=Color[position.turn.name],
            status=game.status,
            winner=Color[winner.name] if winner else None,
        )

    @staticmethod
    def _piece_view(piece: Piece) -> PieceView:
        return PieceView(
            symbol=piece.symbol,
            black=piece.color == EngineColor.BLACK,
            file=piece.square.file,
            rank=piece.square.rank,
            moved=not piece.inert,
        )

    @staticmethod
    def _swap_view(swap: Swap) -> SwapView:
        more = swap.more
        return SwapView(
            file=swap.destination.file,
            rank=swap.destination.rank,
            more_file=more.file if more else 0,
            more_rank=more.rank if more else 0,
        )
