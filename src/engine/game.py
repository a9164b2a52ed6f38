"""
The Game class will be the entrypoint into the domain layer for the service layer.

It wraps a Position with everything that is not a rule of movement: draw offers, resignation,
the pause between reaching the last rank and picking a promotion piece, the game status,
playback of recorded games and the conversion to/from the transport model.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Self

from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    NotationError,
    NotYourTurnError,
)
from src.core.models import GameModel
from src.core.shared_types import Status
from src.engine.notation import (
    DECLINE_TOKEN,
    DRAW_TOKEN,
    LEGAL_OUTCOMES,
    RESIGN_TOKEN,
    Outcome,
    decode,
    is_literal_token,
)
from src.engine.pieces import Color, PieceType
from src.engine.position import Position
from src.engine.square import Square

GAME_OVER: frozenset[Status] = frozenset(
    {Status.CHECKMATE, Status.TIED, Status.RESIGNED}
)


def no_offers() -> dict[Color, bool]:
    return {Color.WHITE: False, Color.BLACK: False}


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    position: Position
    setup: str
    draw_offers: dict[Color, bool] = field(default_factory=no_offers)
    pending_promotion: Optional[tuple[Square, Square]] = None

    @classmethod
    def new_game(cls, setup: Optional[str] = None) -> Self:
        """Standard starting position, unless a shorthand setup is given."""
        position = Position.from_shorthand(setup) if setup else Position.standard()
        return cls(position=position, setup=position.board.to_shorthand())

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        if model.status not in {status.value for status in Status}:
            raise GameStateError(
                f"Invalid status: {model.status!r}. \nPick one from {', '.join(status.value for status in Status)}"
            )
        if len(model.history) != len(model.timestamps):
            raise GameStateError(
                f"History has {len(model.history)} entries but {len(model.timestamps)} timestamps."
            )

        # replay the game on top of its setup
        game = cls.new_game(model.setup)
        game.replay(model.history)
        game.position.restamp(model.timestamps)

        if model.pending_promotion:
            game.pending_promotion = (
                Square.from_algebraic(model.pending_promotion[:2]),
                Square.from_algebraic(model.pending_promotion[2:]),
            )
        if model.selection:
            game.position.select(Square.from_algebraic(model.selection))
        return game

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        pending = (
            f"{self.pending_promotion[0].to_algebraic()}{self.pending_promotion[1].to_algebraic()}"
            if self.pending_promotion
            else None
        )
        selection = self.position.selection
        return GameModel(
            setup=self.setup,
            history=[entry.notation for entry in self.position.history],
            timestamps=[entry.timestamp for entry in self.position.history],
            status=self.status.value,
            pending_promotion=pending,
            selection=selection.square.to_algebraic() if selection else None,
        )

    # --- STATUS ---
    @property
    def status(self) -> Status:
        last = self.position.last_note()
        if last == RESIGN_TOKEN:
            return Status.RESIGNED
        if all(self.draw_offers.values()):
            return Status.TIED
        if last is not None and not is_literal_token(last) and decode(last).is_checkmate:
            return Status.CHECKMATE
        if self.pending_promotion is not None:
            return Status.AWAITING_PROMOTION
        return Status.IN_PROGRESS

    @property
    def winner(self) -> Optional[Color]:
        """
        Only a checkmate or a resignation has a winner.
        The last history entry was made by the side that is no longer to move: the mating side, or the one who resigned.
        """
        last_mover = self.position.turn.other
        if self.status == Status.CHECKMATE:
            return last_mover
        if self.status == Status.RESIGNED:
            return last_mover.other
        return None

    @property
    def is_over(self) -> bool:
        return self.status in GAME_OVER

    # --- PLAYER ACTIONS ---
    def select(self, square: Square) -> set[Outcome]:
        self._assert_playable()
        return self.position.select(square)

    def propose_move(self, source: Square, destination: Square) -> set[Outcome]:
        """
        Attempt a move.
        ----

        A pawn reaching the last rank answers PROMOTE: the move is parked until `choose_promotion()`.
        An executed move in reply to a draw offer declines it.
        """
        self._assert_playable()
        outcomes = self.position.move(source, destination)
        if Outcome.PROMOTE in outcomes:
            self.pending_promotion = (source, destination)
        elif outcomes <= LEGAL_OUTCOMES:
            self.draw_offers = no_offers()
        return outcomes

    def choose_promotion(self, kind: PieceType) -> set[Outcome]:
        if self.pending_promotion is None:
            raise GameStateError("No promotion is pending.")
        source, destination = self.pending_promotion
        outcomes = self.position.promote(source, destination, kind)
        self.pending_promotion = None
        self.draw_offers = no_offers()
        return outcomes

    def propose_draw(self, color: Color) -> set[Outcome]:
        """Offer a draw: TYING. Offering back after the opponent offered: TIE (the game ends in a draw)."""
        self._assert_playable()
        if color != self.position.turn:
            raise NotYourTurnError(
                f"Only {self.position.turn.name.lower()} can propose a draw now."
            )
        self.position.record_token(DRAW_TOKEN)
        self.draw_offers[color] = True
        return {Outcome.TIE} if self.draw_offers[color.other] else {Outcome.TYING}

    def decline_draw(self) -> None:
        self._assert_playable()
        if not any(self.draw_offers.values()):
            raise GameStateError("There is no draw offer to decline.")
        self.position.record_token(DECLINE_TOKEN)
        self.draw_offers = no_offers()

    def resign(self) -> None:
        """The side to move gives up."""
        if self.is_over:
            raise GameStateError(f"Game is already over. status: {self.status}")
        self.pending_promotion = None
        self.position.record_token(RESIGN_TOKEN)

    def undo_last(self) -> bool:
        """Cancel a pending promotion, or else take back the latest history entry."""
        if self.pending_promotion is not None:
            self.pending_promotion = None
            return True
        undone = self.position.undo()
        self._recount_draw_offers()
        return undone

    def reset(self) -> None:
        """Back to the setup the game started from."""
        self.position = Position.from_shorthand(self.setup)
        self.draw_offers = no_offers()
        self.pending_promotion = None

    def replay(self, tokens: Iterable[str]) -> int:
        """
        Play back recorded history entries (move notation and literal tokens).
        ---

        Stops early when the game ends (resignation, checkmate, accepted draw).
        Moves applied before a rejected one stay on the board.

        Returns the number of tokens that were applied.
        """
        applied = 0
        for number, token in enumerate(tokens, start=1):
            if self.is_over:
                break
            try:
                outcomes = self._replay_token(token.strip())
            except (GameStateError, NotationError) as error:
                raise IllegalMoveError(f"{token}: Move {number} is invalid!") from error
            if not outcomes <= LEGAL_OUTCOMES:
                raise IllegalMoveError(f"{token}: Move {number} is invalid!")
            applied += 1
        return applied

    # --- PRIVATE HELPERS ---
    def _replay_token(self, token: str) -> set[Outcome]:
        if token == DRAW_TOKEN:
            self.propose_draw(self.position.turn)
            return set()
        if token == DECLINE_TOKEN:
            self.decline_draw()
            return set()
        if token == RESIGN_TOKEN:
            self.resign()
            return set()

        note = decode(token)
        outcomes = self.propose_move(note.source, note.destination)
        if Outcome.PROMOTE in outcomes:
            if note.promotion is None:
                self.pending_promotion = None
                raise NotationError(f"{token!r} does not say what to promote into.")
            outcomes = self.choose_promotion(note.promotion)
        return outcomes

    def _assert_playable(self) -> None:
        if self.is_over:
            raise GameStateError(f"Game is over. status: {self.status}")
        if self.pending_promotion is not None:
            raise GameStateError("Choose a piece to promote into first.")

    def _recount_draw_offers(self) -> None:
        """Rebuild the draw flags from the history: offers stand until a decline or an executed move."""
        self.draw_offers = no_offers()
        for idx, entry in enumerate(self.position.history):
            mover = Color.WHITE if idx % 2 == 0 else Color.BLACK
            if entry.notation == DRAW_TOKEN:
                self.draw_offers[mover] = True
            elif entry.notation != RESIGN_TOKEN:
                self.draw_offers = no_offers()
