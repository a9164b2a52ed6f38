"""
The Position: the board, the captured pieces and the ordered history of moves.

It implements every rule that needs the full context of the game: whose turn it is, whether a move leaves
your own king in check, whether it checks or mates the opponent, and how to take the latest move back.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Optional, Self

from src.core.exceptions import GameStateError
from src.engine.board import Board
from src.engine.castling import castling_rule
from src.engine.moves import Swap, attackers, castling_swaps, is_attacked, rays, reach
from src.engine.notation import (
    MoveNote,
    Outcome,
    decode,
    is_literal_token,
    notate,
    promotion_letter,
)
from src.engine.pieces import Color, Piece, PieceType
from src.engine.square import BOARD_DIMENSIONS, Square

logger = logging.getLogger(__name__)


def timestamp_now() -> int:
    """Milliseconds since the epoch (UTC)"""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


@dataclass(frozen=True)
class HistoryEntry:
    notation: str
    timestamp: int


@dataclass
class Position:
    board: Board
    captured: list[Piece] = field(default_factory=list)
    history: list[HistoryEntry] = field(default_factory=list)
    selection: Optional[Piece] = None
    reach: list[Swap] = field(default_factory=list)

    @classmethod
    def standard(cls) -> Self:
        return cls(Board.standard())

    @classmethod
    def from_shorthand(cls, strands: str) -> Self:
        """Arbitrary setups, ex. Position.from_shorthand('wke1 wra1 bke8')"""
        return cls(Board.from_shorthand(strands))

    # --- ACCESSORS ---
    @property
    def turn(self) -> Color:
        """Based only on the parity of the number of entries in the history."""
        return Color.WHITE if len(self.history) % 2 == 0 else Color.BLACK

    def piece(self, square: Square) -> Optional[Piece]:
        return self.board.piece(square)

    def last_note(self) -> Optional[str]:
        return self.history[-1].notation if self.history else None

    def last_move_note(self) -> Optional[str]:
        """Latest history entry that is an actual move (skips draw offers and the like)"""
        return next(
            (
                entry.notation
                for entry in reversed(self.history)
                if not is_literal_token(entry.notation)
            ),
            None,
        )

    def reach_of(self, piece: Piece) -> list[Swap]:
        """Everything the piece could move to, castling included. Not yet filtered for moving into check."""
        swaps = reach(piece, self.board, self.last_move_note())
        if piece.type == PieceType.KING:
            swaps.extend(castling_swaps(piece, self.board))
        return swaps

    def line_of_attack(self, attacker: Piece, target: Piece) -> list[Square]:
        """The attacker's square, followed by the squares between it and the target (target excluded)."""
        for ray in rays(attacker, self.board, self.last_move_note()):
            destinations = [swap.destination for swap in ray]
            if target.square in destinations:
                return [attacker.square, *destinations[: destinations.index(target.square)]]
        return [attacker.square]

    # --- PLAYER ACTIONS ---
    def select(self, square: Square) -> set[Outcome]:
        """Pick up a piece of the side to move, caching its reach for display."""
        piece = self.board.piece(square)
        if piece is None:
            self._clear_selection()
            return {Outcome.BAD_SOURCE}
        if piece.color != self.turn:
            self._clear_selection()
            return {Outcome.BAD_TURN}

        self.selection = piece
        self.reach = self.reach_of(piece)
        return {Outcome.SELECTED}

    def move(self, source: Square, destination: Square) -> set[Outcome]:
        """
        Attempt a move
        -----

        1. Rejections (nothing gets mutated): BAD_SOURCE, BAD_TURN, BAD_DESTINATION, INVALID_MOVE / BAD_CASTLE, CHECKED
        2. A pawn reaching the farthest rank returns PROMOTE *without* moving: call `promote()` with the chosen kind.
        3. Update the board, apply captures / en passant / the castling rook.
        4. Tag CHECK or CHECKMATE and record the notation.
        """
        piece, swap, outcomes = self._validate(source, destination)
        if piece is None or swap is None:
            logger.debug(
                "Rejected %s%s: %s",
                source.to_algebraic(),
                destination.to_algebraic(),
                sorted(outcome.name for outcome in outcomes),
            )
            return outcomes

        if self._reaches_last_rank(piece, destination):
            return outcomes | {Outcome.PROMOTE}

        self._commit(piece, swap, outcomes)
        self._finalize(outcomes, piece.type, source, destination)
        return outcomes

    def promote(self, source: Square, destination: Square, kind: PieceType) -> set[Outcome]:
        """Second phase of a promotion: replace the pawn by a piece of the chosen kind on the destination."""
        letter = promotion_letter(kind)
        pawn, swap, outcomes = self._validate(source, destination)
        if pawn is None or swap is None:
            return outcomes
        if not self._reaches_last_rank(pawn, destination):
            return {Outcome.INVALID_MOVE}

        if Outcome.CAPTURE in outcomes:
            self.captured.append(self.board.remove_piece(destination))
        self.board.remove_piece(source)
        self.board.place_piece(Piece(kind, pawn.color, destination, inert=False))
        self._clear_selection()

        outcomes.add(Outcome.PROMOTE)
        self._finalize(outcomes, PieceType.PAWN, source, destination, kind)
        logger.debug("Promoted on %s to %s", destination.to_algebraic(), letter)
        return outcomes

    def record_token(self, token: str) -> None:
        """Non-move history entries: draw offers, declined draws, resignation."""
        self.history.append(HistoryEntry(token, timestamp_now()))
        self._clear_selection()

    def restamp(self, timestamps: Iterable[int]) -> None:
        """Put back the original timestamps after the history has been replayed."""
        self.history = [
            replace(entry, timestamp=timestamp)
            for entry, timestamp in zip(self.history, timestamps, strict=True)
        ]

    def undo(self) -> bool:
        """
        Take back the latest history entry.
        ---

        The notation tells what to reverse: a captured piece to bring back (latest capture on that square first),
        a rook to put back in the corner, or a pawn to put back instead of the piece it promoted into.
        The mover is inert again if no earlier move of its color ever arrived on its source square.
        """
        if not self.history:
            return False

        last = self.history[-1].notation
        if is_literal_token(last):
            self.history.pop()
            self._clear_selection()
            return True

        note = decode(last)
        color = Color.WHITE if len(self.history) % 2 == 1 else Color.BLACK
        inert = not self._has_arrived_before(color, note.source, len(self.history) - 1)

        if note.promotion is not None:
            self.board.remove_piece(note.destination)
            self.board.place_piece(Piece(PieceType.PAWN, color, note.source, inert=inert))
        else:
            piece = self.board.move_piece(note.destination, note.source)
            piece.inert = inert

        if note.is_capture:
            self._revive(note.destination)
        if note.is_en_passant:
            self._revive(Square(note.destination.file, note.source.rank))
        if note.is_castle:
            rule = castling_rule(color, note.destination)
            if rule is None:
                raise GameStateError(f"Cannot undo castling move {last!r}")
            rook = self.board.move_piece(rule.rook_to, rule.rook_from)
            rook.inert = True

        self.history.pop()
        self._clear_selection()
        return True

    # --- CHECK / CHECKMATE ORACLE ---
    def is_checked(self, color: Color) -> bool:
        king = self.board.king(color)
        return king is not None and is_attacked(king.square, color.other, self.board)

    def will_be_checked(
        self, color: Color, piece: Piece, destination: Square, swap: Optional[Swap] = None
    ) -> bool:
        """Would `color`'s king be attacked after the piece moved to the destination?"""
        with self.board.probe(piece, destination, self._vacated_square(piece, swap)):
            return self.is_checked(color)

    def will_check(self, color: Color, piece: Piece, destination: Square) -> bool:
        """Would the piece, once on the destination, reach the enemy king?"""
        with self.board.probe(piece, destination):
            enemy_king = self.board.king(color.other)
            if enemy_king is None:
                return False
            return any(
                swap.destination == enemy_king.square
                for swap in reach(piece, self.board, self.last_move_note())
            )

    def will_checkmate(
        self, color: Color, piece: Piece, destination: Square, swap: Optional[Swap] = None
    ) -> bool:
        """Would moving the piece to the destination checkmate the opponent of `color`?"""
        with self.board.probe(piece, destination, self._vacated_square(piece, swap)):
            return self.is_checkmated(color.other)

    def is_checkmated(self, color: Color) -> bool:
        """
        The king of `color` is checkmated if it is attacked, and:
        ---

        (a) moving the king to any square in its reach still leaves it in check, and
        (b) no other piece of its color can capture the attacker or step into the line of attack
            without exposing its own king.

        With more than one attacker, only (a) can save the king.
        """
        king = self.board.king(color)
        if king is None:
            return False
        attacking = attackers(king.square, color.other, self.board)
        if not attacking:
            return False

        # (a) can the king move somewhere safe?
        for swap in reach(king, self.board):
            if not self.will_be_checked(color, king, swap.destination, swap):
                return False

        if len(attacking) > 1:
            return True

        # (b) can any friendly block the line of attack, or take the attacker?
        attacker = attacking[0]
        line = self.line_of_attack(attacker, king)
        last_note = self.last_move_note()
        for defender in self.board.pieces(color):
            if defender is king:
                continue
            for swap in reach(defender, self.board, last_note):
                blocks = swap.destination in line or swap.more == attacker.square
                if blocks and not self.will_be_checked(
                    color, defender, swap.destination, swap
                ):
                    return False
        return True

    # --- PRIVATE HELPERS ---
    def _validate(
        self, source: Square, destination: Square
    ) -> tuple[Optional[Piece], Optional[Swap], set[Outcome]]:
        """Checks shared by `move` and `promote`, first failing check wins."""
        piece = self.board.piece(source)
        if piece is None:
            return None, None, {Outcome.BAD_SOURCE}
        if piece.color != self.turn:
            return None, None, {Outcome.BAD_TURN}
        occupant = self.board.piece(destination)
        if occupant is not None and occupant.color == piece.color:
            return None, None, {Outcome.BAD_DESTINATION}

        swap, outcomes = self._resolve(piece, destination)
        if swap is None:
            return None, None, outcomes
        if self.will_be_checked(piece.color, piece, destination, swap):
            return None, None, {Outcome.CHECKED}
        return piece, swap, outcomes

    def _resolve(self, piece: Piece, destination: Square) -> tuple[Optional[Swap], set[Outcome]]:
        """Find the swap leading to the destination. Two files sideways for a king means castling."""
        if (
            piece.type == PieceType.KING
            and destination.rank == piece.square.rank
            and abs(destination.file - piece.square.file) == 2
        ):
            for swap in castling_swaps(piece, self.board):
                if swap.destination == destination:
                    return swap, {Outcome.CASTLE}
            return None, {Outcome.BAD_CASTLE}

        for swap in reach(piece, self.board, self.last_move_note()):
            if swap.destination != destination:
                continue
            if swap.is_quiet:
                return swap, set()
            if swap.is_capture:
                return swap, {Outcome.CAPTURE}
            return swap, {Outcome.EN_PASSANT}
        return None, {Outcome.INVALID_MOVE}

    def _commit(self, piece: Piece, swap: Swap, outcomes: set[Outcome]) -> None:
        if Outcome.CAPTURE in outcomes or Outcome.EN_PASSANT in outcomes:
            assert swap.more is not None
            self.captured.append(self.board.remove_piece(swap.more))
        if Outcome.CASTLE in outcomes:
            rule = castling_rule(piece.color, swap.destination)
            assert rule is not None
            rook = self.board.move_piece(rule.rook_from, rule.rook_to)
            rook.inert = False

        self.board.move_piece(piece.square, swap.destination)
        piece.inert = False
        self._clear_selection()

    def _finalize(
        self,
        outcomes: set[Outcome],
        kind: PieceType,
        source: Square,
        destination: Square,
        promotion: Optional[PieceType] = None,
    ) -> None:
        """
        Record the move, then tag check / checkmate.

        The bare move goes into the history first: the defender's escape options
        (taking the checking pawn en passant) depend on it.
        """
        self.history.append(
            HistoryEntry(notate(outcomes, kind, source, destination, promotion), timestamp_now())
        )
        outcomes |= self._grade(self.board.piece(destination))
        self.history[-1] = replace(
            self.history[-1],
            notation=notate(outcomes, kind, source, destination, promotion),
        )

    def _grade(self, mover: Optional[Piece]) -> set[Outcome]:
        """CHECK, CHECKMATE (supersedes CHECK) or nothing, for the opponent of the piece that just moved."""
        if mover is None:
            return set()
        enemy = mover.color.other
        if not self.is_checked(enemy):
            return set()
        if self.is_checkmated(enemy):
            return {Outcome.CHECKMATE}
        return {Outcome.CHECK}

    def _reaches_last_rank(self, piece: Piece, destination: Square) -> bool:
        last_rank = BOARD_DIMENSIONS[1] if piece.color == Color.WHITE else 1
        return piece.type == PieceType.PAWN and destination.rank == last_rank

    def _vacated_square(self, piece: Piece, swap: Optional[Swap]) -> Optional[Square]:
        """The pawn taken en passant disappears from a square other than the destination."""
        if swap is None or swap.more is None or swap.is_capture:
            return None
        if piece.type != PieceType.PAWN:
            return None
        return swap.more

    def _has_arrived_before(self, color: Color, square: Square, end: int) -> bool:
        """
        Walk the history backwards (entries before `end`, moves of `color` only), looking for a move
        that ended on the square. Castling counts as the rook arriving on its target square as well.
        """
        for idx in range(end - 1, -1, -1):
            mover = Color.WHITE if idx % 2 == 0 else Color.BLACK
            notation = self.history[idx].notation
            if mover != color or is_literal_token(notation):
                continue
            note = decode(notation)
            if note.destination == square:
                return True
            if note.is_castle and self._castled_rook_to(color, note) == square:
                return True
        return False

    def _castled_rook_to(self, color: Color, note: MoveNote) -> Optional[Square]:
        rule = castling_rule(color, note.destination)
        return rule.rook_to if rule is not None else None

    def _revive(self, square: Square) -> None:
        """Bring back the piece most recently captured on the square"""
        for idx in range(len(self.captured) - 1, -1, -1):
            if self.captured[idx].square == square:
                self.board.place_piece(self.captured.pop(idx))
                return
        raise GameStateError(f"No captured piece to restore on {square.to_algebraic()}")

    def _clear_selection(self) -> None:
        self.selection = None
        self.reach = []
