"""Helpers for implementing Castling rules. Imported by the piece catalog and the Position."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Self

from src.engine.pieces import Color
from src.engine.square import Square


class CastlingSide(Enum):
    KING_SIDE = "king side"
    QUEEN_SIDE = "queen side"


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        return cls(king_from, king_to, rook_from, rook_to)

    def squares_between(self) -> list[Square]:
        """Squares between king and rook. All of them must be empty to castle."""
        return squares_between_on_rank(self.king_from, self.rook_from)

    def king_transit(self) -> list[Square]:
        """Start square, crossed square and target square of the king. None of them may be attacked."""
        return [
            self.king_from,
            *squares_between_on_rank(self.king_from, self.king_to),
            self.king_to,
        ]


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[tuple[Color, CastlingSide], CastlingSquares] = {
    (Color.WHITE, CastlingSide.KING_SIDE): CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    (Color.WHITE, CastlingSide.QUEEN_SIDE): CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    (Color.BLACK, CastlingSide.KING_SIDE): CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    (Color.BLACK, CastlingSide.QUEEN_SIDE): CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}


def castling_rule(color: Color, king_to: Square) -> Optional[CastlingSquares]:
    """Find the castling rule whose king lands on the given square (if any)."""
    for (rule_color, _), rule in CASTLING_RULES.items():
        if rule_color == color and rule.king_to == king_to:
            return rule
    return None


def squares_between_on_rank(from_square: Square, to_square: Square) -> list[Square]:
    """Squares strictly between two squares on the same rank, walking from `from_square` towards `to_square`."""
    if from_square == to_square:
        return []
    step = 1 if to_square.file > from_square.file else -1
    return [
        Square(file, from_square.rank)
        for file in range(from_square.file + step, to_square.file, step)
    ]
