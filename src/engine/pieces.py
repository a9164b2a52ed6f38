"""Defines the kinds and colors of chess pieces, and the piece itself"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Self

from src.engine.square import Square


class PieceType(Enum):
    PAWN = auto()
    ROOK = auto()
    KNIGHT = auto()
    BISHOP = auto()
    QUEEN = auto()
    KING = auto()


class Color(Enum):
    WHITE = auto()
    BLACK = auto()

    @property
    def other(self) -> Color:
        return Color.BLACK if self == Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """White moves UP the board, black moves DOWN"""
        return 1 if self == Color.WHITE else -1


LETTER_TO_PIECE: dict[str, PieceType] = {
    "P": PieceType.PAWN,
    "R": PieceType.ROOK,
    "N": PieceType.KNIGHT,
    "B": PieceType.BISHOP,
    "Q": PieceType.QUEEN,
    "K": PieceType.KING,
}

PIECE_TO_LETTER: dict[PieceType, str] = {
    value: key for key, value in LETTER_TO_PIECE.items()
}

# A pawn reaching the farthest rank turns into one of these
PROMOTION_OPTIONS: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
)

SHORTHAND_COLORS: dict[str, Color] = {"w": Color.WHITE, "b": Color.BLACK}


@dataclass(eq=False)
class Piece:
    """
    A live (or captured) piece.

    Identity is positional: two pieces are never compared by value, the board
    finds them by square. `inert` stays True until the piece moves for the first time.
    """

    type: PieceType
    color: Color
    square: Square
    inert: bool = True

    @property
    def letter(self) -> str:
        """Upper case kind letter, as used in move notation"""
        return PIECE_TO_LETTER[self.type]

    @property
    def symbol(self) -> str:
        """Upper case for white, lower case for black"""
        return self.letter if self.color == Color.WHITE else self.letter.lower()

    @classmethod
    def from_shorthand(cls, token: str) -> Self:
        """
        Shorthand notation: <color><kind><file><rank>

        ex) 'wka1' is a white king on a1, 'bqd8' the black queen on d8.
        """
        color = SHORTHAND_COLORS[token[0].lower()]
        piece_type = LETTER_TO_PIECE[token[1].upper()]
        return cls(piece_type, color, Square.from_algebraic(token[2:4]))

    def to_shorthand(self) -> str:
        color_char = "w" if self.color == Color.WHITE else "b"
        return f"{color_char}{self.letter.lower()}{self.square.to_algebraic()}"
