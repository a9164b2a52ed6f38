"""The Game board: which live piece stands where."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Self

from src.engine.notation import parse_shorthand, to_shorthand
from src.engine.pieces import Color, Piece, PieceType
from src.engine.square import Square

# Back rank, from the a-file to the h-file
BACK_RANK: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


@dataclass
class Board:
    """
    Only occupied squares are stored. The piece's own `square` and its key in `position` always agree
    (every mutation goes through the methods below).
    """

    position: dict[Square, Piece] = field(default_factory=dict)

    @classmethod
    def standard(cls) -> Self:
        """The canonical starting position"""
        board = cls()
        for file, piece_type in enumerate(BACK_RANK, start=1):
            board.place_piece(Piece(piece_type, Color.WHITE, Square(file, 1)))
            board.place_piece(Piece(PieceType.PAWN, Color.WHITE, Square(file, 2)))
            board.place_piece(Piece(PieceType.PAWN, Color.BLACK, Square(file, 7)))
            board.place_piece(Piece(piece_type, Color.BLACK, Square(file, 8)))
        return board

    @classmethod
    def from_shorthand(cls, strands: str) -> Self:
        """Construct a board from shorthand tokens, ex. 'wke1 wra1 bke8'. Later tokens win a contested square."""
        board = cls()
        for piece in parse_shorthand(strands):
            board.place_piece(piece)
        return board

    def to_shorthand(self) -> str:
        return to_shorthand(self.position.values())

    def piece(self, square: Square) -> Optional[Piece]:
        return self.position.get(square)

    def pieces(self, color: Optional[Color] = None) -> list[Piece]:
        return [
            piece
            for piece in self.position.values()
            if color is None or piece.color == color
        ]

    def king(self, color: Color) -> Optional[Piece]:
        return next(
            (
                piece
                for piece in self.position.values()
                if piece.type == PieceType.KING and piece.color == color
            ),
            None,
        )

    def place_piece(self, piece: Piece) -> None:
        self.position[piece.square] = piece

    def remove_piece(self, square: Square) -> Piece:
        """Take a piece off the board (captured, or replaced by promotion)"""
        return self.position.pop(square)

    def move_piece(self, from_square: Square, to_square: Square) -> Piece:
        """Relocate a piece. Whatever stood on the target square must have been removed first."""
        piece = self.position.pop(from_square)
        piece.square = to_square
        self.position[to_square] = piece
        return piece

    @contextmanager
    def probe(
        self, piece: Piece, destination: Square, vacate: Optional[Square] = None
    ) -> Iterator[None]:
        """
        Tentatively move a piece, for the duration of the with-block.
        ---

        Overwrites whatever stands on the destination (a capture), and optionally empties one more
        square (the pawn taken en passant). The occupancy of exactly those cells is recorded first
        and put back when the block exits, however it exits.
        """
        origin = piece.square
        touched = {origin, destination}
        if vacate is not None:
            touched.add(vacate)
        saved = {square: self.position.get(square) for square in touched}
        try:
            for square in touched:
                self.position.pop(square, None)
            piece.square = destination
            self.position[destination] = piece
            yield
        finally:
            piece.square = origin
            for square, occupant in saved.items():
                if occupant is None:
                    self.position.pop(square, None)
                else:
                    self.position[square] = occupant
