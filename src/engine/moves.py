"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define the rays of each piece type.

Every rule is a pure function of a board snapshot: it never moves anything.
Whether a reachable square is actually legal (does it leave your king in check?) is decided by the Position.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

from src.core.exceptions import NotationError
from src.engine.castling import CASTLING_RULES, CastlingSquares
from src.engine.notation import decode, is_literal_token
from src.engine.pieces import Color, Piece, PieceType
from src.engine.square import BOARD_DIMENSIONS, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...
    def pieces(self, color: Optional[Color] = None) -> list[Piece]: ...


Vector = tuple[int, int]


@dataclass(frozen=True)
class Swap:
    """
    A candidate destination, plus the square of a side effect (if any):

    * more is None: quiet move
    * more == destination: ordinary capture
    * any other square: the pawn taken en passant, or the rook that castles along
    """

    destination: Square
    more: Optional[Square] = None

    @property
    def is_quiet(self) -> bool:
        return self.more is None

    @property
    def is_capture(self) -> bool:
        return self.more == self.destination


Ray = list[Swap]

STRAIGHTS: list[Vector] = [(0, 1), (1, 0), (0, -1), (-1, 0)]
DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, -1), (-1, 1)]
KNIGHT_DELTAS: list[Vector] = [
    (1, 2),
    (-1, 2),
    (1, -2),
    (-1, -2),
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS


def can_capture(piece: Piece, occupant: Optional[Piece]) -> bool:
    return occupant is not None and occupant.color != piece.color


# --- RAY RULES ---
def raycasting_rays(piece: Piece, board: Board, directions: list[Vector]) -> list[Ray]:
    """
    Raycasting algorithm
    -----

    We define move directions and move along them until we hit another piece or
    the edge of the board. An enemy piece ends the ray (and can be captured), a friendly one ends it before.
    """
    rays: list[Ray] = []
    for df, dr in directions:
        ray: Ray = []
        target_square = piece.square.shifted(df, dr)
        while target_square.is_within_bounds():
            occupant = board.piece(target_square)
            if occupant is not None:
                # only need to add the first occupied square found if it is the opponent's
                if can_capture(piece, occupant):
                    ray.append(Swap(target_square, target_square))
                break
            ray.append(Swap(target_square))
            target_square = target_square.shifted(df, dr)
        rays.append(ray)
    return rays


def single_step_rays(piece: Piece, board: Board, deltas: list[Vector]) -> list[Ray]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights: one swap per ray."""
    rays: list[Ray] = []
    for df, dr in deltas:
        target_square = piece.square.shifted(df, dr)
        if not target_square.is_within_bounds():
            continue

        occupant = board.piece(target_square)
        if occupant is None:
            rays.append([Swap(target_square)])
        elif can_capture(piece, occupant):
            rays.append([Swap(target_square, target_square)])
    return rays


def pawn_rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """
    A pawn:
    - moves by a single square forward, onto an empty square only.
    - It can move by two while it is still inert (and both squares are empty)
    - takes diagonally
    - takes en passant, right after an enemy pawn advanced two squares to land beside it
    """
    rays: list[Ray] = []
    forward = piece.color.forward
    push_square = piece.square.shifted(0, forward)
    if not push_square.is_within_bounds():
        return rays

    can_push = board.piece(push_square) is None
    if can_push:
        rays.append([Swap(push_square)])

    for df in (-1, 1):
        take_square = piece.square.shifted(df, forward)
        if not take_square.is_within_bounds():
            continue
        if can_capture(piece, board.piece(take_square)):
            rays.append([Swap(take_square, take_square)])

    en_passant = en_passant_swap(piece, board, last_note)
    if en_passant is not None:
        rays.append([en_passant])

    double_push_square = piece.square.shifted(0, 2 * forward)
    if (
        piece.inert
        and can_push
        and double_push_square.is_within_bounds()
        and board.piece(double_push_square) is None
    ):
        rays.append([Swap(double_push_square)])
    return rays


def en_passant_swap(piece: Piece, board: Board, last_note: Optional[str]) -> Optional[Swap]:
    """
    Was the last move a two-square pawn advance from its starting rank that ended right next to this pawn?
    Then the pawn can take it by moving diagonally behind it.
    """
    if not last_note or is_literal_token(last_note):
        return None
    try:
        last_move = decode(last_note)
    except NotationError:
        return None

    if last_move.kind != PieceType.PAWN:
        return None
    if last_move.source.file != last_move.destination.file:
        return None
    enemy = piece.color.other
    start_rank = 2 if enemy == Color.WHITE else BOARD_DIMENSIONS[1] - 1
    if last_move.source.rank != start_rank:
        return None
    if last_move.destination.rank != start_rank + 2 * enemy.forward:
        return None

    passed_square = last_move.destination
    if passed_square.rank != piece.square.rank:
        return None
    if abs(passed_square.file - piece.square.file) != 1:
        return None

    passed_pawn = board.piece(passed_square)
    if passed_pawn is None or passed_pawn.type != PieceType.PAWN:
        return None
    if not can_capture(piece, passed_pawn):
        return None

    landing_square = Square(passed_square.file, piece.square.rank + piece.color.forward)
    if board.piece(landing_square) is not None:
        return None
    return Swap(landing_square, passed_square)


def rook_rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """Rooks move either horizontally or vertically"""
    return raycasting_rays(piece, board, STRAIGHTS)


def knight_rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_rays(piece, board, KNIGHT_DELTAS)


def bishop_rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_rays(piece, board, DIAGONALS)


def queen_rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return rook_rays(piece, board) + bishop_rays(piece, board)


def king_rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (see `castling_swaps()`), as it needs to know about attacks.
    """
    return single_step_rays(piece, board, KING_DELTAS)


# -- STRATEGY PATTERN: RAY RULES ---
RaysFn = Callable[[Piece, Board, Optional[str]], list[Ray]]
RAY_RULES: dict[PieceType, RaysFn] = {
    PieceType.PAWN: pawn_rays,
    PieceType.ROOK: rook_rays,
    PieceType.KNIGHT: knight_rays,
    PieceType.BISHOP: bishop_rays,
    PieceType.QUEEN: queen_rays,
    PieceType.KING: king_rays,
}


def rays(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Ray]:
    """All rays of the piece. `last_note` is the notation of the latest move (needed for en passant)."""
    return RAY_RULES[piece.type](piece, board, last_note)


def reach(piece: Piece, board: Board, last_note: Optional[str] = None) -> list[Swap]:
    """Flattened rays"""
    return [swap for ray in rays(piece, board, last_note) for swap in ray]


# --- ATTACKING RULES ---
def attacked_squares(piece: Piece, board: Board) -> list[Square]:
    """
    The squares a piece attacks.

    Equal to the destinations it can reach, except for pawns: they attack diagonally, whether or
    not there is something to take, and never attack the square in front of them.
    """
    if piece.type != PieceType.PAWN:
        return [swap.destination for swap in reach(piece, board)]

    forward = piece.color.forward
    squares = [piece.square.shifted(df, forward) for df in (-1, 1)]
    return [square for square in squares if square.is_within_bounds()]


def attackers(square: Square, by_color: Color, board: Board) -> list[Piece]:
    """Scan every piece of `by_color` for an attack on the square"""
    return [
        piece
        for piece in board.pieces(by_color)
        if square in attacked_squares(piece, board)
    ]


def is_attacked(square: Square, by_color: Color, board: Board) -> bool:
    return any(
        square in attacked_squares(piece, board) for piece in board.pieces(by_color)
    )


def is_any_attacked(squares: Iterable[Square], by_color: Color, board: Board) -> bool:
    return any(is_attacked(square, by_color, board) for square in squares)


# -- CASTLING MOVES ---
def castling_swaps(king: Piece, board: Board) -> list[Swap]:
    """
    Castling candidates of the king. For every side:

    * The king and the rook of choice are both still inert.
    * All squares between them are empty.
    * None of the squares the king stands on, crosses or lands on is attacked by an enemy piece.

    The side effect square of the swap is the rook's starting square.
    """
    if king.type != PieceType.KING or not king.inert:
        return []

    swaps: list[Swap] = []
    for (color, _), rule in CASTLING_RULES.items():
        if color != king.color or rule.king_from != king.square:
            continue
        if _can_castle(king, rule, board):
            swaps.append(Swap(rule.king_to, rule.rook_from))
    return swaps


def _can_castle(king: Piece, rule: CastlingSquares, board: Board) -> bool:
    rook = board.piece(rule.rook_from)
    if rook is None or rook.type != PieceType.ROOK or rook.color != king.color:
        return False
    if not rook.inert:
        return False

    # Cannot castle if any of the squares is occupied
    if any(board.piece(square) is not None for square in rule.squares_between()):
        return False

    # Cannot castle if any of the squares is under attack
    return not is_any_attacked(rule.king_transit(), king.color.other, board)
