"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    AWAITING_PROMOTION = "awaiting promotion"
    CHECKMATE = "checkmate"
    TIED = "tied"
    RESIGNED = "resigned"


# --- NOTE The engine has its own Color and PieceType (src/engine/pieces.py). These are the string-valued
# --- versions the API and transport models use. Same names, let the imports show which one is used where.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"
