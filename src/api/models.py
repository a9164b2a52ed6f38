"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, PieceType, Status
from src.engine import pieces as engine_pieces
from src.engine.notation import is_shorthand_token, parse_shorthand
from src.engine.square import is_algebraic

PROMOTION_KINDS: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
)


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    setup: Optional[str] = None

    @field_validator("setup")
    @classmethod
    def validate_setup(cls, value: Optional[str]) -> Optional[str]:
        """Malformed tokens are skipped later on, but each side needs exactly one king among the rest."""
        if value is None:
            return value

        if not any(is_shorthand_token(token) for token in value.split()):
            raise InvalidRequestError(
                f"Setup {value!r} does not contain a single <color><kind><file><rank> token."
            )

        # later tokens win a contested square, like on the board itself
        occupants = {piece.square: piece for piece in parse_shorthand(value)}
        for color in engine_pieces.Color:
            kings = sum(
                1
                for piece in occupants.values()
                if piece.type == engine_pieces.PieceType.KING and piece.color == color
            )
            if kings != 1:
                raise InvalidRequestError(
                    f"Setup {value!r} needs exactly one {color.name.lower()} king, found {kings}."
                )
        return value


class GetGameRequest(BaseModel):
    game_id: UUID


class SelectRequest(BaseModel):
    game_id: UUID
    square: str

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not is_algebraic(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value.lower()


class MoveRequest(BaseModel):
    game_id: UUID
    from_square: str
    to_square: str

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not is_algebraic(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value.lower()


class PromotionRequest(BaseModel):
    game_id: UUID
    kind: str

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, value: str) -> str:
        options = [kind.value for kind in PROMOTION_KINDS]
        if value.lower() not in options:
            raise InvalidRequestError(
                f"Cannot promote into {value!r}. Pick one from {', '.join(options)}."
            )
        return value.lower()


class DrawRequest(BaseModel):
    game_id: UUID
    color: Color


class DeclineDrawRequest(BaseModel):
    game_id: UUID


class ResignRequest(BaseModel):
    game_id: UUID


class UndoRequest(BaseModel):
    game_id: UUID


class ResetRequest(BaseModel):
    game_id: UUID


class PersistRequest(BaseModel):
    game_id: UUID
    path: Optional[str] = None


class LoadGameRequest(BaseModel):
    path: str


class DeleteGameRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class PieceView(BaseModel):
    symbol: str
    black: bool
    file: int
    rank: int
    moved: bool


class HistoryEntryView(BaseModel):
    notation: str
    timestamp: int


class SwapView(BaseModel):
    """A square the selected piece can reach. `more_*` is the side effect square, 0 when there is none."""

    file: int
    rank: int
    more_file: int = 0
    more_rank: int = 0


class PositionSnapshot(BaseModel):
    pieces: list[PieceView]
    captured: list[PieceView]
    history: list[HistoryEntryView]
    reach: list[SwapView]
    turn: Color
    status: Status
    winner: Optional[Color] = None


class GameResponse(BaseModel):
    game_id: UUID
    snapshot: PositionSnapshot


class OutcomeResponse(BaseModel):
    """Result of select / move / promotion / draw offer: the outcome tags, and the position afterwards."""

    game_id: UUID
    outcomes: list[str]
    snapshot: PositionSnapshot


class UndoResponse(BaseModel):
    game_id: UUID
    undone: bool
    snapshot: PositionSnapshot


class PersistResponse(BaseModel):
    game_id: UUID
    path: str


class PlaybackResponse(BaseModel):
    game_id: UUID
    applied: int
    message: str
    snapshot: PositionSnapshot
