"""
Move notation
----

Every executed move is recorded in the history as a compact string:

<KIND><file src><rank src><file dst><rank dst><suffix>

ex)
* "Pe2e4": pawn from e2 to e4
* "Ke1g1%": white castles king side
* "Pd5e6p": pawn on d5 takes en passant
* "Qd1h5*": queen takes on h5 and gives check
* "Pb7a8Q&": pawn takes on a8, promotes to a queen and mates

The suffix is built in a fixed order (promotion letter, castle, en passant, capture, check, checkmate)
after which en passant + capture, capture + check and capture + checkmate each collapse into a single marker.

Three literal tokens are recorded in the history but fall outside of this grammar:
"tie" (offer / accept a draw), "nope" (decline the draw) and "bye" (resign).

Also home to the two other text formats the engine reads/writes: the shorthand for setting up
arbitrary positions, and the layout of the persisted game log.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Optional

from src.core.config import LOG_COLUMN_WIDTH
from src.core.exceptions import NotationError
from src.engine.pieces import (
    LETTER_TO_PIECE,
    PIECE_TO_LETTER,
    PROMOTION_OPTIONS,
    SHORTHAND_COLORS,
    Piece,
    PieceType,
)
from src.engine.square import Square, is_algebraic

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Tags describing the result of a single request to the engine. A move can produce several."""

    SELECTED = auto()
    TIE = auto()
    TYING = auto()
    CASTLE = auto()
    CAPTURE = auto()
    PROMOTE = auto()
    EN_PASSANT = auto()
    CHECK = auto()
    CHECKMATE = auto()
    CHECKED = auto()
    BAD_SOURCE = auto()
    BAD_DESTINATION = auto()
    BAD_TURN = auto()
    BAD_CASTLE = auto()
    INVALID_MOVE = auto()


# What a move that went through can be tagged with (an empty set is a quiet move)
LEGAL_OUTCOMES: frozenset[Outcome] = frozenset(
    {
        Outcome.CASTLE,
        Outcome.CAPTURE,
        Outcome.PROMOTE,
        Outcome.EN_PASSANT,
        Outcome.CHECK,
        Outcome.CHECKMATE,
    }
)

DRAW_TOKEN = "tie"
DECLINE_TOKEN = "nope"
RESIGN_TOKEN = "bye"
LITERAL_TOKENS: frozenset[str] = frozenset({DRAW_TOKEN, DECLINE_TOKEN, RESIGN_TOKEN})

CASTLE_MARK = "%"
EN_PASSANT_MARK = "p"
CAPTURE_MARK = ":"
CHECK_MARK = "+"
CHECKMATE_MARK = "#"
CAPTURE_CHECK_MARK = "*"
CAPTURE_CHECKMATE_MARK = "&"

# applied in this order, after the suffix has been assembled
SUFFIX_COLLAPSES: tuple[tuple[str, str], ...] = (
    (EN_PASSANT_MARK + CAPTURE_MARK, EN_PASSANT_MARK),
    (CAPTURE_MARK + CHECK_MARK, CAPTURE_CHECK_MARK),
    (CAPTURE_MARK + CHECKMATE_MARK, CAPTURE_CHECKMATE_MARK),
)

MOVE_PATTERN = re.compile(
    r"^(?P<kind>[PRNBQK])(?P<source>[a-h][1-8])(?P<destination>[a-h][1-8])"
    r"(?P<suffix>[RNBQ]?%?(?:p[+#]?|[:*&]|[+#])?)$"
)


@dataclass(frozen=True)
class MoveNote:
    """A decoded history entry."""

    kind: PieceType
    source: Square
    destination: Square
    suffix: str = ""

    @property
    def pair(self) -> str:
        """The bare source/destination pair, ex. 'e2e4'"""
        return f"{self.source.to_algebraic()}{self.destination.to_algebraic()}"

    @property
    def promotion(self) -> Optional[PieceType]:
        if self.suffix and self.suffix[0] in LETTER_TO_PIECE:
            return LETTER_TO_PIECE[self.suffix[0]]
        return None

    @property
    def is_castle(self) -> bool:
        return CASTLE_MARK in self.suffix

    @property
    def is_en_passant(self) -> bool:
        return EN_PASSANT_MARK in self.suffix

    @property
    def is_capture(self) -> bool:
        """An ordinary capture (the victim stood on the destination). En passant is reported separately."""
        return any(
            mark in self.suffix
            for mark in (CAPTURE_MARK, CAPTURE_CHECK_MARK, CAPTURE_CHECKMATE_MARK)
        )

    @property
    def is_check(self) -> bool:
        return any(mark in self.suffix for mark in (CHECK_MARK, CAPTURE_CHECK_MARK))

    @property
    def is_checkmate(self) -> bool:
        return any(
            mark in self.suffix for mark in (CHECKMATE_MARK, CAPTURE_CHECKMATE_MARK)
        )


def notate(
    outcomes: Iterable[Outcome],
    kind: PieceType,
    source: Square,
    destination: Square,
    promotion: Optional[PieceType] = None,
) -> str:
    """Encode an executed move, with the outcome markers in their fixed order."""
    outcomes = set(outcomes)
    note = f"{PIECE_TO_LETTER[kind]}{source.to_algebraic()}{destination.to_algebraic()}"

    suffix = ""
    if Outcome.PROMOTE in outcomes and promotion is not None:
        suffix += PIECE_TO_LETTER[promotion]
    if Outcome.CASTLE in outcomes:
        suffix += CASTLE_MARK
    if Outcome.EN_PASSANT in outcomes:
        suffix += EN_PASSANT_MARK
    if Outcome.CAPTURE in outcomes:
        suffix += CAPTURE_MARK
    if Outcome.CHECK in outcomes:
        suffix += CHECK_MARK
    if Outcome.CHECKMATE in outcomes:
        suffix += CHECKMATE_MARK

    for pattern, replacement in SUFFIX_COLLAPSES:
        suffix = suffix.replace(pattern, replacement)
    return note + suffix


def is_literal_token(note: str) -> bool:
    return note.strip() in LITERAL_TOKENS


def decode(note: str) -> MoveNote:
    """Parse a move notation. Raises NotationError for literal tokens and malformed text."""
    match = MOVE_PATTERN.match(note.strip())
    if match is None:
        raise NotationError(f"Cannot interpret {note!r} as move notation.")
    suffix = match.group("suffix")
    kind = LETTER_TO_PIECE[match.group("kind")]
    if suffix and suffix[0] in LETTER_TO_PIECE and kind != PieceType.PAWN:
        raise NotationError(f"Only pawns promote: {note!r}")
    return MoveNote(
        kind=kind,
        source=Square.from_algebraic(match.group("source")),
        destination=Square.from_algebraic(match.group("destination")),
        suffix=suffix,
    )


def denotate(note: str) -> str:
    """Strip kind letter and outcome markers, leaving the bare 4-character pair. Literal tokens pass through."""
    if is_literal_token(note):
        return note.strip()
    return decode(note).pair


def promotion_letter(piece_type: PieceType) -> str:
    if piece_type not in PROMOTION_OPTIONS:
        raise NotationError(f"Cannot promote into a {piece_type.name.lower()}.")
    return PIECE_TO_LETTER[piece_type]


# --- SHORTHAND POSITION SETUP ---
def parse_shorthand(strands: str) -> list[Piece]:
    """
    Build pieces from whitespace separated <color><kind><file><rank> tokens, ex. "wka1 bqd8 bkh8".

    Tokens that do not follow the format are skipped.
    """
    pieces: list[Piece] = []
    for token in strands.split():
        if not is_shorthand_token(token):
            logger.debug("Skipping shorthand token %r", token)
            continue
        pieces.append(Piece.from_shorthand(token))
    return pieces


def to_shorthand(pieces: Iterable[Piece]) -> str:
    return " ".join(piece.to_shorthand() for piece in pieces)


def is_shorthand_token(token: str) -> bool:
    return (
        len(token) == 4
        and token[0].lower() in SHORTHAND_COLORS
        and token[1].upper() in LETTER_TO_PIECE
        and is_algebraic(token[2:4])
    )


# --- PERSISTED GAME LOG ---
LOG_COMMENT = "#"


def format_log(notes: list[str], timestamp: int, width: int = LOG_COLUMN_WIDTH) -> str:
    """
    Layout of a saved game:

    # <timestamp>
    Pe2e4   Pe7e5
    Ng1f3   Nb8c6
    <blank line>

    One move from each side per line, the first one right-padded to `width`.
    """
    lines = [f"{LOG_COMMENT} {timestamp}"]
    for idx in range(0, len(notes), 2):
        pair = notes[idx : idx + 2]
        if len(pair) == 2:
            lines.append(f"{pair[0]:<{width}}{pair[1]}")
        else:
            lines.append(pair[0])
    lines.append("")
    return "\n".join(lines) + "\n"


def parse_log(text: str) -> list[str]:
    """Tokens of a game log (or any replay file): blank lines and comment lines are ignored."""
    tokens: list[str] = []
    for line in text.splitlines():
        if not line.strip() or line.startswith(LOG_COMMENT):
            continue
        tokens.extend(line.split())
    return tokens
