"""
A square on the board

(placed in its own module as pieces, moves, notation and the board all need it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Chess board is always 8x8. Kept adjustable so ray walks never hardcode the edge.
BOARD_DIMENSIONS = (8, 8)
FILE_LETTERS = "abcdefgh"


@dataclass(frozen=True)
class Square:
    file: int
    rank: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (1,1) - (8,8)"""
        file = ord(sq[0].lower()) - ord("a") + 1
        rank = int(sq[1])
        return cls(file, rank)

    def to_algebraic(self) -> str:
        return f"{chr(self.file + ord('a') - 1)}{self.rank}"

    def is_within_bounds(self) -> bool:
        return (1 <= self.file <= BOARD_DIMENSIONS[0]) and (
            1 <= self.rank <= BOARD_DIMENSIONS[1]
        )

    def shifted(self, df: int, dr: int) -> Square:
        """The square reached by stepping df files and dr ranks. May fall off the board."""
        return Square(self.file + df, self.rank + dr)


def is_algebraic(text: str) -> bool:
    """True for 'a1' - 'h8' (case-insensitive on the file letter)."""
    return (
        len(text) == 2
        and text[0].lower() in FILE_LETTERS[: BOARD_DIMENSIONS[0]]
        and text[1].isdigit()
        and 1 <= int(text[1]) <= BOARD_DIMENSIONS[1]
    )
