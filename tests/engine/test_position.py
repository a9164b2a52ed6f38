"""Unit tests for /src/engine/position.py"""

import pytest

from src.core.exceptions import NotationError
from src.engine.moves import Swap
from src.engine.notation import DECLINE_TOKEN, DRAW_TOKEN, Outcome
from src.engine.pieces import Color, PieceType
from src.engine.position import Position
from src.engine.square import Square

BACK_RANK_MATE = "wke1 wra1 bkh8 bpg7 bph7"


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def play(position: Position, *pairs: str) -> list[set[Outcome]]:
    """Play a series of 'e2e4' style moves, returning the outcomes of each."""
    return [position.move(sq(pair[:2]), sq(pair[2:])) for pair in pairs]


def notations(position: Position) -> list[str]:
    return [entry.notation for entry in position.history]


def snapshot(position: Position) -> set[tuple[str, bool]]:
    """Placement and inertness of every piece on the board"""
    return {(piece.to_shorthand(), piece.inert) for piece in position.board.pieces()}


# --- START / TURNS ---
def test_standard_start(standard_position: Position) -> None:
    assert len(standard_position.board.pieces()) == 32
    assert standard_position.captured == []
    assert standard_position.history == []
    assert standard_position.turn == Color.WHITE


def test_quiet_move(standard_position: Position) -> None:
    outcomes = standard_position.move(sq("e2"), sq("e4"))
    assert outcomes == set()
    assert notations(standard_position) == ["Pe2e4"]
    assert standard_position.turn == Color.BLACK

    pawn = standard_position.piece(sq("e4"))
    assert pawn is not None and not pawn.inert
    assert standard_position.piece(sq("e2")) is None
    assert standard_position.history[0].timestamp > 0


def test_same_side_twice(standard_position: Position) -> None:
    assert play(standard_position, "e2e4", "d2d4") == [set(), {Outcome.BAD_TURN}]
    assert notations(standard_position) == ["Pe2e4"]


def test_black_cannot_start(standard_position: Position) -> None:
    assert standard_position.move(sq("e7"), sq("e5")) == {Outcome.BAD_TURN}


@pytest.mark.parametrize(
    "pair, outcome",
    [
        ("e4e5", Outcome.BAD_SOURCE),  # nothing there
        ("a1a2", Outcome.BAD_DESTINATION),  # own pawn
        ("e2e5", Outcome.INVALID_MOVE),  # pawns do not move three squares
        ("c1e3", Outcome.INVALID_MOVE),  # blocked bishop
        ("e1g1", Outcome.BAD_DESTINATION),  # own knight on g1
    ],
)
def test_rejected_moves_leave_state_untouched(
    standard_position: Position, pair: str, outcome: Outcome
) -> None:
    before = snapshot(standard_position)
    assert standard_position.move(sq(pair[:2]), sq(pair[2:])) == {outcome}
    assert snapshot(standard_position) == before
    assert standard_position.history == []


def test_cannot_expose_own_king() -> None:
    """The bishop on e2 is pinned by the rook on e8."""
    position = Position.from_shorthand("wke1 wbe2 bre8 bka8")
    assert position.move(sq("e2"), sq("d3")) == {Outcome.CHECKED}
    assert position.piece(sq("e2")) is not None
    assert position.history == []


def test_king_cannot_walk_into_check() -> None:
    position = Position.from_shorthand("wke1 bra2 bkh8")
    assert position.move(sq("e1"), sq("e2")) == {Outcome.CHECKED}
    assert position.move(sq("e1"), sq("f1")) == set()


# --- CAPTURES / CHECKS ---
def test_capture() -> None:
    position = Position.from_shorthand("wke1 wqd1 bpd5 bke8")
    assert position.move(sq("d1"), sq("d5")) == {Outcome.CAPTURE}
    assert notations(position) == ["Qd1d5:"]
    assert [piece.to_shorthand() for piece in position.captured] == ["bpd5"]
    assert len(position.board.pieces()) == 3


def test_check() -> None:
    position = Position.from_shorthand("wke1 wra1 bkh8")
    assert position.move(sq("a1"), sq("a8")) == {Outcome.CHECK}
    assert notations(position) == ["Ra1a8+"]
    assert position.is_checked(Color.BLACK)
    assert not position.is_checkmated(Color.BLACK)


def test_checkmate() -> None:
    """Back rank mate: no escape, no block, no capture."""
    position = Position.from_shorthand(BACK_RANK_MATE)
    assert position.move(sq("a1"), sq("a8")) == {Outcome.CHECKMATE}
    assert notations(position) == ["Ra1a8#"]
    assert position.is_checkmated(Color.BLACK)


@pytest.mark.parametrize(
    "defender",
    [
        "bbf5",  # can block on c8
        "bnb6",  # can take the rook on a8
    ],
)
def test_check_that_can_be_answered(defender: str) -> None:
    position = Position.from_shorthand(f"{BACK_RANK_MATE} {defender}")
    assert position.move(sq("a1"), sq("a8")) == {Outcome.CHECK}


def test_fools_mate(standard_position: Position) -> None:
    outcomes = play(standard_position, "f2f3", "e7e5", "g2g4", "d8h4")
    assert outcomes[-1] == {Outcome.CHECKMATE}
    assert notations(standard_position)[-1] == "Qd8h4#"
    assert standard_position.is_checkmated(Color.WHITE)


def test_capture_with_check() -> None:
    position = Position.from_shorthand("wke1 wqd1 bpd7 bke8")
    assert position.move(sq("d1"), sq("d7")) == {Outcome.CAPTURE, Outcome.CHECK}
    assert notations(position) == ["Qd1d7*"]


# --- SPECIAL MOVES ---
def test_castling() -> None:
    position = Position.from_shorthand("wke1 wrh1 bke8")
    assert position.move(sq("e1"), sq("g1")) == {Outcome.CASTLE}
    assert notations(position) == ["Ke1g1%"]

    rook = position.piece(sq("f1"))
    assert rook is not None and rook.type == PieceType.ROOK and not rook.inert
    assert position.piece(sq("h1")) is None


def test_castling_queen_side_black() -> None:
    position = Position.from_shorthand("wke1 bke8 bra8")
    position.record_token(DRAW_TOKEN)  # hand the move to black
    assert position.move(sq("e8"), sq("c8")) == {Outcome.CASTLE}
    assert position.piece(sq("d8")) is not None
    assert notations(position)[-1] == "Ke8c8%"


def test_castling_through_check() -> None:
    position = Position.from_shorthand("wke1 wrh1 bke8 brf8")
    assert position.move(sq("e1"), sq("g1")) == {Outcome.BAD_CASTLE}
    assert position.piece(sq("e1")) is not None
    assert position.piece(sq("h1")) is not None
    assert position.history == []


def test_castling_blocked_by_own_piece() -> None:
    """The bishop on f1 stands between king and rook while g1 is free."""
    position = Position.from_shorthand("wke1 wbf1 wrh1 bke8")
    assert position.move(sq("e1"), sq("g1")) == {Outcome.BAD_CASTLE}
    assert position.piece(sq("e1")) is not None
    assert position.history == []


def test_en_passant(standard_position: Position) -> None:
    outcomes = play(standard_position, "e2e4", "a7a6", "e4e5", "d7d5", "e5d6")
    assert outcomes[-1] == {Outcome.EN_PASSANT}
    assert notations(standard_position)[-1] == "Pe5d6p"

    # the passed pawn is gone, not whatever would have been on the landing square
    assert standard_position.piece(sq("d5")) is None
    pawn = standard_position.piece(sq("d6"))
    assert pawn is not None and pawn.color == Color.WHITE
    assert [piece.to_shorthand() for piece in standard_position.captured] == ["bpd5"]


def test_en_passant_only_right_away(standard_position: Position) -> None:
    outcomes = play(
        standard_position, "e2e4", "a7a6", "e4e5", "d7d5", "h2h3", "h7h6", "e5d6"
    )
    assert outcomes[-1] == {Outcome.INVALID_MOVE}


def test_en_passant_survives_declined_draw(standard_position: Position) -> None:
    """Draw tokens are not moves, so the double advance is still the last move."""
    play(standard_position, "e2e4", "a7a6", "e4e5", "d7d5")
    standard_position.record_token(DRAW_TOKEN)
    standard_position.record_token(DECLINE_TOKEN)
    assert standard_position.move(sq("e5"), sq("d6")) == {Outcome.EN_PASSANT}


def test_no_en_passant_after_double_step_off_the_start_rank() -> None:
    """An inert pawn placed on e3 may still advance by two, but cannot be taken en passant afterwards."""
    position = Position.from_shorthand("wke1 wpe3 bke8 bpd5")
    assert play(position, "e3e5", "d5e4") == [set(), {Outcome.INVALID_MOVE}]
    assert position.piece(sq("e5")) is not None
    assert notations(position) == ["Pe3e5"]


def test_promotion_is_two_phase() -> None:
    position = Position.from_shorthand("wka1 wpb7 bkh5")
    assert position.move(sq("b7"), sq("b8")) == {Outcome.PROMOTE}
    # nothing moved yet
    assert position.piece(sq("b7")) is not None
    assert position.history == []

    assert position.promote(sq("b7"), sq("b8"), PieceType.QUEEN) == {Outcome.PROMOTE}
    queen = position.piece(sq("b8"))
    assert queen is not None and queen.type == PieceType.QUEEN and not queen.inert
    assert position.piece(sq("b7")) is None
    assert notations(position) == ["Pb7b8Q"]


def test_promotion_with_capture() -> None:
    position = Position.from_shorthand("wka1 wpb7 bna8 bkh5")
    assert position.move(sq("b7"), sq("a8")) == {Outcome.CAPTURE, Outcome.PROMOTE}
    outcomes = position.promote(sq("b7"), sq("a8"), PieceType.KNIGHT)
    assert outcomes == {Outcome.CAPTURE, Outcome.PROMOTE}
    assert notations(position) == ["Pb7a8N:"]
    assert [piece.to_shorthand() for piece in position.captured] == ["bna8"]


def test_promote_validates() -> None:
    position = Position.from_shorthand("wka1 wpb6 bkh5")
    assert position.promote(sq("b6"), sq("b7"), PieceType.QUEEN) == {Outcome.INVALID_MOVE}
    with pytest.raises(NotationError):
        position.promote(sq("b6"), sq("b7"), PieceType.KING)


# --- SELECTION ---
def test_select(standard_position: Position) -> None:
    assert standard_position.select(sq("e2")) == {Outcome.SELECTED}
    assert {swap.destination for swap in standard_position.reach} == {sq("e3"), sq("e4")}

    assert standard_position.select(sq("e7")) == {Outcome.BAD_TURN}
    assert standard_position.selection is None
    assert standard_position.reach == []

    assert standard_position.select(sq("e4")) == {Outcome.BAD_SOURCE}


def test_select_king_shows_castling() -> None:
    position = Position.from_shorthand("wke1 wrh1 bke8")
    position.select(sq("e1"))
    assert Swap(sq("g1"), sq("h1")) in position.reach


# --- ORACLE ---
def test_probes_restore_the_board() -> None:
    position = Position.from_shorthand(BACK_RANK_MATE)
    before = snapshot(position)
    rook = position.piece(sq("a1"))
    assert rook is not None

    assert position.will_check(Color.WHITE, rook, sq("a8"))
    assert position.will_checkmate(Color.WHITE, rook, sq("a8"))
    assert not position.will_check(Color.WHITE, rook, sq("a7"))
    assert not position.will_be_checked(Color.WHITE, rook, sq("a8"))
    assert snapshot(position) == before
    assert rook.square == sq("a1")


def test_will_be_checked_en_passant_discovery() -> None:
    """Taking en passant removes both pawns from the rank: the rook on a5 then hits the king on h5."""
    position = Position.from_shorthand("bra5 wpe5 bpd5 wkh5 bke8")
    pawn = position.piece(sq("e5"))
    assert pawn is not None
    assert position.will_be_checked(Color.WHITE, pawn, sq("d6"), Swap(sq("d6"), sq("d5")))
    assert not position.will_be_checked(Color.WHITE, pawn, sq("e6"))


def test_line_of_attack() -> None:
    position = Position.from_shorthand("wke1 wra8 bkh8")
    rook, king = position.piece(sq("a8")), position.piece(sq("h8"))
    assert rook is not None and king is not None
    line = position.line_of_attack(rook, king)
    assert line == [sq(name) for name in ("a8", "b8", "c8", "d8", "e8", "f8", "g8")]


def test_double_check_leaves_only_king_moves() -> None:
    """A single check by the rook can be blocked on f8. Add the knight's check and only the king could help."""
    single = Position.from_shorthand("wka3 wre8 bkh8 bpg7 bph7 brf1")
    assert single.is_checked(Color.BLACK)
    assert not single.is_checkmated(Color.BLACK)

    double = Position.from_shorthand("wka3 wre8 wnf7 bkh8 bpg7 bph7 brf1")
    assert double.is_checkmated(Color.BLACK)


# --- UNDO ---
def test_undo_empty_history(standard_position: Position) -> None:
    assert standard_position.undo() is False


@pytest.mark.parametrize(
    "setup, moves",
    [
        ("", ["e2e4"]),
        ("", ["g1f3", "b8c6", "f3e5"]),
        ("", ["e2e4", "a7a6", "e4e5", "d7d5", "e5d6"]),  # en passant
        ("wke1 wrh1 bke8", ["e1g1"]),  # castling
        ("wke1 wqd1 bpd7 bke8", ["d1d7"]),  # capture + check
        ("wke1 wra1 bke8", ["a1a2", "e8e7", "a2a3"]),  # piece that moved before
        (BACK_RANK_MATE, ["a1a8"]),  # checkmate
    ],
)
def test_undo_is_a_left_inverse_of_move(setup: str, moves: list[str]) -> None:
    position = Position.from_shorthand(setup) if setup else Position.standard()
    play(position, *moves[:-1])
    before = snapshot(position)
    length = len(position.history)
    captured = len(position.captured)

    last = moves[-1]
    assert position.move(sq(last[:2]), sq(last[2:])) <= {
        Outcome.CAPTURE,
        Outcome.CASTLE,
        Outcome.EN_PASSANT,
        Outcome.CHECK,
        Outcome.CHECKMATE,
    }
    assert position.undo()

    assert snapshot(position) == before
    assert len(position.history) == length
    assert len(position.captured) == captured


def test_undo_restores_inertness_from_history() -> None:
    position = Position.from_shorthand("wke1 wra1 bke8")
    play(position, "a1a2", "e8e7", "a2a3")
    position.undo()
    rook = position.piece(sq("a2"))
    assert rook is not None and not rook.inert

    position.undo()
    position.undo()
    rook = position.piece(sq("a1"))
    assert rook is not None and rook.inert


def test_undo_castling_rook_arrival_counts() -> None:
    """A rook that castled onto f1 and moves on is not inert when that move is taken back."""
    position = Position.from_shorthand("wke1 wrh1 bke8")
    play(position, "e1g1", "e8e7", "f1f5")
    position.undo()
    rook = position.piece(sq("f1"))
    assert rook is not None and not rook.inert


def test_undo_promotion() -> None:
    position = Position.from_shorthand("wka1 wpb7 bna8 bkh5")
    position.promote(sq("b7"), sq("a8"), PieceType.QUEEN)
    assert position.undo()

    pawn = position.piece(sq("b7"))
    assert pawn is not None and pawn.type == PieceType.PAWN and pawn.inert
    knight = position.piece(sq("a8"))
    assert knight is not None and knight.type == PieceType.KNIGHT
    assert position.captured == []


def test_undo_literal_token(standard_position: Position) -> None:
    standard_position.record_token(DRAW_TOKEN)
    assert standard_position.turn == Color.BLACK
    assert standard_position.undo()
    assert standard_position.history == []
    assert standard_position.turn == Color.WHITE


def test_restamp(standard_position: Position) -> None:
    play(standard_position, "e2e4", "e7e5")
    standard_position.restamp([1, 2])
    assert [entry.timestamp for entry in standard_position.history] == [1, 2]
    assert notations(standard_position) == ["Pe2e4", "Pe7e5"]
