"""Unit tests for src/db/history_log.py and src/db/database.py"""

from pathlib import Path

import pytest
from sqlalchemy import inspect

from src.core.exceptions import LogFileError
from src.db.database import get_db, make_session_factory
from src.db.history_log import read_history_log, write_history_log


def test_write_then_read(tmp_path: Path) -> None:
    notes = ["Pe2e4", "Pe7e5", "Qd1h5", "tie", "nope"]
    path = write_history_log(tmp_path / "game.log", notes, 1700000000000)

    assert path == tmp_path / "game.log"
    assert path.read_text(encoding="utf-8") == (
        "# 1700000000000\nPe2e4   Pe7e5\nQd1h5   tie\nnope\n\n"
    )
    assert read_history_log(path) == notes


def test_write_overwrites(tmp_path: Path) -> None:
    path = tmp_path / "game.log"
    write_history_log(path, ["Pe2e4", "Pe7e5"], 1)
    write_history_log(path, ["Pd2d4"], 2)
    assert read_history_log(path) == ["Pd2d4"]


def test_read_missing_log(tmp_path: Path) -> None:
    with pytest.raises(LogFileError):
        read_history_log(tmp_path / "missing.log")


def test_write_into_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(LogFileError):
        write_history_log(tmp_path / "nowhere" / "game.log", ["Pe2e4"], 1)


def test_read_hand_written_log(tmp_path: Path) -> None:
    """Any whitespace layout works as replay input, comments and blank lines are skipped."""
    path = tmp_path / "replay.txt"
    path.write_text("# a game\n\nPe2e4 Pe7e5 Ng1f3\n  Nb8c6\n# the end\n", encoding="utf-8")
    assert read_history_log(path) == ["Pe2e4", "Pe7e5", "Ng1f3", "Nb8c6"]


def test_session_factory_creates_tables() -> None:
    session_factory = make_session_factory("sqlite:///:memory:")
    sessions = get_db(session_factory)
    db = next(sessions)
    assert "games" in inspect(db.get_bind()).get_table_names()
    sessions.close()
