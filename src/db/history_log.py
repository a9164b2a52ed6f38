"""Reading and writing game logs: the plain text record of a game's history."""

import logging
from pathlib import Path

from src.core.exceptions import LogFileError
from src.engine.notation import format_log, parse_log

logger = logging.getLogger(__name__)


def write_history_log(path: str | Path, notes: list[str], timestamp: int) -> Path:
    """Write the notes of a game to a log file (overwriting it). Returns the path written to."""
    log_path = Path(path)
    try:
        log_path.write_text(format_log(notes, timestamp), encoding="utf-8")
    except OSError as error:
        raise LogFileError(f"Cannot write game log {str(log_path)!r}: {error}") from error
    logger.debug("Wrote %d entries to %s", len(notes), log_path)
    return log_path


def read_history_log(path: str | Path) -> list[str]:
    """The tokens of a game log, in order. Comment lines and blank lines are skipped."""
    log_path = Path(path)
    if not log_path.is_file():
        raise LogFileError(f"Game log {str(log_path)!r} does not exist.")
    try:
        text = log_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise LogFileError(f"Cannot read game log {str(log_path)!r}: {error}") from error
    return parse_log(text)
