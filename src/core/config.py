"""
Configuration values shared across layers.

Kept as module level constants. The two paths can be overridden through environment variables.
"""

import os

DATABASE_URL = os.environ.get("CHESS_DATABASE_URL", "sqlite:///chess.db")

# Where `persist_history` writes the game log
HISTORY_LOG_PATH = os.environ.get("CHESS_HISTORY_LOG", "chess.log")

# The first move of every line in the game log is right-padded to this width
LOG_COLUMN_WIDTH = 8
