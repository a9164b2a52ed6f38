"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
Shorthand = str
Notation = str
Pair = str


@dataclass
class GameModel:
    """
    Transport-safe representation of a chess game used between API, Service, DB, and Game layers.

    The board itself is not stored: the game is rebuilt by replaying the history on top of the setup.
    """

    setup: Shorthand
    history: list[Notation] = field(default_factory=list)
    timestamps: list[int] = field(default_factory=list)
    status: str = "in progress"
    pending_promotion: Optional[Pair] = None
    selection: Optional[str] = None
