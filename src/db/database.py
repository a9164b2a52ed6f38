"""Generate database sessions"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import DATABASE_URL
from src.db.schema import Base


def make_session_factory(url: str = DATABASE_URL, echo: bool = False) -> sessionmaker[Session]:
    """Build the engine for the given URL, make sure all tables exist, and hand out a session factory."""
    engine = create_engine(url, echo=echo)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
