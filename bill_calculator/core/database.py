"""SQLite store for the reading history and user preferences."""

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bill_calculator.core.config import settings

# Route handlers run in a worker thread, so SQLite must allow cross-thread use
connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for the readings and settings tables."""


def get_db() -> Iterator[Session]:
    """Yield a session for one request, closing it once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
