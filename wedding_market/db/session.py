"""
Engine and per-request sessions
"""
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from wedding_market.config import settings


def build_engine(database_url: str):
    """SQLite (tests, local runs) gets no pool sizing and cross-thread access"""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.DATABASE_ECHO
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,  # MySQL drops idle connections
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=settings.DATABASE_ECHO
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    """
    One session per request, closed when the response is done

    Services commit or roll back themselves; anything left open is
    discarded on close.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
