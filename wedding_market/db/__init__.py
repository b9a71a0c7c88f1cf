"""Database package"""
from wedding_market.db.session import get_db, engine, SessionLocal, build_engine
from wedding_market.models.base import Base

__all__ = ["get_db", "engine", "SessionLocal", "build_engine", "Base"]
