"""Database module for the shortlink application."""
from shortlink.db.base import engine, get_engine, get_session, DatabaseHealthCheck
from shortlink.db.session import get_db, db_transaction

__all__ = [
    "engine",
    "get_engine",
    "get_session",
    "DatabaseHealthCheck",
    "get_db",
    "db_transaction",
]
