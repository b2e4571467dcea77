"""Database module."""
from .engine import Database
from .session import get_database, get_db

__all__ = [
    "Database",
    "get_database",
    "get_db",
]
