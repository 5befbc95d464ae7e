"""
SQLite Database Adapter

Used for local development and the test suite (sqlite+aiosqlite://...).
"""

from typing import Any

from sqlalchemy.pool import NullPool

from linktrack.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """SQLite through aiosqlite; one connection per checkout."""

    def get_pool_class(self) -> type[NullPool]:
        # A file database gains nothing from pooling and allows one writer
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        # "timeout" is how long sqlite waits on a locked file
        return {
            "check_same_thread": False,
            "timeout": self.pool_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {"echo": False}

    def get_dialect_name(self) -> str:
        return "sqlite"
