"""
Database Adapter Interface

Two async engines are built in this service: the click event store and the
optional read-only content store. Both go through an adapter so that pool
sizing, the pool-wait timeout and driver options are decided per backend in
one place, and the rest of the code never branches on the dialect.

Backends: SQLite (development, tests) and MySQL (production).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import Pool


class DatabaseAdapter(ABC):
    """
    Engine configuration for one database backend.

    Args:
        pool_size: Connections kept open by pooled backends
        pool_timeout: Seconds to wait for a free connection (or for the file
            lock on SQLite) before the operation fails
    """

    def __init__(self, pool_size: int = 10, pool_timeout: float = 5.0):
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout

    def create_engine(self, database_url: str, **overrides) -> AsyncEngine:
        """Build an AsyncEngine; keyword overrides win over adapter defaults."""
        options = {**self.get_engine_kwargs(), **overrides}
        pool_class = self.get_pool_class()
        if pool_class is not None:
            options["poolclass"] = pool_class
        return create_async_engine(database_url, connect_args=self.get_connect_args(), **options)

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """Pool class to force, or None for the dialect's default queue pool."""

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Arguments handed to the DBAPI connect() call."""

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for create_async_engine()."""

    @abstractmethod
    def get_dialect_name(self) -> str:
        ...
