"""
Database adapter factory.

Chooses the adapter from the connection string so the rest of the code never
branches on the backend.
"""

from linktrack.core.exceptions import ConfigurationError
from linktrack.db.interface import DatabaseAdapter
from linktrack.db.mysql_adapter import MySQLAdapter
from linktrack.db.sqlite_adapter import SQLiteAdapter

_ADAPTERS = {
    "sqlite": SQLiteAdapter,
    "mysql": MySQLAdapter,
}


def get_database_adapter(database_url: str, pool_size: int = 10, pool_timeout: float = 5.0) -> DatabaseAdapter:
    """
    Return the adapter matching the URL's dialect.

    Args:
        database_url: SQLAlchemy URL, e.g. sqlite+aiosqlite:///./x.db
        pool_size: Connections kept by pooled backends
        pool_timeout: Seconds to wait for a free connection

    Raises:
        ConfigurationError: For an unsupported dialect
    """
    dialect = database_url.split(":", 1)[0].split("+", 1)[0].lower()
    adapter_class = _ADAPTERS.get(dialect)
    if adapter_class is None:
        raise ConfigurationError(f"Unsupported database dialect: {dialect}")
    return adapter_class(pool_size=pool_size, pool_timeout=pool_timeout)
