"""
MySQL Database Adapter

Production backend for both the click event store and the WordPress
content store (mysql+aiomysql://...).

Pool behaviour:
- Bounded queue pool (pool_size, no overflow)
- pool_timeout bounds the wait for a free connection; exhaustion raises
  sqlalchemy.exc.TimeoutError instead of queueing forever
- pool_pre_ping / pool_recycle drop connections closed by the server
"""

from typing import Any, Optional

from sqlalchemy.pool import Pool

from linktrack.db.interface import DatabaseAdapter


class MySQLAdapter(DatabaseAdapter):
    """MySQL adapter using the aiomysql driver."""

    def get_pool_class(self) -> Optional[type[Pool]]:
        # Dialect default: AsyncAdaptedQueuePool
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "charset": "utf8mb4",
            "connect_timeout": int(max(self.pool_timeout, 1)),
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": self.pool_size,
            "max_overflow": 0,
            "pool_timeout": self.pool_timeout,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }

    def get_dialect_name(self) -> str:
        return "mysql"
