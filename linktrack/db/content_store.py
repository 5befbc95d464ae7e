"""
Content Store Access

Read-only access to the WordPress databases that back content-store sites.
One engine (one bounded pool) serves every configured schema; tables are
addressed as <schema>.<prefix>posts and <schema>.<prefix>postmeta.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, NamedTuple, Optional

from sqlalchemy import BigInteger, Column, MetaData, String, Table, Text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from linktrack.db.factory import get_database_adapter


class ContentTables(NamedTuple):
    posts: Table
    postmeta: Table


@lru_cache(maxsize=128)
def content_tables(schema: Optional[str], prefix: str = "wp_") -> ContentTables:
    """
    Table objects for one content schema.

    Only the columns read by the metadata fetcher are declared.
    """
    metadata = MetaData(schema=schema)
    posts = Table(
        f"{prefix}posts",
        metadata,
        Column("ID", BigInteger, primary_key=True),
        Column("post_title", Text),
        Column("post_excerpt", Text),
        Column("post_content", Text),
        Column("post_name", String(200)),
        Column("post_status", String(20)),
        Column("post_type", String(20)),
        Column("guid", String(255)),
    )
    postmeta = Table(
        f"{prefix}postmeta",
        metadata,
        Column("meta_id", BigInteger, primary_key=True),
        Column("post_id", BigInteger),
        Column("meta_key", String(255)),
        Column("meta_value", Text),
    )
    return ContentTables(posts=posts, postmeta=postmeta)


class ContentStore:
    """Owns the content store engine and hands out scoped connections."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, pool_size: int = 10, pool_timeout: float = 5.0) -> "ContentStore":
        adapter = get_database_adapter(database_url, pool_size=pool_size, pool_timeout=pool_timeout)
        return cls(adapter.create_engine(database_url))

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """Check out a connection; it is returned to the pool on every exit path."""
        async with self.engine.connect() as conn:
            yield conn

    async def dispose(self) -> None:
        await self.engine.dispose()
