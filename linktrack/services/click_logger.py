"""
Click Event Logging Service

Persists one ClickEvent per redirect or preview request.

Design Decisions:
- Runs as a background task after the response is produced, so it opens its
  own session (the request session is closed by then)
- Failures are logged and swallowed: a broken event store never changes the
  status or body of the response that triggered the event
- No acknowledgement is returned to the caller
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from linktrack.db.models import ClickEvent, ClickKind

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp truncated to the second, as stored in the event table."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


@dataclass(frozen=True)
class ClickRecord:
    """Everything needed to write one event; produced by the redirect pipeline."""
    ip: str
    country: Optional[str]
    user_agent: str
    source_id: str
    site_id: str
    article_id: str
    kind: ClickKind


class ClickLogger:
    """
    Writes click events through a session factory.

    Args:
        session_factory: Callable returning an AsyncSession context manager
            (an async_sessionmaker)
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], clock: Callable[[], datetime] = utcnow):
        self.session_factory = session_factory
        self.clock = clock

    async def log_event(self, record: ClickRecord) -> None:
        try:
            async with self.session_factory() as session:
                session.add(ClickEvent(
                    ip=record.ip,
                    country=record.country,
                    user_agent=record.user_agent,
                    source=record.source_id,
                    site=record.site_id,
                    article_id=record.article_id,
                    type=record.kind.value,
                    created_at=self.clock(),
                ))
                await session.commit()
        except Exception as e:
            logger.error(
                f"Failed to log {record.kind.value} for {record.site_id}/{record.article_id}: {str(e)}",
                exc_info=True
            )
