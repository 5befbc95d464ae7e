"""
Database Models for the Link Tracker

This module defines the SQLModel schema of the click event store:
- ClickEvent: one row per redirect (human click) or preview (crawler fetch)

Design Decisions:
- Append-only table; the only update is the country backfill filling NULLs
- created_at is naive UTC with second precision so calendar periods ending
  at HH:59:59 include every event of their last second
- Composite indexes match the stats queries: per-site time range scans,
  per-(site, country) scans and per-source aggregation
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlmodel import Field, SQLModel


class ClickKind(str, Enum):
    """Whether the request was redirected (human) or served a preview (crawler)."""
    CLICK = "click"
    PREVIEW = "preview"


class ClickEvent(SQLModel, table=True):
    """
    Click log table.

    Fields:
    - ip: Client address (IPv6 max length 45)
    - country: ISO 3166-1 alpha-2 code, NULL when unknown
    - user_agent: Raw User-Agent header
    - source / site: Configuration ids that passed resolution
    - article_id: Article slug as it appeared in the short link
    - type: click | preview
    - created_at: Event time (UTC)
    """
    __tablename__ = "clicks"
    __table_args__ = (
        Index("idx_site_created", "site", "created_at"),
        Index("idx_site_country", "site", "country"),
        Index("idx_source", "source"),
        Index("idx_article", "article_id"),
        Index("idx_created_at", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    ip: str = Field(sa_column=Column(String(45), nullable=False))
    country: Optional[str] = Field(default=None, sa_column=Column(String(2), nullable=True))
    user_agent: str = Field(default="", sa_column=Column(Text, nullable=False))
    source: str = Field(sa_column=Column(String(50), nullable=False))
    site: str = Field(sa_column=Column(String(100), nullable=False))
    article_id: str = Field(sa_column=Column(String(255), nullable=False))
    type: str = Field(
        default=ClickKind.CLICK.value,
        sa_column=Column("type", String(10), nullable=False)
    )
    created_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
