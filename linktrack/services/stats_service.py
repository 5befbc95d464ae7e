"""
Statistics Service

Aggregates the click event log of one site over a resolved date range.

Report contents:
- total clicks and total previews
- top articles by clicks and by previews (capped by articles_limit, or all)
- top countries by clicks with their share of total clicks (capped, all, or
  disabled with countries_limit=0)
- top countries per listed article, computed by one batched query over the
  already-selected article ids
- per-source click/preview/total breakdown, always over every source

The optional source filter applies to everything except the source breakdown.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from linktrack.core.registry import SiteConfig
from linktrack.db.models import ClickEvent, ClickKind
from linktrack.services.click_logger import utcnow
from linktrack.services.periods import DateRange
from linktrack.services.url_builder import article_url

logger = logging.getLogger(__name__)

events = ClickEvent.__table__


@dataclass(frozen=True)
class StatsQuery:
    site: SiteConfig
    date_range: DateRange
    period: Optional[str] = None
    source: Optional[str] = None
    articles_limit: Optional[int] = 5
    countries_limit: Optional[int] = 5

    @property
    def countries_enabled(self) -> bool:
        return self.countries_limit != 0


def percentage(part: int, total: int) -> float:
    if not total:
        return 0.0
    return round(part / total * 100, 2)


class StatsService:
    """
    Service for site statistics over the click event log.

    Args:
        session: Async session on the event store
        clock: Returns "now" as naive UTC; rolling periods end there
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    def _window(self, query: StatsQuery, kind: Optional[ClickKind] = None, filtered: bool = True) -> list:
        conditions = [
            events.c.site == query.site.id,
            events.c.created_at >= query.date_range.start,
            events.c.created_at <= query.date_range.end,
        ]
        if kind is not None:
            conditions.append(events.c.type == kind.value)
        if filtered and query.source:
            conditions.append(events.c.source == query.source)
        return conditions

    async def _count(self, query: StatsQuery, kind: ClickKind) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(events).where(*self._window(query, kind))
        )
        return int(result.scalar() or 0)

    async def _top_articles(self, query: StatsQuery, kind: ClickKind) -> List[tuple]:
        count = func.count().label("total")
        statement = (
            select(events.c.article_id, count)
            .where(*self._window(query, kind))
            .group_by(events.c.article_id)
            .order_by(count.desc(), events.c.article_id)
        )
        if query.articles_limit is not None:
            statement = statement.limit(query.articles_limit)
        result = await self.session.execute(statement)
        return [(row.article_id, int(row.total)) for row in result]

    async def _top_countries(self, query: StatsQuery) -> List[tuple]:
        count = func.count().label("total")
        statement = (
            select(events.c.country, count)
            .where(*self._window(query, ClickKind.CLICK), events.c.country.is_not(None))
            .group_by(events.c.country)
            .order_by(count.desc(), events.c.country)
        )
        if query.countries_limit is not None:
            statement = statement.limit(query.countries_limit)
        result = await self.session.execute(statement)
        return [(row.country, int(row.total)) for row in result]

    async def _countries_by_article(self, query: StatsQuery, article_ids: List[str]) -> Dict[str, List[dict]]:
        """Top countries for each of the given articles, in a single query."""
        count = func.count().label("total")
        statement = (
            select(events.c.article_id, events.c.country, count)
            .where(
                *self._window(query, ClickKind.CLICK),
                events.c.country.is_not(None),
                events.c.article_id.in_(article_ids),
            )
            .group_by(events.c.article_id, events.c.country)
            .order_by(events.c.article_id, count.desc(), events.c.country)
        )
        result = await self.session.execute(statement)

        grouped: Dict[str, List[dict]] = {article_id: [] for article_id in article_ids}
        for row in result:
            entries = grouped.setdefault(row.article_id, [])
            if query.countries_limit is None or len(entries) < query.countries_limit:
                entries.append({"country": row.country, "clicks": int(row.total)})
        return grouped

    async def _sources(self, query: StatsQuery) -> List[dict]:
        clicks = func.sum(case((events.c.type == ClickKind.CLICK.value, 1), else_=0)).label("clicks")
        previews = func.sum(case((events.c.type == ClickKind.PREVIEW.value, 1), else_=0)).label("previews")
        total = func.count().label("total")
        statement = (
            select(events.c.source, clicks, previews, total)
            .where(*self._window(query, filtered=False))
            .group_by(events.c.source)
            .order_by(total.desc(), events.c.source)
        )
        result = await self.session.execute(statement)
        return [
            {
                "source": row.source,
                "clicks": int(row.clicks or 0),
                "previews": int(row.previews or 0),
                "total": int(row.total),
            }
            for row in result
        ]

    async def get_stats(self, query: StatsQuery) -> dict:
        """
        Build the stats report for one site.

        Returns:
            Dictionary shaped like api.schemas.StatsData
        """
        site = query.site
        total_clicks = await self._count(query, ClickKind.CLICK)
        total_previews = await self._count(query, ClickKind.PREVIEW)
        top_articles = await self._top_articles(query, ClickKind.CLICK)
        top_previews = await self._top_articles(query, ClickKind.PREVIEW)

        report = {
            "site": site.id,
            "period": query.period or "custom",
            "source": query.source,
            "date_range": query.date_range.as_dict(),
            "total_clicks": total_clicks,
            "total_previews": total_previews,
            "articles_count": len(top_articles),
        }

        article_countries: Dict[str, List[dict]] = {}
        if query.countries_enabled:
            report["top_countries"] = [
                {"country": country, "clicks": clicks, "percentage": percentage(clicks, total_clicks)}
                for country, clicks in await self._top_countries(query)
            ]
            if top_articles:
                article_countries = await self._countries_by_article(
                    query, [article_id for article_id, _ in top_articles]
                )

        report["top_articles"] = []
        for article_id, clicks in top_articles:
            entry = {"article_id": article_id, "clicks": clicks, "url": article_url(site, article_id)}
            if query.countries_enabled:
                entry["top_countries"] = article_countries.get(article_id, [])
            report["top_articles"].append(entry)

        report["top_articles_previews"] = [
            {"article_id": article_id, "previews": previews, "url": article_url(site, article_id)}
            for article_id, previews in top_previews
        ]
        report["sources"] = await self._sources(query)

        logger.debug(
            f"Stats for {site.id} {query.date_range.as_dict()}: "
            f"{total_clicks} clicks, {total_previews} previews"
        )
        return report
