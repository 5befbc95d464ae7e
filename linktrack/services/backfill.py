"""
Country Backfill

Fills in the country of click events logged before geolocation was
available (or while the GeoIP database was missing).

Rows are read in id order, one batch per session, and updated with one
UPDATE per country in the batch. Paging is by last seen id; updated rows
leave the "country IS NULL" set. Rows whose address is private or unknown
to the database stay NULL.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from linktrack.db.models import ClickEvent
from linktrack.services.geolocation import public_address

logger = logging.getLogger(__name__)

events = ClickEvent.__table__


@dataclass
class BackfillResult:
    updated: int = 0
    skipped: int = 0
    batches: int = 0
    remaining: int = 0


class CountryBackfill:
    """
    Resolves missing countries with a geolocator.

    Args:
        session_factory: Callable returning an AsyncSession context manager
        geolocator: Anything with lookup_country(ip) -> Optional[str]
        batch_size: Rows read (and committed) per round trip
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], geolocator, batch_size: int = 1000):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.session_factory = session_factory
        self.geolocator = geolocator
        self.batch_size = batch_size

    def _resolve(self, ip: str):
        address = public_address(ip)
        if address is None:
            return None
        return self.geolocator.lookup_country(address)

    async def _run_batch(self, session: AsyncSession, after_id: int, result: BackfillResult) -> int:
        rows = (await session.execute(
            select(events.c.id, events.c.ip)
            .where(events.c.country.is_(None), events.c.id > after_id)
            .order_by(events.c.id)
            .limit(self.batch_size)
        )).all()
        if not rows:
            return after_id

        by_country: Dict[str, List[int]] = defaultdict(list)
        for row in rows:
            country = self._resolve(row.ip)
            if country:
                by_country[country].append(row.id)
            else:
                result.skipped += 1

        updated = 0
        for country, ids in by_country.items():
            await session.execute(update(events).where(events.c.id.in_(ids)).values(country=country))
            updated += len(ids)
        await session.commit()

        result.updated += updated
        result.batches += 1
        logger.info(f"Batch {result.batches}: {updated} updated, {len(rows) - updated} skipped")
        return rows[-1].id

    async def run(self) -> BackfillResult:
        result = BackfillResult()
        last_id = 0
        while True:
            async with self.session_factory() as session:
                next_id = await self._run_batch(session, last_id, result)
            if next_id == last_id:
                break
            last_id = next_id

        async with self.session_factory() as session:
            result.remaining = (await session.execute(
                select(func.count()).select_from(events).where(events.c.country.is_(None))
            )).scalar_one()

        logger.info(
            f"Country backfill done: {result.updated} updated, {result.skipped} skipped, "
            f"{result.remaining} still without country"
        )
        return result
