"""
Backfill Countries Entry Point

Resolves the country of logged clicks that have none, using the offline
GeoIP database and the event store configured in settings.

Run with:
    linktrack-backfill-countries [--batch-size 1000] [--geoip-db PATH]
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from linktrack.core.setting import settings
from linktrack.db.session import async_session_maker, engine
from linktrack.services.backfill import BackfillResult, CountryBackfill
from linktrack.services.geolocation import GeoLocator

logger = logging.getLogger("linktrack.backfill")


async def backfill_countries(geoip_db: Path, batch_size: int) -> BackfillResult:
    geolocator = GeoLocator(geoip_db)
    try:
        return await CountryBackfill(async_session_maker, geolocator, batch_size=batch_size).run()
    finally:
        geolocator.close()
        await engine.dispose()


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Console entry point."""
    parser = argparse.ArgumentParser(
        description="Fill in the country of logged clicks from the GeoIP database",
    )
    parser.add_argument("--batch-size", type=int, default=1000,
                        help="Rows read and committed per batch (default: 1000)")
    parser.add_argument("--geoip-db", type=Path, default=settings.GEOIP_DB_PATH,
                        help="GeoLite2/GeoIP2 country database (default: GEOIP_DB_PATH)")
    args = parser.parse_args(argv)

    if args.batch_size < 1:
        parser.error("--batch-size must be positive")
    if not args.geoip_db.is_file():
        parser.error(f"GeoIP database not found: {args.geoip_db}")

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Backfilling countries from {args.geoip_db}")
    asyncio.run(backfill_countries(args.geoip_db, args.batch_size))


if __name__ == "__main__":
    run()
