"""
Geolocation Enrichment

Country lookup against a local MaxMind database (GeoLite2-Country). No
network I/O happens here.

The database file is replaced out-of-band by a scheduled job. The locator
checks the file's modification time at most every reload_interval seconds
and swaps in a new reader when it changed. Lookups take a local reference to
the current reader. The superseded reader is closed right after the swap; a
lookup still running on it reads as an unknown country.
"""

import ipaddress
import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Optional

import geoip2.database
import geoip2.errors
import maxminddb

logger = logging.getLogger(__name__)


def public_address(ip: Optional[str]) -> Optional[str]:
    """
    Normalised address if it is globally routable, else None.

    IPv4-mapped IPv6 addresses (::ffff:1.2.3.4) are unwrapped.
    """
    if not ip:
        return None
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    if (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_reserved
        or address.is_unspecified
    ):
        return None
    return str(address)


class GeoLocator:
    """Thread-safe, hot-swappable country lookup."""

    def __init__(
        self,
        db_path: Path,
        reload_interval: float = 300.0,
        reader_factory: Callable[[str], geoip2.database.Reader] = geoip2.database.Reader,
    ):
        self.db_path = Path(db_path)
        self.reload_interval = reload_interval
        self._reader_factory = reader_factory
        self._reader = None
        self._loaded_mtime: Optional[float] = None
        self._last_check: Optional[float] = None
        self._lock = threading.Lock()
        self._missing_logged = False

    def _file_mtime(self) -> Optional[float]:
        try:
            return os.stat(self.db_path).st_mtime
        except OSError:
            return None

    def _due(self, now: float) -> bool:
        return self._last_check is None or now - self._last_check >= self.reload_interval

    def _refresh(self, force: bool = False) -> None:
        now = time.monotonic()
        if not force and not self._due(now):
            return
        with self._lock:
            if not force and not self._due(now):
                return
            self._last_check = now
            mtime = self._file_mtime()
            if mtime is None:
                if not self._missing_logged:
                    logger.warning(f"GeoIP database not found at {self.db_path}")
                    self._missing_logged = True
                return
            if self._reader is not None and mtime == self._loaded_mtime:
                return
            try:
                reader = self._reader_factory(str(self.db_path))
            except (OSError, ValueError, maxminddb.InvalidDatabaseError) as e:
                logger.warning(f"GeoIP database unavailable: {e}")
                return
            old_reader, self._reader = self._reader, reader
            self._loaded_mtime = mtime
            self._missing_logged = False
            logger.info(f"GeoIP database loaded from {self.db_path}")
        if old_reader is not None:
            # A lookup still holding it gets ValueError, which reads as unknown
            old_reader.close()

    def reload(self) -> None:
        """Re-read the database file now if it changed."""
        self._refresh(force=True)

    def lookup_country(self, ip: Optional[str]) -> Optional[str]:
        """ISO 3166-1 alpha-2 country code, or None when unknown."""
        address = public_address(ip)
        if address is None:
            return None

        self._refresh()
        reader = self._reader
        if reader is None:
            return None

        try:
            code = reader.country(address).country.iso_code
        except (geoip2.errors.AddressNotFoundError, ValueError, maxminddb.InvalidDatabaseError):
            return None
        except Exception as e:
            logger.warning(f"GeoIP lookup failed for {address}: {e}")
            return None
        return code.upper() if code else None

    def close(self) -> None:
        with self._lock:
            reader, self._reader = self._reader, None
        if reader is not None:
            reader.close()
