"""IP-to-location lookups against a MaxMind City database.

The reader is opened once per process and shared; it is read-only, so no
locking is needed around lookups.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Mapping, Optional

import geoip2.database
from geoip2.errors import AddressNotFoundError, GeoIP2Error
from maxminddb import InvalidDatabaseError
from sqlalchemy.exc import SQLAlchemyError

from domain.models import IpGeoRecord
from services.errors import BackendUnavailable, check_callback, fail
from settings import settings

logger = logging.getLogger(__name__)

_LOCATOR_LOCK = threading.Lock()
_default_ip_locator: Optional["IpLocator"] = None


def _postal_code(response) -> Optional[str]:
    """Read the postal code, treating a malformed value as empty."""
    try:
        code = response.postal.code
    except (ValueError, UnicodeError):
        return ""
    if code is not None and not isinstance(code, str):
        return ""
    return code


class IpLocator:
    def __init__(self, reader, country_codes3: Optional[Mapping[str, str]] = None):
        self.reader = reader
        self.country_codes3: Dict[str, str] = dict(country_codes3 or {})

    def lookup_ip(self, ip: str) -> IpGeoRecord:
        """Look up ``ip``.

        Raises ``AddressNotFoundError`` when the database has no record and
        ``ValueError`` when ``ip`` is not an IP address.
        """
        response = self.reader.city(ip.strip())
        country_code = response.country.iso_code
        return IpGeoRecord(
            country_code=country_code,
            country_code3=self.country_codes3.get(country_code) if country_code else None,
            country_name=response.country.name,
            region=response.subdivisions.most_specific.iso_code,
            locality=response.city.name,
            latitude=response.location.latitude,
            longitude=response.location.longitude,
            dma_code=response.location.metro_code,
            area_code=None,
            postal_code=_postal_code(response),
        )

    def locate(self, ip: str) -> Optional[IpGeoRecord]:
        """Like ``lookup_ip`` but returns None instead of raising for this item."""
        try:
            return self.lookup_ip(ip)
        except AddressNotFoundError:
            logger.debug("No IP location record for %r", ip)
        except (ValueError, GeoIP2Error, InvalidDatabaseError) as exc:
            logger.info("IP lookup failed for %r: %s", ip, exc)
        return None


def _load_country_codes3() -> Dict[str, str]:
    from db import SessionLocal
    from repositories import GazetteerRepository

    try:
        with SessionLocal() as session:
            return GazetteerRepository().country_codes3(session)
    except SQLAlchemyError as exc:
        logger.warning("Could not load alpha-3 country codes from the gazetteer: %s", exc)
        return {}


def get_default_ip_locator(callback: Optional[str] = None) -> IpLocator:
    """Open the configured IP database on first use and reuse it afterwards."""
    global _default_ip_locator
    check_callback(callback)
    with _LOCATOR_LOCK:
        if _default_ip_locator is None:
            try:
                reader = geoip2.database.Reader(settings.IP_DATABASE_PATH)
            except (OSError, ValueError, InvalidDatabaseError) as exc:
                logger.warning("IP database %s unavailable: %s", settings.IP_DATABASE_PATH, exc)
                fail("The IP location database is not available", "json", 503, callback, BackendUnavailable)
            _default_ip_locator = IpLocator(reader, _load_country_codes3())
        return _default_ip_locator
