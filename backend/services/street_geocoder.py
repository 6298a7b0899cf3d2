"""Street-address geocoding for US addresses.

Two interchangeable backends implement ``geocode(address)``:

- ``DatabaseStreetGeocoder`` parses the address with usaddress and
  interpolates a position along the matching house-number range from the
  reference database (the census TIGER approach).
- ``NominatimStreetGeocoder`` asks an OpenStreetMap Nominatim search endpoint,
  sharing the throttling and identifying headers the public service requires.

Both return None when nothing matches and raise ``BackendItemFailure`` when a
single address cannot be processed.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from typing import Any, Callable, Dict, Optional

import requests
import usaddress
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.models import ParsedAddress, StreetGeoRecord
from repositories import StreetRangesRepository
from services.errors import BackendItemFailure
from settings import settings

logger = logging.getLogger(__name__)

FALLBACK_UA = "geodict-gateway/0.1 (contact: example@example.com)"

STREET_SUFFIXES = {
    "ALLEY": "ALY",
    "AVENUE": "AVE",
    "AV": "AVE",
    "BOULEVARD": "BLVD",
    "CIRCLE": "CIR",
    "COURT": "CT",
    "DRIVE": "DR",
    "EXPRESSWAY": "EXPY",
    "HIGHWAY": "HWY",
    "LANE": "LN",
    "PARKWAY": "PKWY",
    "PLACE": "PL",
    "ROAD": "RD",
    "SQUARE": "SQ",
    "STREET": "ST",
    "STR": "ST",
    "TERRACE": "TER",
    "TRAIL": "TRL",
}

DIRECTIONALS = {
    "NORTH": "N",
    "SOUTH": "S",
    "EAST": "E",
    "WEST": "W",
    "NORTHEAST": "NE",
    "NORTHWEST": "NW",
    "SOUTHEAST": "SE",
    "SOUTHWEST": "SW",
}

_STREET_LABELS = (
    "StreetNamePreDirectional",
    "StreetNamePreModifier",
    "StreetNamePreType",
    "StreetName",
    "StreetNamePostType",
    "StreetNamePostDirectional",
)
_PUNCT = re.compile(r"[.,#]")


def normalize_street(street: str) -> str:
    """Upper-case a street name and abbreviate suffixes and directionals.

    >>> normalize_street("North Main Street")
    'N MAIN ST'
    """
    words = _PUNCT.sub(" ", street).upper().split()
    normalized = []
    for word in words:
        word = DIRECTIONALS.get(word, word)
        word = STREET_SUFFIXES.get(word, word)
        normalized.append(word)
    return " ".join(normalized)


def parse_address(address: str) -> ParsedAddress:
    """Split a one-line US address into number, street, city, state and zip.

    Raises ``BackendItemFailure`` when usaddress cannot label the string.
    """
    try:
        tagged, _ = usaddress.tag(address)
    except usaddress.RepeatedLabelError as exc:
        raise BackendItemFailure(f"Ambiguous address {address!r}") from exc

    street_parts = [tagged[label] for label in _STREET_LABELS if tagged.get(label)]
    return ParsedAddress(
        number=tagged.get("AddressNumber"),
        street=" ".join(street_parts) or None,
        city=tagged.get("PlaceName"),
        state=tagged.get("StateName"),
        zip_code=tagged.get("ZipCode"),
    )


def _house_number(number: str) -> Optional[int]:
    digits = re.match(r"\d+", number.strip())
    return int(digits.group()) if digits else None


def _interpolate(start: float, end: float, fraction: float) -> float:
    return round(start + (end - start) * fraction, 6)


class DatabaseStreetGeocoder:
    """Geocode against the street_ranges table of the reference database."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        repository: Optional[StreetRangesRepository] = None,
    ):
        self.session_factory = session_factory
        self.repository = repository or StreetRangesRepository()

    def geocode(self, address: str) -> Optional[StreetGeoRecord]:
        parsed = parse_address(address)
        if not parsed.number or not parsed.street:
            return None
        number = _house_number(parsed.number)
        if number is None:
            return None

        street_key = normalize_street(parsed.street)
        state = parsed.state.replace(".", "").strip().upper() if parsed.state else None
        try:
            with self.session_factory() as session:
                ranges = self.repository.find_ranges(session, street_key, number, state)
        except SQLAlchemyError as exc:
            raise BackendItemFailure(f"Street range lookup failed for {address!r}") from exc
        if not ranges:
            return None

        # Street and number always match; city, state and zip count when given.
        possible = 2 + sum(1 for part in (parsed.city, state, parsed.zip_code) if part)
        best = None
        best_score = -1.0
        for candidate in ranges:
            matched = 2
            if parsed.city and candidate.city and candidate.city.upper() == parsed.city.upper():
                matched += 1
            if state and candidate.state == state:
                matched += 1
            if parsed.zip_code and candidate.zip_code and candidate.zip_code[:5] == parsed.zip_code[:5]:
                matched += 1
            score = matched / possible
            if score > best_score:
                best, best_score = candidate, score

        if best.from_number == best.to_number:
            fraction = 0.5
        else:
            fraction = (number - best.from_number) / (best.to_number - best.from_number)
        return StreetGeoRecord(
            street_number=parsed.number,
            street_name=best.street_name,
            region=best.state,
            locality=best.city,
            latitude=_interpolate(best.from_lat, best.to_lat, fraction),
            longitude=_interpolate(best.from_lon, best.to_lon, fraction),
            confidence=round(best_score, 3),
            fips_county=best.fips_county,
            postal_code=best.zip_code,
        )


class NominatimStreetGeocoder:
    """Geocode with a Nominatim search endpoint, one throttled request per address."""

    def __init__(
        self,
        search_url: str,
        user_agent: Optional[str] = None,
        min_interval: float = 1.1,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        if user_agent is None:
            logger.warning(
                "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
                "This may violate Nominatim usage policy."
            )
        self.search_url = search_url
        self.headers = {"User-Agent": user_agent or FALLBACK_UA}
        self.min_interval = min_interval
        self.timeout = timeout
        self._session = session or requests.Session()
        self._lock = threading.Lock()
        self._last_request_ts = 0.0

    def _throttled_get(self, params: Dict[str, Any]) -> requests.Response:
        """Perform a GET request with a simple per-geocoder rate limit."""
        with self._lock:
            delta = time.time() - self._last_request_ts
            if delta < self.min_interval:
                time.sleep(self.min_interval - delta)
            self._last_request_ts = time.time()
        return self._session.get(self.search_url, params=params, headers=self.headers, timeout=self.timeout)

    def geocode(self, address: str) -> Optional[StreetGeoRecord]:
        params = {
            "q": address,
            "format": "jsonv2",
            "addressdetails": "1",
            "countrycodes": "us",
            "limit": "1",
        }
        try:
            resp = self._throttled_get(params)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            logger.warning("Nominatim search error for %r: %s", address, exc)
            raise BackendItemFailure(str(exc)) from exc
        except ValueError as exc:
            logger.warning("Nominatim search JSON error for %r: %s", address, exc)
            raise BackendItemFailure(str(exc)) from exc

        if not data:
            return None
        try:
            return self._record_from_hit(data[0])
        except (KeyError, TypeError, ValueError, IndexError, AttributeError) as exc:
            logger.warning("Nominatim returned a malformed result for %r: %r", address, exc)
            raise BackendItemFailure(f"malformed search result: {exc!r}") from exc

    @staticmethod
    def _record_from_hit(hit: Dict[str, Any]) -> Optional[StreetGeoRecord]:
        details = hit.get("address") or {}
        number = details.get("house_number") or ""
        street = details.get("road") or ""
        if not number and not street:
            return None

        state_code = details.get("ISO3166-2-lvl4") or ""
        region = state_code.split("-", 1)[1] if state_code.startswith("US-") else details.get("state")
        return StreetGeoRecord(
            street_number=number,
            street_name=street,
            region=region,
            locality=details.get("city") or details.get("town") or details.get("village") or details.get("hamlet"),
            latitude=float(hit["lat"]) if hit.get("lat") is not None else None,
            longitude=float(hit["lon"]) if hit.get("lon") is not None else None,
            confidence=float(hit.get("importance") or 0.0),
            postal_code=details.get("postcode"),
        )


_GEOCODER_LOCK = threading.Lock()
_default_street_geocoder = None


def get_default_street_geocoder():
    """Build the configured street geocoder on first use and reuse it afterwards."""
    global _default_street_geocoder
    with _GEOCODER_LOCK:
        if _default_street_geocoder is None:
            if settings.STREET_GEOCODER_BACKEND == "nominatim":
                _default_street_geocoder = NominatimStreetGeocoder(
                    settings.NOMINATIM_SEARCH_URL,
                    user_agent=settings.NOMINATIM_USER_AGENT,
                    min_interval=settings.NOMINATIM_MIN_INTERVAL,
                )
            else:
                from db import SessionLocal

                _default_street_geocoder = DatabaseStreetGeocoder(SessionLocal)
        return _default_street_geocoder
