"""
Gazetteer repository backed by SQLAlchemy/SQLite.
"""
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from domain.models import GazetteerEntry, MentionKind
from repositories.models import CityORM, CountryORM, RegionORM

_SPACES = re.compile(r"\s+")


def name_key(name: str) -> str:
    """Lower-case and collapse whitespace so lookups ignore spacing and case."""
    return _SPACES.sub(" ", name.strip()).lower()


def _country_entry(orm: CountryORM) -> GazetteerEntry:
    return GazetteerEntry(
        kind=MentionKind.COUNTRY,
        name=orm.name,
        lat=orm.lat,
        lon=orm.lon,
        country_code=orm.code,
        code=orm.code,
    )


def _region_entry(orm: RegionORM) -> GazetteerEntry:
    return GazetteerEntry(
        kind=MentionKind.REGION,
        name=orm.name,
        lat=orm.lat,
        lon=orm.lon,
        country_code=orm.country_code,
        region_code=orm.code,
        code=orm.code,
    )


def _city_entry(orm: CityORM) -> GazetteerEntry:
    return GazetteerEntry(
        kind=MentionKind.CITY,
        name=orm.name,
        lat=orm.lat,
        lon=orm.lon,
        country_code=orm.country_code,
        region_code=orm.region_code,
        population=orm.population or 0,
    )


class GazetteerRepository:
    """Name lookups over the countries, regions and cities tables."""

    def lookup(self, session: Session, keys: Iterable[str]) -> Dict[str, List[GazetteerEntry]]:
        """Return every entry whose name_key is in ``keys``, grouped by key.

        Countries come before regions and regions before cities in each list;
        cities are ordered by descending population.
        """
        wanted = sorted(set(keys))
        found: Dict[str, List[GazetteerEntry]] = defaultdict(list)
        if not wanted:
            return found

        for orm in (
            session.query(CountryORM)
            .filter(CountryORM.name_key.in_(wanted))
            .order_by(CountryORM.id)
        ):
            found[orm.name_key].append(_country_entry(orm))
        for orm in (
            session.query(RegionORM)
            .filter(RegionORM.name_key.in_(wanted))
            .order_by(RegionORM.id)
        ):
            found[orm.name_key].append(_region_entry(orm))
        for orm in (
            session.query(CityORM)
            .filter(CityORM.name_key.in_(wanted))
            .order_by(CityORM.population.desc(), CityORM.id)
        ):
            found[orm.name_key].append(_city_entry(orm))
        return found

    def country_codes3(self, session: Session) -> Dict[str, str]:
        """Map ISO alpha-2 country codes to alpha-3 where the table has them."""
        return {
            code: code3
            for code, code3 in session.query(CountryORM.code, CountryORM.code3)
            if code3
        }

    def add_country(
        self, session: Session, name: str, code: str, lat: float, lon: float, code3: Optional[str] = None
    ) -> None:
        session.add(
            CountryORM(name=name, name_key=name_key(name), code=code.upper(), code3=code3, lat=lat, lon=lon)
        )

    def add_region(
        self, session: Session, name: str, code: str, country_code: str, lat: float, lon: float
    ) -> None:
        session.add(
            RegionORM(
                name=name,
                name_key=name_key(name),
                code=code.upper(),
                country_code=country_code.upper(),
                lat=lat,
                lon=lon,
            )
        )

    def add_city(
        self,
        session: Session,
        name: str,
        country_code: str,
        lat: float,
        lon: float,
        region_code: Optional[str] = None,
        population: int = 0,
    ) -> None:
        session.add(
            CityORM(
                name=name,
                name_key=name_key(name),
                country_code=country_code.upper(),
                region_code=region_code.upper() if region_code else None,
                lat=lat,
                lon=lon,
                population=population,
            )
        )
