"""Load gazetteer and street-range CSV files into the reference database.

Usage (from the backend directory):
    python -m scripts.load_reference_data --countries countries.csv --regions regions.csv \
        --cities cities.csv --streets street_ranges.csv [--database-url sqlite:///geodict.db] [--replace]

Expected columns:
    countries.csv      name, code, code3, lat, lon
    regions.csv        name, code, country_code, lat, lon
    cities.csv         name, country_code, region_code, lat, lon, population
    street_ranges.csv  street_name, from_number, to_number, city, state, zip_code,
                       fips_county, from_lat, from_lon, to_lat, to_lon

Alternate spellings of a place ("USA", "United States") are extra rows.
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from db import engine as default_engine, init_db
from repositories import GazetteerRepository, StreetRangesRepository
from repositories.models import CityORM, CountryORM, RegionORM, StreetRangeORM
from services.street_geocoder import normalize_street

logger = logging.getLogger("load_reference_data")


def _rows(path: Path) -> Iterator[Dict[str, str]]:
    with path.open(newline="", encoding="utf-8") as handle:
        for row in csv.DictReader(handle):
            yield {key.strip(): (value or "").strip() for key, value in row.items() if key}


def _optional(value: str) -> Optional[str]:
    return value or None


def load_countries(session: Session, path: Path) -> int:
    repo = GazetteerRepository()
    count = 0
    for row in _rows(path):
        repo.add_country(
            session,
            row["name"],
            row["code"],
            float(row["lat"]),
            float(row["lon"]),
            code3=_optional(row.get("code3", "")),
        )
        count += 1
    return count


def load_regions(session: Session, path: Path) -> int:
    repo = GazetteerRepository()
    count = 0
    for row in _rows(path):
        repo.add_region(session, row["name"], row["code"], row["country_code"], float(row["lat"]), float(row["lon"]))
        count += 1
    return count


def load_cities(session: Session, path: Path) -> int:
    repo = GazetteerRepository()
    count = 0
    for row in _rows(path):
        repo.add_city(
            session,
            row["name"],
            row["country_code"],
            float(row["lat"]),
            float(row["lon"]),
            region_code=_optional(row.get("region_code", "")),
            population=int(row.get("population") or 0),
        )
        count += 1
    return count


def load_street_ranges(session: Session, path: Path) -> int:
    repo = StreetRangesRepository()
    count = 0
    for row in _rows(path):
        repo.add_range(
            session,
            street_key=normalize_street(row["street_name"]),
            street_name=row["street_name"],
            from_number=int(row["from_number"]),
            to_number=int(row["to_number"]),
            from_lat=float(row["from_lat"]),
            from_lon=float(row["from_lon"]),
            to_lat=float(row["to_lat"]),
            to_lon=float(row["to_lon"]),
            city=_optional(row.get("city", "")),
            state=_optional(row.get("state", "")),
            zip_code=_optional(row.get("zip_code", "")),
            fips_county=_optional(row.get("fips_county", "")),
        )
        count += 1
    return count


LOADERS = (
    ("countries", CountryORM, load_countries),
    ("regions", RegionORM, load_regions),
    ("cities", CityORM, load_cities),
    ("streets", StreetRangeORM, load_street_ranges),
)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Load reference CSV data into the Geodict database.")
    parser.add_argument("--countries", type=Path, help="CSV of countries.")
    parser.add_argument("--regions", type=Path, help="CSV of regions (states, provinces).")
    parser.add_argument("--cities", type=Path, help="CSV of cities.")
    parser.add_argument("--streets", type=Path, help="CSV of street address ranges.")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL; defaults to GEODICT_DATABASE_URL.")
    parser.add_argument("--replace", action="store_true", help="Empty each table before loading it.")
    args = parser.parse_args(argv)

    engine = create_engine(args.database_url) if args.database_url else default_engine
    init_db(bind=engine)
    session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    loaded_any = False
    with session_factory() as session:
        for option, orm_cls, loader in LOADERS:
            path = getattr(args, option)
            if path is None:
                continue
            if not path.exists():
                logger.error("%s file not found: %s", option, path)
                return 1
            if args.replace:
                session.query(orm_cls).delete()
            count = loader(session, path)
            logger.info("Loaded %d %s from %s", count, option, path)
            loaded_any = True
        session.commit()

    if not loaded_any:
        parser.print_usage(sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
