import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from db import init_db  # noqa: E402
from repositories import GazetteerRepository, StreetRangesRepository  # noqa: E402
from services.street_geocoder import normalize_street  # noqa: E402


def _seed(session) -> None:
    places = GazetteerRepository()
    places.add_country(session, "France", "FR", 46.0, 2.0, code3="FRA")
    places.add_country(session, "United States", "US", 39.8, -98.6, code3="USA")
    places.add_country(session, "Georgia", "GE", 42.3, 43.4, code3="GEO")
    places.add_region(session, "Illinois", "IL", "US", 40.0, -89.2)
    places.add_region(session, "Texas", "TX", "US", 31.0, -99.0)
    places.add_region(session, "Georgia", "GA", "US", 32.7, -83.4)
    places.add_city(session, "Paris", "FR", 48.8, 2.3, population=2100000)
    places.add_city(session, "Paris", "US", 33.66, -95.55, region_code="TX", population=25000)
    places.add_city(session, "Springfield", "US", 39.8, -89.65, region_code="IL", population=114000)
    places.add_city(session, "Chicago", "US", 41.88, -87.63, region_code="IL", population=2700000)
    places.add_city(session, "New York", "US", 40.71, -74.0, region_code="NY", population=8000000)

    streets = StreetRangesRepository()
    streets.add_range(
        session,
        street_key=normalize_street("Main St"),
        street_name="Main St",
        from_number=100,
        to_number=198,
        from_lat=39.80,
        from_lon=-89.65,
        to_lat=39.81,
        to_lon=-89.64,
        city="Springfield",
        state="IL",
        zip_code="62701",
        fips_county="17167",
    )
    streets.add_range(
        session,
        street_key=normalize_street("Main St"),
        street_name="Main St",
        from_number=198,
        to_number=100,
        from_lat=41.89,
        from_lon=-87.62,
        to_lat=41.88,
        to_lon=-87.63,
        city="Chicago",
        state="IL",
        zip_code="60601",
        fips_county="17031",
    )


@pytest.fixture
def reference_session_factory(tmp_path):
    """Session factory over a small seeded reference database."""
    engine = create_engine(f"sqlite:///{tmp_path / 'reference.db'}")
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    with factory() as session:
        _seed(session)
        session.commit()
    yield factory
    engine.dispose()
