"""
Street address range repository backed by SQLAlchemy/SQLite.
"""
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from repositories.models import StreetRangeORM


class StreetRangesRepository:
    """Lookups over house-number ranges along named streets."""

    def find_ranges(
        self,
        session: Session,
        street_key: str,
        number: int,
        state: Optional[str] = None,
    ) -> List[StreetRangeORM]:
        """Return ranges on ``street_key`` whose numbers contain ``number``.

        Ranges may run in either direction (from > to). When ``state`` is
        given, only ranges in that state (or with no state) are returned.
        """
        query = session.query(StreetRangeORM).filter(
            StreetRangeORM.street_key == street_key,
            or_(
                and_(StreetRangeORM.from_number <= number, StreetRangeORM.to_number >= number),
                and_(StreetRangeORM.to_number <= number, StreetRangeORM.from_number >= number),
            ),
        )
        if state:
            query = query.filter(
                or_(StreetRangeORM.state == state.upper(), StreetRangeORM.state.is_(None))
            )
        return query.order_by(StreetRangeORM.id).all()

    def add_range(
        self,
        session: Session,
        street_key: str,
        street_name: str,
        from_number: int,
        to_number: int,
        from_lat: float,
        from_lon: float,
        to_lat: float,
        to_lon: float,
        city: Optional[str] = None,
        state: Optional[str] = None,
        zip_code: Optional[str] = None,
        fips_county: Optional[str] = None,
    ) -> None:
        session.add(
            StreetRangeORM(
                street_key=street_key,
                street_name=street_name,
                from_number=from_number,
                to_number=to_number,
                from_lat=from_lat,
                from_lon=from_lon,
                to_lat=to_lat,
                to_lon=to_lon,
                city=city,
                state=state.upper() if state else None,
                zip_code=zip_code,
                fips_county=fips_county,
            )
        )
