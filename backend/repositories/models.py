"""
SQLAlchemy ORM models for the reference database.
"""
from sqlalchemy import Column, Float, Integer, String

from db import Base


class CountryORM(Base):
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_key = Column(String, nullable=False, index=True)
    code = Column(String(2), nullable=False, index=True)
    code3 = Column(String(3), nullable=True)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)


class RegionORM(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_key = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False)
    country_code = Column(String(2), nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)


class CityORM(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_key = Column(String, nullable=False, index=True)
    country_code = Column(String(2), nullable=False)
    region_code = Column(String, nullable=True)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    population = Column(Integer, nullable=False, default=0)


class StreetRangeORM(Base):
    """One side of a street segment with its house-number range (TIGER style)."""

    __tablename__ = "street_ranges"

    id = Column(Integer, primary_key=True)
    street_key = Column(String, nullable=False, index=True)
    street_name = Column(String, nullable=False)
    from_number = Column(Integer, nullable=False)
    to_number = Column(Integer, nullable=False)
    city = Column(String, nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True)
    fips_county = Column(String(5), nullable=True)
    from_lat = Column(Float, nullable=False)
    from_lon = Column(Float, nullable=False)
    to_lat = Column(Float, nullable=False)
    to_lon = Column(Float, nullable=False)
