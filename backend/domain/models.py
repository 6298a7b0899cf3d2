"""
Core domain models for the geocoding gateway.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class MentionKind(str, Enum):
    """Kind of place a text mention was matched against."""
    COUNTRY = "COUNTRY"
    REGION = "REGION"
    CITY = "CITY"


class PlaceType(str, Enum):
    """Place type vocabulary of the emulated annotation API."""
    COUNTRY = "Country"
    REGION = "Region"
    TOWN = "Town"


@dataclass(frozen=True)
class GazetteerEntry:
    """One named place from the gazetteer tables."""
    kind: MentionKind
    name: str
    lat: float
    lon: float
    country_code: Optional[str] = None
    region_code: Optional[str] = None
    code: Optional[str] = None
    population: int = 0


@dataclass
class MentionToken:
    """A contiguous piece of text matched to a place.

    ``end_index`` is inclusive: "Paris" at the start of a document spans 0..4.
    The type is kept as a plain value so that unexpected kinds coming from an
    extractor can be reported instead of failing at construction.
    """
    type: Union[MentionKind, str]
    lat: float
    lon: float
    start_index: int
    end_index: int
    matched_string: str
    code: Optional[str] = None


@dataclass
class MentionGroup:
    """One located mention: an ordered, non-empty list of tokens."""
    found_tokens: List[MentionToken]

    def __post_init__(self) -> None:
        if not self.found_tokens:
            raise ValueError("MentionGroup needs at least one token")

    @property
    def first(self) -> MentionToken:
        return self.found_tokens[0]

    @property
    def start_index(self) -> int:
        return self.found_tokens[0].start_index

    @property
    def end_index(self) -> int:
        return self.found_tokens[-1].end_index


@dataclass
class Place:
    """Canonical place in a rendered annotation document.

    Coordinates and text offsets are kept as display strings, matching the
    emulated API's documented types.
    """
    identifier: str
    place_type: PlaceType
    name: str
    latitude: str
    longitude: str
    start_index: str
    end_index: str
    matched_string: str


@dataclass(frozen=True)
class Envelope:
    """Top-level metadata present in every successful document response."""
    processing_time: float
    document_length: int
    version: str


@dataclass
class IpGeoRecord:
    """Location of one IP address from the IP database."""
    country_code: Optional[str] = None
    country_code3: Optional[str] = None
    country_name: Optional[str] = None
    region: Optional[str] = None
    locality: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    dma_code: Optional[int] = None
    area_code: Optional[int] = None
    postal_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StreetGeoRecord:
    """Location of one US street address."""
    street_number: str
    street_name: str
    region: Optional[str] = None
    locality: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    confidence: float = 0.0
    fips_county: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: str = "US"
    country_code3: str = "USA"
    country_name: str = "United States"

    @property
    def street_address(self) -> str:
        return f"{self.street_number} {self.street_name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country_code": self.country_code,
            "country_code3": self.country_code3,
            "country_name": self.country_name,
            "region": self.region,
            "locality": self.locality,
            "street_address": self.street_address,
            "street_number": self.street_number,
            "street_name": self.street_name,
            "confidence": self.confidence,
            "fips_county": self.fips_county,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass
class ParsedAddress:
    """Components of a free-form street address."""
    number: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
