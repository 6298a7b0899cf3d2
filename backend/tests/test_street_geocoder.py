from unittest.mock import MagicMock

import pytest
import requests
from sqlalchemy.exc import OperationalError

from domain.models import StreetGeoRecord
from services.batch_lookup import street2location
from services.errors import BackendItemFailure
from services.street_geocoder import (
    DatabaseStreetGeocoder,
    NominatimStreetGeocoder,
    normalize_street,
    parse_address,
)


class DummyResponse:
    def __init__(self, json_data):
        self._json = json_data

    def raise_for_status(self):
        return None

    def json(self):
        return self._json


def test_normalize_street_abbreviates():
    assert normalize_street("North Main Street") == "N MAIN ST"
    assert normalize_street("main st.") == "MAIN ST"
    assert normalize_street("Lake Shore Drive") == "LAKE SHORE DR"


def test_parse_address_components():
    parsed = parse_address("123 Main St, Springfield, IL 62701")
    assert parsed.number == "123"
    assert normalize_street(parsed.street) == "MAIN ST"
    assert parsed.city == "Springfield"
    assert parsed.state == "IL"
    assert parsed.zip_code == "62701"


@pytest.fixture
def geocoder(reference_session_factory):
    return DatabaseStreetGeocoder(reference_session_factory)


def test_database_geocode_full_match(geocoder):
    record = geocoder.geocode("150 Main Street, Springfield, IL 62701")
    assert isinstance(record, StreetGeoRecord)
    assert record.street_number == "150"
    assert record.street_name == "Main St"
    assert record.locality == "Springfield"
    assert record.region == "IL"
    assert record.fips_county == "17167"
    assert record.confidence == 1.0
    assert record.latitude == pytest.approx(39.80 + 0.01 * 50 / 98, abs=1e-6)

    data = record.to_dict()
    assert data["street_address"] == "150 Main St"
    assert (data["country_code"], data["country_code3"], data["country_name"]) == ("US", "USA", "United States")


def test_database_geocode_prefers_matching_city(geocoder):
    record = geocoder.geocode("150 Main St, Chicago, IL")
    assert record.locality == "Chicago"
    assert record.fips_county == "17031"
    # The Chicago range runs from 198 down to 100.
    assert record.latitude == pytest.approx(41.89 - 0.01 * 48 / 98, abs=1e-6)


def test_database_geocode_partial_match_lowers_confidence(geocoder):
    record = geocoder.geocode("150 Main St, Springfield, IL 60601")
    assert record.locality in ("Springfield", "Chicago")
    assert record.confidence == pytest.approx(0.8)


def test_database_geocode_no_match(geocoder):
    assert geocoder.geocode("999 Main St, Springfield, IL") is None
    assert geocoder.geocode("150 Elm St, Springfield, IL") is None


def test_database_geocode_needs_a_house_number(geocoder):
    assert geocoder.geocode("Main Street, Springfield, IL") is None


def test_database_failure_is_an_item_failure(reference_session_factory):
    repo = MagicMock()
    repo.find_ranges.side_effect = OperationalError("SELECT", {}, Exception("locked"))
    geocoder = DatabaseStreetGeocoder(reference_session_factory, repository=repo)
    with pytest.raises(BackendItemFailure):
        geocoder.geocode("150 Main St, Springfield, IL")


def test_nominatim_geocode_parses_hit():
    session = MagicMock()
    session.get.return_value = DummyResponse(
        [
            {
                "lat": "41.8781",
                "lon": "-87.6298",
                "importance": 0.62,
                "address": {
                    "house_number": "233",
                    "road": "South Wacker Drive",
                    "city": "Chicago",
                    "state": "Illinois",
                    "ISO3166-2-lvl4": "US-IL",
                    "postcode": "60606",
                },
            }
        ]
    )
    geocoder = NominatimStreetGeocoder("https://nominatim.test/search", user_agent="tests", min_interval=0, session=session)
    record = geocoder.geocode("233 S Wacker Dr, Chicago, IL")

    assert record.street_address == "233 South Wacker Drive"
    assert record.region == "IL"
    assert record.locality == "Chicago"
    assert (record.latitude, record.longitude) == (41.8781, -87.6298)
    assert record.confidence == 0.62
    _, kwargs = session.get.call_args
    assert kwargs["params"]["q"] == "233 S Wacker Dr, Chicago, IL"
    assert kwargs["headers"]["User-Agent"] == "tests"


def test_nominatim_geocode_no_results():
    session = MagicMock()
    session.get.return_value = DummyResponse([])
    geocoder = NominatimStreetGeocoder("https://nominatim.test/search", user_agent="tests", min_interval=0, session=session)
    assert geocoder.geocode("nowhere") is None


def test_nominatim_transport_error_is_an_item_failure():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("offline")
    geocoder = NominatimStreetGeocoder("https://nominatim.test/search", user_agent="tests", min_interval=0, session=session)
    with pytest.raises(BackendItemFailure):
        geocoder.geocode("233 S Wacker Dr, Chicago, IL")


def test_street_batch_isolates_failing_items():
    geocoder = MagicMock()
    good = StreetGeoRecord(street_number="1", street_name="Elm St", region="IL", locality="Springfield")

    def fake_geocode(address):
        if address == "broken":
            raise BackendItemFailure("ambiguous")
        if address == "unknown":
            return None
        return good

    geocoder.geocode.side_effect = fake_geocode
    result = street2location(["broken", "1 Elm St", "unknown"], geocoder)
    assert list(result) == ["broken", "1 Elm St", "unknown"]
    assert result["broken"] is None
    assert result["unknown"] is None
    assert result["1 Elm St"]["street_address"] == "1 Elm St"


@pytest.mark.parametrize(
    "payload",
    [
        {"error": "Unable to geocode"},
        [{"lat": "n/a", "lon": "-87.6", "address": {"house_number": "2", "road": "Elm Street"}}],
        ["not a result object"],
    ],
)
def test_nominatim_malformed_result_is_an_item_failure(payload):
    session = MagicMock()
    session.get.return_value = DummyResponse(payload)
    geocoder = NominatimStreetGeocoder("https://nominatim.test/search", user_agent="tests", min_interval=0, session=session)
    with pytest.raises(BackendItemFailure):
        geocoder.geocode("2 Elm St")


def test_nominatim_batch_survives_a_malformed_result():
    good = [{"lat": "39.78", "lon": "-89.65", "address": {"house_number": "1", "road": "Elm Street"}}]
    session = MagicMock()
    session.get.side_effect = [DummyResponse(good), DummyResponse({"error": "Unable to geocode"})]
    geocoder = NominatimStreetGeocoder("https://nominatim.test/search", user_agent="tests", min_interval=0, session=session)

    result = street2location(["1 Elm St", "2 Elm St"], geocoder)
    assert result["1 Elm St"]["street_address"] == "1 Elm Street"
    assert result["2 Elm St"] is None
