from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from domain.models import MentionKind
from services.errors import BackendUnavailable
from services.text_locations import TextLocationExtractor


@pytest.fixture
def extractor(reference_session_factory):
    return TextLocationExtractor(reference_session_factory)


def test_single_city_mention(extractor):
    groups = extractor.find_locations_in_text("Paris is nice")
    assert len(groups) == 1
    token = groups[0].first
    assert token.type == MentionKind.CITY
    assert token.matched_string == "Paris"
    assert (token.start_index, token.end_index) == (0, 4)
    # Bare city names go to the most populous match.
    assert token.lat == 48.8


def test_city_qualified_by_region_picks_that_city(extractor):
    text = "I flew to Paris, Texas last week"
    groups = extractor.find_locations_in_text(text)
    assert len(groups) == 1
    group = groups[0]
    assert [t.type for t in group.found_tokens] == [MentionKind.CITY, MentionKind.REGION]
    assert group.first.lat == 33.66
    assert text[group.start_index : group.end_index + 1] == "Paris, Texas"


def test_mentions_come_back_in_reading_order(extractor):
    groups = extractor.find_locations_in_text("Springfield, Illinois and Chicago")
    assert [g.first.matched_string for g in groups] == ["Springfield", "Chicago"]
    assert len(groups[0].found_tokens) == 2
    assert len(groups[1].found_tokens) == 1


def test_country_wins_over_region_with_same_name(extractor):
    groups = extractor.find_locations_in_text("Georgia")
    assert groups[0].first.type == MentionKind.COUNTRY


def test_longest_name_wins(extractor):
    groups = extractor.find_locations_in_text("New York is big")
    assert len(groups) == 1
    assert groups[0].first.matched_string == "New York"
    assert groups[0].first.end_index == 7


def test_lowercase_words_are_not_candidates(extractor):
    assert extractor.find_locations_in_text("we went to paris") == []


def test_punctuation_breaks_multiword_names(extractor):
    groups = extractor.find_locations_in_text("New. York")
    assert groups == []


def test_empty_text_skips_the_database():
    factory = MagicMock()
    extractor = TextLocationExtractor(factory)
    assert extractor.find_locations_in_text("") == []
    assert extractor.find_locations_in_text("   \n") == []
    factory.assert_not_called()


def test_database_failure_is_reported_as_unavailable(reference_session_factory):
    repo = MagicMock()
    repo.lookup.side_effect = OperationalError("SELECT", {}, Exception("locked"))
    extractor = TextLocationExtractor(reference_session_factory, repository=repo)
    with pytest.raises(BackendUnavailable):
        extractor.find_locations_in_text("Paris")
