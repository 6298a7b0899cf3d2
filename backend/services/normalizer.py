"""
Map backend results onto the canonical shapes the responses are built from.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Union

from domain.models import IpGeoRecord, MentionGroup, MentionKind, Place, PlaceType, StreetGeoRecord
from services.errors import BadPlaceType, fail

_PLACE_TYPES = {
    MentionKind.COUNTRY: PlaceType.COUNTRY,
    MentionKind.REGION: PlaceType.REGION,
    MentionKind.CITY: PlaceType.TOWN,
}


def convert_mention_kind(kind) -> PlaceType:
    """Translate an extractor place kind into the API's place type."""
    try:
        return _PLACE_TYPES[MentionKind(kind)]
    except (ValueError, KeyError):
        value = getattr(kind, "value", kind)
        fail(f'Internal error - bad Geodict place type "{value}"', error_cls=BadPlaceType)


def placeholder_place() -> Place:
    """The stand-in returned when a document mentions no places at all."""
    return Place(
        identifier="0",
        place_type=PlaceType.COUNTRY,
        name="?",
        latitude="0",
        longitude="0",
        start_index="0",
        end_index="1",
        matched_string="",
    )


def places_from_mentions(text: str, groups: Sequence[MentionGroup]) -> List[Place]:
    """Build one ``Place`` per mention group, numbered by position.

    The place takes its type, name, coordinates and offsets from the group's
    first token; ``matched_string`` covers the whole group. An empty result is
    replaced by ``placeholder_place()`` so there is always a first place.
    """
    places: List[Place] = []
    for index, group in enumerate(groups):
        location = group.first
        places.append(
            Place(
                # No global place registry here; ids are only unique per response.
                identifier=str(index),
                place_type=convert_mention_kind(location.type),
                name=location.matched_string,
                latitude=str(location.lat),
                longitude=str(location.lon),
                start_index=str(location.start_index),
                end_index=str(location.end_index),
                matched_string=text[group.start_index : group.end_index + 1],
            )
        )
    if not places:
        places.append(placeholder_place())
    return places


def batch_record(record: Optional[Union[IpGeoRecord, StreetGeoRecord]]) -> Optional[dict]:
    """Serializable form of one IP or street lookup, or None when absent."""
    if record is None:
        return None
    return record.to_dict()
