"""
Render annotated documents in the emulated API's XML and JSON shapes.

The API distinguishes an administrative and a geographic scope and reports
document extents. Neither is computed here: both scopes and every extent
corner repeat the first place.
"""
from typing import Any, Dict, List, Optional, Sequence

from domain.models import Envelope, Place
from services.errors import make_json

XML_HEADER = """<?xml version="1.0" encoding="utf-8"?>
  <contentlocation
    xmlns:yahoo="http://www.yahooapis.com/v1/base.rng"
    xmlns:xml="http://www.w3.org/XML/1998/namespace"
    xmlns="http://wherein.yahooapis.com/v1/schema"
    xml:lang="en">
"""

# Fixed scores; nothing here measures match quality.
MATCH_TYPE = 0
WEIGHT = 1
CONFIDENCE = 10


def _cdata(value: str) -> str:
    """Wrap ``value`` in CDATA, splitting any embedded terminator."""
    return "<![CDATA[" + value.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _xml_centroid(place: Place, tag: str, indent: str) -> str:
    return (
        f"{indent}<{tag}>\n"
        f"{indent}  <latitude>{place.latitude}</latitude>\n"
        f"{indent}  <longitude>{place.longitude}</longitude>\n"
        f"{indent}</{tag}>\n"
    )


def _xml_scope(tag: str, place: Place) -> str:
    return (
        f"    <{tag}>\n"
        f"      <woeId>{place.identifier}</woeId>\n"
        f"      <type>{place.place_type.value}</type>\n"
        f"      <name>{_cdata(place.name)}</name>\n"
        f"{_xml_centroid(place, 'centroid', '      ')}"
        f"    </{tag}>\n"
    )


def _xml_extents(place: Place) -> str:
    corners = "".join(_xml_centroid(place, tag, "      ") for tag in ("center", "southWest", "northEast"))
    return f"    <extents>\n{corners}    </extents>\n"


def _xml_place_details(place: Place) -> str:
    return f"""    <placeDetails>
      <place>
        <woeId>{place.identifier}</woeId>
        <type>{place.place_type.value}</type>
        <name>{_cdata(place.name)}</name>
{_xml_centroid(place, 'centroid', '        ')}      </place>
      <matchType>{MATCH_TYPE}</matchType>
      <weight>{WEIGHT}</weight>
      <confidence>{CONFIDENCE}</confidence>
    </placeDetails>
"""


def _xml_reference(place: Place) -> str:
    return f"""      <reference>
        <woeIds>{place.identifier}</woeIds>
        <start>{place.start_index}</start>
        <end>{place.end_index}</end>
        <isPlaintextMarker>1</isPlaintextMarker>
        <text>{_cdata(place.matched_string)}</text>
        <type>plaintext</type>
        <xpath><![CDATA[]]></xpath>
      </reference>
"""


def render_xml(places: Sequence[Place], envelope: Envelope) -> str:
    first = places[0]
    parts: List[str] = [
        XML_HEADER,
        f"  <processingTime>{envelope.processing_time}</processingTime>\n",
        f"  <version>{envelope.version}</version>\n",
        f"  <documentLength>{envelope.document_length}</documentLength>\n",
        "  <document>\n",
        _xml_scope("administrativeScope", first),
        _xml_scope("geographicScope", first),
        _xml_extents(first),
    ]
    parts.extend(_xml_place_details(place) for place in places)
    parts.append("    <referenceList>\n")
    parts.extend(_xml_reference(place) for place in places)
    parts.append("    </referenceList>\n")
    parts.append("  </document>\n</contentlocation>\n")
    return "".join(parts)


def _json_point(place: Place) -> Dict[str, str]:
    return {"latitude": place.latitude, "longitude": place.longitude}


def _json_scope(place: Place) -> Dict[str, Any]:
    return {
        "woeId": place.identifier,
        "type": place.place_type.value,
        "name": place.name,
        "centroid": _json_point(place),
    }


def build_json_document(places: Sequence[Place], envelope: Envelope) -> Dict[str, Any]:
    """Build the JSON response object.

    Place details are keyed by their position ("0", "1", ...) inside
    ``document``, after the scopes, extents and reference list.
    """
    first = places[0]
    document: Dict[str, Any] = {
        "administrativeScope": _json_scope(first),
        "geographicScope": _json_scope(first),
        "extents": {
            "center": _json_point(first),
            "southWest": _json_point(first),
            "northEast": _json_point(first),
        },
        "referenceList": [],
    }
    for index, place in enumerate(places):
        document[str(index)] = {
            "placeDetails": {
                "placeId": index + 1,
                "place": _json_scope(place),
                "placeReferenceIds": index,
                "matchType": MATCH_TYPE,
                "weight": WEIGHT,
                "confidence": CONFIDENCE,
            }
        }
        document["referenceList"].append(
            {
                "reference": {
                    "woeIds": place.identifier,
                    "placeReferenceId": index + 1,
                    "placeIds": index,
                    "start": place.start_index,
                    "end": place.end_index,
                    "isPlaintextMarker": 1,
                    "text": place.matched_string,
                    "type": "plaintext",
                    "xpath": "",
                }
            }
        )
    return {
        "processingTime": str(envelope.processing_time),
        "version": envelope.version,
        "documentLength": str(envelope.document_length),
        "document": document,
    }


def render_json(places: Sequence[Place], envelope: Envelope, callback: Optional[str] = None) -> str:
    return make_json(build_json_document(places, envelope), callback)


def render(
    places: Sequence[Place],
    output_type: str,
    envelope: Envelope,
    callback: Optional[str] = None,
) -> str:
    """Serialize ``places`` as ``output_type`` ("xml" or "json").

    ``places`` must not be empty. ``callback`` only applies to JSON.
    """
    if not places:
        raise ValueError("render() needs at least one place")
    if output_type == "xml":
        return render_xml(places, envelope)
    if output_type == "json":
        return render_json(places, envelope, callback)
    raise ValueError(f"Unsupported output type {output_type!r}")
