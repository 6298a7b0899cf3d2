"""
Batch IP and street-address lookups with per-item failure isolation.

Items are resolved one after another in input order. A failing item maps to
None and never aborts the batch. Keys are the raw input strings, so a
repeated input keeps a single entry.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from services.errors import BackendItemFailure
from services.ip_lookup import IpLocator
from services.normalizer import batch_record

logger = logging.getLogger(__name__)


def ip2location(ips: Iterable[str], locator: IpLocator) -> Dict[str, Optional[dict]]:
    output: Dict[str, Optional[dict]] = {}
    for ip in ips:
        output[ip] = batch_record(locator.locate(ip))
    return output


def geocode_street(geocoder, address: str):
    """Geocode one address, returning None for any item-level failure."""
    try:
        return geocoder.geocode(address)
    except BackendItemFailure as exc:
        logger.info("Street geocode failed for %r: %s", address, exc)
        return None


def street2location(addresses: Iterable[str], geocoder) -> Dict[str, Optional[dict]]:
    output: Dict[str, Optional[dict]] = {}
    for address in addresses:
        output[address] = batch_record(geocode_street(geocoder, address))
    return output
