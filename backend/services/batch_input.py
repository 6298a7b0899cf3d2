"""
Turn raw batch payloads into ordered lists of IPs or street addresses.
"""
from __future__ import annotations

import json
import re
from typing import List, Optional

from services.errors import MissingInput, fail

_JSON_ARRAY_CHARS = re.compile(r'["\[\]]')


def ips_list_from_string(ips_string: str, callback: Optional[str] = None) -> List[str]:
    """Split a comma-separated or JSON-array-looking string into items.

    Brackets and double quotes are stripped rather than parsed, so both
    ``1.2.3.4,5.6.7.8`` and ``["1.2.3.4","5.6.7.8"]`` are accepted. Items are
    returned exactly as they appear between the commas.
    """
    if not ips_string:
        fail("Empty string passed in as the list of IP addresses", "json", 500, callback, MissingInput)
    return _JSON_ARRAY_CHARS.sub("", ips_string).split(",")


def addresses_list_from_string(addresses_string: str, callback: Optional[str] = None) -> List[str]:
    """Read a JSON array of addresses, or treat the whole string as one address."""
    if not addresses_string:
        fail("Empty string passed in to street2location", "json", 500, callback, MissingInput)

    if addresses_string[0] != "[":
        return [addresses_string]

    try:
        result = json.loads(addresses_string)
    except ValueError as exc:
        fail(f"Could not parse the street address list: {exc}", "json", 400, callback, MissingInput)
    # Non-string items still need string keys in the output mapping.
    return [item if isinstance(item, str) else json.dumps(item) for item in result]
