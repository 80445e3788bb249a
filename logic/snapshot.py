"""
Snapshot hashing for client polling.

The snapshot ETag is the SHA-1 of the canonical JSON of the cities and
traps, so any change to either list produces a new tag.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-02-10
"""

import hashlib
import json
from typing import Any, Dict, List, Optional


def compute_etag(cities: List[Dict[str, Any]], traps: List[Dict[str, Any]]) -> str:
    """Hash the serialized cities and traps.

    Args:
        cities: City dictionaries in display order.
        traps: Trap dictionaries in slot order.

    Returns:
        Hex SHA-1 digest.
    """
    body = json.dumps(
        {"cities": cities, "traps": traps},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha1(body.encode("utf-8")).hexdigest()


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """Check an If-None-Match header against the current tag.

    Accepts quoted or bare tags, weak tags, comma separated lists and '*'.
    """
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == etag:
            return True
    return False
