"""
Unwrapping of the JSON envelopes the Connect API puts around resource arrays.

The same resource can come back as a bare list, as ``{"data": [...]}``, as
``{"items": [...]}``, as ``{"details": [...]}`` or, from the search API, as a
list of ``{"type": ..., "details": {...}}`` hits. ``unwrap`` inspects a payload
once and returns the plain list of objects.
"""
import enum
from typing import Any, Dict, List, Optional


class EnvelopeShape(str, enum.Enum):
    BARE_ARRAY = "bare_array"
    DOT_DATA = "dot_data"
    DOT_ITEMS = "dot_items"
    DOT_DETAILS = "dot_details"
    DOT_DETAILS_PER_ITEM = "dot_details_per_item"


def _is_search_hit(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("details"), dict)


def _as_list(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "items", "details"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


def detect_envelope(payload: Any) -> Optional[EnvelopeShape]:
    """Return the shape of `payload`, or None if no array can be found in it."""
    if isinstance(payload, dict):
        if isinstance(payload.get("data"), list):
            shape = EnvelopeShape.DOT_DATA
        elif isinstance(payload.get("items"), list):
            shape = EnvelopeShape.DOT_ITEMS
        elif isinstance(payload.get("details"), list):
            shape = EnvelopeShape.DOT_DETAILS
        else:
            return None
    elif isinstance(payload, list):
        shape = EnvelopeShape.BARE_ARRAY
    else:
        return None
    items = _as_list(payload)
    if items and all(_is_search_hit(item) for item in items):
        return EnvelopeShape.DOT_DETAILS_PER_ITEM
    return shape


def _unwrap_search_hit(item: Dict[str, Any]) -> Dict[str, Any]:
    obj = dict(item["details"])
    obj["_searchType"] = item.get("type")
    return obj


def unwrap(payload: Any) -> List[Dict[str, Any]]:
    shape = detect_envelope(payload)
    if shape is None:
        return []
    items = _as_list(payload)
    if shape is EnvelopeShape.DOT_DETAILS_PER_ITEM:
        return [_unwrap_search_hit(item) for item in items]
    return list(items)


def filter_by_type(items: List[Dict[str, Any]], item_type: str) -> List[Dict[str, Any]]:
    # search hits carry the type on the wrapper, which unwrap() keeps as _searchType
    return [
        item
        for item in items
        if isinstance(item, dict) and (item.get("type") or item.get("_searchType")) == item_type
    ]
