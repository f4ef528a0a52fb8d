"""Conversion between plain Python values and Firestore REST typed values."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping

from wanderai.core.schemas import format_timestamp


def encode_value(value: Any) -> Dict[str, Any]:
    """Wrap ``value`` in the Firestore ``Value`` envelope for its type."""

    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(data: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {key: encode_value(item) for key, item in data.items()}


def decode_value(value: Mapping[str, Any]) -> Any:
    """Unwrap a Firestore ``Value`` envelope. Timestamps stay ISO-8601 strings."""

    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    raise ValueError(f"Unsupported Firestore value: {sorted(value)}")


def decode_fields(fields: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
    return {key: decode_value(item) for key, item in fields.items()}
