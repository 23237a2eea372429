"""Properties and headers extraction for dumped messages."""

import base64
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from common.utils import DateTimeUtils, ValidationUtils
from dump_queue.schemas import DumpedMessage

# Serialized in this order; timestamp is handled separately.
PROPERTY_FIELDS = (
    "app_id",
    "content_encoding",
    "content_type",
    "correlation_id",
    "delivery_mode",
    "expiration",
    "message_id",
    "priority",
    "reply_to",
    "type",
    "user_id",
    "exchange",
    "routing_key",
)


def extract_properties(message: DumpedMessage) -> Dict[str, Any]:
    """
    Collect the message properties that carry a value.

    Properties that are None, empty strings or zero are left out. The
    timestamp is only included when it is set and not the epoch, and is
    rendered as a readable UTC string.

    Args:
        message: Message to describe

    Returns:
        Dictionary of property name to value
    """
    properties = message.properties
    props: Dict[str, Any] = {}

    for name in PROPERTY_FIELDS:
        value = getattr(properties, name)
        if not ValidationUtils.is_empty_equivalent(value):
            props[name] = value

    if not DateTimeUtils.is_zero_timestamp(properties.timestamp):
        props["timestamp"] = DateTimeUtils.format_message_timestamp(
            properties.timestamp
        )

    return props


def build_metadata(message: DumpedMessage) -> Dict[str, Any]:
    """Wrap properties and headers into the document written next to a body."""
    return {
        "properties": extract_properties(message),
        "headers": message.headers,
    }


def _json_default(value: Any) -> Any:
    """Render header values that json cannot encode natively."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(raw).decode("ascii")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def _sorted_keys(value: Any) -> Any:
    """Order mapping keys by their string form at every level of nesting."""
    if isinstance(value, dict):
        return {
            key: _sorted_keys(item)
            for key, item in sorted(value.items(), key=lambda pair: str(pair[0]))
        }
    if isinstance(value, (list, tuple)):
        return [_sorted_keys(item) for item in value]
    return value


def serialize_metadata(metadata: Dict[str, Any]) -> bytes:
    """
    Serialize a metadata document as indented JSON.

    Keys are sorted by their string form, so header tables mixing key types
    still serialize.

    Args:
        metadata: Document built by build_metadata

    Returns:
        UTF-8 encoded JSON with a 2-space indent and sorted keys
    """
    return json.dumps(
        _sorted_keys(metadata), indent=2, default=_json_default, ensure_ascii=False
    ).encode("utf-8")
