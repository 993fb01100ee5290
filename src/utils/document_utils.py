"""
Helpers for turning MongoDB documents into JSON-safe dicts
"""

from datetime import datetime
from typing import Any

from bson import ObjectId


def serialize_document(value: Any) -> Any:
    """
    Recursively convert a chapter document for JSON responses

    ObjectIds (including join _ids inside "joins") become strings,
    datetimes become ISO 8601 strings. Other values pass through.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    return value
