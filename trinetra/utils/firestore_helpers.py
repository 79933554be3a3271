"""
Firestore query and document helpers shared by the services.

NOTE: For firebase_admin SDK, we use positional arguments for where().
The deprecation warning about FieldFilter is just a warning - the
functionality is still supported.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore equality queries.

    Usage:
        query = where_filter(collection, "status", "==", "active")
        query = where_filter(query, "alert_id", "==", alert_id)
    """
    return query.where(field_path, op_string, value)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a Firestore timestamp value to a timezone-aware datetime.

    Handles datetime (including DatetimeWithNanoseconds), objects exposing
    to_datetime(), and ISO strings. Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if hasattr(value, "to_datetime"):
        return to_datetime(value.to_datetime())
    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            logger.warning(f"Unparseable timestamp string: {value!r}")
            return None
    logger.warning(f"Unknown timestamp type: {type(value)}")
    return None


def snapshot_to_dict(doc) -> Optional[Dict]:
    """
    Convert a document snapshot to a plain dict with its id attached.

    Returns None when the document does not exist.
    """
    if doc is None or not getattr(doc, "exists", True):
        return None
    data = doc.to_dict()
    if data is None:
        return None
    data["id"] = doc.id
    for key in ("created_at", "updated_at", "time_missing"):
        if key in data:
            data[key] = to_datetime(data[key])
    return data
