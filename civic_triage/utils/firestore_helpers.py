"""
Firestore query helpers.

where_filter uses the keyword filter API so queries do not emit the
positional-argument deprecation warning.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from firebase_admin import firestore


def where_filter(query, field_path: str, op_string: str, value):
    """
    Usage:
        query = where_filter(collection, "citizen_id", "==", "c-1024")
        query = where_filter(query, "created_at", ">=", window_start)
    """
    return query.where(filter=firestore.FieldFilter(field_path, op_string, value))


def count_documents(query, transaction=None, limit: Optional[int] = None) -> int:
    """
    Count matching documents without fetching their fields.

    With limit set the count stops there, so callers that only need
    "at least N" do not stream the whole result.
    """
    if limit is not None:
        query = query.limit(limit)
    return sum(1 for _ in query.select([]).stream(transaction=transaction))


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a Firestore timestamp (or ISO string) to an aware UTC datetime.

    Naive values are assumed to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime) and hasattr(value, "to_datetime"):
        value = value.to_datetime()
    if not isinstance(value, datetime):
        raise TypeError(f"Unsupported timestamp type: {type(value)}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
