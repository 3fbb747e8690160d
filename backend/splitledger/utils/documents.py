"""Helpers for mapping between Mongo documents and JSON responses."""
from datetime import datetime, timezone

from bson import ObjectId


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_document_id(value):
    """ObjectId for valid hex ids; other identities are stored as given."""
    if value is None:
        return None
    return ObjectId(value) if ObjectId.is_valid(str(value)) else value


def isoformat(value):
    return value.isoformat() if isinstance(value, datetime) else value
