"""Permission helpers."""
from bson import ObjectId


def member_identity_of(entry):
    """
    Normalize a member reference to a string identity.

    Accepts a raw id (str or ObjectId), a populated user document
    (``{"_id": ...}``) or a membership/split entry, as a dict or an object
    with a ``user`` attribute.
    """
    if entry is None:
        return None
    if isinstance(entry, dict):
        if "user" in entry:
            return member_identity_of(entry["user"])
        if "_id" in entry:
            return member_identity_of(entry["_id"])
        return None
    if isinstance(entry, (str, ObjectId)):
        return str(entry)
    if hasattr(entry, "user"):
        return member_identity_of(entry.user)
    return str(entry)


def same_identity(a, b):
    return a is not None and b is not None and member_identity_of(a) == member_identity_of(b)

