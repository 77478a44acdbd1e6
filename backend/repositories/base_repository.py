from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import BSONError
from pymongo.errors import PyMongoError

from errors import ValidationError

# Exceptions raised by the driver that repositories translate into StorageError
STORE_ERRORS = (PyMongoError, BSONError)

# Fields the store owns; client data may not overwrite them
PROTECTED_FIELDS = ("_id", "id", "userId", "createdAt", "updatedAt")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as ISO-8601 UTC with millisecond precision, or None"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def check_user_id(user_id: str) -> str:
    """
    Ensure ``user_id`` can be used as a collection name segment.

    MongoDB rejects "$" and NUL anywhere in a collection name, as well as
    empty segments, so ids with a leading or trailing "." or a ".." are
    rejected too.

    Raises:
        ValidationError: If the id is empty or not usable in a collection path
    """
    if not user_id:
        raise ValidationError("userId is required.")
    if (
        "$" in user_id
        or "\x00" in user_id
        or ".." in user_id
        or user_id.startswith(".")
        or user_id.endswith(".")
    ):
        raise ValidationError("userId contains characters that are not allowed.")
    return user_id


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return the ObjectId for ``value``, or None when it is not a valid id"""
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class BaseRepository:
    """Base class for repositories backed by a Motor database handle"""

    def __init__(self, db):
        self.db = db

    @staticmethod
    def server_timestamp_update(data: Dict[str, Any], *timestamp_fields: str) -> List[dict]:
        """
        Build an update pipeline that writes ``data`` and stamps server time

        Values are wrapped in $literal so user content that happens to look
        like an expression (e.g. "$foo") is stored verbatim. All timestamp
        fields receive the same $$NOW value for the whole write.

        Args:
            data: Plain data fields to set
            timestamp_fields: Field names that receive the server timestamp

        Returns:
            Update pipeline for update_one
        """
        fields = {key: {"$literal": value} for key, value in data.items()}
        for field in timestamp_fields:
            fields[field] = "$$NOW"
        return [{"$set": fields}]

    async def insert_with_timestamps(self, collection, data: Dict[str, Any], *timestamp_fields: str) -> str:
        """
        Insert a new document whose timestamp fields are assigned by the server

        Returns:
            The generated document id as a string
        """
        doc_id = ObjectId()
        await collection.update_one(
            {"_id": doc_id},
            self.server_timestamp_update(data, *timestamp_fields),
            upsert=True,
        )
        return str(doc_id)
