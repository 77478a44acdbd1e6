import logging
from typing import Any, Dict, List, Optional

from database import user_notes_collection
from errors import StorageError
from serialization import to_plain_data
from .base_repository import (
    PROTECTED_FIELDS,
    STORE_ERRORS,
    BaseRepository,
    check_user_id,
    format_timestamp,
    parse_object_id,
)

logger = logging.getLogger(__name__)


def note_helper(note: dict, user_id: str) -> dict:
    """
    Convert a stored note document to API response format.

    Replaces ObjectId with a string id, renders timestamps as ISO strings and
    re-attaches the owner, which lives in the collection path rather than the
    document itself.

    Args:
        note: MongoDB note document
        user_id: Owner of the sub-collection the note was read from

    Returns:
        dict: Note data for the API response
    """
    data = {key: value for key, value in note.items() if key != "_id"}
    return {
        "id": str(note["_id"]),
        **data,
        "userId": user_id,
        "createdAt": format_timestamp(note.get("createdAt")),
        "updatedAt": format_timestamp(note.get("updatedAt")),
    }


class NoteRepository(BaseRepository):
    """Study notes stored in one sub-collection per user"""

    def notes(self, user_id: str):
        return user_notes_collection(self.db, check_user_id(user_id))

    @staticmethod
    def _clean(note_data: Dict[str, Any]) -> Dict[str, Any]:
        data = to_plain_data(note_data)
        for field in PROTECTED_FIELDS:
            data.pop(field, None)
        return data

    async def create_note(self, note: Dict[str, Any]) -> str:
        """
        Create a study note.

        Args:
            note: Note fields including the owning ``userId``

        Returns:
            The new note id

        Raises:
            ValidationError: If userId is missing or the data cannot be stored
            StorageError: If the write fails
        """
        user_id = check_user_id(note.get("userId"))

        data = self._clean(note)
        logger.info("Saving note for user %s: %s", user_id, data.get("title"))

        try:
            return await self.insert_with_timestamps(
                self.notes(user_id), data, "createdAt", "updatedAt"
            )
        except STORE_ERRORS as e:
            logger.exception("Error creating note for user %s", user_id)
            raise StorageError("Failed to create the note.") from e

    async def get_user_notes(self, user_id: str) -> List[dict]:
        """Return all notes of a user, newest first"""
        try:
            notes = []
            async for note in self.notes(user_id).find({}).sort("createdAt", -1):
                notes.append(note_helper(note, user_id))
            return notes
        except STORE_ERRORS as e:
            logger.exception("Error listing notes for user %s", user_id)
            raise StorageError("Failed to load the notes.") from e

    async def get_recent_notes(self, user_id: str, limit: int = 3) -> List[dict]:
        try:
            cursor = self.notes(user_id).find({}).sort("createdAt", -1).limit(limit)
            return [note_helper(note, user_id) async for note in cursor]
        except STORE_ERRORS as e:
            logger.exception("Error loading recent notes for user %s", user_id)
            raise StorageError("Failed to load the recent notes.") from e

    async def get_note_by_id(self, user_id: str, note_id: str) -> Optional[dict]:
        """Return a single note, or None if it does not exist"""
        check_user_id(user_id)
        object_id = parse_object_id(note_id)
        if object_id is None:
            return None

        try:
            note = await self.notes(user_id).find_one({"_id": object_id})
        except STORE_ERRORS as e:
            logger.exception("Error loading note %s for user %s", note_id, user_id)
            raise StorageError("Failed to load the note.") from e

        return note_helper(note, user_id) if note else None

    async def update_note(self, user_id: str, note_id: str, note_data: Dict[str, Any]) -> bool:
        """
        Update a note's fields and refresh updatedAt.

        createdAt is never modified; userId, id and timestamps in ``note_data``
        are ignored.

        Returns:
            True if the note exists and was updated, False if no such note
        """
        check_user_id(user_id)
        object_id = parse_object_id(note_id)
        if object_id is None:
            return False

        data = self._clean(note_data)
        try:
            result = await self.notes(user_id).update_one(
                {"_id": object_id},
                self.server_timestamp_update(data, "updatedAt"),
            )
        except STORE_ERRORS as e:
            logger.exception("Error updating note %s for user %s", note_id, user_id)
            raise StorageError("Failed to update the note.") from e

        return result.matched_count > 0

    async def delete_note(self, user_id: str, note_id: str) -> bool:
        """Delete a note. Deleting a note that does not exist also succeeds."""
        check_user_id(user_id)
        object_id = parse_object_id(note_id)
        if object_id is None:
            return True

        try:
            await self.notes(user_id).delete_one({"_id": object_id})
        except STORE_ERRORS as e:
            logger.exception("Error deleting note %s for user %s", note_id, user_id)
            raise StorageError("Failed to delete the note.") from e
        return True
