import asyncio
import logging
from typing import Any, Callable, Dict

from database import (
    ANALYZED_FILES_COLLECTION,
    QUIZ_ATTEMPTS_COLLECTION,
    user_notes_collection,
)
from errors import StorageError, ValidationError
from serialization import to_plain_data
from .base_repository import STORE_ERRORS, BaseRepository, check_user_id
from .note_repository import NoteRepository

logger = logging.getLogger(__name__)

RECENT_NOTES_LIMIT = 3


class StatsRepository(BaseRepository):
    """Usage statistics: analyzed files, completed quizzes and per-user aggregates"""

    async def record_file_analysis(self, user_id: str, file_data: Dict[str, Any]) -> str:
        """
        Record that a user analyzed a file.

        Args:
            user_id: User who analyzed the file
            file_data: fileName plus optional fileType ("code" by default) and repoName ("" by default)

        Returns:
            The new record id
        """
        if not user_id:
            raise ValidationError("userId is required.")

        record = to_plain_data({
            "userId": user_id,
            "fileName": file_data.get("fileName"),
            "fileType": file_data.get("fileType") or "code",
            "repoName": file_data.get("repoName") or "",
        })
        try:
            return await self.insert_with_timestamps(
                self.db[ANALYZED_FILES_COLLECTION], record, "analyzedAt"
            )
        except STORE_ERRORS as e:
            logger.exception("Error recording file analysis for user %s", user_id)
            raise StorageError("Failed to record the file analysis.") from e

    async def record_quiz_completion(self, user_id: str, quiz_data: Dict[str, Any]) -> str:
        """
        Record a completed quiz attempt.

        Args:
            user_id: User who completed the quiz
            quiz_data: noteId, score and totalQuestions

        Returns:
            The new record id
        """
        if not user_id:
            raise ValidationError("userId is required.")

        record = to_plain_data({
            "userId": user_id,
            "noteId": quiz_data.get("noteId"),
            "score": quiz_data.get("score"),
            "totalQuestions": quiz_data.get("totalQuestions"),
            "completed": True,
        })
        try:
            return await self.insert_with_timestamps(
                self.db[QUIZ_ATTEMPTS_COLLECTION], record, "completedAt"
            )
        except STORE_ERRORS as e:
            logger.exception("Error recording quiz completion for user %s", user_id)
            raise StorageError("Failed to record the quiz completion.") from e

    async def _count_or_zero(self, label: str, get_collection: Callable, query: dict) -> int:
        # A missing collection or failing query counts as zero for that figure only
        try:
            return await get_collection().count_documents(query)
        except STORE_ERRORS as e:
            logger.warning("Counting %s failed, using 0: %s", label, e)
            return 0

    async def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        """
        Aggregate learning statistics for a user.

        The three counts degrade to 0 individually when their query fails; a
        failure loading the recent notes fails the whole call.

        Returns:
            dict: notesCount, completedQuizzesCount, analyzedFilesCount, recentNotes
        """
        check_user_id(user_id)
        notes_count, quizzes_count, files_count, recent_notes = await asyncio.gather(
            self._count_or_zero(
                "notes",
                lambda: user_notes_collection(self.db, user_id),
                {},
            ),
            self._count_or_zero(
                "completed quizzes",
                lambda: self.db[QUIZ_ATTEMPTS_COLLECTION],
                {"userId": user_id, "completed": True},
            ),
            self._count_or_zero(
                "analyzed files",
                lambda: self.db[ANALYZED_FILES_COLLECTION],
                {"userId": user_id},
            ),
            NoteRepository(self.db).get_recent_notes(user_id, RECENT_NOTES_LIMIT),
        )

        return {
            "notesCount": notes_count,
            "completedQuizzesCount": quizzes_count,
            "analyzedFilesCount": files_count,
            "recentNotes": recent_notes,
        }
