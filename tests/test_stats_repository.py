import pytest

from errors import StorageError, ValidationError
from repositories import NoteRepository, StatsRepository


@pytest.fixture
def stats(fake_db):
    return StatsRepository(fake_db)


async def test_record_file_analysis_applies_defaults(stats, fake_db):
    record_id = await stats.record_file_analysis("u1", {"fileName": "a.py"})

    record = fake_db["analyzedFiles"].documents[0]
    assert str(record["_id"]) == record_id
    assert record["userId"] == "u1"
    assert record["fileType"] == "code"
    assert record["repoName"] == ""
    assert record["analyzedAt"] is not None


async def test_record_file_analysis_keeps_given_values(stats, fake_db):
    await stats.record_file_analysis(
        "u1", {"fileName": "README.md", "fileType": "markdown", "repoName": "demo"}
    )
    record = fake_db["analyzedFiles"].documents[0]
    assert record["fileType"] == "markdown"
    assert record["repoName"] == "demo"


async def test_record_quiz_completion_is_always_completed(stats, fake_db):
    await stats.record_quiz_completion(
        "u1", {"noteId": "n1", "score": 4, "totalQuestions": 5}
    )
    record = fake_db["quizAttempts"].documents[0]
    assert record["completed"] is True
    assert record["score"] == 4
    assert record["totalQuestions"] == 5
    assert record["completedAt"] is not None


async def test_records_require_user_id(stats):
    with pytest.raises(ValidationError):
        await stats.record_file_analysis("", {"fileName": "a.py"})
    with pytest.raises(ValidationError):
        await stats.record_quiz_completion(None, {"noteId": "n1"})


async def test_stats_for_new_user_are_empty(stats):
    assert await stats.get_user_stats("u1") == {
        "notesCount": 0,
        "completedQuizzesCount": 0,
        "analyzedFilesCount": 0,
        "recentNotes": [],
    }


async def test_stats_aggregate_counts_and_recent_notes(stats, fake_db):
    notes = NoteRepository(fake_db)
    note_ids = [await notes.create_note({"userId": "u1", "title": f"n{i}"}) for i in range(4)]
    await notes.create_note({"userId": "u2", "title": "other"})
    await stats.record_quiz_completion("u1", {"noteId": note_ids[0], "score": 3, "totalQuestions": 5})
    await stats.record_quiz_completion("u1", {"noteId": note_ids[1], "score": 5, "totalQuestions": 5})
    await stats.record_quiz_completion("u2", {"noteId": "x", "score": 1, "totalQuestions": 5})
    await stats.record_file_analysis("u1", {"fileName": "a.py"})

    result = await stats.get_user_stats("u1")

    assert result["notesCount"] == 4
    assert result["completedQuizzesCount"] == 2
    assert result["analyzedFilesCount"] == 1
    assert [note["id"] for note in result["recentNotes"]] == note_ids[:0:-1]


async def test_failing_counts_degrade_to_zero(stats, fake_db):
    await NoteRepository(fake_db).create_note({"userId": "u1", "title": "t"})
    fake_db.failing.update({"quizAttempts", "analyzedFiles"})

    result = await stats.get_user_stats("u1")

    assert result["notesCount"] == 1
    assert result["completedQuizzesCount"] == 0
    assert result["analyzedFilesCount"] == 0
    assert len(result["recentNotes"]) == 1


async def test_failing_recent_notes_fails_the_aggregate(stats, fake_db):
    fake_db.failing.add("users.u1.studyNotes")
    with pytest.raises(StorageError):
        await stats.get_user_stats("u1")


async def test_failing_notes_count_degrades_to_zero(stats, fake_db):
    note_id = await NoteRepository(fake_db).create_note({"userId": "u1", "title": "t"})
    fake_db.failing_counts.add("users.u1.studyNotes")

    result = await stats.get_user_stats("u1")

    assert result["notesCount"] == 0
    assert [note["id"] for note in result["recentNotes"]] == [note_id]


async def test_stats_reject_unusable_user_id(stats):
    with pytest.raises(ValidationError):
        await stats.get_user_stats("user$1")
