import logging

from database import (
    ANALYZED_FILES_COLLECTION,
    QUIZ_ATTEMPTS_COLLECTION,
    init_db,
    user_notes_collection,
)


async def test_init_db_creates_user_indexes(fake_db, caplog):
    caplog.set_level(logging.INFO, logger="database")

    await init_db(fake_db)

    assert fake_db[ANALYZED_FILES_COLLECTION].indexes == [[("userId", 1)]]
    assert fake_db[QUIZ_ATTEMPTS_COLLECTION].indexes == [[("userId", 1), ("completed", 1)]]
    assert "Database indexes initialized successfully" in caplog.text


async def test_init_db_logs_and_continues_on_failure(fake_db, caplog):
    fake_db.failing.add(ANALYZED_FILES_COLLECTION)

    await init_db(fake_db)

    assert "Error initializing database indexes" in caplog.text
    assert fake_db[QUIZ_ATTEMPTS_COLLECTION].indexes == []


def test_user_notes_collection_path(fake_db):
    assert user_notes_collection(fake_db, "u1").name == "users.u1.studyNotes"
