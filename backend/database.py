"""
Database Configuration Module
=============================
This module handles the MongoDB connection lifecycle and collection layout
for the CodeNote backend.

The application uses MongoDB for persistent storage of:
- Study notes, one sub-collection per user (users.<userId>.studyNotes)
- Analyzed file records (append-only)
- Quiz attempt records (append-only)

The client is created once at startup, handed to request handlers through
FastAPI dependencies, and closed on shutdown.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# MongoDB Configuration
# =====================
# MongoDB connection URL - defaults to local instance if not specified
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "CodeNote")

# Collection Layout
# =================
# Parent namespace for per-user sub-collections
USERS_COLLECTION = "users"

# Study Notes: stored under users.<userId>.studyNotes, so the owner is part of the path
NOTES_COLLECTION = "studyNotes"

# Analyzed Files: one record per file sent for analysis
ANALYZED_FILES_COLLECTION = "analyzedFiles"

# Quiz Attempts: one record per completed quiz
QUIZ_ATTEMPTS_COLLECTION = "quizAttempts"


def connect_db(url: str = None) -> AsyncIOMotorClient:
    """
    Create the Motor client.

    Motor connects lazily, so this does no I/O. Datetimes are returned
    timezone-aware (UTC).
    """
    return AsyncIOMotorClient(url or MONGODB_URL, tz_aware=True)


def user_notes_collection(db, user_id: str):
    """Return the study notes sub-collection owned by ``user_id``"""
    return db[USERS_COLLECTION][user_id][NOTES_COLLECTION]


def get_db(request: Request) -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the database handle opened at startup"""
    return request.app.state.db


# Database Initialization
# =======================

async def init_db(db):
    """
    Create indexes on the flat collections queried by ``userId``.

    Note sub-collections are already scoped to one user and need no owner index.
    Called once during application startup; failures are logged and do not
    prevent the application from starting.
    """
    try:
        await db[ANALYZED_FILES_COLLECTION].create_index([("userId", ASCENDING)])
        await db[QUIZ_ATTEMPTS_COLLECTION].create_index(
            [("userId", ASCENDING), ("completed", ASCENDING)]
        )
        logger.info("Database indexes initialized successfully")
    except Exception:
        logger.exception("Error initializing database indexes")


def close_db(client: AsyncIOMotorClient):
    """
    Gracefully close the database connection.

    Should be called during application shutdown to release connection
    resources.
    """
    client.close()
