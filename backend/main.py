"""
CodeNote - FastAPI Backend Server
=================================

Backend for a code-learning app that:
- Turns source files into AI-generated learning notes with quizzes
- Stores study notes per user
- Records usage statistics (analyzed files, completed quizzes)

Tech Stack:
- FastAPI: Modern Python web framework
- Groq API: LLM for learning note generation
- MongoDB (Motor): Document database for persistent storage

Project: CodeNote
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional, Union

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from analysis import analyze_file
from database import DATABASE_NAME, close_db, connect_db, get_db, init_db
from errors import (
    AnalysisTimeoutError,
    AppError,
    ConfigurationError,
    NotFoundError,
)
from repositories import NoteRepository, StatsRepository

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Server Configuration
# ====================
PORT = int(os.getenv("PORT", 4000))
APP_ENV = os.getenv("APP_ENV", "development")

# Wall-clock budget for one analysis request, longer than the LLM call's own timeout
ANALYSIS_TIMEOUT_SECONDS = 60.0

# Largest accepted request body (source files are sent inline)
MAX_BODY_BYTES = 10 * 1024 * 1024


# Application Lifespan
# ====================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the database connection on startup and close it on shutdown.
    """
    client = connect_db()
    app.state.db = client[DATABASE_NAME]
    await init_db(app.state.db)
    logger.info("Application started, database initialized")
    try:
        yield
    finally:
        close_db(client)
        logger.info("Database connection closed")


# Initialize FastAPI application
app = FastAPI(
    title="CodeNote API",
    description="AI-generated learning notes and quizzes for source files",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Configuration
# ==================
# Production only accepts the deployed frontend; everything else is local development
if APP_ENV == "production":
    allowed_origins = [os.getenv("FRONTEND_URL", "https://yourfrontend.com")]
else:
    allowed_origins = ["http://localhost:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods (GET, POST, PUT, DELETE, etc.)
    allow_headers=["*"],  # Allow all headers
)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """
    Reject requests whose declared Content-Length exceeds MAX_BODY_BYTES with 413.

    Only the Content-Length header is checked. A chunked body that declares no
    length is not capped here and is left to the server in front of the app.
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"error": "Request body is too large."})
    return await call_next(request)


# ==================== ERROR HANDLERS ====================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report the first invalid request field as a 400"""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"][1:])

    if error["type"] == "json_invalid":
        message = "Request body is not valid JSON."
    elif not field:
        message = "Request body is required."
    elif error["type"] in ("missing", "string_too_short"):
        message = f"Missing required field: {field}"
    else:
        message = f"Invalid value for field: {field}"

    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred."})


# ==================== PYDANTIC MODELS ====================

# Note Models
# ===========
class NoteCreate(BaseModel):
    """Model for creating a study note; analysis fields are passed through as-is"""
    model_config = ConfigDict(extra="allow")

    userId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    fileName: str = Field(min_length=1)


class NoteUpdate(BaseModel):
    """Model for updating a study note; userId locates the note and is not stored"""
    model_config = ConfigDict(extra="allow")

    userId: str = Field(min_length=1)


# Analysis Models
# ===============
class AnalyzeRequest(BaseModel):
    fileName: str = Field(min_length=1)
    fileContent: str = Field(min_length=1)


# Stats Models
# ============
class FileAnalysisCreate(BaseModel):
    userId: str = Field(min_length=1)
    fileName: str = Field(min_length=1)
    fileType: Optional[str] = None  # "code" or "markdown", defaults to "code"
    repoName: Optional[str] = None


class QuizCompletionCreate(BaseModel):
    userId: str = Field(min_length=1)
    noteId: str = Field(min_length=1)
    score: Union[int, float]
    totalQuestions: int


# ==================== DEPENDENCIES ====================

def get_note_repository(db=Depends(get_db)) -> NoteRepository:
    return NoteRepository(db)


def get_stats_repository(db=Depends(get_db)) -> StatsRepository:
    return StatsRepository(db)


def get_analyzer():
    """Return the coroutine function that performs a file analysis"""
    return analyze_file


# ==================== API ENDPOINTS ====================

@app.get("/health")
def health():
    """Health check endpoint"""
    return {"status": "ok"}


# ==================== NOTES ENDPOINTS ====================

@app.post("/api/note", status_code=201)
async def create_note(note: NoteCreate, notes: NoteRepository = Depends(get_note_repository)):
    """Create a study note"""
    note_id = await notes.create_note(note.model_dump())
    return {"id": note_id}


@app.get("/api/note")
async def get_notes(
    userId: str = Query(..., min_length=1),
    notes: NoteRepository = Depends(get_note_repository),
):
    """Get all notes of a user, newest first"""
    return {"notes": await notes.get_user_notes(userId)}


@app.get("/api/note/{note_id}")
async def get_note(
    note_id: str,
    userId: str = Query(..., min_length=1),
    notes: NoteRepository = Depends(get_note_repository),
):
    """Get a single note"""
    note = await notes.get_note_by_id(userId, note_id)
    if note is None:
        raise NotFoundError()
    return {"note": note}


@app.put("/api/note/{note_id}")
async def update_note(
    note_id: str,
    note_update: NoteUpdate,
    notes: NoteRepository = Depends(get_note_repository),
):
    """Update a note"""
    note_data = note_update.model_dump()
    user_id = note_data.pop("userId")
    if not await notes.update_note(user_id, note_id, note_data):
        raise NotFoundError()
    return {"success": True}


@app.delete("/api/note/{note_id}")
async def delete_note(
    note_id: str,
    userId: str = Query(..., min_length=1),
    notes: NoteRepository = Depends(get_note_repository),
):
    """Delete a note"""
    await notes.delete_note(userId, note_id)
    return {"success": True}


# ==================== ANALYSIS ENDPOINTS ====================

@app.post("/api/analyze")
async def analyze(request: AnalyzeRequest, analyzer=Depends(get_analyzer)):
    """
    Generate a learning note for a file.

    The analysis is cancelled if it does not finish within
    ANALYSIS_TIMEOUT_SECONDS, and the endpoint responds with 504.
    """
    api_key = os.getenv("GROQ_API_KEY")
    if not api_key:
        raise ConfigurationError("The Groq API key is not configured.")

    logger.info("Analysis requested: %s", request.fileName)
    start_time = time.perf_counter()

    try:
        analysis = await asyncio.wait_for(
            analyzer(api_key, request.fileName, request.fileContent),
            timeout=ANALYSIS_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        logger.warning(
            "Analysis timed out: %s (after %.1fs)",
            request.fileName,
            time.perf_counter() - start_time,
        )
        raise AnalysisTimeoutError() from e

    logger.info(
        "Analysis finished: %s (%.2fs)",
        request.fileName,
        time.perf_counter() - start_time,
    )
    return {"analysis": analysis}


# ==================== STATS ENDPOINTS ====================

@app.post("/api/stats/file-analysis", status_code=201)
async def record_file_analysis(
    request: FileAnalysisCreate,
    stats: StatsRepository = Depends(get_stats_repository),
):
    """Record that a user analyzed a file"""
    record_id = await stats.record_file_analysis(request.userId, request.model_dump())
    return {"id": record_id}


@app.post("/api/stats/quiz-completion", status_code=201)
async def record_quiz_completion(
    request: QuizCompletionCreate,
    stats: StatsRepository = Depends(get_stats_repository),
):
    """Record a completed quiz"""
    record_id = await stats.record_quiz_completion(request.userId, request.model_dump())
    return {"id": record_id}


@app.get("/api/stats")
async def get_stats(
    userId: str = Query(..., min_length=1),
    stats: StatsRepository = Depends(get_stats_repository),
):
    """Get learning statistics for a user"""
    return {"stats": await stats.get_user_stats(userId)}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=PORT)
