from .base_repository import BaseRepository
from .note_repository import NoteRepository
from .stats_repository import StatsRepository

__all__ = [
    'BaseRepository',
    'NoteRepository',
    'StatsRepository'
]
