"""Инициализация модуля репозиториев."""

from .base_repository import BaseRepository
from .exception_repository import DeletionExceptionRepository, FieldOverrideRepository
from .habit_repository import HabitRepository
from .progress_repository import ProgressRepository

__all__ = [
    "BaseRepository",
    "HabitRepository",
    "ProgressRepository",
    "DeletionExceptionRepository",
    "FieldOverrideRepository",
]
