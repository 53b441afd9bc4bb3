"""Инициализация модуля сервисов."""

from .base_service import BaseService
from .exception_service import ExceptionService
from .habit_service import HabitService
from .occurrence_service import OccurrenceResolver, OccurrenceService
from .progress_service import ProgressService
from .storage_service import StorageService

__all__ = [
    "BaseService",
    "ExceptionService",
    "HabitService",
    "OccurrenceResolver",
    "OccurrenceService",
    "ProgressService",
    "StorageService",
]
