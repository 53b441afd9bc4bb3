"""Зависимости FastAPI: сессия базы данных, репозитории, сервисы и текущая дата."""

from datetime import date
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.models import DeletionException, FieldOverrideException, Habit, ProgressRecord
from src.api.repositories import (
    DeletionExceptionRepository,
    FieldOverrideRepository,
    HabitRepository,
    ProgressRepository,
)
from src.api.services import (
    ExceptionService,
    HabitService,
    OccurrenceService,
    ProgressService,
    StorageService,
)
from src.api.utils.date_utils import get_today_date

from .config import settings
from .database import get_db_session

# --- Типизация для инъекции зависимостей ---

# Сессия базы данных
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


# --- Фабрики Репозиториев ---


def get_habit_repository() -> HabitRepository:
    return HabitRepository(Habit)


def get_progress_repository() -> ProgressRepository:
    return ProgressRepository(ProgressRecord)


def get_deletion_repository() -> DeletionExceptionRepository:
    return DeletionExceptionRepository(DeletionException)


def get_override_repository() -> FieldOverrideRepository:
    return FieldOverrideRepository(FieldOverrideException)


# Типизация для репозиториев
HabitRepo = Annotated[HabitRepository, Depends(get_habit_repository)]
ProgressRepo = Annotated[ProgressRepository, Depends(get_progress_repository)]
DeletionRepo = Annotated[DeletionExceptionRepository, Depends(get_deletion_repository)]
OverrideRepo = Annotated[FieldOverrideRepository, Depends(get_override_repository)]


# --- Фабрики Сервисов ---


def get_exception_service(
    repository: OverrideRepo,
    deletion_repository: DeletionRepo,
    habit_repository: HabitRepo,
) -> ExceptionService:
    return ExceptionService(
        override_repository=repository,
        deletion_repository=deletion_repository,
        habit_repository=habit_repository,
    )


ExceptionSvc = Annotated[ExceptionService, Depends(get_exception_service)]


# HabitService изменяет отдельные вхождения через ExceptionService
def get_habit_service(repository: HabitRepo, exception_service: ExceptionSvc) -> HabitService:
    return HabitService(habit_repository=repository, exception_service=exception_service)


def get_progress_service(
    repository: ProgressRepo,
    habit_repository: HabitRepo,
    override_repository: OverrideRepo,
) -> ProgressService:
    return ProgressService(
        progress_repository=repository,
        habit_repository=habit_repository,
        override_repository=override_repository,
    )


def get_occurrence_service(
    repository: HabitRepo,
    progress_repository: ProgressRepo,
    deletion_repository: DeletionRepo,
    override_repository: OverrideRepo,
) -> OccurrenceService:
    return OccurrenceService(
        habit_repository=repository,
        progress_repository=progress_repository,
        deletion_repository=deletion_repository,
        override_repository=override_repository,
    )


def get_storage_service(
    repository: HabitRepo,
    progress_repository: ProgressRepo,
    deletion_repository: DeletionRepo,
    override_repository: OverrideRepo,
) -> StorageService:
    return StorageService(
        habit_repository=repository,
        progress_repository=progress_repository,
        deletion_repository=deletion_repository,
        override_repository=override_repository,
    )


# Типизация для сервисов
HabitSvc = Annotated[HabitService, Depends(get_habit_service)]
ProgressSvc = Annotated[ProgressService, Depends(get_progress_service)]
OccurrenceSvc = Annotated[OccurrenceService, Depends(get_occurrence_service)]
StorageSvc = Annotated[StorageService, Depends(get_storage_service)]


# --- Текущая дата ---


def get_today() -> date:
    """Текущая дата в часовом поясе приложения (APP_TIMEZONE)."""
    return get_today_date(settings.APP_TIMEZONE)


Today = Annotated[date, Depends(get_today)]
