"""
Эндпоинты для прогресса привычки за день.
"""

from datetime import date

from fastapi import APIRouter, status

from src.api.core.dependencies import DBSession, ProgressSvc
from src.api.schemas import ProgressSchemaRead, ProgressSchemaSet, TimerSchemaAdd

router = APIRouter(prefix="/habits/{habit_id}/progress", tags=["Progress"])


@router.get(
    "/{progress_date}",
    response_model=ProgressSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Получение прогресса привычки за день",
)
async def get_progress(
    db_session: DBSession,
    progress_service: ProgressSvc,
    habit_id: str,
    progress_date: date,
) -> ProgressSchemaRead:
    return await progress_service.get_progress_for_habit(db_session, habit_id=habit_id, progress_date=progress_date)


@router.put(
    "/{progress_date}",
    response_model=ProgressSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Установка прогресса привычки за день",
    description="Прогресс сохраняется для любой даты, даже если на нее нет вхождения.",
)
async def set_progress(
    db_session: DBSession,
    progress_service: ProgressSvc,
    habit_id: str,
    progress_date: date,
    progress_in: ProgressSchemaSet,
) -> ProgressSchemaRead:
    """
    Устанавливает прогресс привычки за день.

    Raises:
        NotFoundException: Если привычка не найдена.
    """
    return await progress_service.set_progress(
        db_session, habit_id=habit_id, progress_date=progress_date, amount=progress_in.amount
    )


@router.post(
    "/{progress_date}/timer",
    response_model=ProgressSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Добавление времени таймера к прогрессу",
    description="Переводит секунды таймера в единицу цели привычки (часы, минуты, секунды) и добавляет к прогрессу.",
)
async def add_timer_progress(
    db_session: DBSession,
    progress_service: ProgressSvc,
    habit_id: str,
    progress_date: date,
    timer_in: TimerSchemaAdd,
) -> ProgressSchemaRead:
    """
    Добавляет время таймера к прогрессу.

    Raises:
        NotFoundException: Если привычка не найдена.
        BadRequestException: Если единица цели не является единицей времени.
    """
    return await progress_service.add_elapsed_time(
        db_session, habit_id=habit_id, progress_date=progress_date, elapsed_seconds=timer_in.elapsed_seconds
    )
