"""
Эндпоинты статистики выполнения привычек.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.core.dependencies import DBSession, OccurrenceSvc, Today
from src.api.schemas import (
    StreakSchemaRead,
    TaskBreakdownSchema,
    WeeklyCompletionDaySchema,
    WeeklySummarySchema,
)

router = APIRouter(prefix="/stats", tags=["Stats"])

OnDate = Annotated[date | None, Query(description="Любая дата недели (по умолчанию сегодня)")]


@router.get(
    "/streak",
    response_model=StreakSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Текущая серия выполненных дней",
    description="Сегодняшний незавершенный день серию не прерывает, дни без вхождений пропускаются.",
)
async def get_streak(db_session: DBSession, occurrence_service: OccurrenceSvc, today: Today) -> StreakSchemaRead:
    streak = await occurrence_service.current_streak(db_session, today=today)
    return StreakSchemaRead(today=today, current_streak=streak)


@router.get(
    "/weekly-summary",
    response_model=WeeklySummarySchema,
    status_code=status.HTTP_200_OK,
    summary="Сводка выполнения за неделю",
)
async def get_weekly_summary(
    db_session: DBSession,
    occurrence_service: OccurrenceSvc,
    today: Today,
    on_date: OnDate = None,
) -> WeeklySummarySchema:
    return await occurrence_service.weekly_summary(db_session, day=on_date or today, today=today)


@router.get(
    "/weekly-completion",
    response_model=list[WeeklyCompletionDaySchema],
    status_code=status.HTTP_200_OK,
    summary="Выполнение по дням недели",
)
async def get_weekly_completion(
    db_session: DBSession,
    occurrence_service: OccurrenceSvc,
    today: Today,
    on_date: OnDate = None,
) -> list[WeeklyCompletionDaySchema]:
    return await occurrence_service.weekly_completion(db_session, day=on_date or today)


@router.get(
    "/task-breakdown",
    response_model=TaskBreakdownSchema,
    status_code=status.HTTP_200_OK,
    summary="Сводка по привычкам за неделю",
)
async def get_task_breakdown(
    db_session: DBSession,
    occurrence_service: OccurrenceSvc,
    today: Today,
    on_date: OnDate = None,
) -> TaskBreakdownSchema:
    return await occurrence_service.task_breakdown(db_session, day=on_date or today)
