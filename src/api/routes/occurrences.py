"""
Эндпоинты для получения вхождений привычек по датам.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.core.dependencies import DBSession, OccurrenceSvc, Today
from src.api.core.exceptions import BadRequestException
from src.api.schemas import DayOccurrencesSchema, ResolvedOccurrenceSchema

router = APIRouter(prefix="/occurrences", tags=["Occurrences"])

# Максимальная длина интервала для календаря (два месяца)
MAX_RANGE_DAYS = 62


@router.get(
    "/",
    response_model=list[ResolvedOccurrenceSchema],
    status_code=status.HTTP_200_OK,
    summary="Вхождения привычек на дату",
    description="Возвращает вхождения на дату (по умолчанию сегодня) с учетом исключений и прогресса.",
)
async def get_occurrences(
    db_session: DBSession,
    occurrence_service: OccurrenceSvc,
    today: Today,
    on_date: Annotated[date | None, Query(description="Дата (по умолчанию сегодня)")] = None,
) -> list[ResolvedOccurrenceSchema]:
    return await occurrence_service.occurrences_on(db_session, day=on_date or today)


@router.get(
    "/week",
    response_model=list[DayOccurrencesSchema],
    status_code=status.HTTP_200_OK,
    summary="Вхождения привычек за неделю",
    description="Возвращает 7 дней календарной недели (с воскресенья), содержащей дату.",
)
async def get_week_occurrences(
    db_session: DBSession,
    occurrence_service: OccurrenceSvc,
    today: Today,
    on_date: Annotated[date | None, Query(description="Любая дата недели (по умолчанию сегодня)")] = None,
) -> list[DayOccurrencesSchema]:
    return await occurrence_service.occurrences_in_week(db_session, day=on_date or today)


@router.get(
    "/range",
    response_model=list[DayOccurrencesSchema],
    status_code=status.HTTP_200_OK,
    summary="Вхождения привычек за интервал дат",
)
async def get_range_occurrences(
    db_session: DBSession,
    occurrence_service: OccurrenceSvc,
    start: Annotated[date, Query(description="Начало интервала включительно")],
    end: Annotated[date, Query(description="Конец интервала включительно")],
) -> list[DayOccurrencesSchema]:
    """
    Возвращает вхождения по дням интервала [start, end].

    Raises:
        BadRequestException: Если интервал пустой или длиннее MAX_RANGE_DAYS дней.
    """
    if end < start or (end - start).days + 1 > MAX_RANGE_DAYS:
        raise BadRequestException(
            message=f"Интервал должен быть непустым и не длиннее {MAX_RANGE_DAYS} дней.",
            error_type="invalid_date_range",
            loc=["query", "end"],
        )

    return await occurrence_service.days_in_range(db_session, start=start, end=end)
