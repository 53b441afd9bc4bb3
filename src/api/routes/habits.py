"""
Эндпоинты для управления привычками (Habits) и отдельными вхождениями серии.
"""

from datetime import date
from typing import Annotated, Sequence

from fastapi import APIRouter, Query, status

from src.api.core.dependencies import DBSession, ExceptionSvc, HabitSvc
from src.api.core.exceptions import BadRequestException, NotFoundException
from src.api.models import FieldOverrideException, Habit
from src.api.schemas import (
    FieldOverrideSchemaRead,
    FieldOverrideSchemaUpdate,
    HabitSchemaCreate,
    HabitSchemaRead,
    HabitSchemaUpdate,
    OccurrenceScope,
)

router = APIRouter(prefix="/habits", tags=["Habits"])


@router.post(
    "/",
    response_model=HabitSchemaRead,
    status_code=status.HTTP_201_CREATED,
    summary="Создание новой привычки",
    description="Создает новую привычку (правило повторения).",
)
async def create_habit(
    db_session: DBSession,
    habit_service: HabitSvc,
    habit_in: HabitSchemaCreate,
) -> Habit:
    """
    Создает новую привычку.

    Args:
        db_session: Асинхронная сессия базы данных.
        habit_service: Сервис для работы с привычками.
        habit_in: Данные привычки (название, цель, правило повторения).

    Returns:
        Habit: Созданный объект привычки.
    """
    return await habit_service.create_habit(db_session, habit_in=habit_in)


@router.get(
    "/",
    response_model=Sequence[HabitSchemaRead],
    status_code=status.HTTP_200_OK,
    summary="Получение списка привычек",
)
async def get_habits(
    db_session: DBSession,
    habit_service: HabitSvc,
    skip: Annotated[int, Query(ge=0, description="Количество записей для пропуска (пагинация)")] = 0,
    limit: Annotated[int, Query(ge=1, le=500, description="Максимальное количество записей (пагинация)")] = 100,
) -> Sequence[Habit]:
    return await habit_service.get_habits(db_session, skip=skip, limit=limit)


@router.get(
    "/{habit_id}",
    response_model=HabitSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Получение привычки по ID",
)
async def get_habit(db_session: DBSession, habit_service: HabitSvc, habit_id: str) -> Habit:
    """
    Получает привычку по ID.

    Raises:
        NotFoundException: Если привычка не найдена.
    """
    return await habit_service.get_by_id(db_session, obj_id=habit_id)


@router.patch(
    "/{habit_id}",
    response_model=HabitSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Изменение привычки",
    description=(
        "Изменяет всю серию (scope=all), вхождение и все следующие (scope=following) "
        "или только одно вхождение (scope=this). Для following/this требуется occurrence_date."
    ),
)
async def update_habit(
    db_session: DBSession,
    habit_service: HabitSvc,
    habit_id: str,
    habit_in: HabitSchemaUpdate,
    scope: Annotated[OccurrenceScope, Query(description="Область изменения")] = OccurrenceScope.ALL,
    occurrence_date: Annotated[date | None, Query(description="Дата вхождения (для following/this)")] = None,
) -> Habit:
    """
    Изменяет привычку в заданной области.

    Args:
        db_session: Асинхронная сессия базы данных.
        habit_service: Сервис для работы с привычками.
        habit_id: ID привычки.
        habit_in: Изменяемые поля (все поля опциональны).
        scope: Область изменения (all, following, this).
        occurrence_date: Дата вхождения.

    Returns:
        Habit: Привычка, к которой относится вхождение после изменения.

    Raises:
        NotFoundException: Если привычка не найдена.
        BadRequestException: Если не передана дата вхождения или правило стало некорректным.
    """
    return await habit_service.update_habit(
        db_session,
        habit_id=habit_id,
        habit_in=habit_in,
        scope=scope,
        occurrence_date=occurrence_date,
    )


@router.post(
    "/{habit_id}/split",
    response_model=HabitSchemaRead,
    status_code=status.HTTP_201_CREATED,
    summary="Изменение вхождения и всех следующих",
    description="Разделяет серию: исходная привычка заканчивается накануне from_date, изменения получает новая.",
)
async def split_habit(
    db_session: DBSession,
    habit_service: HabitSvc,
    habit_id: str,
    habit_in: HabitSchemaUpdate,
    from_date: Annotated[date, Query(description="Первая дата новой серии")],
) -> Habit:
    return await habit_service.update_habit(
        db_session,
        habit_id=habit_id,
        habit_in=habit_in,
        scope=OccurrenceScope.FOLLOWING,
        occurrence_date=from_date,
    )


@router.put(
    "/{habit_id}/overrides/{occurrence_date}",
    response_model=FieldOverrideSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Изменение только одного вхождения",
)
async def save_override(
    db_session: DBSession,
    exception_service: ExceptionSvc,
    habit_id: str,
    occurrence_date: date,
    override_in: FieldOverrideSchemaUpdate,
) -> FieldOverrideException:
    """
    Сохраняет переопределение полей вхождения (объединяется с уже сохраненным).

    Raises:
        NotFoundException: Если привычка не найдена.
        BadRequestException: Если не передано ни одного поля или вхождение стало некорректным.
    """
    changes = override_in.changes()
    if not changes:
        raise BadRequestException(
            message="Не передано ни одного поля для изменения вхождения.",
            error_type="empty_override",
            loc=["body"],
        )

    override = await exception_service.save_override(
        db_session, habit_id=habit_id, exception_date=occurrence_date, fields=changes
    )

    if override is None:
        raise NotFoundException(message=f"Привычка с ID {habit_id} не найдена.", error_type="habit_not_found")

    return override


@router.get(
    "/{habit_id}/overrides/{occurrence_date}",
    response_model=FieldOverrideSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Получение переопределения вхождения",
)
async def get_override(
    db_session: DBSession,
    exception_service: ExceptionSvc,
    habit_id: str,
    occurrence_date: date,
) -> FieldOverrideException:
    override = await exception_service.get_override_for_date(
        db_session, habit_id=habit_id, exception_date=occurrence_date
    )

    if override is None:
        raise NotFoundException(
            message=f"Переопределение привычки ID {habit_id} за {occurrence_date} не найдено.",
            error_type="override_not_found",
        )

    return override


@router.delete(
    "/{habit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удаление привычки или ее вхождений",
    description=(
        "Удаляет всю серию (scope=all), вхождение и все следующие (scope=following) "
        "или только одно вхождение (scope=this). Для following/this требуется occurrence_date."
    ),
)
async def delete_habit(
    db_session: DBSession,
    habit_service: HabitSvc,
    habit_id: str,
    scope: Annotated[OccurrenceScope, Query(description="Область удаления")] = OccurrenceScope.ALL,
    occurrence_date: Annotated[date | None, Query(description="Дата вхождения (для following/this)")] = None,
) -> None:  # Возвращаем None, так как статус 204 No Content
    """
    Удаляет привычку в заданной области.

    Raises:
        NotFoundException: Если привычка не найдена.
        BadRequestException: Если для following/this не передана дата вхождения.
    """
    await habit_service.delete_habit(db_session, habit_id=habit_id, scope=scope, occurrence_date=occurrence_date)

    return None  # Для статуса 204 тело ответа должно быть пустым
