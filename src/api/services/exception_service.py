"""
Сервис исключений из правила повторения.

Реализует операции над сериями вхождений:
- удаление одного вхождения (маркер удаления);
- удаление вхождения и всех следующих (усечение правила);
- изменение одного вхождения (переопределение полей);
- изменение вхождения и всех следующих (разделение серии на две привычки).

Все операции над несуществующей привычкой ничего не делают и пишут предупреждение в лог.
"""

from datetime import date, timedelta
from typing import Any
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import BadRequestException
from src.api.core.logging import api_log as log
from src.api.models import OVERRIDABLE_FIELDS, FieldOverrideException, Habit
from src.api.repositories import DeletionExceptionRepository, FieldOverrideRepository, HabitRepository
from src.api.schemas import EffectiveFieldsSchema, FieldOverrideSchemaUpdate, HabitSchemaCreate

from .base_service import BaseService


def new_habit_id() -> str:
    """Генерирует непрозрачный ID новой привычки."""
    return uuid4().hex


def habit_to_fields(habit: Habit) -> dict[str, Any]:
    """Снимок полей правила привычки в виде словаря (без ID и служебных меток времени)."""
    return {field: getattr(habit, field) for field in HabitSchemaCreate.model_fields}


def apply_override(habit: Habit, modified_fields: dict[str, Any] | None) -> EffectiveFieldsSchema:
    """
    Накладывает переопределение вхождения на поля привычки.

    Для вхождения на весь день время начала и окончания сбрасывается.

    Raises:
        ValidationError: Если поля после наложения некорректны.
    """
    base = {field: getattr(habit, field) for field in OVERRIDABLE_FIELDS}
    effective = EffectiveFieldsSchema.model_validate({**base, **(modified_fields or {})})

    if effective.is_all_day:
        effective.start_time = None
        effective.end_time = None
    return effective


def merge_habit_fields(base: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """
    Накладывает изменения на поля правила и проверяет результат схемой создания привычки.

    Args:
        base (dict[str, Any]): Текущие поля правила.
        changes (dict[str, Any]): Изменяемые поля.

    Returns:
        dict[str, Any]: Проверенные поля правила.

    Raises:
        BadRequestException: Если после объединения правило некорректно
                             (например, дата окончания раньше даты начала).
    """
    try:
        merged = HabitSchemaCreate.model_validate({**base, **changes})
    except ValidationError as exc:
        first_error = exc.errors()[0]
        raise BadRequestException(
            message=f"Некорректное правило привычки: {first_error['msg']}",
            error_type="invalid_habit_rule",
            loc=["body", *[str(part) for part in first_error.get("loc", ())]],
        ) from exc

    return merged.model_dump()


class ExceptionService(
    BaseService[
        FieldOverrideException,
        FieldOverrideRepository,
        FieldOverrideSchemaUpdate,
        FieldOverrideSchemaUpdate,
    ]
):
    """
    Сервис для управления исключениями из правила повторения.

    Каждая изменяющая операция является отдельной единицей работы:
    сервис фиксирует транзакцию при успехе и откатывает при ошибке.
    """

    def __init__(
        self,
        override_repository: FieldOverrideRepository,
        deletion_repository: DeletionExceptionRepository,
        habit_repository: HabitRepository,
    ):
        """
        Инициализирует сервис исключений.

        Args:
            override_repository (FieldOverrideRepository): Репозиторий переопределений.
            deletion_repository (DeletionExceptionRepository): Репозиторий маркеров удаления.
            habit_repository (HabitRepository): Репозиторий привычек.
        """
        super().__init__(repository=override_repository)
        self.deletion_repository = deletion_repository
        self.habit_repository = habit_repository

    async def _get_habit_or_warn(self, db_session: AsyncSession, habit_id: str, operation: str) -> Habit | None:
        """Получает привычку или пишет предупреждение, если ее нет."""
        habit = await self.habit_repository.get_by_id(db_session, obj_id=habit_id)

        if habit is None:
            log.warning(f"{operation}: привычка ID: {habit_id} не найдена, операция пропущена.")

        return habit

    async def is_deleted(self, db_session: AsyncSession, *, habit_id: str, exception_date: date) -> bool:
        """Проверяет, удалено ли вхождение привычки на дату."""
        return await self.deletion_repository.exists(db_session, habit_id=habit_id, exception_date=exception_date)

    async def mark_deleted(self, db_session: AsyncSession, *, habit_id: str, exception_date: date) -> bool:
        """
        Удаляет одно вхождение привычки ("удалить только это").

        Повторный вызов для той же даты ничего не меняет.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            exception_date (date): Дата удаляемого вхождения.

        Returns:
            bool: True, если привычка существует (маркер создан или уже был).
        """
        if await self._get_habit_or_warn(db_session, habit_id, "Удаление вхождения") is None:
            return False

        try:
            created = await self.deletion_repository.add_if_absent(
                db_session, habit_id=habit_id, exception_date=exception_date
            )
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при удалении вхождения привычки ID: {habit_id} за {exception_date}: {exc}", exc_info=True)
            raise exc

        if created:
            log.info(f"Вхождение привычки ID: {habit_id} за {exception_date} удалено.")
        return True

    async def truncate_future_from(self, db_session: AsyncSession, *, habit_id: str, from_date: date) -> Habit | None:
        """
        Удаляет вхождение и все следующие ("удалить это и все следующие").

        Дата окончания правила становится днем раньше `from_date`. Если она оказывается
        раньше даты начала, привычка удаляется полностью вместе с прогрессом и исключениями.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            from_date (date): Первая удаляемая дата.

        Returns:
            Habit | None: Усеченная привычка или None, если она удалена или не найдена.
        """
        habit = await self._get_habit_or_warn(db_session, habit_id, "Удаление следующих вхождений")
        if habit is None:
            return None

        new_end_date = from_date - timedelta(days=1)

        try:
            if new_end_date < habit.start_date:
                # Вхождений не остается: удаляем привычку целиком
                await self.habit_repository.remove_cascade(db_session, habit_id=habit_id)
                await db_session.commit()
                log.info(f"Привычка ID: {habit_id} удалена полностью (усечение до {from_date} не оставило вхождений).")
                return None

            habit = await self.habit_repository.update(db_session, db_obj=habit, obj_in={"end_date": new_end_date})
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при усечении привычки ID: {habit_id} с {from_date}: {exc}", exc_info=True)
            raise exc

        log.info(f"Привычка ID: {habit_id} усечена, новая дата окончания: {new_end_date}.")
        return habit

    async def get_override_for_date(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        exception_date: date,
    ) -> FieldOverrideException | None:
        """Получает переопределение вхождения на дату или None."""
        return await self.repository.get_for_date(db_session, habit_id=habit_id, exception_date=exception_date)

    async def save_override(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        exception_date: date,
        fields: dict[str, Any],
    ) -> FieldOverrideException | None:
        """
        Изменяет одно вхождение привычки ("изменить только это").

        Новые поля объединяются с уже сохраненным переопределением на эту дату.
        На совпадение правила повторения переопределение не влияет.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            exception_date (date): Дата вхождения.
            fields (dict[str, Any]): Переопределяемые поля (из OVERRIDABLE_FIELDS).

        Returns:
            FieldOverrideException | None: Сохраненное переопределение или None, если привычки нет.
        """
        habit = await self._get_habit_or_warn(db_session, habit_id, "Изменение вхождения")
        if habit is None:
            return None

        ignored = set(fields) - OVERRIDABLE_FIELDS
        if ignored:
            log.warning(f"Поля {sorted(ignored)} нельзя переопределить для одного вхождения, они пропущены.")

        allowed = {key: value for key, value in fields.items() if key in OVERRIDABLE_FIELDS}
        if not allowed:
            log.info(f"Изменение вхождения привычки ID: {habit_id} за {exception_date} без полей, запись не нужна.")
            return await self.get_override_for_date(db_session, habit_id=habit_id, exception_date=exception_date)

        # Проверяем вхождение целиком: сохраненные поля + новые поверх правила
        existing = await self.get_override_for_date(db_session, habit_id=habit_id, exception_date=exception_date)
        try:
            apply_override(habit, {**(existing.modified_fields if existing else {}), **allowed})
        except ValidationError as exc:
            first_error = exc.errors()[0]
            raise BadRequestException(
                message=f"Некорректное изменение вхождения: {first_error['msg']}",
                error_type="invalid_override",
                loc=["body", *[str(part) for part in first_error.get("loc", ())]],
            ) from exc

        try:
            override = await self.repository.upsert_merge(
                db_session, habit_id=habit_id, exception_date=exception_date, fields=allowed
            )
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при изменении вхождения привычки ID: {habit_id} за {exception_date}: {exc}", exc_info=True)
            raise exc

        log.info(f"Вхождение привычки ID: {habit_id} за {exception_date} изменено: {sorted(allowed)}.")
        return override

    async def split_series_at(
        self,
        db_session: AsyncSession,
        *,
        original: Habit,
        from_date: date,
        updated_fields: dict[str, Any],
    ) -> str:
        """
        Изменяет вхождение и все следующие ("изменить это и все следующие").

        Создает новую привычку с новым ID: копию исходной с наложенными изменениями
        и датой начала `from_date`. Исходная привычка заканчивается днем раньше,
        если она не закончилась еще раньше.
        Прогресс остается привязанным к исходной привычке.

        Если `from_date` не позже даты начала исходной привычки, сохранять в ней нечего:
        изменения применяются к ней самой.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            original (Habit): Исходная привычка.
            from_date (date): Первая дата новой серии.
            updated_fields (dict[str, Any]): Изменяемые поля.

        Returns:
            str: ID привычки, которая продолжает серию с `from_date`.

        Raises:
            BadRequestException: Если новое правило некорректно.
        """
        original_id = original.id
        changes = {key: value for key, value in updated_fields.items() if key != "start_date"}

        if from_date <= original.start_date:
            rule_fields = merge_habit_fields(habit_to_fields(original), changes)
            try:
                await self.habit_repository.update(db_session, db_obj=original, obj_in=rule_fields)
                await db_session.commit()
            except Exception as exc:
                await db_session.rollback()
                log.error(f"Ошибка при обновлении привычки ID: {original_id}: {exc}", exc_info=True)
                raise exc

            log.info(f"Серия привычки ID: {original_id} изменена целиком (дата {from_date} не позже начала).")
            return original_id

        new_fields = merge_habit_fields(habit_to_fields(original), {**changes, "start_date": from_date})
        new_id = new_habit_id()

        # Уже усеченная раньше серия не продлевается
        original_end = from_date - timedelta(days=1)
        if original.end_date is not None:
            original_end = min(original.end_date, original_end)

        try:
            await self.habit_repository.create(db_session, obj_in=new_fields, id=new_id)
            await self.habit_repository.update(db_session, db_obj=original, obj_in={"end_date": original_end})
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при разделении серии привычки ID: {original_id} с {from_date}: {exc}", exc_info=True)
            raise exc

        log.info(f"Серия привычки ID: {original_id} разделена с {from_date}, новая привычка ID: {new_id}.")
        return new_id
