"""Сервис для работы с прогрессом привычек."""

from datetime import date

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import BadRequestException, NotFoundException
from src.api.core.logging import api_log as log
from src.api.models import Habit, ProgressRecord
from src.api.repositories import FieldOverrideRepository, HabitRepository, ProgressRepository
from src.api.schemas import EffectiveFieldsSchema, ProgressSchemaRead, ProgressSchemaSet
from src.api.utils.timer_utils import convert_elapsed_to_unit, is_time_unit

from .base_service import BaseService
from .exception_service import apply_override


def calculate_progress_percent(progress: float, goal_amount: float) -> float:
    """Процент выполнения цели, не больше 100."""
    if goal_amount <= 0:
        return 0.0
    return min(100.0, progress / goal_amount * 100)


class ProgressService(BaseService[ProgressRecord, ProgressRepository, ProgressSchemaSet, ProgressSchemaSet]):
    """
    Сервис для управления прогрессом привычек по дням.

    Прогресс не проверяется на соответствие правилу повторения:
    его можно сохранить и для даты, которая больше не является вхождением.
    """

    def __init__(
        self,
        progress_repository: ProgressRepository,
        habit_repository: HabitRepository,
        override_repository: FieldOverrideRepository,
    ):
        """
        Инициализирует сервис прогресса.

        Args:
            progress_repository (ProgressRepository): Репозиторий прогресса.
            habit_repository (HabitRepository): Репозиторий привычек.
            override_repository (FieldOverrideRepository): Репозиторий переопределений (цель на конкретный день).
        """
        super().__init__(repository=progress_repository)
        self.habit_repository = habit_repository
        self.override_repository = override_repository

    async def _get_habit(self, db_session: AsyncSession, habit_id: str) -> Habit:
        """
        Получает привычку или выбрасывает исключение.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        habit = await self.habit_repository.get_by_id(db_session, obj_id=habit_id)

        if habit is None:
            raise NotFoundException(message=f"Привычка с ID {habit_id} не найдена.", error_type="habit_not_found")

        return habit

    async def _effective_fields(
        self, db_session: AsyncSession, habit: Habit, progress_date: date
    ) -> EffectiveFieldsSchema:
        """Поля вхождения на день (цель, единица) с учетом переопределения."""
        override = await self.override_repository.get_for_date(
            db_session, habit_id=habit.id, exception_date=progress_date
        )

        if override and override.modified_fields:
            try:
                return apply_override(habit, override.modified_fields)
            except ValidationError:
                log.warning(f"Некорректное переопределение привычки ID: {habit.id} за {progress_date}, оно не применено.")

        return apply_override(habit, None)

    def _to_read_schema(self, habit_id: str, progress_date: date, amount: float, goal_amount: float) -> ProgressSchemaRead:
        return ProgressSchemaRead(
            habit_id=habit_id,
            progress_date=progress_date,
            amount=amount,
            goal_amount=goal_amount,
            progress_percent=calculate_progress_percent(amount, goal_amount),
            is_completed=amount >= goal_amount,
        )

    async def get_progress(self, db_session: AsyncSession, *, habit_id: str, progress_date: date) -> float:
        """Прогресс привычки за день (0, если записи нет)."""
        record = await self.repository.get_record(db_session, habit_id=habit_id, progress_date=progress_date)
        return record.amount if record else 0.0

    async def get_progress_for_habit(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        progress_date: date,
    ) -> ProgressSchemaRead:
        """
        Прогресс привычки за день вместе с целью и процентом выполнения.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        habit = await self._get_habit(db_session, habit_id)
        effective = await self._effective_fields(db_session, habit, progress_date)
        amount = await self.get_progress(db_session, habit_id=habit_id, progress_date=progress_date)

        return self._to_read_schema(habit_id, progress_date, amount, effective.goal_amount)

    async def set_progress(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        progress_date: date,
        amount: float,
    ) -> ProgressSchemaRead:
        """
        Устанавливает прогресс привычки за день.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            progress_date (date): Календарная дата.
            amount (float): Новое значение прогресса.

        Returns:
            ProgressSchemaRead: Сохраненный прогресс.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        habit = await self._get_habit(db_session, habit_id)
        effective = await self._effective_fields(db_session, habit, progress_date)

        try:
            record = await self.repository.upsert_progress(
                db_session, habit_id=habit_id, progress_date=progress_date, amount=amount
            )
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при сохранении прогресса привычки ID: {habit_id} за {progress_date}: {exc}", exc_info=True)
            raise exc

        log.info(f"Прогресс привычки ID: {habit_id} за {progress_date}: {record.amount}")
        return self._to_read_schema(habit_id, progress_date, record.amount, effective.goal_amount)

    async def add_elapsed_time(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        progress_date: date,
        elapsed_seconds: float,
    ) -> ProgressSchemaRead:
        """
        Добавляет время таймера к прогрессу привычки за день.

        Секунды переводятся в единицу цели привычки (часы, минуты или секунды).

        Raises:
            NotFoundException: Если привычка не найдена.
            BadRequestException: Если единица цели привычки не является единицей времени.
        """
        habit = await self._get_habit(db_session, habit_id)
        effective = await self._effective_fields(db_session, habit, progress_date)

        if not is_time_unit(effective.goal_unit):
            raise BadRequestException(
                message=f"Таймер недоступен: единица цели '{effective.goal_unit}' не является единицей времени.",
                error_type="goal_unit_not_time",
                loc=["path", "habit_id"],
            )

        added = convert_elapsed_to_unit(elapsed_seconds, effective.goal_unit)
        current = await self.get_progress(db_session, habit_id=habit_id, progress_date=progress_date)

        log.debug(f"Таймер привычки ID: {habit_id}: {elapsed_seconds} сек. = {added} {effective.goal_unit}")
        return await self.set_progress(db_session, habit_id=habit_id, progress_date=progress_date, amount=current + added)
