"""Сервис для работы с привычками."""

from datetime import date
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import BadRequestException
from src.api.core.logging import api_log as log
from src.api.models import OVERRIDABLE_FIELDS, Habit
from src.api.repositories import HabitRepository
from src.api.schemas import HabitSchemaCreate, HabitSchemaUpdate, OccurrenceScope

from .base_service import BaseService
from .exception_service import ExceptionService, habit_to_fields, merge_habit_fields, new_habit_id


class HabitService(BaseService[Habit, HabitRepository, HabitSchemaCreate, HabitSchemaUpdate]):
    """
    Сервис для управления привычками.

    Отвечает за создание, чтение, изменение и удаление привычек, в том числе
    изменение и удаление отдельных вхождений серии через ExceptionService.
    """

    def __init__(self, habit_repository: HabitRepository, exception_service: ExceptionService):
        """
        Инициализирует сервис для репозитория HabitRepository.

        Args:
            habit_repository (HabitRepository): Репозиторий для работы с привычками.
            exception_service (ExceptionService): Сервис исключений из правила повторения.
        """
        super().__init__(repository=habit_repository)
        self.exception_service = exception_service

    @staticmethod
    def _require_occurrence_date(scope: OccurrenceScope, occurrence_date: date | None, action: str) -> date:
        """
        Проверяет, что для области "this"/"following" передана дата вхождения.

        Raises:
            BadRequestException: Если дата не передана.
        """
        if occurrence_date is None:
            log.warning(f"Невозможно {action} вхождение (scope={scope.value}): дата не передана.")
            raise BadRequestException(
                message=f"Невозможно {action} вхождение: не указана дата вхождения (occurrence_date).",
                error_type="occurrence_date_required",
                loc=["query", "occurrence_date"],
            )
        return occurrence_date

    async def create_habit(self, db_session: AsyncSession, *, habit_in: HabitSchemaCreate) -> Habit:
        """
        Создает новую привычку с новым ID.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_in (HabitSchemaCreate): Проверенные данные привычки.

        Returns:
            Habit: Созданная привычка.
        """
        habit_id = new_habit_id()

        try:
            habit = await self.repository.create(db_session, obj_in=habit_in, id=habit_id)
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при создании привычки '{habit_in.name}': {exc}", exc_info=True)
            raise exc

        log.info(f"Привычка '{habit.name}' (ID: {habit_id}) успешно создана.")
        return habit

    async def get_habits(self, db_session: AsyncSession, *, skip: int = 0, limit: int = 100) -> Sequence[Habit]:
        """Получает список привычек (сначала созданные раньше)."""
        return await self.get_list(db_session, skip=skip, limit=limit, sort_by="created_at")

    async def update_habit(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        habit_in: HabitSchemaUpdate,
        scope: OccurrenceScope = OccurrenceScope.ALL,
        occurrence_date: date | None = None,
    ) -> Habit:
        """
        Изменяет привычку в заданной области.

        - all: правило изменяется целиком;
        - following: серия разделяется с `occurrence_date`, изменения получает новая привычка;
        - this: изменяется только вхождение `occurrence_date` (переопределение полей).

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            habit_in (HabitSchemaUpdate): Изменяемые поля.
            scope (OccurrenceScope): Область изменения.
            occurrence_date (date | None): Дата вхождения (обязательна для following/this).

        Returns:
            Habit: Привычка, к которой относится вхождение после изменения
                   (для following - новая привычка).

        Raises:
            NotFoundException: Если привычка не найдена.
            BadRequestException: Если не передана дата вхождения или правило стало некорректным.
        """
        habit = await self.get_by_id(db_session, obj_id=habit_id)

        if scope == OccurrenceScope.THIS:
            target_date = self._require_occurrence_date(scope, occurrence_date, "изменить")
            changes = habit_in.model_dump(exclude_unset=True, mode="json")
            override_fields = {key: value for key, value in changes.items() if key in OVERRIDABLE_FIELDS}

            if len(override_fields) != len(changes):
                raise BadRequestException(
                    message=f"Для одного вхождения можно изменить только поля: {sorted(OVERRIDABLE_FIELDS)}.",
                    error_type="field_not_overridable",
                    loc=["body"],
                )

            if not override_fields:
                log.info(f"Изменение вхождения привычки ID: {habit_id} за {target_date} без полей пропущено.")
                return habit

            await self.exception_service.save_override(
                db_session, habit_id=habit_id, exception_date=target_date, fields=override_fields
            )
            return habit

        if scope == OccurrenceScope.FOLLOWING:
            target_date = self._require_occurrence_date(scope, occurrence_date, "изменить")
            new_id = await self.exception_service.split_series_at(
                db_session, original=habit, from_date=target_date, updated_fields=habit_in.changes()
            )
            return await self.get_by_id(db_session, obj_id=new_id)

        # Изменение всей серии: проверяем правило целиком после наложения изменений
        rule_fields = merge_habit_fields(habit_to_fields(habit), habit_in.changes())

        log.info(f"Обновление привычки ID: {habit_id}")
        return await self.update(db_session, db_obj=habit, obj_in=HabitSchemaUpdate(**rule_fields))

    async def delete_habit(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        scope: OccurrenceScope = OccurrenceScope.ALL,
        occurrence_date: date | None = None,
    ) -> None:
        """
        Удаляет привычку в заданной области.

        - all: привычка удаляется вместе с прогрессом и исключениями;
        - following: правило усекается до дня перед `occurrence_date`
          (если вхождений не остается, привычка удаляется полностью);
        - this: удаляется только вхождение `occurrence_date`.

        Raises:
            NotFoundException: Если привычка не найдена.
            BadRequestException: Если для following/this не передана дата вхождения.
        """
        await self.get_by_id(db_session, obj_id=habit_id)

        if scope == OccurrenceScope.THIS:
            target_date = self._require_occurrence_date(scope, occurrence_date, "удалить")
            await self.exception_service.mark_deleted(db_session, habit_id=habit_id, exception_date=target_date)
            return

        if scope == OccurrenceScope.FOLLOWING:
            target_date = self._require_occurrence_date(scope, occurrence_date, "удалить")
            await self.exception_service.truncate_future_from(db_session, habit_id=habit_id, from_date=target_date)
            return

        try:
            await self.repository.remove_cascade(db_session, habit_id=habit_id)
            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при удалении привычки ID: {habit_id}: {exc}", exc_info=True)
            raise exc

        log.info(f"Привычка ID: {habit_id} удалена вместе с прогрессом и исключениями.")
