"""Репозиторий для работы с моделью Habit."""

from datetime import date
from typing import Any, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import DeletionException, FieldOverrideException, Habit, ProgressRecord
from src.api.repositories import BaseRepository
from src.api.schemas import HabitSchemaCreate, HabitSchemaUpdate


class HabitRepository(BaseRepository[Habit, HabitSchemaCreate, HabitSchemaUpdate]):
    """
    Репозиторий для выполнения CRUD-операций с моделью Habit.

    Наследует общие методы от BaseRepository и содержит специфичные для Habit методы.
    """

    async def get_all_habits(self, db_session: AsyncSession) -> Sequence[Habit]:
        """
        Получает все привычки без пагинации (для вычисления вхождений).

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.

        Returns:
            Sequence[Habit]: Привычки, отсортированные по дате начала и названию.
        """
        statement = select(self.model).order_by(self.model.start_date.asc(), self.model.name.asc())
        result = await db_session.execute(statement)
        habits = result.scalars().all()

        log.debug(f"Загружено {len(habits)} привычек.")
        return habits

    async def get_earliest_start_date(self, db_session: AsyncSession) -> date | None:
        """
        Возвращает самую раннюю дату начала среди всех привычек.

        Ограничивает обратный проход при подсчете серии: раньше этой даты вхождений нет.
        """
        result = await db_session.execute(select(func.min(self.model.start_date)))
        return result.scalar_one_or_none()

    async def upsert_habit(self, db_session: AsyncSession, *, habit_id: str, data: dict[str, Any]) -> Habit:
        """
        Создает привычку с заданным ID или обновляет существующую.

        Используется при импорте снимка, где ID приходят извне.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            data (dict[str, Any]): Значения полей привычки.

        Returns:
            Habit: Созданная или обновленная привычка.
        """
        habit = await self.get_by_id(db_session, obj_id=habit_id)

        if habit is None:
            return await self.create(db_session, obj_in=data, id=habit_id)

        return await self.update(db_session, db_obj=habit, obj_in=data)

    async def remove_cascade(self, db_session: AsyncSession, *, habit_id: str) -> bool:
        """
        Удаляет привычку вместе с прогрессом и исключениями.

        Порядок удаления: прогресс -> удаленные вхождения -> переопределения -> привычка.
        Все удаления выполняются в рамках одной транзакции вызывающего сервиса.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.

        Returns:
            bool: True, если привычка существовала и была удалена.
        """
        log.debug(f"Каскадное удаление привычки ID: {habit_id}")

        progress_result = await db_session.execute(delete(ProgressRecord).where(ProgressRecord.habit_id == habit_id))
        deletions_result = await db_session.execute(
            delete(DeletionException).where(DeletionException.habit_id == habit_id)
        )
        overrides_result = await db_session.execute(
            delete(FieldOverrideException).where(FieldOverrideException.habit_id == habit_id)
        )
        habit_result = await db_session.execute(delete(self.model).where(self.model.id == habit_id))

        await db_session.flush()

        log.debug(
            f"Привычка ID: {habit_id}: удалено записей прогресса {progress_result.rowcount}, "
            f"удаленных вхождений {deletions_result.rowcount}, переопределений {overrides_result.rowcount}."
        )
        return bool(habit_result.rowcount)
