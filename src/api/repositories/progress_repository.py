"""Репозиторий для работы с моделью ProgressRecord."""

from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import ProgressRecord
from src.api.repositories import BaseRepository
from src.api.schemas import ProgressSchemaSet


class ProgressRepository(BaseRepository[ProgressRecord, ProgressSchemaSet, ProgressSchemaSet]):
    """
    Репозиторий для хранения прогресса привычек по дням.

    Одна запись на пару (привычка, дата). Отсутствие записи означает нулевой прогресс.
    """

    async def get_record(self, db_session: AsyncSession, *, habit_id: str, progress_date: date) -> ProgressRecord | None:
        """Получает запись прогресса привычки за день или None."""
        return await self.get_by_filter_first_or_none(
            db_session,
            self.model.habit_id == habit_id,
            self.model.progress_date == progress_date,
        )

    async def upsert_progress(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        progress_date: date,
        amount: float,
    ) -> ProgressRecord:
        """
        Устанавливает прогресс привычки за день (создает или обновляет запись).

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            progress_date (date): Календарная дата.
            amount (float): Новое значение прогресса.

        Returns:
            ProgressRecord: Сохраненная запись.
        """
        record = await self.get_record(db_session, habit_id=habit_id, progress_date=progress_date)

        if record is None:
            record = self.model(habit_id=habit_id, progress_date=progress_date, amount=amount)
            db_session.add(record)
        else:
            record.amount = amount

        await db_session.flush()

        log.debug(f"Прогресс привычки ID: {habit_id} за {progress_date} установлен: {amount}")
        return record

    async def get_progress_map(
        self,
        db_session: AsyncSession,
        *,
        start: date,
        end: date,
        habit_ids: Iterable[str] | None = None,
    ) -> dict[tuple[str, date], float]:
        """
        Загружает прогресс за интервал дат одним запросом.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            start (date): Начало интервала включительно.
            end (date): Конец интервала включительно.
            habit_ids (Iterable[str] | None): Ограничение по привычкам (None - все).

        Returns:
            dict[tuple[str, date], float]: Прогресс по ключу (ID привычки, дата).
        """
        statement = select(self.model).where(self.model.progress_date >= start, self.model.progress_date <= end)

        if habit_ids is not None:
            statement = statement.where(self.model.habit_id.in_(list(habit_ids)))

        result = await db_session.execute(statement)

        return {(record.habit_id, record.progress_date): record.amount for record in result.scalars().all()}

    async def get_all_records(self, db_session: AsyncSession) -> Sequence[ProgressRecord]:
        """Получает все записи прогресса (для экспорта)."""
        statement = select(self.model).order_by(self.model.habit_id, self.model.progress_date)
        result = await db_session.execute(statement)
        return result.scalars().all()
