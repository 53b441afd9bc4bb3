"""Репозитории для исключений из правила повторения."""

from datetime import date
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import DeletionException, FieldOverrideException
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema, FieldOverrideSchemaUpdate


class DeletionExceptionRepository(BaseRepository[DeletionException, BaseSchema, BaseSchema]):
    """Репозиторий маркеров удаленных вхождений."""

    async def exists(self, db_session: AsyncSession, *, habit_id: str, exception_date: date) -> bool:
        """Проверяет, удалено ли вхождение привычки на дату."""
        marker = await self.get_by_filter_first_or_none(
            db_session,
            self.model.habit_id == habit_id,
            self.model.exception_date == exception_date,
        )
        return marker is not None

    async def add_if_absent(self, db_session: AsyncSession, *, habit_id: str, exception_date: date) -> bool:
        """
        Добавляет маркер удаления, если его еще нет.

        Returns:
            bool: True, если маркер был создан, False - если уже существовал.
        """
        if await self.exists(db_session, habit_id=habit_id, exception_date=exception_date):
            log.debug(f"Вхождение привычки ID: {habit_id} за {exception_date} уже удалено.")
            return False

        db_session.add(self.model(habit_id=habit_id, exception_date=exception_date))
        await db_session.flush()
        return True

    async def get_deleted_pairs(
        self,
        db_session: AsyncSession,
        *,
        start: date,
        end: date,
    ) -> set[tuple[str, date]]:
        """Загружает удаленные вхождения за интервал дат одним запросом."""
        statement = select(self.model.habit_id, self.model.exception_date).where(
            self.model.exception_date >= start,
            self.model.exception_date <= end,
        )
        result = await db_session.execute(statement)
        return {(habit_id, exception_date) for habit_id, exception_date in result.all()}

    async def get_all_markers(self, db_session: AsyncSession) -> Sequence[DeletionException]:
        """Получает все маркеры удаления (для экспорта)."""
        statement = select(self.model).order_by(self.model.habit_id, self.model.exception_date)
        result = await db_session.execute(statement)
        return result.scalars().all()


class FieldOverrideRepository(
    BaseRepository[FieldOverrideException, FieldOverrideSchemaUpdate, FieldOverrideSchemaUpdate]
):
    """Репозиторий переопределений полей отдельных вхождений."""

    async def get_for_date(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        exception_date: date,
    ) -> FieldOverrideException | None:
        """Получает переопределение вхождения на дату или None."""
        return await self.get_by_filter_first_or_none(
            db_session,
            self.model.habit_id == habit_id,
            self.model.exception_date == exception_date,
        )

    async def upsert_merge(
        self,
        db_session: AsyncSession,
        *,
        habit_id: str,
        exception_date: date,
        fields: dict[str, Any],
    ) -> FieldOverrideException:
        """
        Сохраняет переопределение, объединяя новые поля с уже сохраненными на эту дату.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            habit_id (str): ID привычки.
            exception_date (date): Дата вхождения.
            fields (dict[str, Any]): Новые значения полей (перекрывают сохраненные).

        Returns:
            FieldOverrideException: Сохраненное переопределение.
        """
        override = await self.get_for_date(db_session, habit_id=habit_id, exception_date=exception_date)

        if override is None:
            override = self.model(habit_id=habit_id, exception_date=exception_date, modified_fields=dict(fields))
            db_session.add(override)
        else:
            # Присваиваем новый словарь, чтобы SQLAlchemy отследил изменение JSON-колонки
            override.modified_fields = {**(override.modified_fields or {}), **fields}

        await db_session.flush()
        return override

    async def get_overrides_map(
        self,
        db_session: AsyncSession,
        *,
        start: date,
        end: date,
    ) -> dict[tuple[str, date], dict[str, Any]]:
        """Загружает переопределения за интервал дат одним запросом."""
        statement = select(self.model).where(
            self.model.exception_date >= start,
            self.model.exception_date <= end,
        )
        result = await db_session.execute(statement)

        overrides: dict[tuple[str, date], dict[str, Any]] = {}
        for override in result.scalars().all():
            if not isinstance(override.modified_fields, dict):
                log.warning(
                    f"Некорректное переопределение привычки ID: {override.habit_id} за {override.exception_date}, "
                    "используется правило без изменений."
                )
                continue
            overrides[(override.habit_id, override.exception_date)] = override.modified_fields

        return overrides

    async def get_all_overrides(self, db_session: AsyncSession) -> Sequence[FieldOverrideException]:
        """Получает все переопределения (для экспорта)."""
        statement = select(self.model).order_by(self.model.habit_id, self.model.exception_date)
        result = await db_session.execute(statement)
        return result.scalars().all()
