"""
Импорт и экспорт снимка хранилища "ключ-значение".

Формат снимка совпадает с раскладкой данных исходного приложения:
- `habit_tracker_events`: JSON-список привычек (поля в camelCase);
- `habit_deleted_exceptions`: JSON-объект {habitId: [дата, ...]};
- `habit_override_exceptions`: JSON-список [{eventId, date, modifiedFields}];
- `progress_{habitId}_{YYYY-MM-DD}`: число;
- `habit_tracker_completions`: устаревшая карта {"{habitId}_{дата}": число}, только для импорта.

Некорректный JSON любого ключа считается пустой коллекцией (с предупреждением в логе).
"""

import json
import re
from datetime import date
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel, to_snake
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import FieldOverrideException, Habit, HabitIcon
from src.api.repositories import (
    DeletionExceptionRepository,
    FieldOverrideRepository,
    HabitRepository,
    ProgressRepository,
)
from src.api.schemas import (
    FieldOverrideSchemaUpdate,
    HabitSchemaCreate,
    HabitSchemaUpdate,
    StorageImportResultSchema,
    StorageSnapshotSchema,
)
from src.api.utils.date_utils import parse_iso_date

from .base_service import BaseService
from .exception_service import habit_to_fields

EVENTS_KEY = "habit_tracker_events"
COMPLETIONS_KEY = "habit_tracker_completions"
DELETED_EXCEPTIONS_KEY = "habit_deleted_exceptions"
OVERRIDE_EXCEPTIONS_KEY = "habit_override_exceptions"
PROGRESS_KEY_PREFIX = "progress_"

PROGRESS_KEY_PATTERN = re.compile(r"^progress_(?P<habit_id>.+)_(?P<day>\d{4}-\d{2}-\d{2})$")
COMPLETION_KEY_PATTERN = re.compile(r"^(?P<habit_id>.+)_(?P<day>\d{4}-\d{2}-\d{2})$")

# "Без даты окончания" хранилось как 2100-01-01; после перевода в UTC дата могла сместиться на день назад
END_DATE_SENTINEL_FROM = date(2099, 12, 31)


def load_json(items: dict[str, str], key: str, default: Any) -> Any:
    """
    Разбирает JSON-значение ключа снимка.

    Returns:
        Any: Разобранное значение или `default`, если ключа нет, JSON некорректен
             или тип значения не совпадает с типом `default`.
    """
    raw = items.get(key)
    if raw is None:
        return default

    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        log.warning(f"Некорректный JSON в ключе '{key}', используется пустая коллекция.")
        return default

    if not isinstance(value, type(default)):
        log.warning(f"Неожиданный тип значения в ключе '{key}': {type(value).__name__}, используется пустая коллекция.")
        return default

    return value


def format_amount(amount: float) -> str:
    """Число прогресса в строку хранилища (целые без дробной части)."""
    return str(int(amount)) if float(amount).is_integer() else str(amount)


class StorageService(BaseService[Habit, HabitRepository, HabitSchemaCreate, HabitSchemaUpdate]):
    """
    Сервис импорта и экспорта снимка хранилища.

    Импорт выполняется одной транзакцией и работает как upsert:
    повторный импорт того же снимка не меняет данные.
    """

    def __init__(
        self,
        habit_repository: HabitRepository,
        progress_repository: ProgressRepository,
        deletion_repository: DeletionExceptionRepository,
        override_repository: FieldOverrideRepository,
    ):
        super().__init__(repository=habit_repository)
        self.progress_repository = progress_repository
        self.deletion_repository = deletion_repository
        self.override_repository = override_repository

    @staticmethod
    def _habit_from_event(event: Any) -> tuple[str, dict[str, Any]] | None:
        """
        Преобразует привычку из снимка в поля модели.

        Returns:
            tuple[str, dict[str, Any]] | None: ID и проверенные поля или None, если запись некорректна.
        """
        if not isinstance(event, dict) or not isinstance(event.get("id"), str) or not event["id"]:
            log.warning(f"Привычка без ID в снимке пропущена: {event!r}")
            return None

        habit_id = event["id"]
        fields = {to_snake(key): value for key, value in event.items() if key != "id"}

        icon_name = fields.get("icon")
        icon = HabitIcon.from_legacy_name(icon_name) if isinstance(icon_name, str) else None
        if icon is None:
            log.warning(f"Неизвестная иконка '{icon_name}' у привычки ID: {habit_id}, используется иконка по умолчанию.")
            icon = HabitIcon.DROPLET
        fields["icon"] = icon

        fields["start_date"] = parse_iso_date(fields.get("start_date"))
        end_date = parse_iso_date(fields.get("end_date"))
        fields["end_date"] = None if end_date is not None and end_date >= END_DATE_SENTINEL_FROM else end_date

        # Пустые строки времени означают отсутствие значения
        for time_field in ("start_time", "end_time"):
            if not fields.get(time_field):
                fields[time_field] = None

        try:
            habit_in = HabitSchemaCreate.model_validate(fields)
        except ValidationError as exc:
            log.warning(f"Некорректная привычка ID: {habit_id} в снимке пропущена: {exc.errors()[0]['msg']}")
            return None

        return habit_id, habit_in.model_dump()

    async def _habit_exists(self, db_session: AsyncSession, habit_id: Any, known_ids: dict[str, bool]) -> bool:
        """Проверяет существование привычки (с кешированием результата)."""
        if not isinstance(habit_id, str):
            return False

        if habit_id not in known_ids:
            known_ids[habit_id] = await self.repository.get_by_id(db_session, obj_id=habit_id) is not None

        return known_ids[habit_id]

    async def import_snapshot(
        self,
        db_session: AsyncSession,
        *,
        snapshot: StorageSnapshotSchema,
    ) -> StorageImportResultSchema:
        """
        Импортирует снимок хранилища.

        Записи исключений и прогресса для привычек, которых нет ни в снимке,
        ни в базе данных, пропускаются.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            snapshot (StorageSnapshotSchema): Снимок хранилища.

        Returns:
            StorageImportResultSchema: Количество импортированных и пропущенных записей.
        """
        items = snapshot.items
        result = StorageImportResultSchema()
        known_ids: dict[str, bool] = {}

        try:
            # Привычки
            for event in load_json(items, EVENTS_KEY, []):
                parsed = self._habit_from_event(event)
                if parsed is None:
                    result.skipped += 1
                    continue

                habit_id, fields = parsed
                await self.repository.upsert_habit(db_session, habit_id=habit_id, data=fields)
                known_ids[habit_id] = True
                result.habits += 1

            # Удаленные вхождения
            for habit_id, dates in load_json(items, DELETED_EXCEPTIONS_KEY, {}).items():
                if not await self._habit_exists(db_session, habit_id, known_ids) or not isinstance(dates, list):
                    log.warning(f"Удаленные вхождения привычки ID: {habit_id} пропущены (привычка не найдена).")
                    result.skipped += 1
                    continue

                for raw_date in dates:
                    exception_date = parse_iso_date(raw_date)
                    if exception_date is None:
                        result.skipped += 1
                        continue
                    await self.deletion_repository.add_if_absent(
                        db_session, habit_id=habit_id, exception_date=exception_date
                    )
                    result.deletions += 1

            # Переопределения вхождений
            for entry in load_json(items, OVERRIDE_EXCEPTIONS_KEY, []):
                if not await self._import_override(db_session, entry, known_ids):
                    result.skipped += 1
                    continue
                result.overrides += 1

            # Прогресс
            imported_progress: set[tuple[str, date]] = set()
            for key, value in items.items():
                match = PROGRESS_KEY_PATTERN.match(key)
                if match is None:
                    continue

                if await self._import_progress(db_session, match["habit_id"], match["day"], value, known_ids):
                    imported_progress.add((match["habit_id"], date.fromisoformat(match["day"])))
                    result.progress += 1
                else:
                    result.skipped += 1

            # Устаревшая карта выполнений: только для пар без отдельного ключа прогресса
            for key, value in load_json(items, COMPLETIONS_KEY, {}).items():
                match = COMPLETION_KEY_PATTERN.match(key)
                if match is None:
                    result.skipped += 1
                    continue

                completion_date = parse_iso_date(match["day"])
                if completion_date is None:
                    result.skipped += 1
                    continue

                pair = (match["habit_id"], completion_date)
                if pair in imported_progress:
                    continue

                if await self._import_progress(db_session, match["habit_id"], match["day"], value, known_ids):
                    result.progress += 1
                else:
                    result.skipped += 1

            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при импорте снимка хранилища: {exc}", exc_info=True)
            raise exc

        log.info(
            f"Импорт снимка завершен: привычек {result.habits}, удаленных вхождений {result.deletions}, "
            f"переопределений {result.overrides}, прогресса {result.progress}, пропущено {result.skipped}."
        )
        return result

    async def _import_override(self, db_session: AsyncSession, entry: Any, known_ids: dict[str, bool]) -> bool:
        """Импортирует одно переопределение вхождения. Возвращает False, если запись пропущена."""
        if not isinstance(entry, dict):
            return False

        habit_id = entry.get("eventId")
        exception_date = parse_iso_date(entry.get("date"))
        modified = entry.get("modifiedFields")

        if exception_date is None or not isinstance(modified, dict):
            log.warning(f"Некорректное переопределение в снимке пропущено: {entry!r}")
            return False

        if not await self._habit_exists(db_session, habit_id, known_ids):
            log.warning(f"Переопределение привычки ID: {habit_id} пропущено (привычка не найдена).")
            return False

        fields = {to_snake(key): value for key, value in modified.items()}
        if isinstance(fields.get("icon"), str):
            icon = HabitIcon.from_legacy_name(fields["icon"])
            if icon is None:
                # Неизвестная иконка в переопределении не переносится
                fields.pop("icon")
            else:
                fields["icon"] = icon.value

        try:
            changes = FieldOverrideSchemaUpdate.model_validate(fields).changes()
        except ValidationError as exc:
            log.warning(f"Некорректное переопределение привычки ID: {habit_id} пропущено: {exc.errors()[0]['msg']}")
            return False

        if not changes:
            log.warning(f"Пустое переопределение привычки ID: {habit_id} за {exception_date} пропущено.")
            return False

        await self.override_repository.upsert_merge(
            db_session, habit_id=habit_id, exception_date=exception_date, fields=changes
        )
        return True

    async def _import_progress(
        self,
        db_session: AsyncSession,
        habit_id: str,
        raw_day: str,
        raw_amount: Any,
        known_ids: dict[str, bool],
    ) -> bool:
        """Импортирует одну запись прогресса. Возвращает False, если запись пропущена."""
        try:
            progress_date = date.fromisoformat(raw_day)
            amount = float(raw_amount)
        except (TypeError, ValueError):
            log.warning(f"Некорректный прогресс привычки ID: {habit_id} за {raw_day}: {raw_amount!r}, пропущен.")
            return False

        if amount < 0 or not await self._habit_exists(db_session, habit_id, known_ids):
            log.warning(f"Прогресс привычки ID: {habit_id} за {raw_day} пропущен.")
            return False

        await self.progress_repository.upsert_progress(
            db_session, habit_id=habit_id, progress_date=progress_date, amount=amount
        )
        return True

    @staticmethod
    def _event_from_habit(habit: Habit) -> dict[str, Any]:
        """Привычка в формате снимка (camelCase, ISO-даты, без endDate для правила без окончания)."""
        fields = habit_to_fields(habit)
        event: dict[str, Any] = {"id": habit.id}

        for field, value in fields.items():
            if field == "end_date" and value is None:
                continue
            if field in ("start_time", "end_time") and value is None:
                continue
            if field == "icon":
                value = HabitIcon(value).legacy_name
            elif isinstance(value, date):
                value = value.isoformat()
            elif hasattr(value, "value"):
                value = value.value
            event[to_camel(field)] = value

        return event

    @staticmethod
    def _override_entry(override: FieldOverrideException) -> dict[str, Any]:
        modified = {}
        for field, value in (override.modified_fields or {}).items():
            if field == "icon" and isinstance(value, str):
                icon = HabitIcon.from_legacy_name(value) or HabitIcon.DROPLET
                value = icon.legacy_name
            modified[to_camel(field)] = value

        return {
            "eventId": override.habit_id,
            "date": override.exception_date.isoformat(),
            "modifiedFields": modified,
        }

    async def export_snapshot(self, db_session: AsyncSession) -> StorageSnapshotSchema:
        """
        Экспортирует все данные в снимок хранилища.

        Returns:
            StorageSnapshotSchema: Снимок с ключами привычек, исключений и прогресса.
        """
        habits = await self.repository.get_all_habits(db_session)
        markers = await self.deletion_repository.get_all_markers(db_session)
        overrides = await self.override_repository.get_all_overrides(db_session)
        records = await self.progress_repository.get_all_records(db_session)

        deleted: dict[str, list[str]] = {}
        for marker in markers:
            deleted.setdefault(marker.habit_id, []).append(marker.exception_date.isoformat())

        items = {
            EVENTS_KEY: json.dumps([self._event_from_habit(habit) for habit in habits]),
            DELETED_EXCEPTIONS_KEY: json.dumps(deleted),
            OVERRIDE_EXCEPTIONS_KEY: json.dumps([self._override_entry(override) for override in overrides]),
        }
        for record in records:
            items[f"{PROGRESS_KEY_PREFIX}{record.habit_id}_{record.progress_date.isoformat()}"] = format_amount(
                record.amount
            )

        log.info(
            f"Экспорт снимка: привычек {len(habits)}, удаленных вхождений {len(markers)}, "
            f"переопределений {len(overrides)}, прогресса {len(records)}."
        )
        return StorageSnapshotSchema(items=items)
