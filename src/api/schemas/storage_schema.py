"""Схемы Pydantic для импорта и экспорта снимка хранилища "ключ-значение"."""

from pydantic import Field

from .base_schema import BaseSchema


class StorageSnapshotSchema(BaseSchema):
    """
    Снимок хранилища "ключ-значение" в формате исходного приложения.

    Значения - строки (как в localStorage): JSON для коллекций и число для прогресса.
    """

    items: dict[str, str] = Field(default_factory=dict, description="Пары ключ-значение хранилища")


class StorageImportResultSchema(BaseSchema):
    """Итог импорта снимка."""

    habits: int = Field(0, description="Импортировано привычек")
    deletions: int = Field(0, description="Импортировано удаленных вхождений")
    overrides: int = Field(0, description="Импортировано переопределений")
    progress: int = Field(0, description="Импортировано записей прогресса")
    skipped: int = Field(0, description="Пропущено записей (некорректные или без привычки)")
