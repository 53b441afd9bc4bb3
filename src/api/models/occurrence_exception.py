"""Модели SQLAlchemy для исключений из правила повторения."""

from datetime import date
from typing import Any

from sqlalchemy import JSON, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, DatedRecordMixin

# Поля привычки, которые можно переопределить для одного вхождения
OVERRIDABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "icon",
        "color",
        "goal_amount",
        "goal_unit",
        "is_all_day",
        "start_time",
        "end_time",
    }
)


class DeletionException(DatedRecordMixin, Base):
    """
    Маркер удаления одного вхождения ("удалить только это").

    Подавляет вхождение на дату, даже если правило повторения на нее совпадает.
    Не истекает и не зависит от последующих изменений правила.

    Attributes:
        habit_id: Идентификатор привычки.
        exception_date: Дата удаленного вхождения.
    """

    __tablename__ = "deletion_exceptions"

    habit_id: Mapped[str] = mapped_column(String(64), ForeignKey("habits.id", ondelete="CASCADE"), index=True)
    exception_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (UniqueConstraint("habit_id", "exception_date", name="uq_deletion_exception_per_day"),)


class FieldOverrideException(DatedRecordMixin, Base):
    """
    Переопределение полей одного вхождения ("изменить только это").

    Не влияет на совпадение правила: дата должна по-прежнему проходить проверку повторения,
    переопределяются только отображаемые поля и цель.

    Attributes:
        habit_id: Идентификатор привычки.
        exception_date: Дата вхождения.
        modified_fields: Частичный набор полей из OVERRIDABLE_FIELDS.
    """

    __tablename__ = "field_override_exceptions"

    habit_id: Mapped[str] = mapped_column(String(64), ForeignKey("habits.id", ondelete="CASCADE"), index=True)
    exception_date: Mapped[date] = mapped_column(Date, nullable=False)
    modified_fields: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    __table_args__ = (UniqueConstraint("habit_id", "exception_date", name="uq_field_override_per_day"),)
