"""Модель SQLAlchemy для ProgressRecord (Прогресс привычки за день)."""

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, DatedRecordMixin


class ProgressRecord(DatedRecordMixin, Base):
    """
    Прогресс привычки к цели в конкретный календарный день.

    Запись не проверяется на соответствие правилу повторения: прогресс сохраняется,
    даже если дата позже перестала быть вхождением (например, после усечения серии).

    Attributes:
        id: Первичный ключ (унаследован от DatedRecordMixin).
        habit_id: Идентификатор привычки.
        progress_date: Календарная дата.
        amount: Достигнутое количество в единицах цели привычки.
    """

    __tablename__ = "progress_records"

    habit_id: Mapped[str] = mapped_column(String(64), ForeignKey("habits.id", ondelete="CASCADE"), index=True)
    progress_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    # Одна запись прогресса на привычку в день
    __table_args__ = (UniqueConstraint("habit_id", "progress_date", name="uq_progress_per_day"),)
