"""Модель SQLAlchemy для Habit (Привычка, правило повторения)."""

from datetime import date
from enum import Enum as PyEnum  # Чтобы не конфликтовать с sqlalchemy.Enum

from sqlalchemy import JSON, Boolean, Date, Float, Integer, String
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class RepeatFrequency(str, PyEnum):
    """Единица интервала повторения."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class HabitIcon(str, PyEnum):
    """Закрытый набор поддерживаемых иконок привычек."""

    DROPLET = "droplet"
    WALK = "walk"
    BOOK_OPEN = "book_open"
    DUMBBELL = "dumbbell"
    SUN = "sun"
    MOON = "moon"
    ZAP = "zap"
    FLAME = "flame"
    LEAF = "leaf"
    COFFEE = "coffee"
    HEART = "heart"
    FEATHER = "feather"
    BRIEFCASE = "briefcase"
    DOLLAR_SIGN = "dollar_sign"
    BED = "bed"
    UTENSILS = "utensils"
    MEDITATION = "meditation"
    CLOUD = "cloud"
    SPARKLES = "sparkles"
    MUSIC = "music"

    @classmethod
    def from_legacy_name(cls, name: str | None) -> "HabitIcon | None":
        """
        Находит иконку по имени из старого формата хранения ("BookOpen", "DollarSign").

        Returns:
            HabitIcon | None: Иконка или None, если имя не поддерживается.
        """
        if not name:
            return None

        # "BookOpen" -> "book_open"
        normalized = "".join(f"_{char.lower()}" if char.isupper() else char for char in name).lstrip("_")

        try:
            return cls(normalized)
        except ValueError:
            return None

    @property
    def legacy_name(self) -> str:
        """Имя иконки в старом формате хранения ("book_open" -> "BookOpen")."""
        return "".join(part.capitalize() for part in self.value.split("_"))


# Палитра пастельных цветов, из которой выбирается цвет привычки
PALE_COLORS: tuple[str, ...] = (
    "#FFD1DC",  # Pastel Pink
    "#FFDFD3",  # Pastel Orange
    "#FFFFD1",  # Pastel Yellow
    "#D7FFD9",  # Pastel Green
    "#D1EAFF",  # Pastel Blue
    "#E0D1FF",  # Pastel Purple
    "#F5F5F5",  # Pastel Gray
    "#FFD6C9",  # Peach
)


class Habit(Base):
    """
    Представляет привычку: правило повторения и отображаемые поля.

    Attributes:
        id: Непрозрачный строковый идентификатор, не меняется после создания.
        name: Название привычки.
        icon: Иконка из закрытого набора HabitIcon.
        color: Цвет в формате #RRGGBB.
        goal_amount: Цель на день (положительное число).
        goal_unit: Единица измерения цели (свободный текст).
        is_all_day: Привычка на весь день (без времени начала и окончания).
        start_time: Время начала "ЧЧ:ММ" (только если не на весь день).
        end_time: Время окончания "ЧЧ:ММ" (только если не на весь день).
        start_date: Дата активации правила, раньше нее вхождений нет.
        end_date: Последняя дата правила включительно, None - без ограничения.
        repeat_frequency: Единица интервала повторения.
        repeat_every: Множитель интервала (каждые N недель и т.д.), не меньше 1.
        repeat_days: Дни недели 0-6 (0 = воскресенье), учитываются только для недельных правил.
        created_at: Время создания записи (унаследовано от TimestampMixin).
        updated_at: Время последнего обновления записи (унаследовано от TimestampMixin).
    """

    __tablename__ = "habits"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[HabitIcon] = mapped_column(
        SqlEnum(HabitIcon, name="habit_icon_enum", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=HabitIcon.DROPLET,
        nullable=False,
    )
    color: Mapped[str] = mapped_column(String(16), default=PALE_COLORS[0], nullable=False)
    goal_amount: Mapped[float] = mapped_column(Float, nullable=False)
    goal_unit: Mapped[str] = mapped_column(String(64), nullable=False)
    is_all_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_time: Mapped[str | None] = mapped_column(String(5))
    end_time: Mapped[str | None] = mapped_column(String(5))
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date | None] = mapped_column(Date)
    repeat_frequency: Mapped[RepeatFrequency] = mapped_column(
        SqlEnum(
            RepeatFrequency,
            name="repeat_frequency_enum",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=RepeatFrequency.WEEK,
        nullable=False,
    )
    repeat_every: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    repeat_days: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)

    # Связанные записи по датам (прогресс, исключения) удаляются явно в HabitRepository.remove_cascade

    @property
    def is_one_time(self) -> bool:
        """Однократное событие: ежедневно, каждый 1 день, без выбранных дней недели."""
        return self.repeat_frequency == RepeatFrequency.DAY and self.repeat_every == 1 and not self.repeat_days
