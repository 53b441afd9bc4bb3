"""Конфигурация приложения."""

from urllib.parse import quote_plus

from pydantic import Field, computed_field

from src.core_shared.config import AppSettings


class Settings(AppSettings):
    """Основные настройки API календаря привычек."""

    # --- Статические настройки ---

    # Хост API
    API_HOST: str = "0.0.0.0"  # noqa: S104 - 0.0.0.0 необходимо для Docker контейнера
    # Порт API
    API_PORT: int = 8000

    # --- Настройки, читаемые из .env ---

    # Настройки БД
    DB_NAME: str = Field(default="habit_calendar_db", description="Название базы данных")
    DB_USER: str = Field(default="habit_calendar_user", description="Имя пользователя базы данных")
    DB_PASSWORD: str = Field(default="", description="Пароль пользователя базы данных")
    DB_HOST: str = Field(
        default="db",
        description="Имя хоста базы данных (название сервиса в Docker)",
    )
    DB_PORT: int = Field(default=5432, description="Порт хоста базы данных")
    DATABASE_URL_OVERRIDE: str | None = Field(
        default=None,
        description="Полный async URL SQLAlchemy (например, sqlite+aiosqlite:///habits.db). Имеет приоритет над DB_*",
    )
    DB_CREATE_TABLES: bool = Field(
        default=False,
        description="Создавать таблицы при старте без миграций (для локального SQLite)",
    )

    # Бизнес-константы проекта
    APP_TIMEZONE: str = Field(
        default="UTC",
        description="Часовой пояс (IANA), по которому определяется календарное 'сегодня'",
    )
    STREAK_MAX_LOOKBACK_DAYS: int = Field(
        default=4000,
        gt=0,
        description="Максимальная глубина просмотра дней назад при подсчете серии",
    )
    DEFAULT_GOAL_UNIT: str = Field(default="times", description="Единица цели по умолчанию")

    # --- Вычисляемые поля ---

    # Формируем URL основной базы данных
    @computed_field(repr=False)  # type: ignore[prop-decorator]
    @property
    def DATABASE_URL(self) -> str:
        """Собирает URL для SQLAlchemy."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE

        # Экранируем пользователя и пароль, чтобы спецсимволы не ломали URL
        encoded_user = quote_plus(self.DB_USER)
        encoded_password = quote_plus(self.DB_PASSWORD)

        return f"postgresql+psycopg://{encoded_user}:{encoded_password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"


# Создаем глобальный экземпляр настроек
settings = Settings()
