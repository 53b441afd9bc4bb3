from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.core.config import settings
from src.api.models import Base

# Каждый тест получает свою базу SQLite в памяти: изоляция без отката транзакций
TEST_DATABASE_URL = "sqlite+aiosqlite://"


# --- ФИКСТУРА БЕЗОПАСНОСТИ ---


@pytest.fixture(scope="session", autouse=True)
def verify_test_environment():
    """
    Проверяет, что тесты запускаются с корректными настройками окружения.

    Эта фикстура выполняется автоматически перед началом тестовой сессии.
    """
    # Проверяем режим разработки
    assert settings.DEVELOPMENT is True, (
        "❌ ОШИБКА КОНФИГУРАЦИИ: Тесты должны запускаться в режиме разработки/тестирования (DEVELOPMENT=True). "
        "Проверьте настройки [tool.pytest.ini_options] в pyproject.toml"
    )

    # Проверяем, что логи тестов не пишутся в файлы
    assert settings.LOG_FILE_ENABLED is False, "❌ ОШИБКА КОНФИГУРАЦИИ: Ожидалось LOG_FILE_ENABLED=false для тестов."


# --- ГЛОБАЛЬНЫЕ ФИКСТУРЫ ДЛЯ ВСЕГО ПРОЕКТА ---


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Создает движок SQLite в памяти и таблицы по метаданным моделей."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Одно соединение на все сессии, иначе у каждой своя пустая база
    )

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def db_session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Создает фабрику асинхронных сессий с теми же параметрами, что и в приложении."""
    return async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    Предоставляет сессию БД для тестов сервисов и репозиториев.

    Сервисы сами фиксируют транзакции, поэтому сессия не оборачивается в транзакцию с откатом.
    """
    async with db_session_factory() as session:
        yield session
