from datetime import date
from typing import Any, AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette import status

from src.api.core.database import get_db_session
from src.api.core.dependencies import get_today
from src.api.main import app

# "Сегодня" для всех API-тестов (суббота)
FIXED_TODAY = date(2024, 3, 16)

CreateHabit = Callable[..., Awaitable[dict[str, Any]]]


# --- ФИКСТУРЫ, СПЕЦИФИЧНЫЕ ДЛЯ ТЕСТИРОВАНИЯ API ---


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest_asyncio.fixture(scope="function")
async def test_client(
    db_session_factory: async_sessionmaker[AsyncSession],
    today: date,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Создает и предоставляет тестовый клиент FastAPI для каждого API-теста.

    Каждый запрос получает новую сессию из тестовой фабрики (как в приложении),
    текущая дата зафиксирована через переопределение зависимости get_today.
    """

    # Функция для переопределения зависимости `get_db_session` в приложении
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_session_factory() as session:
            yield session

    # Применяем переопределения
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_today] = lambda: today

    # Создаем транспорт для ASGI приложения
    transport = ASGITransport(app=app)

    # Создаем асинхронный HTTP-клиент с транспортом для взаимодействия с приложением
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    # Очищаем переопределения после теста
    app.dependency_overrides.clear()


@pytest.fixture
def create_habit(test_client: AsyncClient) -> CreateHabit:
    """Фабрика привычек через API: поля по умолчанию можно переопределить именованными аргументами."""

    async def _create_habit(**overrides: Any) -> dict[str, Any]:
        payload = {
            "name": "Drink Water",
            "goal_amount": 5,
            "goal_unit": "glasses",
            "is_all_day": True,
            "start_date": "2024-01-01",
            "repeat_frequency": "week",
            "repeat_every": 1,
            "repeat_days": [0, 1, 2, 3, 4, 5, 6],
            **overrides,
        }
        response = await test_client.post("/api/v1/habits/", json=payload)
        assert response.status_code == status.HTTP_201_CREATED, response.text
        return response.json()

    return _create_habit
