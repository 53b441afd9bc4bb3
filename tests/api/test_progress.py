import pytest
from httpx import AsyncClient
from starlette import status

from .conftest import CreateHabit

pytestmark = pytest.mark.asyncio


async def test_progress_defaults_to_zero(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit(goal_amount=5)

    response = await test_client.get(f"/api/v1/habits/{habit['id']}/progress/2024-03-05")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "habit_id": habit["id"],
        "progress_date": "2024-03-05",
        "amount": 0,
        "goal_amount": 5,
        "progress_percent": 0,
        "is_completed": False,
    }


async def test_set_progress_and_completion(test_client: AsyncClient, create_habit: CreateHabit):
    """Выполнение определяется достижением цели: 5 из 5 - выполнено, 4 из 5 - нет."""
    habit = await create_habit(goal_amount=5)
    url = f"/api/v1/habits/{habit['id']}/progress/2024-03-05"

    response = await test_client.put(url, json={"amount": 5})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_completed"] is True
    assert response.json()["progress_percent"] == 100

    response = await test_client.put(url, json={"amount": 4})
    assert response.json()["is_completed"] is False
    assert response.json()["progress_percent"] == 80

    # Значение перезаписывается, а не суммируется
    response = await test_client.get(url)
    assert response.json()["amount"] == 4


async def test_progress_percent_is_capped(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit(goal_amount=2)

    response = await test_client.put(f"/api/v1/habits/{habit['id']}/progress/2024-03-05", json={"amount": 7})

    assert response.json()["progress_percent"] == 100


async def test_progress_for_non_occurrence_date(test_client: AsyncClient, create_habit: CreateHabit):
    """Прогресс сохраняется даже для даты без вхождения."""
    habit = await create_habit(repeat_days=[1])  # Только понедельники

    response = await test_client.put(f"/api/v1/habits/{habit['id']}/progress/2024-03-05", json={"amount": 1})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["amount"] == 1


async def test_progress_uses_override_goal(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit(goal_amount=5)
    await test_client.put(f"/api/v1/habits/{habit['id']}/overrides/2024-03-05", json={"goal_amount": 2})

    response = await test_client.put(f"/api/v1/habits/{habit['id']}/progress/2024-03-05", json={"amount": 2})

    assert response.json()["goal_amount"] == 2
    assert response.json()["is_completed"] is True


async def test_progress_validation(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()

    response = await test_client.put(f"/api/v1/habits/{habit['id']}/progress/2024-03-05", json={"amount": -1})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_progress_habit_not_found(test_client: AsyncClient):
    response = await test_client.put("/api/v1/habits/missing/progress/2024-03-05", json={"amount": 1})

    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.parametrize(
    ("goal_unit", "elapsed_seconds", "expected"),
    [
        ("minutes", 90, 2),
        ("min", 150, 3),
        ("hours", 5400, 1.5),
        ("Hrs", 600, 0.2),
        ("seconds", 42, 42),
    ],
)
async def test_timer_adds_converted_time(
    test_client: AsyncClient,
    create_habit: CreateHabit,
    goal_unit: str,
    elapsed_seconds: int,
    expected: float,
):
    habit = await create_habit(goal_amount=100, goal_unit=goal_unit)

    response = await test_client.post(
        f"/api/v1/habits/{habit['id']}/progress/2024-03-05/timer", json={"elapsed_seconds": elapsed_seconds}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["amount"] == pytest.approx(expected)


async def test_timer_accumulates(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit(goal_amount=30, goal_unit="minutes")
    url = f"/api/v1/habits/{habit['id']}/progress/2024-03-05"

    await test_client.put(url, json={"amount": 10})
    response = await test_client.post(f"{url}/timer", json={"elapsed_seconds": 1200})

    assert response.json()["amount"] == 30
    assert response.json()["is_completed"] is True


async def test_timer_requires_time_unit(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit(goal_unit="glasses")

    response = await test_client.post(
        f"/api/v1/habits/{habit['id']}/progress/2024-03-05/timer", json={"elapsed_seconds": 60}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"][0]["type"] == "goal_unit_not_time"
