import pytest
from httpx import AsyncClient
from starlette import status

from .conftest import CreateHabit

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def test_create_habit(test_client: AsyncClient):
    """Тест создания новой привычки с полями по умолчанию."""
    payload = {
        "name": "  Read  ",
        "goal_amount": 20,
        "start_time": "09:30",
        "start_date": "2024-01-01",
        "repeat_days": [3, 1, 1],
    }

    response = await test_client.post("/api/v1/habits/", json=payload)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["id"]
    assert data["name"] == "Read"
    assert data["icon"] == "droplet"
    assert data["color"] == "#FFD1DC"
    assert data["goal_unit"] == "times"
    assert data["repeat_frequency"] == "week"
    assert data["repeat_every"] == 1
    assert data["repeat_days"] == [1, 3]
    assert data["end_date"] is None
    assert data["is_one_time"] is False


async def test_create_all_day_habit_clears_times(test_client: AsyncClient):
    """Для привычки на весь день время начала и окончания не сохраняется."""
    payload = {
        "name": "Stretch",
        "goal_amount": 1,
        "is_all_day": True,
        "start_time": "07:00",
        "end_time": "07:15",
        "start_date": "2024-01-01",
    }

    response = await test_client.post("/api/v1/habits/", json=payload)

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["start_time"] is None
    assert response.json()["end_time"] is None


async def test_create_one_time_habit(create_habit: CreateHabit):
    """Ежедневное правило с интервалом 1 без дней недели - однократное событие."""
    habit = await create_habit(repeat_frequency="day", repeat_days=[])

    assert habit["is_one_time"] is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "   "},
        {"goal_amount": 0},
        {"start_time": "9:30", "is_all_day": False},
        {"start_time": "24:00", "is_all_day": False},
        {"is_all_day": False},
        {"end_date": "2023-12-31"},
        {"repeat_days": [7]},
        {"repeat_every": 0},
        {"color": "red"},
        {"icon": "rocket"},
    ],
)
async def test_create_habit_validation_error(test_client: AsyncClient, overrides: dict):
    """Некорректные данные привычки отклоняются с ошибкой 422."""
    payload = {
        "name": "Drink Water",
        "goal_amount": 5,
        "is_all_day": True,
        "start_date": "2024-01-01",
        **overrides,
    }

    response = await test_client.post("/api/v1/habits/", json=payload)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_get_habits_list(test_client: AsyncClient, create_habit: CreateHabit):
    """Тест получения списка привычек (должен быть пуст сначала, потом 2)."""
    # Сначала список пуст
    response = await test_client.get("/api/v1/habits/")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []

    await create_habit(name="Morning Run")
    await create_habit(name="Evening Walk")

    response = await test_client.get("/api/v1/habits/")
    assert {habit["name"] for habit in response.json()} == {"Morning Run", "Evening Walk"}


async def test_get_habit_not_found(test_client: AsyncClient):
    response = await test_client.get("/api/v1/habits/missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"][0]["type"] == "habit_not_found"


async def test_update_whole_series(test_client: AsyncClient, create_habit: CreateHabit):
    """Изменение всей серии меняет правило, непереданные поля сохраняются."""
    habit = await create_habit()

    response = await test_client.patch(
        f"/api/v1/habits/{habit['id']}",
        json={"name": "Hydrate", "repeat_days": [1, 3, 5], "end_date": "2024-06-30"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == habit["id"]
    assert data["name"] == "Hydrate"
    assert data["repeat_days"] == [1, 3, 5]
    assert data["end_date"] == "2024-06-30"
    assert data["goal_amount"] == 5


async def test_update_can_clear_end_date(test_client: AsyncClient, create_habit: CreateHabit):
    """Явный null в end_date снимает ограничение правила."""
    habit = await create_habit(end_date="2024-02-01")

    response = await test_client.patch(f"/api/v1/habits/{habit['id']}", json={"end_date": None})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["end_date"] is None


async def test_update_whole_series_rejects_inconsistent_rule(test_client: AsyncClient, create_habit: CreateHabit):
    """Если после изменения дата окончания раньше даты начала, запрос отклоняется."""
    habit = await create_habit(start_date="2024-03-01")

    response = await test_client.patch(f"/api/v1/habits/{habit['id']}", json={"end_date": "2024-02-01"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"][0]["type"] == "invalid_habit_rule"

    # Привычка не изменилась
    response = await test_client.get(f"/api/v1/habits/{habit['id']}")
    assert response.json()["end_date"] is None


async def test_update_this_occurrence_only(test_client: AsyncClient, create_habit: CreateHabit):
    """Изменение одного вхождения сохраняет переопределение и не меняет правило."""
    habit = await create_habit()
    url = f"/api/v1/habits/{habit['id']}"

    response = await test_client.patch(
        url, params={"scope": "this", "occurrence_date": "2024-03-05"}, json={"goal_amount": 10}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["goal_amount"] == 5

    # Второе изменение той же даты объединяется с первым
    await test_client.patch(url, params={"scope": "this", "occurrence_date": "2024-03-05"}, json={"name": "Big day"})

    response = await test_client.get(f"{url}/overrides/2024-03-05")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["modified_fields"] == {"goal_amount": 10, "name": "Big day"}


async def test_update_this_occurrence_rejects_rule_fields(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()

    response = await test_client.patch(
        f"/api/v1/habits/{habit['id']}",
        params={"scope": "this", "occurrence_date": "2024-03-05"},
        json={"repeat_every": 2},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"][0]["type"] == "field_not_overridable"


@pytest.mark.parametrize("scope", ["this", "following"])
async def test_occurrence_scope_requires_date(test_client: AsyncClient, create_habit: CreateHabit, scope: str):
    """Для изменения и удаления отдельных вхождений нужна дата вхождения."""
    habit = await create_habit()
    url = f"/api/v1/habits/{habit['id']}"

    patch_response = await test_client.patch(url, params={"scope": scope}, json={"name": "New"})
    delete_response = await test_client.delete(url, params={"scope": scope})

    for response in (patch_response, delete_response):
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"][0]["type"] == "occurrence_date_required"


async def test_update_this_and_following_splits_series(test_client: AsyncClient, create_habit: CreateHabit):
    """Изменение вхождения и всех следующих создает новую привычку, исходная заканчивается накануне."""
    habit = await create_habit(end_date="2024-12-31")

    response = await test_client.patch(
        f"/api/v1/habits/{habit['id']}",
        params={"scope": "following", "occurrence_date": "2024-03-01"},
        json={"name": "Drink More Water", "goal_amount": 8},
    )

    assert response.status_code == status.HTTP_200_OK
    new_habit = response.json()
    assert new_habit["id"] != habit["id"]
    assert new_habit["name"] == "Drink More Water"
    assert new_habit["goal_amount"] == 8
    assert new_habit["start_date"] == "2024-03-01"
    assert new_habit["end_date"] == "2024-12-31"

    original = (await test_client.get(f"/api/v1/habits/{habit['id']}")).json()
    assert original["name"] == "Drink Water"
    assert original["end_date"] == "2024-02-29"


async def test_split_endpoint_creates_continuation(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()

    response = await test_client.post(
        f"/api/v1/habits/{habit['id']}/split",
        params={"from_date": "2024-02-01"},
        json={"color": "#D1EAFF"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["color"] == "#D1EAFF"
    assert response.json()["start_date"] == "2024-02-01"


async def test_split_at_start_date_updates_in_place(test_client: AsyncClient, create_habit: CreateHabit):
    """Если дата разделения не позже начала серии, изменяется сама привычка."""
    habit = await create_habit(start_date="2024-03-01")

    response = await test_client.patch(
        f"/api/v1/habits/{habit['id']}",
        params={"scope": "following", "occurrence_date": "2024-02-20"},
        json={"name": "Renamed"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == habit["id"]
    assert response.json()["name"] == "Renamed"

    habits = (await test_client.get("/api/v1/habits/")).json()
    assert len(habits) == 1


async def test_save_override_endpoint(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()
    url = f"/api/v1/habits/{habit['id']}/overrides/2024-03-05"

    response = await test_client.put(url, json={"icon": "sun", "color": "#E0D1FF"})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["habit_id"] == habit["id"]
    assert data["exception_date"] == "2024-03-05"
    assert data["modified_fields"] == {"icon": "sun", "color": "#E0D1FF"}


async def test_override_endpoints_not_found(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()

    missing_habit = await test_client.put("/api/v1/habits/missing/overrides/2024-03-05", json={"name": "X"})
    missing_override = await test_client.get(f"/api/v1/habits/{habit['id']}/overrides/2024-03-05")

    assert missing_habit.status_code == status.HTTP_404_NOT_FOUND
    assert missing_override.status_code == status.HTTP_404_NOT_FOUND
    assert missing_override.json()["detail"][0]["type"] == "override_not_found"


async def test_delete_habit(test_client: AsyncClient, create_habit: CreateHabit):
    """Тест удаления привычки вместе с прогрессом."""
    habit = await create_habit()
    await test_client.put(f"/api/v1/habits/{habit['id']}/progress/2024-03-05", json={"amount": 3})

    # Удаляем привычку
    delete_response = await test_client.delete(f"/api/v1/habits/{habit['id']}")
    assert delete_response.status_code == status.HTTP_204_NO_CONTENT

    # Проверяем, что привычку получить нельзя (404)
    get_response = await test_client.get(f"/api/v1/habits/{habit['id']}")
    assert get_response.status_code == status.HTTP_404_NOT_FOUND

    # Прогресс удален вместе с привычкой
    export = (await test_client.get("/api/v1/storage/export")).json()["items"]
    assert not [key for key in export if key.startswith("progress_")]


async def test_delete_missing_habit(test_client: AsyncClient):
    response = await test_client.delete("/api/v1/habits/missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_delete_this_occurrence_only(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()

    response = await test_client.delete(
        f"/api/v1/habits/{habit['id']}", params={"scope": "this", "occurrence_date": "2024-03-05"}
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    deleted_day = (await test_client.get("/api/v1/occurrences/", params={"on_date": "2024-03-05"})).json()
    next_day = (await test_client.get("/api/v1/occurrences/", params={"on_date": "2024-03-06"})).json()
    assert deleted_day == []
    assert [occurrence["habit_id"] for occurrence in next_day] == [habit["id"]]


async def test_delete_this_and_following(test_client: AsyncClient, create_habit: CreateHabit):
    """Удаление вхождения и всех следующих усекает правило до предыдущего дня."""
    habit = await create_habit()

    response = await test_client.delete(
        f"/api/v1/habits/{habit['id']}", params={"scope": "following", "occurrence_date": "2024-03-01"}
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = await test_client.get(f"/api/v1/habits/{habit['id']}")
    assert response.json()["end_date"] == "2024-02-29"


async def test_delete_following_from_start_removes_habit(test_client: AsyncClient, create_habit: CreateHabit):
    """Если после усечения вхождений не остается, привычка удаляется полностью."""
    habit = await create_habit(start_date="2024-03-01")

    await test_client.delete(
        f"/api/v1/habits/{habit['id']}", params={"scope": "following", "occurrence_date": "2024-03-01"}
    )

    response = await test_client.get(f"/api/v1/habits/{habit['id']}")
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_create_habit_defaults_to_every_weekday(test_client: AsyncClient):
    """Еженедельная привычка без дней недели повторяется каждый день."""
    payload = {"name": "Walk", "goal_amount": 1, "start_date": "2024-01-01"}

    response = await test_client.post("/api/v1/habits/", json=payload)

    assert response.status_code == status.HTTP_201_CREATED
    habit = response.json()
    assert habit["repeat_days"] == [0, 1, 2, 3, 4, 5, 6]
    assert habit["is_one_time"] is False

    response = await test_client.get("/api/v1/occurrences/", params={"on_date": "2024-03-13"})
    assert [occurrence["habit_id"] for occurrence in response.json()] == [habit["id"]]


@pytest.mark.parametrize("payload", [{"name": None, "goal_amount": 3}, {"goal_amount": None}, {"icon": None}])
async def test_override_rejects_explicit_null(test_client: AsyncClient, create_habit: CreateHabit, payload: dict):
    """Поле вхождения нельзя сбросить явным null ни одним из способов."""
    habit = await create_habit()
    url = f"/api/v1/habits/{habit['id']}"

    put_response = await test_client.put(f"{url}/overrides/2024-03-05", json=payload)
    patch_response = await test_client.patch(
        url, params={"scope": "this", "occurrence_date": "2024-03-05"}, json=payload
    )

    assert put_response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert patch_response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = await test_client.get(f"{url}/overrides/2024-03-05")
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_update_this_occurrence_without_fields_saves_nothing(
    test_client: AsyncClient, create_habit: CreateHabit
):
    habit = await create_habit()
    url = f"/api/v1/habits/{habit['id']}"

    response = await test_client.patch(url, params={"scope": "this", "occurrence_date": "2024-03-05"}, json={})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == habit["id"]

    response = await test_client.get(f"{url}/overrides/2024-03-05")
    assert response.status_code == status.HTTP_404_NOT_FOUND

    occurrences = (await test_client.get("/api/v1/occurrences/", params={"on_date": "2024-03-05"})).json()
    assert occurrences[0]["has_override"] is False


async def test_save_empty_override_rejected(test_client: AsyncClient, create_habit: CreateHabit):
    habit = await create_habit()

    response = await test_client.put(f"/api/v1/habits/{habit['id']}/overrides/2024-03-05", json={})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"][0]["type"] == "empty_override"
