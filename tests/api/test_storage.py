import json
from typing import Any

import pytest
from httpx import AsyncClient
from starlette import status

from .conftest import CreateHabit

pytestmark = pytest.mark.asyncio


def _event(habit_id: str | None, **fields: Any) -> dict[str, Any]:
    """Привычка в формате хранилища (camelCase)."""
    event = {
        "name": "Read",
        "icon": "BookOpen",
        "color": "#D1EAFF",
        "goalAmount": 5,
        "goalUnit": "pages",
        "isAllDay": True,
        "startTime": "",
        "endTime": "",
        "startDate": "2024-01-01T00:00:00.000Z",
        "endDate": "2099-12-31T21:00:00.000Z",
        "repeatFrequency": "week",
        "repeatEvery": 1,
        "repeatDays": [1, 3, 5],
        **fields,
    }
    if habit_id is not None:
        event["id"] = habit_id
    return event


def _snapshot() -> dict[str, str]:
    return {
        "habit_tracker_events": json.dumps(
            [
                _event("h1"),
                _event("h2", name="Run", icon="Rocket", isAllDay=False, startTime="07:00", endDate="2024-06-30"),
                _event(None, name="No id"),
                _event("h3", goalAmount=0),
            ]
        ),
        "habit_deleted_exceptions": json.dumps({"h1": ["2024-03-04"], "ghost": ["2024-03-04"]}),
        "habit_override_exceptions": json.dumps(
            [
                {"eventId": "h1", "date": "2024-03-06", "modifiedFields": {"goalAmount": 2, "icon": "Sun"}},
                {"eventId": "ghost", "date": "2024-03-06", "modifiedFields": {"name": "Ghost"}},
            ]
        ),
        "progress_h1_2024-03-06": "2",
        "progress_ghost_2024-03-06": "1",
        # Устаревшая карта выполнений: пара с отдельным ключом прогресса не перезаписывается
        "habit_tracker_completions": json.dumps({"h1_2024-03-06": 5, "h1_2024-03-08": 1}),
        "unrelated_key": "whatever",
    }


async def _import(test_client: AsyncClient, items: dict[str, str]) -> dict[str, int]:
    response = await test_client.post("/api/v1/storage/import", json={"items": items})
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()


async def test_import_snapshot(test_client: AsyncClient):
    result = await _import(test_client, _snapshot())

    assert result == {"habits": 2, "deletions": 1, "overrides": 1, "progress": 2, "skipped": 5}

    first = (await test_client.get("/api/v1/habits/h1")).json()
    assert first["icon"] == "book_open"
    assert first["start_date"] == "2024-01-01"
    # Дата-заглушка 2100 года означает правило без окончания
    assert first["end_date"] is None
    assert first["start_time"] is None

    second = (await test_client.get("/api/v1/habits/h2")).json()
    assert second["icon"] == "droplet"
    assert second["start_time"] == "07:00"
    assert second["end_time"] is None
    assert second["end_date"] == "2024-06-30"

    missing = await test_client.get("/api/v1/habits/h3")
    assert missing.status_code == status.HTTP_404_NOT_FOUND


async def test_imported_exceptions_are_applied(test_client: AsyncClient):
    await _import(test_client, _snapshot())

    deleted_day = (await test_client.get("/api/v1/occurrences/", params={"on_date": "2024-03-04"})).json()
    overridden_day = (await test_client.get("/api/v1/occurrences/", params={"on_date": "2024-03-06"})).json()
    legacy_progress = await test_client.get("/api/v1/habits/h1/progress/2024-03-08")

    assert [occurrence["habit_id"] for occurrence in deleted_day] == ["h2"]

    h1 = next(occurrence for occurrence in overridden_day if occurrence["habit_id"] == "h1")
    assert h1["effective"]["goal_amount"] == 2
    assert h1["effective"]["icon"] == "sun"
    assert h1["progress"] == 2
    assert h1["is_completed"] is True

    assert legacy_progress.json()["amount"] == 1


async def test_import_is_idempotent(test_client: AsyncClient):
    await _import(test_client, _snapshot())
    first_export = (await test_client.get("/api/v1/storage/export")).json()

    await _import(test_client, _snapshot())
    second_export = (await test_client.get("/api/v1/storage/export")).json()

    habits = (await test_client.get("/api/v1/habits/")).json()
    assert len(habits) == 2
    assert first_export == second_export


async def test_import_tolerates_malformed_json(test_client: AsyncClient):
    """Некорректный JSON или неожиданный тип значения считается пустой коллекцией."""
    items = {
        "habit_tracker_events": "[{not json",
        "habit_deleted_exceptions": "[]",
        "habit_override_exceptions": '{"eventId": "h1"}',
        "habit_tracker_completions": "null",
    }

    result = await _import(test_client, items)

    assert result == {"habits": 0, "deletions": 0, "overrides": 0, "progress": 0, "skipped": 0}


async def test_import_skips_invalid_progress_values(test_client: AsyncClient):
    items = {
        "habit_tracker_events": json.dumps([_event("h1")]),
        "progress_h1_2024-03-06": "abc",
        "progress_h1_2024-03-07": "-1",
        "progress_h1_2024-03-08": "1.5",
    }

    result = await _import(test_client, items)

    assert (result["progress"], result["skipped"]) == (1, 2)


async def test_import_skips_impossible_legacy_completion_dates(test_client: AsyncClient):
    """Ключ устаревшей карты с несуществующей датой пропускается, а не обрывает импорт."""
    items = {
        "habit_tracker_events": json.dumps([_event("h1")]),
        "habit_tracker_completions": json.dumps({"h1_2024-13-45": 1, "h1_2024-03-08": 2}),
    }

    result = await _import(test_client, items)

    assert (result["habits"], result["progress"], result["skipped"]) == (1, 1, 1)


async def test_export_snapshot(test_client: AsyncClient):
    await _import(test_client, _snapshot())

    response = await test_client.get("/api/v1/storage/export")

    assert response.status_code == status.HTTP_200_OK
    items = response.json()["items"]

    assert set(items) == {
        "habit_tracker_events",
        "habit_deleted_exceptions",
        "habit_override_exceptions",
        "progress_h1_2024-03-06",
        "progress_h1_2024-03-08",
    }

    events = {event["id"]: event for event in json.loads(items["habit_tracker_events"])}
    assert set(events) == {"h1", "h2"}
    assert events["h1"]["icon"] == "BookOpen"
    assert events["h1"]["startDate"] == "2024-01-01"
    assert events["h1"]["repeatDays"] == [1, 3, 5]
    assert "endDate" not in events["h1"]
    assert events["h2"]["icon"] == "Droplet"
    assert events["h2"]["endDate"] == "2024-06-30"
    assert events["h2"]["startTime"] == "07:00"

    assert json.loads(items["habit_deleted_exceptions"]) == {"h1": ["2024-03-04"]}
    assert json.loads(items["habit_override_exceptions"]) == [
        {"eventId": "h1", "date": "2024-03-06", "modifiedFields": {"goalAmount": 2, "icon": "Sun"}}
    ]
    assert items["progress_h1_2024-03-06"] == "2"
    assert items["progress_h1_2024-03-08"] == "1"


async def test_export_then_import_into_empty_store(test_client: AsyncClient, create_habit: CreateHabit):
    """Экспортированный снимок импортируется обратно без потерь."""
    habit = await create_habit(name="Meditate", icon="meditation", end_date="2024-05-01")
    await test_client.put(f"/api/v1/habits/{habit['id']}/progress/2024-03-05", json={"amount": 2.5})
    exported = (await test_client.get("/api/v1/storage/export")).json()["items"]

    await test_client.delete(f"/api/v1/habits/{habit['id']}")
    result = await _import(test_client, exported)

    assert (result["habits"], result["progress"], result["skipped"]) == (1, 1, 0)
    restored = (await test_client.get(f"/api/v1/habits/{habit['id']}")).json()
    assert restored["name"] == "Meditate"
    assert restored["icon"] == "meditation"
    assert restored["end_date"] == "2024-05-01"
    progress = (await test_client.get(f"/api/v1/habits/{habit['id']}/progress/2024-03-05")).json()
    assert progress["amount"] == 2.5
