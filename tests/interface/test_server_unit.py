import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from vibedeck.application.config import AppConfig
from vibedeck.application.factory import build_services
from vibedeck.consts import VERSION
from vibedeck.server import app, get_services


@pytest.fixture
def services(catalog, store, clock, mock_home):
    return build_services(AppConfig(seed=5), store=store, catalog=catalog, clock=clock)


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_get_session(client):
    data = client.get("/session").json()
    assert len(data["queue_ids"]) == 7
    assert data["current_index"] == 0
    assert data["current_item"]["id"] == data["queue_ids"][0]
    assert data["current_item"]["quality"]["tier"] == "high"
    assert data["empty"] is False


def test_navigation(client):
    assert client.post("/session/advance").json()["current_index"] == 1
    assert client.post("/session/back").json()["current_index"] == 0
    assert client.post("/session/back").json()["current_index"] == 6

    data = client.post("/session/reshuffle").json()
    assert data["current_index"] == 0
    assert len(data["queue_ids"]) == 7


def test_update_filters(client):
    response = client.put("/session/filters", json={"kinds": ["solve"], "dueOnly": False})
    assert response.status_code == 200
    data = response.json()
    assert data["filters"]["kinds"] == ["solve"]
    assert set(data["queue_ids"]) == {"solve:dsa:two-sum", "solve:dsa:islands"}
    assert data["current_item"]["kind"] == "solve"


def test_update_filters_rejects_bad_quality(client):
    response = client.put("/session/filters", json={"quality": "medium"})
    assert response.status_code == 422


def test_grade_current_flashcard(client, services):
    client.put("/session/filters", json={"kinds": ["flashcard"]})
    current = client.get("/session").json()["current_item"]

    response = client.post("/session/grade", json={"quality": 3})
    assert response.status_code == 200
    assert services.scheduler.get_state(current["card_id"]).repetitions == 1


def test_grade_wrong_kind_conflict(client):
    client.put("/session/filters", json={"kinds": ["mcq"]})
    response = client.post("/session/grade", json={"quality": 3})
    assert response.status_code == 409
    assert "expected a flashcard" in response.json()["detail"]


def test_answer_mcq(client, services):
    client.put("/session/filters", json={"kinds": ["mcq"]})
    current = client.get("/session").json()["current_item"]

    response = client.post("/session/answer", json={"option_index": current["correct_index"]})
    assert response.status_code == 200
    assert response.json()["correct"] is True
    assert services.scheduler.review_stats().total_reviews == 2


def test_solve_feedback(client, services):
    client.put("/session/filters", json={"kinds": ["solve"]})
    current = client.get("/session").json()["current_item"]

    response = client.post("/session/solve", json={"knows_it": False})
    assert response.json()["status"] == "attempted"
    assert services.progress.get_status(current["problem_id"]) == "attempted"


def test_empty_session_conflict(client):
    data = client.put("/session/filters", json={"kinds": ["solve"], "categories": ["hld"]}).json()
    assert data["empty"] is True
    assert data["current_item"] is None
    assert client.post("/session/solve", json={"knows_it": True}).status_code == 409


def test_reset(client):
    client.put("/session/filters", json={"kinds": ["solve"]})
    data = client.post("/session/reset").json()
    assert data["filters"]["kinds"] == ["flashcard", "mcq"]


def test_review_endpoints(client):
    response = client.post("/review/grade", json={"card_id": "ts-1", "quality": 3})
    assert response.json()["interval"] == 1

    due = client.get("/review/due").json()
    assert "ts-1" not in due["card_ids"]
    assert due["count"] == 5

    assert client.get("/review/due", params={"limit": 2}).json()["count"] == 2

    stats = client.get("/review/stats").json()
    assert stats["total_reviews"] == 1
    assert stats["streak"] == 1
    assert stats["last_review_date"] == "2025-03-10"


def test_store_backed_endpoints_are_sync():
    routes = [
        route
        for route in app.routes
        if isinstance(route, APIRoute) and route.path.startswith(("/session", "/review"))
    ]
    assert len(routes) == 12
    for route in routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
