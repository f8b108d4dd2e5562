import random

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starquiz.api import register_routes
from starquiz.api.quiz.routes import GUIDE_TEXT, RULE_TEXT
from starquiz.core.dependencies import get_fact_store, get_question_generator
from starquiz.core.exceptions import register_exception_handlers
from starquiz.services.fact_store import FactStore
from starquiz.services.question_generator import STATIC_FALLBACK, QuestionGenerator


def create_app(store: FactStore) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    register_routes(app)
    app.dependency_overrides[get_fact_store] = lambda: store
    app.dependency_overrides[get_question_generator] = lambda: QuestionGenerator(
        store, random.Random(42)
    )
    return app


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


def test_hemisphere_quiz(client):
    resp = client.post("/chat", json={"mode": "hemisphere"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["type"] == "quiz"
    data = body["data"]
    assert data["category"] == "hemisphere"
    assert sorted(data["choices"]) == ["North", "South"]
    assert data["correctIndex"] in (0, 1)
    assert "correct_index" not in data


@pytest.mark.parametrize("mode", ["season", "star", "eclipse", "photo", "lunar"])
def test_requested_mode_is_served(client, mode):
    data = client.post("/chat", json={"mode": mode}).json()["data"]
    assert data["category"] == mode
    assert len(data["choices"]) == 4
    assert 0 <= data["correctIndex"] < 4


def test_image_question_carries_url_and_credit(client):
    data = client.post("/chat", json={"mode": "image"}).json()["data"]
    assert data["image"].startswith("/public/charts/")
    assert data["credit"] == "IAU"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": b"{not json", "headers": {"content-type": "application/json"}},
        {"content": b"", "headers": {"content-type": "application/json"}},
        {"json": ["season"]},
        {"json": {"mode": 5}},
        {"json": {}},
    ],
)
def test_unusable_bodies_get_a_random_quiz(client, kwargs):
    resp = client.post("/chat", **kwargs)
    assert resp.status_code == 200
    assert resp.json()["type"] == "quiz"


def test_unknown_mode_still_answers(client):
    resp = client.post("/chat", json={"mode": "galaxy"})
    assert resp.status_code == 200
    assert resp.json()["type"] == "quiz"


def test_chat_mode_guide_and_rule(client):
    assert client.post("/chat", json={"mode": "chat"}).json() == {
        "type": "guide",
        "data": GUIDE_TEXT,
    }
    assert client.post("/chat", json={"mode": "chat", "message": "   "}).json()["type"] == "guide"
    assert client.post("/chat", json={"mode": "chat", "message": "2"}).json() == {
        "type": "rule",
        "data": RULE_TEXT,
    }


def test_empty_store_serves_static_fallback():
    client = TestClient(create_app(FactStore()))
    data = client.post("/chat", json={"mode": "orbit_order"}).json()["data"]
    assert data["prompt"] == STATIC_FALLBACK.prompt
    assert data["choices"][data["correctIndex"]] == "Star"


def test_generator_failure_maps_to_500(store):
    class Broken:
        def generate(self, mode):
            raise RuntimeError("boom")

    app = create_app(store)
    app.dependency_overrides[get_question_generator] = lambda: Broken()
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.post("/chat", json={"mode": "season"})
    assert resp.status_code == 500
    assert resp.json()["code"] == "internal_error"
