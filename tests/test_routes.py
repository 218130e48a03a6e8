from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from penny.api import routes
from penny.bot.conversation import ConversationService
from penny.db.repository import LedgerRepository
from penny.engine.assistant import Assistant
from penny.engine.messages import MessageCatalog
from penny.models.schemas import Expense, UserContext
from tests.factories import wit
from tests.mocks import NOW, FakeNlu, catalog_entries, clock


@pytest.fixture
def nlu():
    return FakeNlu()


@pytest.fixture
def repo(tmp_path):
    return LedgerRepository(str(tmp_path / "ledger.json"))


@pytest.fixture
def client(monkeypatch, repo, nlu):
    assistant = Assistant(nlu, catalog=MessageCatalog(catalog_entries()), clock=clock)
    monkeypatch.setattr(routes, "repo", repo)
    monkeypatch.setattr(routes, "conversations", ConversationService(repo, assistant))

    app = FastAPI()
    app.include_router(routes.router)
    return TestClient(app)


def test_post_message(client, nlu):
    nlu.queue(wit("request_help"))
    response = client.post("/users/42/messages", json={"text": "help", "user_name": "Ada"})

    assert response.status_code == 200
    body = response.json()
    assert body["messages"] == ["hi Ada", "welcome", "help"]
    assert body["actions"] == []
    assert body["context"]["state"] == "main"


def test_post_empty_message_is_rejected(client, nlu):
    response = client.post("/users/42/messages", json={"text": ""})
    assert response.status_code == 422
    assert nlu.calls == []


def test_get_context(client, repo):
    repo.save_context("42", UserContext(state="main", budget=250, last_message_on=NOW))
    response = client.get("/users/42/context")
    assert response.status_code == 200
    assert response.json()["budget"] == 250


def test_get_unknown_context(client):
    assert client.get("/users/nobody/context").status_code == 404


def test_list_expenses_in_range(client, repo):
    repo.add_expense("42", Expense(item="in", value=5, incurred_on=NOW))
    repo.add_expense("42", Expense(item="out", value=7, incurred_on=NOW - timedelta(days=40)))

    response = client.get(
        "/users/42/expenses",
        params={
            "start": (NOW - timedelta(days=1)).isoformat(),
            "end": (NOW + timedelta(days=1)).isoformat(),
        },
    )

    assert response.status_code == 200
    assert [e["item"] for e in response.json()] == ["in"]


def test_list_expenses_rejects_inverted_range(client):
    response = client.get(
        "/users/42/expenses",
        params={"start": NOW.isoformat(), "end": (NOW - timedelta(days=1)).isoformat()},
    )
    assert response.status_code == 400


def test_delete_user(client, repo):
    repo.save_context("42", UserContext(last_message_on=NOW))
    assert client.delete("/users/42").status_code == 200
    assert repo.get_context("42") is None
    assert client.delete("/users/42").status_code == 404
