from fastapi.testclient import TestClient
from example.main import app


def _create(client, **overrides):
    payload = {"title": "Write docs", "priority": 2, "tags": ["docs"]}
    payload.update(overrides)
    r = client.post("/todos", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_and_get_todo():
    client = TestClient(app)
    created = _create(client, estimate_hours=1.5)
    assert created["title"] == "Write docs"
    assert created["priority"] == 2
    assert created["is_complete"] is False
    assert created["tags"] == ["docs"]

    r = client.get(f"/todos/{created['id']}")
    assert r.status_code == 200
    assert r.json()["estimate_hours"] == 1.5


def test_create_rejects_field_constraints():
    client = TestClient(app)
    r = client.post("/todos", json={"title": ""})
    assert r.status_code == 422

    r = client.post("/todos", json={"title": "ok", "estimate_hours": -1})
    assert r.status_code == 422

    r = client.post("/todos", json={"title": "ok", "priority": 9})
    assert r.status_code == 422


def test_list_todos_filters_complete():
    client = TestClient(app)
    first = _create(client, title="first")
    _create(client, title="second")
    r = client.patch(f"/todos/{first['id']}", json={"is_complete": True})
    assert r.status_code == 200

    titles = [t["title"] for t in client.get("/todos").json()]
    assert sorted(titles) == ["first", "second"]

    open_titles = [t["title"] for t in client.get("/todos", params={"include_complete": False}).json()]
    assert open_titles == ["second"]


def test_replace_todo():
    client = TestClient(app)
    created = _create(client)
    r = client.put(
        f"/todos/{created['id']}",
        json={"title": "Rewritten", "priority": 3, "is_complete": True, "tags": []},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["title"] == "Rewritten"
    assert data["priority"] == 3
    assert data["is_complete"] is True
    assert data["tags"] == []


def test_patch_runs_fluent_validator():
    client = TestClient(app)
    created = _create(client)

    r = client.patch(f"/todos/{created['id']}", json={"priority": 7, "estimate_hours": 2000})
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["message"] == "Validation failed"
    fields = {e["field"]: e for e in detail["errors"]}
    assert fields["priority"]["code"] == "choice"
    assert fields["priority"]["message"] == "Must be a valid Priority value"
    assert fields["estimate_hours"]["message"] == "Must be between 0 and 1000"

    r = client.patch(f"/todos/{created['id']}", json={"title": "Patched"})
    assert r.status_code == 200
    assert r.json()["title"] == "Patched"
    assert r.json()["priority"] == 2


def test_missing_todo_returns_404():
    client = TestClient(app)
    for path in ("/todos/not-a-uuid", "/todos/00000000-0000-0000-0000-000000000000"):
        r = client.get(path)
        assert r.status_code == 404
        assert r.json()["detail"] == "Todo not found"


def test_delete_todo():
    client = TestClient(app)
    created = _create(client)
    r = client.delete(f"/todos/{created['id']}")
    assert r.status_code == 204
    assert client.get(f"/todos/{created['id']}").status_code == 404
