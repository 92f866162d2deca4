import pytest
from fastapi.testclient import TestClient

from app.main import app

TRAPPED = "\n".join([
    ".....",
    "..w..",
    ".w.w.",
    "..w..",
    ".....",
])


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_generate_map(client):
    res = client.post("/generate-map", json={"seed": 21, "mirrorVertical": True})
    assert res.status_code == 200
    body = res.json()
    assert len(body["tiles"]) == 33 and len(body["tiles"][0]) == 21
    assert len(body["mapCode"].split("\n")) == 33
    assert body["report"]["seed"] == 21
    assert body["report"]["violations"]["critical"] == 0


def test_generate_map_with_custom_size(client):
    res = client.post("/generate-map", json={"seed": 1, "rows": 12, "cols": 9, "waterDensity": 0})
    assert res.status_code == 200
    assert len(res.json()["tiles"]) == 12


def test_generate_map_rejects_bad_density(client):
    res = client.post("/generate-map", json={"wallDensity": 150})
    assert res.status_code == 400
    assert "wallDensity" in res.json()["detail"]


def test_generate_map_rejects_unknown_size(client):
    assert client.post("/generate-map", json={"mapSize": "5v5"}).status_code == 422


def test_validate_map_code(client):
    res = client.post("/validate-grid", json={"mapCode": TRAPPED})
    assert res.status_code == 200
    body = res.json()
    assert body["passed"] is False
    assert body["counts"]["critical"] == 1
    assert {"row": 2, "col": 2, "severity": "critical", "kind": "trapped-gap"} in body["violations"]


def test_validate_tiles(client):
    res = client.post("/validate-grid", json={"tiles": [[0, 0, 0], [0, 1, 0], [0, 0, 0]]})
    assert res.status_code == 200
    assert res.json()["passed"] is True


def test_validate_requires_input(client):
    assert client.post("/validate-grid", json={}).status_code == 400


def test_validate_bad_map_code(client):
    res = client.post("/validate-grid", json={"mapCode": "..q\n..."})
    assert res.status_code == 422


def test_validate_ragged_tiles(client):
    res = client.post("/validate-grid", json={"tiles": [[0, 0], [0]]})
    assert res.status_code == 400
