import pytest
from fastapi.testclient import TestClient

from promptsmith.pipeline.orchestrator import PromptOrchestrator
from promptsmith.pipeline.services import in_memory_services, offline_services


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from promptsmith.api import main

    monkeypatch.setattr(main, "_orchestrator", PromptOrchestrator(in_memory_services()))
    return TestClient(main.app)


def test_api_process_validate_evaluate_compare(client: TestClient) -> None:
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    payload = {"raw": "Create a user table", "domain": "SQL"}
    first = client.post("/process", json=payload)
    second = client.post("/process", json=payload)
    assert first.status_code == 200
    assert first.json()["metadata"]["cache_hit"] is False
    assert first.json()["metadata"]["domain"] == "sql"
    assert second.json()["metadata"]["cache_hit"] is True
    assert second.json()["refined"] == first.json()["refined"]

    empty = client.post("/validate", json={"prompt": ""})
    assert empty.status_code == 200
    assert empty.json()["is_valid"] is False
    assert empty.json()["errors"][0]["code"] == "empty_prompt"

    evaluation = client.post("/evaluate", json={"prompt": "Create a users table with an email index.", "domain": "sql"})
    assert evaluation.status_code == 200
    assert 0.5 <= evaluation.json()["confidence"] <= 1.0

    comparison = client.post("/compare", json={"variants": ["make stuff", "Create a users table with an email index."]})
    assert comparison.status_code == 200
    assert comparison.json()["winner"] == "variant_1"

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert metrics.json()["cache"]["hits"] == 1


def test_api_prompt_library(client: TestClient) -> None:
    saved = client.post(
        "/prompts",
        json={
            "prompt": "Create a users table with an email index.",
            "metadata": {"name": "users", "domain": "sql", "tags": ["ddl"]},
        },
    )
    assert saved.status_code == 200
    prompt_id = saved.json()["id"]

    fetched = client.get(f"/prompts/{prompt_id}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "users"

    search = client.post("/prompts/search", json={"domain": "sql"})
    assert search.status_code == 200
    assert [item["id"] for item in search.json()["items"]] == [prompt_id]

    assert client.get("/prompts/does-not-exist").status_code == 404


def test_api_rejects_invalid_requests(client: TestClient) -> None:
    assert client.post("/process", json={"raw": "x", "temperature": 5}).status_code == 422
    assert client.post("/compare", json={"variants": []}).status_code == 422
    assert client.post("/prompts", json={"prompt": "x", "metadata": {"name": ""}}).status_code == 422


def test_api_offline_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    from promptsmith.api import main

    monkeypatch.setattr(main, "_orchestrator", PromptOrchestrator(offline_services()))
    client = TestClient(main.app)

    response = client.post("/process", json={"raw": "a landing page", "domain": "saas"})

    assert response.status_code == 200
    assert response.json()["metadata"]["cache_hit"] is False
    assert client.get("/health").json()["mode"] == "offline"
