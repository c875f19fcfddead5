"""Unit tests for the workflow API endpoints."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

from fastapi.testclient import TestClient

from contentops.main import create_app
from contentops.schemas.workflow import WorkflowConfig, WorkflowState
from contentops.services.workflow.registry import get_workflow_registry


def _state(
    workflow_id: str,
    phase: str = "content_generation",
    progress: float = 10,
) -> WorkflowState:
    return WorkflowState(id=workflow_id, topic="Pet grooming", phase=phase, progress=progress)


async def _live(states: list[WorkflowState]) -> AsyncIterator[WorkflowState]:
    for state in states:
        yield state


class _FakeRegistry:
    def __init__(
        self,
        states: dict[str, WorkflowState] | None = None,
        *,
        running: set[str] | None = None,
        live: dict[str, list[WorkflowState]] | None = None,
    ) -> None:
        self.states = states or {}
        self.running = running or set()
        self.live = live or {}
        self.started: list[WorkflowConfig] = []
        self.cancelled: list[str] = []

    async def start(self, config: WorkflowConfig) -> WorkflowState:
        self.started.append(config)
        state = WorkflowState(id="workflow_new", topic=config.topic)
        self.states[state.id] = state
        return state

    async def get(self, workflow_id: str) -> WorkflowState | None:
        return self.states.get(workflow_id)

    def cancel(self, workflow_id: str) -> bool:
        if workflow_id not in self.running:
            return False
        self.cancelled.append(workflow_id)
        return True

    def stream(self, workflow_id: str) -> AsyncIterator[WorkflowState] | None:
        if workflow_id not in self.live:
            return None
        return _live(self.live[workflow_id])


def _client(registry: _FakeRegistry) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_workflow_registry] = lambda: registry
    return TestClient(app)


def _events(body: str) -> list[dict]:
    return [
        json.loads(line.removeprefix("data: "))
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


def test_health_check() -> None:
    response = TestClient(create_app()).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_start_workflow_returns_tracking_urls() -> None:
    registry = _FakeRegistry()

    response = _client(registry).post(
        "/api/v1/workflows",
        json={
            "topic": "Best Pet Grooming Services",
            "keywords": ["pet grooming"],
            "word_count": 800,
        },
    )

    assert response.status_code == 202
    payload = response.json()
    assert payload["workflow_id"] == "workflow_new"
    assert payload["phase"] == "idle"
    assert payload["status_url"] == "/api/v1/workflows/workflow_new"
    assert payload["events_url"] == "/api/v1/workflows/workflow_new/events"
    assert registry.started[0].word_count == 800


def test_start_workflow_validates_config() -> None:
    registry = _FakeRegistry()

    response = _client(registry).post("/api/v1/workflows", json={"topic": "", "word_count": 50})

    assert response.status_code == 422
    assert registry.started == []


def test_get_workflow_state() -> None:
    registry = _FakeRegistry({"workflow_1": _state("workflow_1", "interlinking", 65)})
    client = _client(registry)

    found = client.get("/api/v1/workflows/workflow_1")
    missing = client.get("/api/v1/workflows/workflow_2")

    assert found.status_code == 200
    assert found.json()["phase"] == "interlinking"
    assert found.json()["progress"] == 65
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Workflow not found"


def test_events_stream_live_states() -> None:
    registry = _FakeRegistry(
        live={
            "workflow_1": [
                _state("workflow_1", "image_generation", 20),
                _state("workflow_1", "completed", 100),
            ]
        }
    )

    response = _client(registry).get("/api/v1/workflows/workflow_1/events")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.text.count("event: state\n") == 2
    assert [event["phase"] for event in _events(response.text)] == [
        "image_generation",
        "completed",
    ]


def test_events_fall_back_to_stored_state() -> None:
    registry = _FakeRegistry({"workflow_1": _state("workflow_1", "completed", 100)})

    response = _client(registry).get("/api/v1/workflows/workflow_1/events")

    assert response.status_code == 200
    assert [event["phase"] for event in _events(response.text)] == ["completed"]


def test_events_for_unknown_workflow_is_404() -> None:
    response = _client(_FakeRegistry()).get("/api/v1/workflows/workflow_2/events")

    assert response.status_code == 404


def test_cancel_running_workflow() -> None:
    registry = _FakeRegistry({"workflow_1": _state("workflow_1")}, running={"workflow_1"})

    response = _client(registry).delete("/api/v1/workflows/workflow_1")

    assert response.status_code == 202
    assert response.json() == {
        "workflow_id": "workflow_1",
        "cancelled": True,
        "phase": "content_generation",
    }
    assert registry.cancelled == ["workflow_1"]


def test_cancel_finished_or_foreign_workflow_conflicts() -> None:
    registry = _FakeRegistry(
        {
            "workflow_done": _state("workflow_done", "completed", 100),
            "workflow_elsewhere": _state("workflow_elsewhere", "interlinking", 70),
        }
    )
    client = _client(registry)

    finished = client.delete("/api/v1/workflows/workflow_done")
    elsewhere = client.delete("/api/v1/workflows/workflow_elsewhere")
    missing = client.delete("/api/v1/workflows/workflow_missing")

    assert finished.status_code == 409
    assert finished.json()["detail"] == "Workflow has already finished"
    assert elsewhere.status_code == 409
    assert elsewhere.json()["detail"] == "Workflow is not running in this process"
    assert missing.status_code == 404
