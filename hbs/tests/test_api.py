"""HBS HTTP API 시나리오: Request/Response 스키마와 오류 → 상태 코드 매핑."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hbs.core.api import create_hbs_router
from hbs.core.buckets.bucket_manager import BucketManager
from hbs.core.buckets.models import RenderConfig, create_state
from hbs.core.errors import TransportError
from hbs.core.service import HBSService
from hbs.core.state import InMemoryStateStore
from hbs.core.summarizer import LLMSummarizer
from hbs.tests.mock_llm import ConstantTokenCounter, FakeLLMClient, ScriptedSummarizer


def _turns(n):
    return [{"text": f"m{i}", "is_user": i % 2 == 0} for i in range(n)]


@pytest.fixture
def engine():
    return ScriptedSummarizer()


@pytest.fixture
def service(engine):
    return HBSService(
        manager=BucketManager(engine, ConstantTokenCounter()),
        store=InMemoryStateStore(
            state_factory=lambda: create_state(chunk_size=2, live_window_size=1, max_summary_words=20)
        ),
        render=RenderConfig(injection_template="[S] {{summary}}", injection_role="system"),
        enabled_globally=True,
    )


@pytest.fixture
def backend():
    return LLMSummarizer(client=FakeLLMClient(content="a summary", output_tokens=3), model="fake-model")


@pytest.fixture
def client(service, backend):
    app = FastAPI()
    app.include_router(create_hbs_router(service, backend))
    return TestClient(app)


def test_health_reports_configured_backend(client: TestClient):
    resp = client.get("/v1/hbs/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["configured"] is True
    assert data["model"] == "fake-model"


def test_main_app_health_when_backend_missing():
    from hbs.main import app, summarizer

    with patch.object(summarizer, "provider", ""), patch.object(summarizer, "api_key", ""):
        resp = TestClient(app).get("/v1/hbs/health")

    assert resp.status_code == 200
    assert resp.json()["configured"] is False
    assert "HBS_SUMM_PROVIDER" in resp.json()["message"]


def test_summarize(client: TestClient):
    resp = client.post(
        "/v1/hbs/summarize",
        json={"mode": "leaf", "text": "U: hi\n\nA: hello", "max_words": 40, "meta": {"chat_id": "c1"}},
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "summary": "a summary", "token_count": 3}


@pytest.mark.parametrize(
    "body",
    [
        {"mode": "digest", "text": "x"},
        {"mode": "leaf", "text": ""},
        {"mode": "leaf", "text": "x", "max_words": 0},
    ],
)
def test_summarize_rejects_bad_requests(client: TestClient, body):
    assert client.post("/v1/hbs/summarize", json=body).status_code == 422


def test_summarize_maps_backend_failures(service):
    cases = [
        (LLMSummarizer(client=FakeLLMClient(content=""), model="m"), 502, "EmptyResultError"),
        (LLMSummarizer(client=FakeLLMClient(error=TransportError("down")), model="m"), 502, "TransportError"),
        (LLMSummarizer(provider="", api_key="", model="m"), 503, "ConfigurationError"),
    ]
    for backend, status, err_type in cases:
        app = FastAPI()
        app.include_router(create_hbs_router(service, backend))

        resp = TestClient(app).post("/v1/hbs/summarize", json={"mode": "leaf", "text": "x"})

        assert resp.status_code == status
        assert resp.json()["detail"]["type"] == err_type


def test_prepare_returns_virtual_messages(client: TestClient):
    resp = client.post("/v1/hbs/sessions/c1/prepare", json={"turns": _turns(5), "context_size": 4096})

    assert resp.status_code == 200
    data = resp.json()
    assert data["skipped"] is False
    assert data["messages"] == [
        {"role": "system", "content": "[S] merge-3"},
        {"role": "user", "content": "m4"},
    ]
    assert data["stats"]["processed_until"] == 4
    assert data["over_budget"] is False


def test_prepare_for_disabled_conversation_passes_turns_through(client: TestClient):
    client.post("/v1/hbs/sessions/c1/settings", json={"enabled": False})

    resp = client.post("/v1/hbs/sessions/c1/prepare", json={"turns": _turns(3)})

    data = resp.json()
    assert data["skipped"] is True
    assert [m["content"] for m in data["messages"]] == ["m0", "m1", "m2"]


def test_build_then_status_and_reset(client: TestClient):
    build = client.post("/v1/hbs/sessions/c1/build", json={"turns": _turns(9)})
    assert build.status_code == 200
    assert build.json()["stats"]["buckets_count"] == 1

    status = client.post("/v1/hbs/sessions/c1/status", json={"turns": _turns(9)})
    assert status.status_code == 200
    data = status.json()
    assert data["dirty"] is False
    assert [(b["level"], b["start"], b["end"]) for b in data["buckets"]] == [(2, 0, 8)]

    assert client.post("/v1/hbs/sessions/c1/reset").json() == {"reset": True}
    assert client.post("/v1/hbs/sessions/other/reset").json() == {"reset": False}


def test_build_failure_maps_to_502(client: TestClient, engine):
    engine.fail_on = {1}

    resp = client.post("/v1/hbs/sessions/c1/build", json={"turns": _turns(5)})

    assert resp.status_code == 502
    assert resp.json()["detail"]["type"] == "TransportError"


def test_rebuild_failure_keeps_previous_buckets(client: TestClient, engine, service):
    client.post("/v1/hbs/sessions/c1/build", json={"turns": _turns(5)})
    before = service.store.load_snapshot("c1")
    engine.fail_on = {len(engine.calls) + 1}

    resp = client.post("/v1/hbs/sessions/c1/rebuild", json={"turns": _turns(5)})

    assert resp.status_code == 502
    assert service.store.load_snapshot("c1") == before


def test_build_while_busy_returns_409(client: TestClient, service):
    state = service.store.get_or_create("c1")
    state.guard._busy = True

    resp = client.post("/v1/hbs/sessions/c1/build", json={"turns": _turns(5)})

    assert resp.status_code == 409
    assert resp.json()["detail"]["type"] == "BuildInProgressError"


def test_settings_update_and_validation(client: TestClient):
    ok = client.post("/v1/hbs/sessions/c1/settings", json={"chunk_size": 4, "live_window_size": 3})
    assert ok.status_code == 200
    assert (ok.json()["chunk_size"], ok.json()["live_window_size"]) == (4, 3)

    bad = client.post("/v1/hbs/sessions/c1/settings", json={"chunk_size": 0})
    assert bad.status_code == 400
    assert bad.json()["detail"]["type"] == "InvalidArgumentError"


def test_debug_snapshot(client: TestClient):
    assert client.get("/v1/hbs/sessions/none/debug").status_code == 404

    client.post("/v1/hbs/sessions/c1/build", json={"turns": _turns(5)})
    data = client.get("/v1/hbs/sessions/c1/debug").json()

    assert data["state"]["processed_until"] == 4
    assert data["busy"] is False


def test_settings_while_busy_returns_409(client: TestClient, service):
    state = service.store.get_or_create("c1")
    state.guard._busy = True

    resp = client.post("/v1/hbs/sessions/c1/settings", json={"chunk_size": 3, "enabled": False})

    assert resp.status_code == 409
    assert resp.json()["detail"]["type"] == "BuildInProgressError"
    assert (state.chunk_size, state.enabled) == (2, True)
