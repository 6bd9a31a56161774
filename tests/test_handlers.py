"""Tests for handlers and the step server."""

import pytest

from datastep import StepContext, StepResult, handlers
from datastep.builder import StepBuilder
from datastep.errors import ClientError, HTTPError, SetupError
from datastep.handlers import _execute_with_recovery
from datastep.step import (
    database_choices,
    database_complete,
    database_step_builder,
    run_database_step,
)

USER_ID = 7


class _DummyClient:
    def __init__(self, register_error=None, failures=0) -> None:
        self.registered = []
        self.updated = []
        self._register_error = register_error
        self._failures = failures

    def register_step(self, step):
        if self._failures > 0:
            self._failures -= 1
            raise ClientError("unavailable", status_code=503)
        if self._register_error is not None:
            raise self._register_error
        self.registered.append(step)

    def update_step(self, step):
        self.updated.append(step)


@pytest.fixture
def captured(monkeypatch):
    captured = {}

    def fake_run(self, host, port):
        captured["app"] = self
        captured["host"] = host
        captured["port"] = port

    monkeypatch.setattr(handlers.Flask, "run", fake_run, raising=True)
    return captured


def _ctx(host) -> StepContext:
    return StepContext(host=host, user_id=USER_ID, step_id="step-1", metadata={})


def test_step_context_creation(host):
    ctx = StepContext(
        host=host, user_id=USER_ID, step_id="step-1", metadata={"key": "value"}
    )
    assert ctx.host is host
    assert ctx.user_id == USER_ID
    assert ctx.metadata["key"] == "value"


def test_execute_with_recovery_success(host):
    def handler(step_ctx, args):
        return StepResult(success=True, outputs={"value": args["value"]})

    result = _execute_with_recovery(_ctx(host), handler, {"value": 1})
    assert result.success is True
    assert result.outputs["value"] == 1


def test_execute_with_recovery_http_error(host):
    def handler(step_ctx, args):
        raise HTTPError(422, "bad input")

    with pytest.raises(HTTPError):
        _execute_with_recovery(_ctx(host), handler, {})


def test_execute_with_recovery_exception_returns_failure(host):
    def handler(step_ctx, args):
        raise SetupError("Could not find import datastore")

    result = _execute_with_recovery(_ctx(host), handler, {})
    assert result.success is False
    assert "Could not find import datastore" in result.error


def test_create_step_server_registers_and_executes(
    monkeypatch, captured, host
):
    monkeypatch.setenv("STEP_PORT", "9010")
    monkeypatch.setenv("STEP_HOSTNAME", "example.com")
    monkeypatch.setenv("DATASTEP_POLL_INTERVAL_MS", "5")

    client = _DummyClient()
    handlers.create_step_server(
        client, database_step_builder(), run_database_step, host
    )

    assert len(client.registered) == 1
    step = client.registered[0]
    assert step.http.endpoint == "http://example.com:9010/custom-database-test"
    assert step.http.health_check == "http://example.com:9010/health"
    assert captured["port"] == 9010

    test_client = captured["app"].test_client()
    resp = test_client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["service"] == "custom-database-test"

    resp = test_client.post(
        "/custom-database-test",
        json={
            "arguments": {"datastore": "Sales", "table": "orders"},
            "metadata": {"user_id": USER_ID},
        },
    )
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert data["outputs"]["row_count"] == 6
    assert data["outputs"]["selection_resolved"] is True


def test_create_step_server_rejects_bad_requests(captured, host):
    handlers.create_step_server(
        _DummyClient(), database_step_builder(), run_database_step, host
    )
    test_client = captured["app"].test_client()

    resp = test_client.post(
        "/custom-database-test", data="null", content_type="application/json"
    )
    assert resp.status_code == 400

    resp = test_client.post(
        "/custom-database-test", json={"arguments": {}, "metadata": {}}
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "user_id is required"

    resp = test_client.post(
        "/custom-database-test",
        json={"arguments": {}, "metadata": {"user_id": "nobody"}},
    )
    assert resp.status_code == 400


def test_create_step_server_reports_setup_failure(captured, host):
    handlers.create_step_server(
        _DummyClient(), database_step_builder(), run_database_step, host
    )
    test_client = captured["app"].test_client()

    resp = test_client.post(
        "/custom-database-test",
        json={"arguments": {}, "metadata": {"user_id": USER_ID + 1}},
    )
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is False
    assert "import datastore" in data["error"]


def test_create_step_server_http_error(captured, host):
    def handler(step_ctx, args):
        raise HTTPError(409, "conflict")

    handlers.create_step_server(
        _DummyClient(), StepBuilder(None, "Test Step"), handler, host
    )
    test_client = captured["app"].test_client()

    resp = test_client.post(
        "/test-step", json={"arguments": {}, "metadata": {"user_id": USER_ID}}
    )
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "conflict"


def test_create_step_server_choices_and_complete(captured, host):
    handlers.create_step_server(
        _DummyClient(),
        database_step_builder(),
        run_database_step,
        host,
        choices=database_choices,
        complete=database_complete,
    )
    test_client = captured["app"].test_client()

    resp = test_client.get(
        "/custom-database-test/choices/datastore",
        query_string={"user_id": USER_ID},
    )
    assert resp.get_json()["values"] == ["My Files", "Sales"]

    resp = test_client.get(
        "/custom-database-test/choices/table",
        query_string={"user_id": USER_ID, "datastore": "Sales"},
    )
    assert resp.get_json()["values"] == ["orders"]

    resp = test_client.get(
        "/custom-database-test/choices/column",
        query_string={"user_id": USER_ID},
    )
    assert resp.status_code == 404

    resp = test_client.get(
        "/custom-database-test/complete",
        query_string={"user_id": USER_ID, "datastore": "Sales", "table": "orders"},
    )
    assert resp.get_json()["complete"] is True

    resp = test_client.get(
        "/custom-database-test/complete",
        query_string={"user_id": USER_ID, "datastore": "Sales"},
    )
    assert resp.get_json()["complete"] is False


def test_create_step_server_without_choosers(captured, host):
    handlers.create_step_server(
        _DummyClient(), StepBuilder(None, "Test Step"), run_database_step, host
    )
    test_client = captured["app"].test_client()

    resp = test_client.get(
        "/test-step/choices/datastore", query_string={"user_id": USER_ID}
    )
    assert resp.status_code == 404
    resp = test_client.get(
        "/test-step/complete", query_string={"user_id": USER_ID}
    )
    assert resp.status_code == 404


def test_create_step_server_update(captured, host):
    client = _DummyClient()
    builder = database_step_builder().update()

    handlers.create_step_server(client, builder, run_database_step, host)

    assert len(client.updated) == 1
    assert len(client.registered) == 0


def test_create_step_server_updates_on_conflict(captured, host):
    client = _DummyClient(register_error=ClientError("exists", status_code=409))

    handlers.create_step_server(
        client, database_step_builder(), run_database_step, host
    )

    assert len(client.updated) == 1


def test_create_step_server_retries_registration(monkeypatch, captured, host):
    sleeps = []
    monkeypatch.setattr(handlers.time, "sleep", sleeps.append)
    client = _DummyClient(failures=2)

    handlers.create_step_server(
        client, database_step_builder(), run_database_step, host
    )

    assert len(client.registered) == 1
    assert sleeps == [2, 4]


def test_create_step_server_gives_up(monkeypatch, captured, host):
    monkeypatch.setattr(handlers.time, "sleep", lambda seconds: None)
    client = _DummyClient(failures=handlers.MAX_REGISTRATION_ATTEMPTS)

    with pytest.raises(ClientError):
        handlers.create_step_server(
            client, database_step_builder(), run_database_step, host
        )
    assert "app" not in captured
