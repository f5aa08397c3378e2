"""Tests for the HTTP API."""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeEngine
from orchestrator.services.data_index import DataIndexService
from orchestrator.services.sonataflow import SonataFlowService
from orchestrator.web.dependencies import get_data_index, get_sonataflow
from orchestrator.web.main import app


@pytest.fixture
def client(engine):
    """Test client whose collaborators talk to the fake engine."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(engine))
    app.dependency_overrides[get_data_index] = lambda: DataIndexService(
        http_client, FakeEngine.data_index_url
    )
    app.dependency_overrides[get_sonataflow] = lambda: SonataFlowService(
        http_client, FakeEngine.sonataflow_url
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
    asyncio.run(http_client.aclose())


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_input_schema_with_primary_instance(client, engine):
    """Primary instance data pre-fills the form and nothing is read-only."""
    engine.instances["primary"] = {
        "id": "primary",
        "variables": {"workflowdata": {"name": "Ann"}},
    }
    engine.instances["assessment"] = {
        "id": "assessment",
        "variables": {"workflowdata": {"name": "Ann", "age": 30, "email": "a@x.com"}},
    }

    response = client.get(
        "/api/workflows/onboarding/inputSchema",
        params={"instanceId": "primary", "assessmentInstanceId": "assessment"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["workflowItem"]["uri"] == "onboarding.sw.json"
    assert [s["$id"] for s in body["schemas"]] == ["personal", "contact"]
    assert list(body["schemas"][0]["properties"]) == ["name", "age"]
    assert body["initialState"] == {"values": [{"name": "Ann"}, {}], "readonlyKeys": []}


def test_input_schema_from_assessment(client, engine):
    """Assessment data fills an empty form and becomes read-only."""
    engine.instances["assessment"] = {
        "id": "assessment",
        "variables": {"workflowdata": {"age": 30, "email": "a@x.com"}},
    }

    response = client.get(
        "/api/workflows/onboarding/inputSchema",
        params={"assessmentInstanceId": "assessment"},
    )

    assert response.status_code == 200
    assert response.json()["initialState"] == {
        "values": [{"age": 30}, {"email": "a@x.com"}],
        "readonlyKeys": ["age", "email"],
    }


def test_input_schema_not_required(client, engine):
    """Workflows without a data input schema need no input."""
    engine.sources["onboarding"].pop("dataInputSchema")

    response = client.get("/api/workflows/onboarding/inputSchema")

    assert response.status_code == 200
    assert response.json()["schemas"] == []
    assert response.json()["initialState"] == {"values": [], "readonlyKeys": []}


def test_input_schema_unknown_workflow(client):
    response = client.get("/api/workflows/unknown/inputSchema")

    assert response.status_code == 404
    assert "unknown" in response.json()["detail"]


def test_input_schema_without_endpoint(client, engine):
    engine.definitions[0].pop("serviceUrl")

    response = client.get("/api/workflows/onboarding/inputSchema")

    assert response.status_code == 404
    assert "service URL" in response.json()["detail"]


def test_input_schema_malformed(client, engine):
    engine.input_schema = {"allOf": [{"$ref": "#/$defs/Missing"}]}

    response = client.get("/api/workflows/onboarding/inputSchema")

    assert response.status_code == 500
    assert "Missing" in response.json()["detail"]


def test_input_schema_data_index_down(client, engine):
    engine.fail_graphql = True

    response = client.get("/api/workflows/onboarding/inputSchema")

    assert response.status_code == 503


def test_list_definitions(client):
    response = client.get("/api/workflows/definitions")

    assert response.status_code == 200
    assert response.json()[0]["id"] == "onboarding"


def test_get_workflow_source(client):
    response = client.get("/api/workflows/onboarding/source")

    assert response.status_code == 200
    assert response.json()["uri"] == "onboarding.sw.json"
    assert client.get("/api/workflows/unknown/source").status_code == 404


def test_execute_workflow(client, engine):
    response = client.post(
        "/api/workflows/onboarding/execute",
        params={"businessKey": "assessment"},
        json={"name": "Ann"},
    )

    assert response.status_code == 200
    assert response.json() == {"id": "new-instance"}
    assert engine.executed == [("onboarding", {"name": "Ann"}, "assessment")]


def test_execute_workflow_without_endpoint(client, engine):
    engine.definitions[0].pop("serviceUrl")

    response = client.post("/api/workflows/onboarding/execute", json={})

    assert response.status_code == 404
    assert engine.executed == []


def test_abort_instance(client, engine):
    response = client.delete("/api/workflows/i-1/abort")

    assert response.status_code == 200
    assert engine.aborted == ["i-1"]


def test_list_instances(client, engine):
    engine.instances["i-1"] = {"id": "i-1", "processId": "onboarding", "variables": {}}

    response = client.get("/api/instances/")

    assert response.status_code == 200
    assert response.json() == [{"id": "i-1", "processId": "onboarding"}]


def test_get_instance_with_assessment(client, engine):
    engine.instances["i-1"] = {
        "id": "i-1",
        "businessKey": "a-1",
        "variables": {"workflowdata": {}},
    }
    engine.instances["a-1"] = {"id": "a-1", "variables": {"workflowdata": {}}}

    with_assessment = client.get(
        "/api/instances/i-1", params={"includeAssessment": "true"}
    )
    without_assessment = client.get("/api/instances/i-1")

    assert with_assessment.status_code == 200
    assert with_assessment.json()["assessedBy"]["id"] == "a-1"
    assert without_assessment.json()["assessedBy"] is None


def test_get_unknown_instance(client):
    assert client.get("/api/instances/nope").status_code == 404


def test_get_instance_jobs(client, engine):
    engine.jobs["i-1"] = [{"id": "job-1", "status": "SCHEDULED"}]

    response = client.get("/api/instances/i-1/jobs")

    assert response.status_code == 200
    assert response.json() == [{"id": "job-1", "status": "SCHEDULED"}]


def test_list_workflows(client):
    response = client.get("/api/workflows/")

    assert response.status_code == 200
    body = response.json()
    assert body["totalCount"] == 1
    assert body["items"][0]["uri"] == "onboarding.sw.json"
    assert body["items"][0]["definition"]["id"] == "onboarding"


def test_list_workflows_skips_missing_sources(client, engine):
    """Definitions the engine has no source for are left out."""
    engine.definitions.append({"id": "retired", "serviceUrl": FakeEngine.service_url})

    response = client.get("/api/workflows/")

    assert [item["definition"]["id"] for item in response.json()["items"]] == [
        "onboarding"
    ]


def test_workflow_overview(client, engine):
    """The overview reports the latest run and the mean duration of finished runs."""
    engine.sources["onboarding"]["annotations"] = ["workflow-type/assessment"]
    engine.instances["old"] = {
        "id": "old",
        "processId": "onboarding",
        "state": "COMPLETED",
        "start": "2024-01-01T10:00:00+00:00",
        "end": "2024-01-01T10:00:02+00:00",
    }
    engine.instances["new"] = {
        "id": "new",
        "processId": "onboarding",
        "state": "ACTIVE",
        "start": "2024-01-02T10:00:00+00:00",
        "end": None,
    }

    response = client.get("/api/workflows/onboarding/overview")

    assert response.status_code == 200
    assert response.json() == {
        "workflowId": "onboarding",
        "name": "Onboarding",
        "uri": "onboarding.sw.json",
        "format": "json",
        "category": "assessment",
        "description": None,
        "lastRunId": "new",
        "lastRunStatus": "ACTIVE",
        "lastTriggeredMs": 1704189600000,
        "avgDurationMs": 2000.0,
    }


def test_workflow_overview_without_runs(client):
    response = client.get("/api/workflows/onboarding/overview")

    body = response.json()
    assert body["category"] == "infrastructure"
    assert body["lastRunId"] is None
    assert body["avgDurationMs"] is None


def test_unknown_workflow_overview(client):
    assert client.get("/api/workflows/unknown/overview").status_code == 404


def test_list_workflow_overviews(client):
    response = client.get("/api/workflows/overview")

    assert response.status_code == 200
    assert [o["workflowId"] for o in response.json()["items"]] == ["onboarding"]


def test_overviews_data_index_down(client, engine):
    engine.fail_graphql = True

    assert client.get("/api/workflows/overview").status_code == 503
