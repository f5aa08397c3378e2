"""Test configuration and fixtures."""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from orchestrator.schemas.instance import ABSENT, InstanceLookup, lookup_of
from orchestrator.schemas.workflow import WorkflowRuntimeInfo, WorkflowSource


class FakeDefinitions:
    """In-memory workflow definition lookup."""

    def __init__(self, sources: Dict[str, WorkflowSource]):
        self.sources = sources
        self.calls: List[str] = []

    async def get_workflow_source(self, workflow_id: str) -> Optional[WorkflowSource]:
        self.calls.append(workflow_id)
        return self.sources.get(workflow_id)


class FakeRuntime:
    """In-memory workflow runtime introspection."""

    def __init__(self, infos: Dict[str, Optional[WorkflowRuntimeInfo]]):
        self.infos = infos
        self.calls: List[Tuple[str, str]] = []

    async def fetch_workflow_info(
        self, workflow_id: str, service_url: str
    ) -> Optional[WorkflowRuntimeInfo]:
        self.calls.append((workflow_id, service_url))
        return self.infos.get(workflow_id)


class FakeInstances:
    """In-memory instance variables lookup."""

    def __init__(self, variables: Dict[str, Any], errors: Optional[Dict[str, Exception]] = None):
        self.variables = variables
        self.errors = errors or {}
        self.calls: List[str] = []

    async def fetch_instance_variables(self, instance_id: str) -> InstanceLookup:
        self.calls.append(instance_id)
        if instance_id in self.errors:
            raise self.errors[instance_id]
        if instance_id not in self.variables:
            return ABSENT
        return lookup_of(self.variables[instance_id])


@pytest.fixture
def two_step_schema():
    """Input schema with a 'personal' and a 'contact' step."""
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "personal": {"$ref": "#/$defs/Personal"},
            "contact": {"$ref": "#/$defs/Contact"},
        },
        "$defs": {
            "Personal": {
                "title": "Personal details",
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "age": {"type": "integer", "minimum": 0},
                },
                "required": ["name"],
            },
            "Contact": {
                "title": "Contact",
                "type": "object",
                "properties": {"email": {"type": "string", "format": "email"}},
            },
        },
    }


@pytest.fixture
def flat_schema():
    """Single-step input schema."""
    return {
        "$id": "greeting",
        "title": "Greeting",
        "type": "object",
        "properties": {
            "language": {"type": "string", "enum": ["en", "es"]},
            "name": {"type": "string"},
        },
    }


@pytest.fixture
def workflow_source():
    """Workflow source with a declared data input schema."""
    return WorkflowSource(
        uri="onboarding.sw.json",
        definition={
            "id": "onboarding",
            "version": "1.0",
            "dataInputSchema": "schemas/onboarding.json",
        },
        service_url="http://onboarding:8080",
    )


class FakeEngine:
    """httpx handler standing in for the workflow engine and its data index.

    Serves the data index GraphQL endpoint at ``http://engine/graphql``, the
    engine management API at ``http://engine`` and a workflow service at
    ``http://onboarding:8080``.
    """

    data_index_url = "http://engine/graphql"
    sonataflow_url = "http://engine"
    service_url = "http://onboarding:8080"

    def __init__(self, input_schema: Optional[Dict[str, Any]] = None):
        self.definitions = [
            {
                "id": "onboarding",
                "name": "Onboarding",
                "version": "1.0",
                "serviceUrl": self.service_url,
            }
        ]
        self.sources = {
            "onboarding": {
                "id": "onboarding",
                "version": "1.0",
                "dataInputSchema": "schemas/onboarding.json",
            }
        }
        self.input_schema = input_schema
        self.instances: Dict[str, Dict[str, Any]] = {}
        self.jobs: Dict[str, List[Dict[str, Any]]] = {}
        self.aborted: List[str] = []
        self.executed: List[Tuple[str, Any, Optional[str]]] = []
        self.requests: List[httpx.Request] = []
        self.fail_graphql = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?")[0]

        if url == self.data_index_url:
            return self._graphql(json.loads(request.content))

        prefix = f"{self.sonataflow_url}/management/processes/"
        if url.startswith(prefix) and url.endswith("/sources"):
            workflow_id = url[len(prefix) : -len("/sources")]
            if workflow_id not in self.sources:
                return httpx.Response(404)
            return httpx.Response(200, json=[{"uri": f"{workflow_id}.sw.json"}])

        if url.startswith(prefix) and url.endswith("/source"):
            workflow_id = url[len(prefix) : -len("/source")]
            if workflow_id not in self.sources:
                return httpx.Response(404)
            return httpx.Response(200, json=self.sources[workflow_id])

        if url == f"{self.service_url}/management/processes/onboarding":
            info: Dict[str, Any] = {"id": "onboarding", "name": "Onboarding"}
            if self.input_schema is not None:
                info["inputSchema"] = self.input_schema
            return httpx.Response(200, json=info)

        if url == f"{self.service_url}/onboarding" and request.method == "POST":
            self.executed.append(
                (
                    "onboarding",
                    json.loads(request.content),
                    request.url.params.get("businessKey"),
                )
            )
            return httpx.Response(201, json={"id": "new-instance"})

        return httpx.Response(404)

    def _graphql(self, payload: Dict[str, Any]) -> httpx.Response:
        if self.fail_graphql:
            return httpx.Response(200, json={"errors": [{"message": "index down"}]})

        query = payload["query"]
        variables = payload.get("variables", {})
        target = variables.get("id")

        if "ProcessInstanceAbort" in query:
            self.aborted.append(target)
            return httpx.Response(200, json={"data": {"ProcessInstanceAbort": target}})

        if "ProcessDefinitions" in query:
            definitions = [
                d for d in self.definitions if target is None or d["id"] == target
            ]
            return httpx.Response(200, json={"data": {"ProcessDefinitions": definitions}})

        if "Jobs" in query:
            return httpx.Response(
                200, json={"data": {"Jobs": self.jobs.get(target, [])}}
            )

        if "ProcessInstances" in query and "processId" in variables:
            instances = sorted(
                (
                    {k: v for k, v in i.items() if k != "variables"}
                    for i in self.instances.values()
                    if i.get("processId") == variables["processId"]
                ),
                key=lambda i: i.get("start") or "",
                reverse=True,
            )
            return httpx.Response(200, json={"data": {"ProcessInstances": instances}})

        if "ProcessInstances" in query:
            if target is None:
                instances = [
                    {k: v for k, v in i.items() if k != "variables"}
                    for i in self.instances.values()
                ]
            else:
                instances = [self.instances[target]] if target in self.instances else []
            return httpx.Response(200, json={"data": {"ProcessInstances": instances}})

        return httpx.Response(400, json={"errors": [{"message": "unknown query"}]})


@pytest.fixture
def engine(two_step_schema):
    """Fake workflow engine serving the two-step input schema."""
    return FakeEngine(two_step_schema)


@pytest_asyncio.fixture
async def http_client(engine):
    """httpx client routed to the fake engine."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(engine))
    yield client
    await client.aclose()
