import json
import logging
from typing import Any, Dict, List, Optional

from ..common.errors import UnavailableError
from ..schemas.instance import ABSENT, InstanceLookup, lookup_of
from ..schemas.workflow import ProcessDefinition, ProcessInstance
from .base import HttpService

logger = logging.getLogger("orchestrator.services.data_index")

PROCESS_DEFINITION_FIELDS = "id, name, version, type, endpoint, serviceUrl, description"

PROCESS_INSTANCE_FIELDS = (
    "id, processId, processName, businessKey, state, start, end, "
    "lastUpdate, endpoint, serviceUrl"
)

JOB_FIELDS = (
    "id, processId, processInstanceId, rootProcessInstanceId, status, "
    "expirationTime, priority, callbackEndpoint, repeatInterval, repeatLimit, "
    "scheduledId, retries, lastUpdate, executionCounter, endpoint, nodeInstanceId"
)


class DataIndexService(HttpService):
    """GraphQL client for the process instance query index."""

    name = "Data index"

    async def _query(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        response = await self._send("POST", self.url, json=payload)
        if response is None:
            raise UnavailableError(f"Data index endpoint {self.url} not found")

        body = self._json(response)
        if not isinstance(body, dict):
            raise UnavailableError("Data index response is not a JSON object")
        if body.get("errors"):
            logger.error(f"Data index query failed: {body['errors']}")
            raise UnavailableError(f"Data index query failed: {body['errors']}")

        data = body.get("data") or {}
        if not isinstance(data, dict):
            raise UnavailableError("Data index response data is not a JSON object")
        return data

    async def get_workflow_definitions(self) -> List[ProcessDefinition]:
        data = await self._query(
            f"{{ ProcessDefinitions {{ {PROCESS_DEFINITION_FIELDS} }} }}"
        )
        return _records(data, "ProcessDefinitions")

    async def get_workflow_definition(
        self, workflow_id: str
    ) -> Optional[ProcessDefinition]:
        data = await self._query(
            "query ($id: String) { ProcessDefinitions(where: {id: {equal: $id}}) "
            f"{{ {PROCESS_DEFINITION_FIELDS} }} }}",
            {"id": workflow_id},
        )
        definitions = _records(data, "ProcessDefinitions")
        return definitions[0] if definitions else None

    async def fetch_process_instances(self) -> List[ProcessInstance]:
        data = await self._query(
            "{ ProcessInstances(orderBy: {start: ASC}, "
            "where: {processId: {isNull: false}}) "
            f"{{ {PROCESS_INSTANCE_FIELDS} }} }}"
        )
        return _records(data, "ProcessInstances")

    async def fetch_workflow_instances(self, workflow_id: str) -> List[ProcessInstance]:
        """Instances of one workflow, most recently started first."""
        data = await self._query(
            "query ($processId: String) { ProcessInstances("
            "where: {processId: {equal: $processId}}, orderBy: {start: DESC}) "
            "{ id, processId, state, start, end } }",
            {"processId": workflow_id},
        )
        return _records(data, "ProcessInstances")

    async def fetch_process_instance(
        self, instance_id: str
    ) -> Optional[ProcessInstance]:
        data = await self._query(
            "query ($id: String) { ProcessInstances(where: {id: {equal: $id}}) "
            f"{{ {PROCESS_INSTANCE_FIELDS}, variables }} }}",
            {"id": instance_id},
        )
        instances = _records(data, "ProcessInstances")
        if not instances:
            return None

        instance = instances[0]
        instance["variables"] = _decode_variables(instance.get("variables"))
        return instance

    async def fetch_instance_variables(self, instance_id: str) -> InstanceLookup:
        data = await self._query(
            "query ($id: String) { ProcessInstances(where: {id: {equal: $id}}) "
            "{ variables } }",
            {"id": instance_id},
        )
        instances = _records(data, "ProcessInstances")
        if not instances:
            return ABSENT
        return lookup_of(_decode_variables(instances[0].get("variables")))

    async def fetch_process_instance_jobs(self, instance_id: str) -> List[Dict[str, Any]]:
        data = await self._query(
            "query ($id: String) { Jobs(where: {processInstanceId: {equal: $id}}) "
            f"{{ {JOB_FIELDS} }} }}",
            {"id": instance_id},
        )
        return _records(data, "Jobs")

    async def abort_workflow_instance(self, instance_id: str) -> None:
        await self._query(
            "mutation ($id: String) { ProcessInstanceAbort(id: $id) }",
            {"id": instance_id},
        )
        logger.info(f"Aborted process instance {instance_id}")


def _decode_variables(raw: Any) -> Optional[Dict[str, Any]]:
    # Older data index versions return variables as a JSON string
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise UnavailableError("Data index returned malformed variables") from e
    if isinstance(raw, dict):
        return raw
    return None


def _records(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    records = data.get(key) or []
    if not isinstance(records, list) or not all(
        isinstance(record, dict) for record in records
    ):
        raise UnavailableError(f"Data index returned malformed {key}")
    return records
