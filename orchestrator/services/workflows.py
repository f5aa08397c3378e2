import logging
from datetime import datetime
from typing import List, Optional

from ..schemas.input_schema import JsonObject
from ..schemas.workflow import (
    ProcessDefinition,
    ProcessInstance,
    WorkflowItem,
    WorkflowOverview,
    WorkflowSource,
)
from .data_index import DataIndexService
from .sonataflow import SonataFlowService

logger = logging.getLogger("orchestrator.services.workflows")

ASSESSMENT_ANNOTATION = "workflow-type/assessment"


class WorkflowSourceLookup:
    """Locates a workflow's source document, uri and execution endpoint.

    The execution endpoint comes from the data index; the source document and
    its uri come from the workflow engine. The engine is not asked anything
    when the data index has no endpoint for the workflow.
    """

    def __init__(
        self, data_index: DataIndexService, sonataflow: SonataFlowService
    ) -> None:
        self.data_index = data_index
        self.sonataflow = sonataflow

    async def get_workflow_source(self, workflow_id: str) -> Optional[WorkflowSource]:
        process_definition = await self.data_index.get_workflow_definition(workflow_id)
        if process_definition is None:
            return None

        service_url = process_definition.get("serviceUrl")
        if not service_url:
            return WorkflowSource(uri=None, definition=None, service_url=None)

        definition = await self.sonataflow.fetch_workflow_definition(workflow_id)
        if definition is None:
            return WorkflowSource(uri=None, definition=None, service_url=service_url)

        uri = await self.sonataflow.fetch_workflow_uri(workflow_id)
        return WorkflowSource(uri=uri, definition=definition, service_url=service_url)


class WorkflowCatalog:
    """Lists deployed workflows and summarises how they have been running.

    Workflows are the process definitions known to the data index. Sources
    come from the workflow engine and run statistics from the instances the
    data index recorded.
    """

    def __init__(
        self, data_index: DataIndexService, sonataflow: SonataFlowService
    ) -> None:
        self.data_index = data_index
        self.sonataflow = sonataflow

    async def list_workflows(self) -> List[WorkflowItem]:
        items = []
        for process_definition in await self.data_index.get_workflow_definitions():
            workflow_id = process_definition.get("id")
            if not workflow_id:
                continue
            definition = await self.sonataflow.fetch_workflow_definition(workflow_id)
            uri = await self.sonataflow.fetch_workflow_uri(workflow_id)
            if definition is None or uri is None:
                logger.warning(f"Skipping workflow {workflow_id}: source not available")
                continue
            items.append(WorkflowItem(uri=uri, definition=definition))
        return items

    async def get_overviews(self) -> List[WorkflowOverview]:
        return [
            await self._overview_of(process_definition)
            for process_definition in await self.data_index.get_workflow_definitions()
            if process_definition.get("id")
        ]

    async def get_overview(self, workflow_id: str) -> Optional[WorkflowOverview]:
        process_definition = await self.data_index.get_workflow_definition(workflow_id)
        if process_definition is None:
            return None
        return await self._overview_of(process_definition)

    async def _overview_of(
        self, process_definition: ProcessDefinition
    ) -> WorkflowOverview:
        workflow_id = process_definition["id"]
        definition = await self.sonataflow.fetch_workflow_definition(workflow_id) or {}
        uri = await self.sonataflow.fetch_workflow_uri(workflow_id)
        instances = await self.data_index.fetch_workflow_instances(workflow_id)

        last_run = instances[0] if instances else None
        durations = [
            duration for duration in map(_duration_ms, instances) if duration is not None
        ]

        return WorkflowOverview(
            workflowId=workflow_id,
            name=definition.get("name") or process_definition.get("name"),
            uri=uri,
            format=_format_of(uri),
            category=_category_of(definition),
            description=definition.get("description")
            or process_definition.get("description"),
            lastRunId=last_run.get("id") if last_run else None,
            lastRunStatus=last_run.get("state") if last_run else None,
            lastTriggeredMs=_epoch_ms(last_run.get("start")) if last_run else None,
            avgDurationMs=sum(durations) / len(durations) if durations else None,
        )


def _category_of(definition: JsonObject) -> str:
    annotations = definition.get("annotations") or []
    if ASSESSMENT_ANNOTATION in annotations:
        return "assessment"
    return "infrastructure"


def _format_of(uri: Optional[str]) -> Optional[str]:
    if not uri:
        return None
    return "yaml" if uri.endswith((".yaml", ".yml")) else "json"


def _epoch_ms(timestamp: Optional[str]) -> Optional[int]:
    if not timestamp:
        return None
    try:
        return int(datetime.fromisoformat(timestamp).timestamp() * 1000)
    except ValueError:
        logger.warning(f"Ignoring malformed instance timestamp {timestamp!r}")
        return None


def _duration_ms(instance: ProcessInstance) -> Optional[int]:
    start = _epoch_ms(instance.get("start"))
    end = _epoch_ms(instance.get("end"))
    if start is None or end is None:
        return None
    return end - start
