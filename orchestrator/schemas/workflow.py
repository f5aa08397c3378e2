from typing import Any, Dict, List, Optional, TypedDict

from .input_schema import JsonObject, SchemaFragment
from .state import MergedInitialState


class WorkflowItem(TypedDict):
    uri: str
    definition: JsonObject


class WorkflowSource(TypedDict):
    uri: Optional[str]
    definition: Optional[JsonObject]
    service_url: Optional[str]


class WorkflowRuntimeInfo(TypedDict, total=False):
    id: str
    name: str
    description: str
    inputSchema: JsonObject


class WorkflowDataInputSchema(TypedDict):
    workflow_item: WorkflowItem
    schemas: List[SchemaFragment]
    initial_state: MergedInitialState


class ProcessDefinition(TypedDict, total=False):
    id: str
    name: str
    version: str
    type: str
    endpoint: str
    serviceUrl: str
    description: str


class ProcessInstance(TypedDict, total=False):
    id: str
    processId: str
    processName: str
    businessKey: Optional[str]
    state: str
    start: str
    end: Optional[str]
    lastUpdate: str
    endpoint: str
    serviceUrl: str
    variables: Dict[str, Any]


class WorkflowOverview(TypedDict):
    workflowId: str
    name: Optional[str]
    uri: Optional[str]
    format: Optional[str]
    category: str
    description: Optional[str]
    lastRunId: Optional[str]
    lastRunStatus: Optional[str]
    lastTriggeredMs: Optional[int]
    avgDurationMs: Optional[float]
