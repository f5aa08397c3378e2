"""API Schema Definitions

This module contains Pydantic models that define the structure of API
responses for the orchestrator backend. Wire names are camelCase, matching
the workflow engine's own payloads.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.workflow import WorkflowDataInputSchema

# === Base Response Models ===


class ErrorResponse(BaseModel):
    """Error payload returned by every endpoint on failure"""

    detail: str = Field(
        ...,
        description="Human readable error message",
        examples=["Workflow 'onboarding': service URL is not defined"],
    )


# === Workflow Models ===


class WorkflowItem(BaseModel):
    """Workflow source document and the uri it was loaded from"""

    uri: str = Field(
        ...,
        description="Location of the workflow source",
        examples=["onboarding.sw.json"],
    )
    definition: Dict[str, Any] = Field(
        ...,
        description="Serverless workflow definition",
        examples=[
            {
                "id": "onboarding",
                "version": "1.0",
                "dataInputSchema": "schemas/onboarding.json",
            }
        ],
    )


class WorkflowListResponse(BaseModel):
    """Deployed workflows whose source the engine could provide"""

    model_config = ConfigDict(populate_by_name=True)

    items: List[WorkflowItem] = Field(default_factory=list)
    total_count: int = Field(0, alias="totalCount", description="Number of items")


class WorkflowOverviewResponse(BaseModel):
    """Summary of a workflow and its recent runs"""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(..., alias="workflowId", examples=["onboarding"])
    name: Optional[str] = Field(None, examples=["Onboarding"])
    uri: Optional[str] = Field(None, examples=["onboarding.sw.json"])
    format: Optional[str] = Field(None, description="Source format, json or yaml")
    category: str = Field(
        ..., description="assessment or infrastructure", examples=["infrastructure"]
    )
    description: Optional[str] = None
    last_run_id: Optional[str] = Field(None, alias="lastRunId")
    last_run_status: Optional[str] = Field(
        None, alias="lastRunStatus", examples=["COMPLETED"]
    )
    last_triggered_ms: Optional[int] = Field(
        None,
        alias="lastTriggeredMs",
        description="Start of the most recent run, milliseconds since the epoch",
    )
    avg_duration_ms: Optional[float] = Field(
        None,
        alias="avgDurationMs",
        description="Mean duration of finished runs in milliseconds",
    )


class WorkflowOverviewListResponse(BaseModel):
    """Overviews of every deployed workflow"""

    items: List[WorkflowOverviewResponse] = Field(default_factory=list)


class InputSchemaInitialState(BaseModel):
    """Pre-filled form values, one object per schema fragment"""

    model_config = ConfigDict(populate_by_name=True)

    values: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Known field values per fragment, in fragment order",
        examples=[[{"name": "Ann"}, {}]],
    )
    readonly_keys: List[str] = Field(
        default_factory=list,
        alias="readonlyKeys",
        description="Fields copied from the assessment instance",
        examples=[["age", "email"]],
    )


class WorkflowDataInputSchemaResponse(BaseModel):
    """Form definition for starting or resuming a workflow"""

    model_config = ConfigDict(populate_by_name=True)

    workflow_item: WorkflowItem = Field(..., alias="workflowItem")
    schemas: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Ordered JSON schemas, one per form step",
    )
    initial_state: InputSchemaInitialState = Field(
        default_factory=InputSchemaInitialState, alias="initialState"
    )

    @classmethod
    def from_resolution(
        cls, result: WorkflowDataInputSchema
    ) -> "WorkflowDataInputSchemaResponse":
        return cls(
            workflow_item=WorkflowItem(**result["workflow_item"]),
            schemas=[fragment["schema"] for fragment in result["schemas"]],
            initial_state=InputSchemaInitialState(
                values=result["initial_state"]["values"],
                readonly_keys=result["initial_state"]["readonly_keys"],
            ),
        )


class ExecuteWorkflowResponse(BaseModel):
    """Identifier of a newly started process instance"""

    id: str = Field(
        ...,
        description="Process instance id",
        examples=["3b7a8e32-55a4-4f0f-9d4a-2b1f3c4d5e6f"],
    )


# === Instance Models ===


class AssessedProcessInstanceResponse(BaseModel):
    """Process instance together with the assessment it was started from"""

    model_config = ConfigDict(populate_by_name=True)

    instance: Dict[str, Any] = Field(..., description="Process instance")
    assessed_by: Optional[Dict[str, Any]] = Field(
        None,
        alias="assessedBy",
        description="Assessment instance referenced by the instance's business key",
    )
