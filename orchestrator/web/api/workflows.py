"""Workflow API Endpoints

Provides REST endpoints that delegate workflow listing, execution and abort
to the workflow engine and data index, and resolves the input form of a
workflow.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ...common.errors import (
    SchemaError,
    UnavailableError,
    WorkflowNotFoundError,
)
from ...core.resolver import InputSchemaResolver
from ...services.data_index import DataIndexService
from ...services.sonataflow import SonataFlowService
from ...services.workflows import WorkflowCatalog
from ..dependencies import get_catalog, get_data_index, get_resolver, get_sonataflow
from ..schemas import (
    ErrorResponse,
    ExecuteWorkflowResponse,
    WorkflowDataInputSchemaResponse,
    WorkflowItem,
    WorkflowListResponse,
    WorkflowOverviewListResponse,
    WorkflowOverviewResponse,
)

router = APIRouter()


@router.get(
    "/",
    response_model=WorkflowListResponse,
    summary="List workflows",
    description="Deployed workflows with their source definitions.",
    responses={503: {"model": ErrorResponse, "description": "Workflow engine unavailable"}},
)
async def list_workflows(catalog: WorkflowCatalog = Depends(get_catalog)):
    """List workflows"""
    try:
        items = await catalog.list_workflows()
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return WorkflowListResponse(
        items=[WorkflowItem(**item) for item in items], total_count=len(items)
    )


@router.get(
    "/overview",
    response_model=WorkflowOverviewListResponse,
    summary="List workflow overviews",
    description="""
    Summarise every deployed workflow.

    **Each overview includes:**
    - `lastRunId`, `lastRunStatus`, `lastTriggeredMs`: The most recent run
    - `avgDurationMs`: Mean duration of finished runs
    - `category`: `assessment` or `infrastructure`
    """,
    responses={503: {"model": ErrorResponse, "description": "Workflow engine unavailable"}},
)
async def list_workflow_overviews(catalog: WorkflowCatalog = Depends(get_catalog)):
    """List workflow overviews"""
    try:
        overviews = await catalog.get_overviews()
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return WorkflowOverviewListResponse(
        items=[WorkflowOverviewResponse(**overview) for overview in overviews]
    )


@router.get(
    "/{workflow_id}/overview",
    response_model=WorkflowOverviewResponse,
    summary="Get workflow overview",
    responses={
        404: {"model": ErrorResponse, "description": "Workflow not found"},
        503: {"model": ErrorResponse, "description": "Workflow engine unavailable"},
    },
)
async def get_workflow_overview(
    workflow_id: str, catalog: WorkflowCatalog = Depends(get_catalog)
):
    """Get a workflow's overview"""
    try:
        overview = await catalog.get_overview(workflow_id)
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if overview is None:
        raise HTTPException(
            status_code=404, detail=f"Workflow {workflow_id} not found"
        )
    return WorkflowOverviewResponse(**overview)



@router.get(
    "/definitions",
    response_model=List[Dict[str, Any]],
    summary="List workflow definitions",
    description="Process definitions known to the data index.",
    responses={503: {"model": ErrorResponse, "description": "Data index unavailable"}},
)
async def list_workflow_definitions(
    data_index: DataIndexService = Depends(get_data_index),
):
    """List process definitions"""
    try:
        return await data_index.get_workflow_definitions()
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get(
    "/{workflow_id}/source",
    response_model=WorkflowItem,
    summary="Get workflow source",
    description="The workflow's source definition and the uri it was loaded from.",
    responses={
        404: {"model": ErrorResponse, "description": "Workflow not found"},
        503: {"model": ErrorResponse, "description": "Workflow engine unavailable"},
    },
)
async def get_workflow_source(
    workflow_id: str, sonataflow: SonataFlowService = Depends(get_sonataflow)
):
    """Get a workflow's source definition"""
    try:
        definition = await sonataflow.fetch_workflow_definition(workflow_id)
        uri = await sonataflow.fetch_workflow_uri(workflow_id) if definition else None
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if definition is None or uri is None:
        raise HTTPException(
            status_code=404, detail=f"Workflow {workflow_id} not found"
        )
    return WorkflowItem(uri=uri, definition=definition)


@router.post(
    "/{workflow_id}/execute",
    response_model=ExecuteWorkflowResponse,
    summary="Execute workflow",
    description="""
    Start a new instance of the workflow with the request body as its input.

    **Query Parameters:**
    - `businessKey`: Optional business key, typically the id of the
      assessment instance the new instance is started from
    """,
    responses={
        404: {"model": ErrorResponse, "description": "Workflow not found"},
        503: {"model": ErrorResponse, "description": "Workflow engine unavailable"},
    },
)
async def execute_workflow(
    workflow_id: str,
    input_data: Optional[Dict[str, Any]] = Body(None),
    business_key: Optional[str] = Query(None, alias="businessKey"),
    data_index: DataIndexService = Depends(get_data_index),
    sonataflow: SonataFlowService = Depends(get_sonataflow),
):
    """Execute a workflow"""
    try:
        definition = await data_index.get_workflow_definition(workflow_id)
        service_url = definition.get("serviceUrl") if definition else None
        if not service_url:
            raise WorkflowNotFoundError(workflow_id, "service URL is not defined")

        result = await sonataflow.execute_workflow(
            workflow_id=workflow_id,
            input_data=input_data or {},
            endpoint=service_url,
            business_key=business_key,
        )
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if not result or not result.get("id"):
        raise HTTPException(
            status_code=503, detail=f"Couldn't execute workflow {workflow_id}"
        )
    return ExecuteWorkflowResponse(id=result["id"])


@router.delete(
    "/{instance_id}/abort",
    summary="Abort workflow instance",
    responses={503: {"model": ErrorResponse, "description": "Data index unavailable"}},
)
async def abort_workflow_instance(
    instance_id: str, data_index: DataIndexService = Depends(get_data_index)
):
    """Abort a running process instance"""
    try:
        await data_index.abort_workflow_instance(instance_id)
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"id": instance_id, "status": "ABORTED"}


@router.get(
    "/{workflow_id}/inputSchema",
    response_model=WorkflowDataInputSchemaResponse,
    summary="Get workflow input schema",
    description="""
    Resolve the form a user fills in to start or resume the workflow.

    **Query Parameters:**
    - `instanceId`: Instance whose recorded data pre-fills the form
    - `assessmentInstanceId`: Assessment instance used when `instanceId` has
      no recorded data; fields taken from it are listed in `readonlyKeys`

    **Response includes:**
    - `schemas`: One JSON schema per form step, in declaration order
    - `initialState.values`: One object of known values per step
    - `initialState.readonlyKeys`: Fields that must not be edited
    """,
    responses={
        404: {"model": ErrorResponse, "description": "Workflow not found"},
        500: {"model": ErrorResponse, "description": "Malformed input schema"},
        503: {"model": ErrorResponse, "description": "Workflow engine unavailable"},
    },
)
async def get_workflow_input_schema(
    workflow_id: str,
    instance_id: Optional[str] = Query(None, alias="instanceId"),
    assessment_instance_id: Optional[str] = Query(
        None, alias="assessmentInstanceId"
    ),
    resolver: InputSchemaResolver = Depends(get_resolver),
):
    """Resolve the input schema and initial state of a workflow"""
    try:
        result = await resolver.resolve(
            workflow_id,
            instance_id=instance_id,
            assessment_instance_id=assessment_instance_id,
        )
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SchemaError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return WorkflowDataInputSchemaResponse.from_resolution(result)
