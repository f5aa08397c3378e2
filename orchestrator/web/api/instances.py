"""Process Instance API Endpoints

Provides REST endpoints for querying process instances through the data index.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from ...common.errors import InstanceNotFoundError, UnavailableError
from ...services.data_index import DataIndexService
from ..dependencies import get_data_index
from ..schemas import AssessedProcessInstanceResponse, ErrorResponse

router = APIRouter()


@router.get(
    "/",
    response_model=List[Dict[str, Any]],
    summary="List process instances",
    responses={503: {"model": ErrorResponse, "description": "Data index unavailable"}},
)
async def list_instances(data_index: DataIndexService = Depends(get_data_index)):
    """List process instances, oldest first"""
    try:
        return await data_index.fetch_process_instances()
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get(
    "/{instance_id}",
    response_model=AssessedProcessInstanceResponse,
    summary="Get process instance",
    description="""
    Retrieve a process instance and its variables.

    With `includeAssessment=true`, the instance referenced by the business key
    (the assessment the instance was started from) is returned as `assessedBy`.
    """,
    responses={
        404: {"model": ErrorResponse, "description": "Instance not found"},
        503: {"model": ErrorResponse, "description": "Data index unavailable"},
    },
)
async def get_instance(
    instance_id: str,
    include_assessment: bool = Query(False, alias="includeAssessment"),
    data_index: DataIndexService = Depends(get_data_index),
):
    """Get a process instance, optionally with its assessment"""
    try:
        instance = await data_index.fetch_process_instance(instance_id)
        if instance is None:
            raise InstanceNotFoundError(instance_id)

        assessed_by = None
        business_key = instance.get("businessKey")
        if include_assessment and business_key:
            assessed_by = await data_index.fetch_process_instance(business_key)

    except InstanceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return AssessedProcessInstanceResponse(instance=instance, assessed_by=assessed_by)


@router.get(
    "/{instance_id}/jobs",
    response_model=List[Dict[str, Any]],
    summary="Get process instance jobs",
    responses={503: {"model": ErrorResponse, "description": "Data index unavailable"}},
)
async def get_instance_jobs(
    instance_id: str, data_index: DataIndexService = Depends(get_data_index)
):
    """List the jobs scheduled for a process instance"""
    try:
        return await data_index.fetch_process_instance_jobs(instance_id)
    except UnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
