from fastapi import Depends, Request

from ..core.resolver import InputSchemaResolver
from ..services.data_index import DataIndexService
from ..services.sonataflow import SonataFlowService
from ..services.workflows import WorkflowCatalog, WorkflowSourceLookup


def get_data_index(request: Request) -> DataIndexService:
    """Data index dependency"""
    return request.app.state.data_index


def get_sonataflow(request: Request) -> SonataFlowService:
    """Workflow engine dependency"""
    return request.app.state.sonataflow


def get_resolver(
    data_index: DataIndexService = Depends(get_data_index),
    sonataflow: SonataFlowService = Depends(get_sonataflow),
) -> InputSchemaResolver:
    """Input schema resolver dependency"""
    return InputSchemaResolver(
        definitions=WorkflowSourceLookup(data_index, sonataflow),
        runtime=sonataflow,
        instances=data_index,
    )


def get_catalog(
    data_index: DataIndexService = Depends(get_data_index),
    sonataflow: SonataFlowService = Depends(get_sonataflow),
) -> WorkflowCatalog:
    """Workflow catalog dependency"""
    return WorkflowCatalog(data_index, sonataflow)
