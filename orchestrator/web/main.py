"""Orchestrator Backend FastAPI Application

Main entry point for the HTTP façade over the workflow engine and its data
index.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..common.config import get_settings
from ..core.logger import configure_logging
from ..services.data_index import DataIndexService
from ..services.sonataflow import SonataFlowService
from .api import instances, workflows


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup: one HTTP client shared by all collaborator services
    settings = get_settings()
    configure_logging(settings["log_level"])

    async with httpx.AsyncClient(timeout=settings["request_timeout"]) as client:
        app.state.data_index = DataIndexService(client, settings["data_index_url"])
        app.state.sonataflow = SonataFlowService(client, settings["sonataflow_url"])
        yield


app = FastAPI(
    title="Orchestrator Backend",
    description="""
    ## Orchestrator API

    Thin HTTP layer over a serverless workflow engine and its process instance
    data index.

    ### API Structure
    - **Workflows**: Listing, overviews, execution, abort and input forms
    - **Instances**: Process instances, their assessments and jobs

    ### Input Forms
    `GET /api/workflows/{workflowId}/inputSchema` splits the workflow's input
    schema into form steps and pre-fills them from an existing instance, or
    from an assessment instance whose fields are then read-only.
    """,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Workflows",
            "description": "Workflow definitions, execution and input forms.",
        },
        {
            "name": "Instances",
            "description": "Process instances recorded by the data index.",
        },
        {
            "name": "Health",
            "description": "System health checks.",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(workflows.router, prefix="/api/workflows", tags=["Workflows"])
app.include_router(instances.router, prefix="/api/instances", tags=["Instances"])


@app.get(
    "/health",
    tags=["Health"],
    summary="Health Check",
    description="Simple health check endpoint to verify API availability.",
)
async def health_check():
    """Basic health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
