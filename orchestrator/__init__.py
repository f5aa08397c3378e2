"""Orchestrator - HTTP façade over a serverless workflow engine.

This module exposes the input form resolution pipeline used by the
``/workflows/{workflowId}/inputSchema`` endpoint.

Example:
    >>> from orchestrator import parse_composition, extract_initial_state
    >>>
    >>> fragments = parse_composition(workflow_info["inputSchema"])
    >>> values = extract_initial_state(fragments, instance_variables)
"""

from orchestrator.common.errors import (
    InstanceNotFoundError,
    OrchestratorError,
    SchemaError,
    UnavailableError,
    WorkflowNotFoundError,
)
from orchestrator.core.assessment import merge_initial_state
from orchestrator.core.composition import classify_schema, parse_composition
from orchestrator.core.initial_state import extract_initial_state
from orchestrator.core.resolver import InputSchemaResolver
from orchestrator.schemas.instance import ABSENT, Present

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "parse_composition",
    "classify_schema",
    "extract_initial_state",
    "merge_initial_state",
    "InputSchemaResolver",
    # Instance lookups
    "Present",
    "ABSENT",
    # Version
    "__version__",
    # Exceptions
    "OrchestratorError",
    "WorkflowNotFoundError",
    "InstanceNotFoundError",
    "UnavailableError",
    "SchemaError",
]


# Import app lazily so that 'orchestrator.web.main:app' works for uvicorn
def __getattr__(name):
    if name == "app":
        from orchestrator.web.main import app

        return app
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
