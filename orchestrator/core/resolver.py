import asyncio
from typing import Optional, Protocol, Tuple

from ..common.errors import UnavailableError, WorkflowNotFoundError
from ..schemas.instance import ABSENT, InstanceLookup
from ..schemas.state import MergedInitialState
from ..schemas.workflow import (
    WorkflowDataInputSchema,
    WorkflowItem,
    WorkflowRuntimeInfo,
    WorkflowSource,
)
from .assessment import merge_initial_state
from .composition import parse_composition
from .initial_state import extract_initial_state
from .logger import ResolutionLogger


class WorkflowDefinitionLookup(Protocol):
    async def get_workflow_source(self, workflow_id: str) -> Optional[WorkflowSource]:
        ...


class WorkflowRuntimeInfoLookup(Protocol):
    async def fetch_workflow_info(
        self, workflow_id: str, service_url: str
    ) -> Optional[WorkflowRuntimeInfo]:
        ...


class InstanceVariablesLookup(Protocol):
    async def fetch_instance_variables(self, instance_id: str) -> InstanceLookup:
        ...


class InputSchemaResolver:
    """Computes the form a user fills in to start or resume a workflow.

    The resolver is the only part of the input schema pipeline that performs
    I/O. It fetches the workflow definition and its runtime input schema,
    splits the schema into form fragments, and pre-fills them from the
    primary instance or, failing that, from the assessment instance.

    Missing workflow data, uri or service URL, an unusable runtime response
    and a malformed schema are fatal. A primary or assessment instance without
    recorded data only means there is nothing to pre-fill for that role.
    """

    def __init__(
        self,
        definitions: WorkflowDefinitionLookup,
        runtime: WorkflowRuntimeInfoLookup,
        instances: InstanceVariablesLookup,
    ) -> None:
        self.definitions = definitions
        self.runtime = runtime
        self.instances = instances

    async def resolve(
        self,
        workflow_id: str,
        instance_id: Optional[str] = None,
        assessment_instance_id: Optional[str] = None,
    ) -> WorkflowDataInputSchema:
        log = ResolutionLogger(workflow_id)

        source = await self.definitions.get_workflow_source(workflow_id)
        if source is None:
            raise WorkflowNotFoundError(workflow_id)
        if not source["service_url"]:
            raise WorkflowNotFoundError(workflow_id, "service URL is not defined")
        if not source["definition"]:
            raise WorkflowNotFoundError(workflow_id, "workflow definition not found")
        if not source["uri"]:
            raise WorkflowNotFoundError(workflow_id, "workflow uri not found")

        definition = source["definition"]
        response = WorkflowDataInputSchema(
            workflow_item=WorkflowItem(uri=source["uri"], definition=definition),
            schemas=[],
            initial_state=MergedInitialState(values=[], readonly_keys=[]),
        )

        if not definition.get("dataInputSchema"):
            log.debug("No data input schema declared")
            return response

        info = await self.runtime.fetch_workflow_info(
            workflow_id, source["service_url"]
        )
        if info is None:
            raise UnavailableError(f"Couldn't fetch workflow info {workflow_id}")

        input_schema = info.get("inputSchema")
        if not input_schema:
            log.info("Workflow runtime reports no input schema")
            return response

        fragments = parse_composition(input_schema)
        log.debug(f"Input schema split into {len(fragments)} fragment(s)")

        primary, assessment = await self._fetch_variables(
            instance_id, assessment_instance_id, log
        )

        primary_state = extract_initial_state(fragments, primary)
        assessment_state = (
            extract_initial_state(fragments, assessment) if assessment else None
        )
        initial_state = merge_initial_state(primary_state, assessment_state)

        if initial_state["readonly_keys"]:
            log.info(
                f"Pre-filled {len(initial_state['readonly_keys'])} field(s) "
                f"from assessment instance {assessment_instance_id}"
            )

        response["schemas"] = fragments
        response["initial_state"] = initial_state
        return response

    async def _fetch_variables(
        self,
        instance_id: Optional[str],
        assessment_instance_id: Optional[str],
        log: ResolutionLogger,
    ) -> Tuple[InstanceLookup, InstanceLookup]:
        try:
            async with asyncio.TaskGroup() as group:
                primary = group.create_task(
                    self._lookup_instance(instance_id, "instance", log)
                )
                assessment = group.create_task(
                    self._lookup_instance(
                        assessment_instance_id, "assessment instance", log
                    )
                )
        except ExceptionGroup as errors:
            raise errors.exceptions[0]

        return primary.result(), assessment.result()

    async def _lookup_instance(
        self, instance_id: Optional[str], role: str, log: ResolutionLogger
    ) -> InstanceLookup:
        if not instance_id:
            return ABSENT

        variables = await self.instances.fetch_instance_variables(instance_id)
        if not variables:
            log.info(f"No data recorded for {role} {instance_id}")
        return variables
