import logging
from typing import Any, Dict, Optional

from ..common.errors import UnavailableError
from ..schemas.input_schema import JsonObject
from ..schemas.workflow import WorkflowRuntimeInfo
from .base import HttpService

logger = logging.getLogger("orchestrator.services.sonataflow")


class SonataFlowService(HttpService):
    """REST client for the workflow engine's management and execution API."""

    name = "Workflow engine"

    async def fetch_workflow_definition(self, workflow_id: str) -> Optional[JsonObject]:
        response = await self._send(
            "GET", f"{self.url}/management/processes/{workflow_id}/source"
        )
        if response is None:
            return None

        definition = self._json(response)
        if not isinstance(definition, dict):
            raise UnavailableError(
                f"Workflow source of {workflow_id} is not a JSON object"
            )
        return definition

    async def fetch_workflow_uri(self, workflow_id: str) -> Optional[str]:
        response = await self._send(
            "GET", f"{self.url}/management/processes/{workflow_id}/sources"
        )
        if response is None:
            return None

        sources = self._json(response)
        if isinstance(sources, list):
            for source in sources:
                if isinstance(source, dict) and source.get("uri"):
                    return source["uri"]
        return None

    async def fetch_workflow_info(
        self, workflow_id: str, service_url: str
    ) -> Optional[WorkflowRuntimeInfo]:
        response = await self._send(
            "GET", f"{service_url.rstrip('/')}/management/processes/{workflow_id}"
        )
        if response is None:
            return None

        info = self._json(response)
        return info if isinstance(info, dict) else None

    async def execute_workflow(
        self,
        workflow_id: str,
        input_data: Dict[str, Any],
        endpoint: str,
        business_key: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        params = {"businessKey": business_key} if business_key else None
        response = await self._send(
            "POST",
            f"{endpoint.rstrip('/')}/{workflow_id}",
            json=input_data,
            params=params,
        )
        if response is None:
            return None

        result = self._json(response)
        if not isinstance(result, dict):
            raise UnavailableError(
                f"Execution response of {workflow_id} is not a JSON object"
            )
        logger.info(f"Started workflow {workflow_id}: instance {result.get('id')}")
        return result
