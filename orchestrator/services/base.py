import logging
from typing import Any, Optional

import httpx

from ..common.errors import UnavailableError

logger = logging.getLogger("orchestrator.services")


class HttpService:
    """Shared request handling for the workflow engine and data index clients.

    A 404 is reported as ``None``; any other failure is raised as
    ``UnavailableError``.
    """

    name = "service"

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self.client = client
        self.url = url.rstrip("/")

    async def _send(
        self, method: str, url: str, **kwargs: Any
    ) -> Optional[httpx.Response]:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request {method} {url} failed: {e}")
            raise UnavailableError(f"{self.name} is unreachable: {e}") from e

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.debug(f"{self.name} returned 404 for {method} {url}")
            return None

        if response.is_error:
            logger.warning(
                f"{self.name} request {method} {url} returned {response.status_code}"
            )
            raise UnavailableError(
                f"{self.name} returned HTTP {response.status_code} for {url}"
            )

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UnavailableError(
                f"Invalid JSON returned by {response.request.url}"
            ) from e
