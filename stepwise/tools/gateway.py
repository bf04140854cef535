"""Tool collaborator that forwards calls to a remote tool gateway over HTTP."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..constants import DEFAULT_TOOL_TIMEOUT

logger = logging.getLogger(__name__)


class HttpToolCaller:
    """POST ``{base_url}/tools/{name}`` with the parameters as JSON.

    Non-2xx responses raise ``httpx.HTTPStatusError``, which the engine
    records as a step failure.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TOOL_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def call_tool(self, name: str, parameters: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/tools/{name}"
        logger.debug(f"Forwarding tool {name} to {url}")
        if self._client is not None:
            response = await self._client.post(url, json=parameters, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=parameters)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    async def __call__(self, name: str, parameters: Dict[str, Any]) -> Any:
        return await self.call_tool(name, parameters)
