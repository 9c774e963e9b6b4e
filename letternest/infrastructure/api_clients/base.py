"""Shared aiohttp plumbing for third-party API clients."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from letternest.infrastructure.logging import LoggerMixin


@dataclass
class APIResponse:
    """Status, decoded JSON (when the body was JSON) and raw text of a response."""

    status: int
    payload: Any
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HTTPAPIClient(LoggerMixin):
    """Base class for clients that talk to a JSON HTTP API.

    A new ``aiohttp.ClientSession`` is opened per call; calls are never
    retried.
    """

    service_name = "HTTP API"

    def __init__(self, timeout: int = 120):
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        data: Optional[Any] = None,
    ) -> APIResponse:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_body,
                data=data,
            ) as response:
                text = await response.text()
                try:
                    payload = json.loads(text) if text else None
                except json.JSONDecodeError:
                    payload = None

                if response.status >= 400:
                    self.logger.error(
                        f"{self.service_name} request failed",
                        status=response.status,
                        url=url,
                        body=text[:500],
                    )
                return APIResponse(status=response.status, payload=payload, text=text)
