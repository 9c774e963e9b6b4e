"""Handle to numeric id lookup via RapidAPI."""

from typing import Optional

from letternest.infrastructure.api_clients.base import HTTPAPIClient
from letternest.infrastructure.error_handling import UpstreamAPIError, handle_service_errors


class IdentityLookupClient(HTTPAPIClient):
    """Resolves a platform handle to its numeric ``rest_id``."""

    service_name = "RapidAPI"

    def __init__(self, api_key: str, host: str = "twitter293.p.rapidapi.com", timeout: int = 30):
        super().__init__(timeout)
        self.api_key = api_key
        self.host = host

    @handle_service_errors("RapidAPI")
    async def lookup_numeric_id(self, handle: str) -> Optional[str]:
        """Return the numeric id for ``handle`` or None when the payload has none."""
        handle = handle.lstrip("@")
        response = await self._request(
            "GET",
            f"https://{self.host}/user/by/username/{handle}",
            headers={
                "x-rapidapi-key": self.api_key,
                "x-rapidapi-host": self.host,
            },
        )
        if not response.ok:
            raise UpstreamAPIError(self.service_name, "User lookup failed", response.status)

        result = ((response.payload or {}).get("user") or {}).get("result") or {}
        rest_id = result.get("rest_id")
        return str(rest_id) if rest_id else None
