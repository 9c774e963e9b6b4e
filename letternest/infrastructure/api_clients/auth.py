"""Session provider client used to authenticate API callers."""

from typing import Optional

from letternest.infrastructure.api_clients.base import HTTPAPIClient


class SessionAuthClient(HTTPAPIClient):
    """Validates bearer tokens against the hosted auth provider's ``/auth/v1/user``."""

    service_name = "Auth provider"

    def __init__(self, base_url: str, api_key: str, timeout: int = 15):
        super().__init__(timeout)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    async def get_user_id(self, token: str) -> Optional[str]:
        """Return the user id owning ``token``, or None when the provider rejects it."""
        if not self.base_url:
            self.logger.error("Auth provider URL is not configured")
            return None

        response = await self._request(
            "GET",
            f"{self.base_url}/auth/v1/user",
            headers={
                "Authorization": f"Bearer {token}",
                "apikey": self.api_key,
            },
        )
        if not response.ok:
            return None
        return (response.payload or {}).get("id")
