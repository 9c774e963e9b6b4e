"""Resend email API client."""

from typing import Any, Dict, List, Optional

from letternest.infrastructure.api_clients.base import HTTPAPIClient
from letternest.infrastructure.error_handling import UpstreamAPIError, handle_service_errors


class ResendEmailClient(HTTPAPIClient):
    """Sends transactional email through the Resend REST API."""

    service_name = "Resend API"
    url = "https://api.resend.com/emails"

    def __init__(self, api_key: str, timeout: int = 30):
        super().__init__(timeout)
        self.api_key = api_key

    @handle_service_errors("Resend API")
    async def send_email(
        self,
        to: List[str],
        subject: str,
        html: str,
        sender: str,
        text: Optional[str] = None,
        reply_to: Optional[str] = None,
        tags: Optional[List[Dict[str, str]]] = None,
    ) -> str:
        """Send one email.

        Returns:
            Resend message id
        """
        body: Dict[str, Any] = {
            "from": sender,
            "to": to,
            "subject": subject,
            "html": html,
        }
        if text:
            body["text"] = text
        if reply_to:
            body["reply_to"] = reply_to
        if tags:
            body["tags"] = tags

        response = await self._request(
            "POST",
            self.url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json_body=body,
        )
        if not response.ok:
            raise UpstreamAPIError(self.service_name, response.text[:200] or "send failed", response.status)

        return (response.payload or {}).get("id", "")
