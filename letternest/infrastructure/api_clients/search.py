"""Perplexity search client used for web enrichment."""

from letternest.infrastructure.api_clients.base import HTTPAPIClient
from letternest.infrastructure.error_handling import UpstreamAPIError, handle_service_errors
from letternest.models.content import WebEnrichment


class WebSearchClient(HTTPAPIClient):
    """Asks the search model one question and returns its answer with citations."""

    service_name = "Perplexity API"
    url = "https://api.perplexity.ai/chat/completions"

    def __init__(self, api_key: str, model: str = "sonar-pro", timeout: int = 60):
        super().__init__(timeout)
        self.api_key = api_key
        self.model = model

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @handle_service_errors("Perplexity API", log_level="warning")
    async def search(self, theme: str, query: str) -> WebEnrichment:
        response = await self._request(
            "POST",
            self.url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            json_body={
                "model": self.model,
                "messages": [{"role": "user", "content": query}],
                "temperature": 0.2,
                "max_tokens": 300,
                "search_recency_filter": "week",
            },
        )
        if not response.ok:
            raise UpstreamAPIError(self.service_name, f"Search failed for {query!r}", response.status)

        payload = response.payload or {}
        try:
            message = payload["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamAPIError(self.service_name, "Response has no message")

        citations = message.get("citations") or payload.get("citations") or []
        return WebEnrichment(theme=theme, summary=message.get("content") or "", sources=list(citations))
