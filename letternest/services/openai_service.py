"""OpenAI service for the newsletter LLM chain."""

from typing import Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from letternest.infrastructure.error_handling import UpstreamAPIError
from letternest.infrastructure.logging import get_logger

logger = get_logger(__name__)


class OpenAIService:
    """Thin wrapper over chat completions.

    Every call is a single attempt. Failures surface as ``UpstreamAPIError``
    and a response without ``choices[0].message.content`` counts as one.
    """

    service_name = "OpenAI API"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1",
        max_tokens: int = 12000,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
        purpose: str = "completion",
    ) -> str:
        """Run one chat completion and return the stripped message content."""
        try:
            response = await self.client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or self.max_tokens,
            )
        except OpenAIError as e:
            status = getattr(e, "status_code", None)
            logger.error("OpenAI request failed", purpose=purpose, status=status, error=str(e))
            raise UpstreamAPIError(self.service_name, f"{purpose} failed", status) from e

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if not content:
            logger.error("OpenAI response had no content", purpose=purpose)
            raise UpstreamAPIError(self.service_name, f"{purpose} returned no content")

        logger.debug("OpenAI completion received", purpose=purpose, characters=len(content))
        return content.strip()
