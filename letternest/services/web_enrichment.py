"""Web enrichment: LLM-proposed searches merged back into the analysis."""

import asyncio
import json
import re
from typing import List

import aiohttp

from letternest.infrastructure.api_clients import WebSearchClient
from letternest.infrastructure.error_handling import UpstreamAPIError
from letternest.infrastructure.logging import LoggerMixin
from letternest.models.content import EnrichmentTopic, WebEnrichment
from letternest.services.openai_service import OpenAIService
from letternest.strategies import NewsletterTemplate

TOPIC_PATTERN = re.compile(
    r"THEME \d+:\s*(.+?)\s*QUERY:\s*(.+?)\s*ENRICHMENT GOAL:\s*(.+?)(?=\n\s*THEME \d+:|\n\s*===|$)",
    re.IGNORECASE | re.DOTALL,
)

QUERY_SYSTEM_PROMPT = "You are a search query optimization specialist for newsletters."

QUERY_PROMPT = """You are selecting the most promising themes from a "{display_name}" newsletter analysis for web enrichment.

Select up to {limit} themes that would benefit most from current web context:
breaking news, complex developments that need background, or emerging trends.

FORMAT:
===
THEME 1: [Theme Name]
QUERY: [25-40 character search query]
ENRICHMENT GOAL: [What specific info would enhance this]
===

ANALYSIS TO REVIEW:
{analysis}"""

INTEGRATION_SYSTEM_PROMPT = "You enhance newsletter analyses with current web insights while keeping their structure."

INTEGRATION_PROMPT = """Enhance this newsletter analysis with the web findings below.

RULES:
- Keep the original structure, theme order and layout assignments
- For each enriched theme add a "Latest Context:" subsection with 2-3 current insights
- Do not drop any original content

ORIGINAL ANALYSIS:
{analysis}

WEB ENRICHMENT:
{enrichment}

Provide the complete enhanced analysis."""


def parse_enrichment_topics(text: str) -> List[EnrichmentTopic]:
    """Extract THEME/QUERY/ENRICHMENT GOAL triples from the query-generation output."""
    return [
        EnrichmentTopic(theme=theme.strip(), query=query.strip(), goal=goal.strip())
        for theme, query, goal in TOPIC_PATTERN.findall(text)
    ]


class WebEnrichmentService(LoggerMixin):
    """Runs the three enrichment steps. Callers treat any failure as non-fatal."""

    def __init__(self, llm: OpenAIService, search_client: WebSearchClient):
        self.llm = llm
        self.search_client = search_client

    @property
    def available(self) -> bool:
        return self.search_client.available

    async def propose_topics(self, analysis: str, template: NewsletterTemplate) -> List[EnrichmentTopic]:
        prompt = QUERY_PROMPT.format(
            display_name=template.display_name,
            limit=template.enrichment_theme_limit,
            analysis=analysis,
        )
        text = await self.llm.complete(
            [
                {"role": "system", "content": QUERY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=1000,
            purpose="query generation",
        )
        topics = parse_enrichment_topics(text)[: template.enrichment_theme_limit]
        self.logger.info("Enrichment topics proposed", count=len(topics))
        return topics

    async def search_topics(self, topics: List[EnrichmentTopic]) -> List[WebEnrichment]:
        """Search each topic in turn. A failed query is logged and skipped."""
        results = []
        for topic in topics:
            try:
                results.append(await self.search_client.search(topic.theme, topic.query))
                self.logger.info("Theme enriched", theme=topic.theme)
            except (UpstreamAPIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.logger.warning("Search failed", query=topic.query, error=str(e))
        return results

    async def integrate(self, analysis: str, enrichment: List[WebEnrichment]) -> str:
        prompt = INTEGRATION_PROMPT.format(
            analysis=analysis,
            enrichment=json.dumps([item.to_dict() for item in enrichment], indent=2),
        )
        return await self.llm.complete(
            [
                {"role": "system", "content": INTEGRATION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            purpose="enrichment integration",
        )
