"""Analysis nodes: thematic analysis and optional web enrichment."""

from langchain_core.runnables import RunnableConfig

from letternest.agents.context import services_from, template_from
from letternest.infrastructure.error_handling import ErrorContext, handle_agent_errors
from letternest.infrastructure.logging import get_logger
from letternest.models.content import format_posts_for_analysis
from letternest.models.state import ErrorSeverity, NewsletterGenerationState, ProcessingStage, add_warning

logger = get_logger(__name__)


@handle_agent_errors(ProcessingStage.ANALYSIS, ErrorSeverity.CRITICAL, "ANALYSIS_FAILED")
async def analyze_themes(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Ask the LLM for a thematic analysis of the scraped posts."""
    services = services_from(config)
    template = template_from(config)
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.ANALYSIS)

    posts_text = format_posts_for_analysis(state["post_details"])
    state["analysis"] = await services.llm.complete(
        template.analysis_messages(posts_text),
        temperature=template.analysis_temperature,
        purpose="thematic analysis",
    )
    metadata.llm_calls += 1
    metadata.mark_stage_end(ProcessingStage.ANALYSIS)

    logger.info(
        "Thematic analysis generated",
        user_id=state["generation_request"].user_id,
        template=template.key,
        characters=len(state["analysis"]),
    )
    return state


async def enrich_with_web_context(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Optionally merge current web context into the analysis.

    Every step here is non-fatal: on any failure the analysis produced so
    far is carried forward unchanged.
    """
    services = services_from(config)
    template = template_from(config)
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.ENRICHMENT)
    state["enriched_analysis"] = state["analysis"]

    if not services.enrichment.available:
        logger.info("Web enrichment disabled, no search API key configured")
        metadata.mark_stage_end(ProcessingStage.ENRICHMENT)
        return state

    topics = []
    async with ErrorContext(state, ProcessingStage.ENRICHMENT, "search query generation", ErrorSeverity.LOW, "QUERY_GENERATION_FAILED"):
        topics = await services.enrichment.propose_topics(state["analysis"], template)
        metadata.llm_calls += 1

    if topics:
        async with ErrorContext(state, ProcessingStage.ENRICHMENT, "web search", ErrorSeverity.LOW, "SEARCH_FAILED"):
            state["web_enrichment"] = await services.enrichment.search_topics(topics)
            metadata.searches_performed = len(topics)

    if state["web_enrichment"]:
        async with ErrorContext(state, ProcessingStage.ENRICHMENT, "enrichment integration", ErrorSeverity.LOW, "INTEGRATION_FAILED"):
            state["enriched_analysis"] = await services.enrichment.integrate(state["analysis"], state["web_enrichment"])
            metadata.llm_calls += 1
    elif topics:
        add_warning(state, "No web search succeeded, continuing with the original analysis")

    metadata.mark_stage_end(ProcessingStage.ENRICHMENT)
    logger.info(
        "Web enrichment finished",
        user_id=state["generation_request"].user_id,
        topics=len(topics),
        enriched_themes=len(state["web_enrichment"]),
    )
    return state
