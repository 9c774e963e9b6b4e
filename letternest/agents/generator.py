"""Generation nodes: markdown formatting, visual enhancement and rendering."""

from langchain_core.runnables import RunnableConfig

from letternest.agents.context import services_from, template_from
from letternest.infrastructure.error_handling import ErrorContext, handle_agent_errors
from letternest.infrastructure.logging import get_logger
from letternest.models.state import ErrorSeverity, NewsletterGenerationState, ProcessingStage
from letternest.services.rendering import clean_markdown

logger = get_logger(__name__)


@handle_agent_errors(ProcessingStage.FORMATTING, ErrorSeverity.CRITICAL, "FORMATTING_FAILED")
async def format_markdown(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Turn the (possibly enriched) analysis into a markdown newsletter."""
    services = services_from(config)
    template = template_from(config)
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.FORMATTING)

    state["markdown"] = await services.llm.complete(
        template.markdown_messages(state["enriched_analysis"] or state["analysis"], state["generation_request"].timestamp.date()),
        temperature=template.markdown_temperature,
        purpose="markdown formatting",
    )
    metadata.llm_calls += 1
    metadata.mark_stage_end(ProcessingStage.FORMATTING)
    return state


async def enhance_markdown(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Visual polish pass. Falls back to the unpolished markdown on failure."""
    services = services_from(config)
    template = template_from(config)
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.ENHANCEMENT)
    state["enhanced_markdown"] = state["markdown"]

    async with ErrorContext(state, ProcessingStage.ENHANCEMENT, "visual enhancement", ErrorSeverity.LOW, "ENHANCEMENT_FAILED"):
        state["enhanced_markdown"] = await services.llm.complete(
            template.enhancement_messages(state["markdown"]),
            temperature=template.enhancement_temperature,
            purpose="visual enhancement",
        )
        metadata.llm_calls += 1

    metadata.mark_stage_end(ProcessingStage.ENHANCEMENT)
    return state


@handle_agent_errors(ProcessingStage.RENDERING, ErrorSeverity.CRITICAL, "RENDERING_FAILED")
async def render_newsletter(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Clean the final markdown and render the email HTML."""
    services = services_from(config)
    template = template_from(config)
    state["generation_metadata"].mark_stage_start(ProcessingStage.RENDERING)

    final_markdown = clean_markdown(state["enhanced_markdown"] or state["markdown"])
    if not final_markdown:
        raise ValueError("Newsletter markdown is empty after cleanup")

    state["final_markdown"] = final_markdown
    state["email_content"] = services.renderer.render_email(
        final_markdown,
        template,
        from_email=services.config.newsletter_from_email,
        issue_date=state["generation_request"].timestamp.date(),
    )

    state["generation_metadata"].mark_stage_end(ProcessingStage.RENDERING)
    logger.info(
        "Newsletter rendered",
        user_id=state["generation_request"].user_id,
        markdown_length=len(final_markdown),
        html_length=len(state["email_content"].html),
    )
    return state
