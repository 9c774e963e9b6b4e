"""Newsletter generation workflow using LangGraph."""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict

from langgraph.graph import END, START, StateGraph

from letternest.agents.collector import fetch_bookmarks, fetch_post_details
from letternest.agents.context import run_config
from letternest.agents.curator import analyze_themes, enrich_with_web_context
from letternest.agents.error_handlers import handle_critical_failure
from letternest.agents.generator import enhance_markdown, format_markdown, render_newsletter
from letternest.agents.sender import consume_generation_credit, persist_newsletter, send_newsletter
from letternest.agents.validator import check_entitlement, resolve_identity
from letternest.infrastructure.error_handling import GENERIC_FAILURE_MESSAGE
from letternest.infrastructure.logging import get_logger, run_context
from letternest.models.job import JobStatus
from letternest.models.state import (
    ErrorSeverity,
    GenerationRequest,
    NewsletterGenerationState,
    ProcessingStage,
    add_error,
    create_initial_state,
    first_critical_error,
    has_critical_errors,
)
from letternest.services.container import ServiceContainer
from letternest.strategies import NewsletterTemplate

logger = get_logger(__name__)

NODES = (
    ("check_entitlement", check_entitlement),
    ("resolve_identity", resolve_identity),
    ("fetch_bookmarks", fetch_bookmarks),
    ("fetch_post_details", fetch_post_details),
    ("analyze_themes", analyze_themes),
    ("enrich_with_web_context", enrich_with_web_context),
    ("format_markdown", format_markdown),
    ("enhance_markdown", enhance_markdown),
    ("render_newsletter", render_newsletter),
    ("send_newsletter", send_newsletter),
    ("persist_newsletter", persist_newsletter),
    ("consume_generation_credit", consume_generation_credit),
    ("handle_critical_failure", handle_critical_failure),
)

# Nodes that stop the run when they record a critical error, with the node
# that follows each of them on success.
FATAL_STAGES = (
    ("check_entitlement", "resolve_identity"),
    ("resolve_identity", "fetch_bookmarks"),
    ("fetch_bookmarks", "fetch_post_details"),
    ("fetch_post_details", "analyze_themes"),
    ("analyze_themes", "enrich_with_web_context"),
    ("format_markdown", "enhance_markdown"),
    ("render_newsletter", "send_newsletter"),
)

# Edges taken unconditionally. Enrichment and enhancement never stop a run,
# and once rendered the send, persist and decrement steps always run in order.
FIXED_EDGES = (
    ("enrich_with_web_context", "format_markdown"),
    ("enhance_markdown", "render_newsletter"),
    ("send_newsletter", "persist_newsletter"),
    ("persist_newsletter", "consume_generation_credit"),
    ("consume_generation_credit", END),
    ("handle_critical_failure", END),
)


def create_newsletter_workflow() -> StateGraph:
    """Build the bookmark-to-newsletter graph.

    One graph serves every template. The template strategy and the
    service container reach the nodes through the invoke config.
    """
    workflow = StateGraph(NewsletterGenerationState)

    for name, node in NODES:
        workflow.add_node(name, node)

    workflow.add_edge(START, "check_entitlement")
    for source, on_success in FATAL_STAGES:
        workflow.add_conditional_edges(
            source,
            _route_on_critical_errors,
            {"continue": on_success, "fail": "handle_critical_failure"},
        )
    for source, target in FIXED_EDGES:
        workflow.add_edge(source, target)

    return workflow


def _route_on_critical_errors(state: NewsletterGenerationState) -> str:
    return "fail" if has_critical_errors(state) else "continue"


@lru_cache(maxsize=1)
def get_compiled_workflow():
    return create_newsletter_workflow().compile()


async def _invoke_workflow(
    services: ServiceContainer,
    template: NewsletterTemplate,
    state: NewsletterGenerationState,
) -> NewsletterGenerationState:
    try:
        return await get_compiled_workflow().ainvoke(state, config=run_config(services, template))
    except Exception as e:
        logger.error("Workflow raised outside a node", error=str(e), exc_info=True)
        add_error(
            state,
            ProcessingStage.FAILED,
            f"Workflow execution failed: {e}",
            ErrorSeverity.CRITICAL,
            user_message=GENERIC_FAILURE_MESSAGE,
        )
        return state


async def _finish_job(
    services: ServiceContainer,
    job_id: str,
    state: NewsletterGenerationState,
) -> None:
    failure = first_critical_error(state)
    delivery = state["delivery_result"]
    try:
        await services.database.mark_job_finished(
            job_id,
            JobStatus.FAILED if failure else JobStatus.SUCCEEDED,
            error=(failure.user_message or GENERIC_FAILURE_MESSAGE) if failure else None,
            newsletter_id=state["newsletter_id"],
            delivered=delivery.success if delivery else None,
        )
        return
    except Exception as e:
        logger.error("Could not record job outcome", error=str(e), exc_info=True)

    # A job left queued or running would be polled forever
    try:
        await services.database.mark_job_finished(job_id, JobStatus.FAILED, error=GENERIC_FAILURE_MESSAGE)
    except Exception as e:
        logger.error("Job left unsettled", error=str(e), exc_info=True)


async def run_newsletter_generation(
    services: ServiceContainer,
    template: NewsletterTemplate,
    generation_request: GenerationRequest,
) -> NewsletterGenerationState:
    """Run one generation end to end and settle its job record.

    The job, when the request names one, goes to ``running`` before the
    graph starts and to ``succeeded`` or ``failed`` afterwards, even when
    the run itself or the first outcome write errors. Failures are
    recorded on the returned state; nothing is raised to the caller.
    """
    state = create_initial_state(generation_request)
    metadata = state["generation_metadata"]
    job_id = generation_request.job_id

    with run_context(
        user_id=generation_request.user_id,
        generation_id=metadata.generation_id,
        template=template.key,
        job_id=job_id,
    ):
        logger.info("Starting newsletter generation", selected_count=generation_request.selected_count)
        try:
            if job_id:
                try:
                    await services.database.mark_job_running(job_id)
                except Exception as e:
                    logger.warning("Could not mark job running", error=str(e))

            state = await _invoke_workflow(services, template, state)
            _log_outcome(state)
        finally:
            if job_id:
                await _finish_job(services, job_id, state)

    return state


def _log_outcome(state: NewsletterGenerationState) -> None:
    metadata = state["generation_metadata"]
    metadata.end_time = datetime.now(timezone.utc)
    failure = first_critical_error(state)
    metadata.current_stage = ProcessingStage.FAILED if failure else ProcessingStage.COMPLETED

    if failure:
        logger.error(
            "Newsletter generation failed",
            errors=[str(error) for error in state["errors"]],
            processing_time=metadata.total_processing_time,
        )
    else:
        logger.info(
            "Newsletter generation completed",
            newsletter_id=state["newsletter_id"],
            delivered=state["delivery_result"].success if state["delivery_result"] else None,
            credit_consumed=state["credit_consumed"],
            llm_calls=metadata.llm_calls,
            processing_time=metadata.total_processing_time,
        )


def get_workflow_status(state: NewsletterGenerationState) -> Dict[str, Any]:
    """Summarize a finished or in-flight run for logs and the CLI."""
    metadata = state["generation_metadata"]
    failure = first_critical_error(state)
    return {
        "generation_id": metadata.generation_id,
        "user_id": state["generation_request"].user_id,
        "template": state["generation_request"].template,
        "current_stage": metadata.current_stage.value,
        "processing_time": metadata.total_processing_time,
        "bookmarks": metadata.bookmarks_fetched,
        "posts_scraped": metadata.posts_scraped,
        "llm_calls": metadata.llm_calls,
        "web_enrichment": len(state["web_enrichment"]),
        "delivered": state["delivery_result"].success if state["delivery_result"] else False,
        "newsletter_id": state["newsletter_id"],
        "credit_consumed": state["credit_consumed"],
        "errors_count": len(state["errors"]),
        "warnings_count": len(state["warnings"]),
        "failure": failure.user_message if failure else None,
        "is_complete": metadata.current_stage in (ProcessingStage.COMPLETED, ProcessingStage.FAILED),
    }
