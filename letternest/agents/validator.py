"""Entitlement and identity nodes: the gate every run passes first."""

from langchain_core.runnables import RunnableConfig

from letternest.agents.context import services_from
from letternest.infrastructure.error_handling import handle_agent_errors
from letternest.infrastructure.logging import get_logger
from letternest.models.state import ErrorSeverity, NewsletterGenerationState, ProcessingStage

logger = get_logger(__name__)


@handle_agent_errors(ProcessingStage.ENTITLEMENT, ErrorSeverity.CRITICAL, "ENTITLEMENT_FAILED")
async def check_entitlement(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Load the profile and re-check every generation precondition."""
    services = services_from(config)
    request = state["generation_request"]
    state["generation_metadata"].mark_stage_start(ProcessingStage.ENTITLEMENT)

    state["user_profile"] = await services.entitlement.load_entitled_profile(request.user_id)

    state["generation_metadata"].mark_stage_end(ProcessingStage.ENTITLEMENT)
    logger.info(
        "Entitlement confirmed",
        user_id=request.user_id,
        tier=state["user_profile"].subscription_tier,
        remaining=state["user_profile"].remaining_generations,
    )
    return state


@handle_agent_errors(ProcessingStage.IDENTITY, ErrorSeverity.CRITICAL, "IDENTITY_FAILED")
async def resolve_identity(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Make sure we know the numeric platform id needed by the bookmark API."""
    services = services_from(config)
    state["generation_metadata"].mark_stage_start(ProcessingStage.IDENTITY)

    state["numeric_id"] = await services.identity.resolve(state["user_profile"])

    state["generation_metadata"].mark_stage_end(ProcessingStage.IDENTITY)
    return state
