"""Delivery nodes: send, persist and consume the generation credit.

These three always run in order once rendering succeeded. A failed send
does not stop the newsletter from being stored or the credit from being
consumed.
"""

from langchain_core.runnables import RunnableConfig

from letternest.agents.context import services_from
from letternest.infrastructure.error_handling import ErrorContext
from letternest.infrastructure.logging import get_logger
from letternest.models.state import ErrorSeverity, NewsletterGenerationState, ProcessingStage, add_error, add_warning

logger = get_logger(__name__)


async def send_newsletter(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    services = services_from(config)
    state["generation_metadata"].mark_stage_start(ProcessingStage.DELIVERY)

    result = await services.notifications.send_newsletter(state["email_content"], state["user_profile"])
    state["delivery_result"] = result

    if not result.success:
        add_error(
            state,
            ProcessingStage.DELIVERY,
            f"Email delivery failed: {result.error_message}",
            ErrorSeverity.HIGH,
            "DELIVERY_FAILED",
        )
    state["generation_metadata"].mark_stage_end(ProcessingStage.DELIVERY)
    return state


async def persist_newsletter(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    services = services_from(config)
    user_id = state["generation_request"].user_id
    state["generation_metadata"].mark_stage_start(ProcessingStage.PERSISTENCE)

    async with ErrorContext(state, ProcessingStage.PERSISTENCE, "newsletter storage insert", ErrorSeverity.HIGH, "PERSIST_FAILED"):
        record = await services.database.insert_newsletter(user_id, state["final_markdown"])
        state["newsletter_id"] = record.id
        logger.info("Newsletter stored", user_id=user_id, newsletter_id=record.id)

    state["generation_metadata"].mark_stage_end(ProcessingStage.PERSISTENCE)
    return state


async def consume_generation_credit(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    services = services_from(config)
    user_id = state["generation_request"].user_id
    state["generation_metadata"].mark_stage_start(ProcessingStage.QUOTA)

    async with ErrorContext(state, ProcessingStage.QUOTA, "generation credit decrement", ErrorSeverity.HIGH, "DECREMENT_FAILED"):
        state["credit_consumed"] = await services.database.decrement_remaining_generations(user_id)
        if state["credit_consumed"]:
            logger.info("Generation credit consumed", user_id=user_id)
        else:
            add_warning(state, "No generation credit left to consume")
            logger.warning("Counter already at zero, nothing consumed", user_id=user_id)

    state["generation_metadata"].mark_stage_end(ProcessingStage.QUOTA)
    return state
