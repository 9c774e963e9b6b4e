"""Terminal failure node."""

from letternest.infrastructure.logging import get_logger
from letternest.models.state import NewsletterGenerationState, ProcessingStage, first_critical_error

logger = get_logger(__name__)


async def handle_critical_failure(state: NewsletterGenerationState) -> NewsletterGenerationState:
    """Log the error that stopped the run. Nothing after it has side effects to undo."""
    error = first_critical_error(state)
    metadata = state["generation_metadata"]
    logger.error(
        "Newsletter generation stopped",
        user_id=state["generation_request"].user_id,
        generation_id=metadata.generation_id,
        stage=error.stage.value if error else metadata.current_stage.value,
        error=error.message if error else None,
    )
    metadata.current_stage = ProcessingStage.FAILED
    return state
