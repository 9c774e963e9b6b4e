"""Collection nodes: bookmarks, then full post data for each bookmark."""

from langchain_core.runnables import RunnableConfig

from letternest.agents.context import services_from
from letternest.infrastructure.error_handling import UpstreamAPIError, handle_agent_errors
from letternest.infrastructure.logging import get_logger
from letternest.models.state import ErrorSeverity, NewsletterGenerationState, ProcessingStage, add_warning

logger = get_logger(__name__)


@handle_agent_errors(ProcessingStage.BOOKMARKS, ErrorSeverity.CRITICAL, "BOOKMARK_FETCH_FAILED")
async def fetch_bookmarks(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Fetch the N most recent bookmarks.

    Args:
        state: Current workflow state

    Returns:
        Updated workflow state with bookmarks
    """
    services = services_from(config)
    request = state["generation_request"]
    state["generation_metadata"].mark_stage_start(ProcessingStage.BOOKMARKS)

    logger.info("Fetching bookmarks", user_id=request.user_id, count=request.selected_count)
    bookmarks = await services.bookmarks.fetch_bookmarks(
        state["numeric_id"],
        state["user_profile"].access_token,
        request.selected_count,
    )

    state["bookmarks"] = bookmarks
    state["generation_metadata"].bookmarks_fetched = len(bookmarks)
    state["generation_metadata"].mark_stage_end(ProcessingStage.BOOKMARKS)
    return state


@handle_agent_errors(ProcessingStage.SCRAPING, ErrorSeverity.CRITICAL, "SCRAPE_FAILED")
async def fetch_post_details(state: NewsletterGenerationState, config: RunnableConfig) -> NewsletterGenerationState:
    """Scrape full text, engagement and media for every bookmark in one batch."""
    services = services_from(config)
    state["generation_metadata"].mark_stage_start(ProcessingStage.SCRAPING)

    post_ids = [bookmark.post_id for bookmark in state["bookmarks"]]
    posts = await services.scraper.fetch_posts(post_ids)

    if not posts:
        raise UpstreamAPIError("Apify API", "Scraper returned no posts")
    if len(posts) < len(post_ids):
        add_warning(state, f"Scraper returned {len(posts)} of {len(post_ids)} posts")

    state["post_details"] = posts
    state["generation_metadata"].posts_scraped = len(posts)
    state["generation_metadata"].mark_stage_end(ProcessingStage.SCRAPING)

    logger.info(
        "Post details collected",
        user_id=state["generation_request"].user_id,
        posts=len(posts),
    )
    return state
