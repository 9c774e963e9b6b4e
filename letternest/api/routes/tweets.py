"""
Tweet draft endpoint.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from letternest.api.deps import get_current_user_id, get_services
from letternest.infrastructure.error_handling import PreconditionError, UpstreamAPIError
from letternest.infrastructure.logging import get_logger
from letternest.services.container import ServiceContainer
from letternest.services.tweet_drafts import TrendingTopic

logger = get_logger(__name__)

router = APIRouter(prefix="/tweets", tags=["tweets"])


class TweetDraftRequest(BaseModel):
    prompt: str = Field(min_length=1)
    selected_topics: List[TrendingTopic] = Field(default_factory=list, alias="selectedTopics")


@router.post("/generate")
async def generate_tweets(
    payload: TweetDraftRequest,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Generate three tweet options in the caller's voice."""
    profile = await services.database.get_profile(user_id)
    try:
        result = await services.tweet_drafts.generate(profile, payload.prompt, payload.selected_topics)
    except PreconditionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except UpstreamAPIError as e:
        logger.error("Tweet generation failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Tweet generation failed")

    return {"tweets": result["tweets"]}
