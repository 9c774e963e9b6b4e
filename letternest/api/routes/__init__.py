"""API routers."""

from letternest.api.routes.jobs import router as jobs_router
from letternest.api.routes.newsletters import router as newsletters_router
from letternest.api.routes.tweets import router as tweets_router

__all__ = ["jobs_router", "newsletters_router", "tweets_router"]
