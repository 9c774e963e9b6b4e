"""Profile loading and the generation precondition gate."""

import time
from typing import Optional

from letternest.infrastructure.database import Database
from letternest.infrastructure.error_handling import PreconditionError
from letternest.infrastructure.logging import LoggerMixin
from letternest.models.user import UserProfile

PROFILE_NOT_FOUND = "User profile not found"
NO_SUBSCRIPTION = "You must have an active subscription to generate newsletters"
NO_GENERATIONS = "You have no remaining newsletter generations"
NO_TOKEN = "Twitter bookmark access not authorized. Please connect your Twitter bookmarks in settings."
TOKEN_EXPIRED = "Twitter bookmark access token has expired. Please reconnect your Twitter bookmarks."


def check_entitlement(profile: Optional[UserProfile], now_epoch: Optional[float] = None) -> UserProfile:
    """Validate that ``profile`` may start a generation.

    Checks run in a fixed order and the first failure wins.

    Raises:
        PreconditionError: with the status and message to show the user
    """
    if profile is None:
        raise PreconditionError(PROFILE_NOT_FOUND, 404, "PROFILE_NOT_FOUND")
    if not profile.is_subscribed:
        raise PreconditionError(NO_SUBSCRIPTION, 403, "NO_SUBSCRIPTION")
    if not profile.remaining_generations or profile.remaining_generations <= 0:
        raise PreconditionError(NO_GENERATIONS, 403, "QUOTA_EXHAUSTED")
    if not profile.access_token:
        raise PreconditionError(NO_TOKEN, 401, "BOOKMARKS_NOT_CONNECTED")

    now = time.time() if now_epoch is None else now_epoch
    if profile.token_expired(now):
        raise PreconditionError(TOKEN_EXPIRED, 401, "BOOKMARK_TOKEN_EXPIRED")
    return profile


class EntitlementService(LoggerMixin):
    """Loads a profile and runs the precondition gate against it."""

    def __init__(self, database: Database):
        self.database = database

    async def load_entitled_profile(self, user_id: str) -> UserProfile:
        profile = await self.database.get_profile(user_id)
        try:
            return check_entitlement(profile)
        except PreconditionError as e:
            self.logger.info("Generation blocked", user_id=user_id, reason=e.error_code)
            raise
