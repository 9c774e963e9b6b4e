"""Numeric platform id resolution with write-back memoization."""

import asyncio

import aiohttp

from letternest.infrastructure.api_clients import IdentityLookupClient
from letternest.infrastructure.database import Database
from letternest.infrastructure.error_handling import PreconditionError, UpstreamAPIError
from letternest.infrastructure.logging import LoggerMixin
from letternest.models.user import UserProfile

LOOKUP_FAILED = "Could not retrieve your Twitter ID. Please try again later."
ID_UNKNOWN = "Could not determine your Twitter ID. Please update your Twitter handle in settings."


class IdentityResolver(LoggerMixin):
    """Returns the profile's numeric id, looking it up once from the handle."""

    def __init__(self, database: Database, lookup_client: IdentityLookupClient):
        self.database = database
        self.lookup_client = lookup_client

    async def resolve(self, profile: UserProfile) -> str:
        if profile.numeric_id:
            return profile.numeric_id

        numeric_id = None
        if profile.twitter_handle:
            handle = profile.twitter_handle.lstrip("@")
            try:
                numeric_id = await self.lookup_client.lookup_numeric_id(handle)
            except (UpstreamAPIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.logger.error("Numeric id lookup failed", user_id=profile.user_id, handle=handle, error=str(e))
                raise PreconditionError(LOOKUP_FAILED, 502, "ID_LOOKUP_FAILED") from e

            if numeric_id:
                await self.database.save_numeric_id(profile.user_id, numeric_id)
                profile.numeric_id = numeric_id
                self.logger.info("Numeric id resolved and cached", user_id=profile.user_id)

        if not numeric_id:
            raise PreconditionError(ID_UNKNOWN, 400, "ID_UNKNOWN")
        return numeric_id
