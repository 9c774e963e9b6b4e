"""Bookmark API client (X/Twitter API v2)."""

from typing import List

from letternest.infrastructure.api_clients.base import HTTPAPIClient
from letternest.infrastructure.error_handling import PreconditionError, UpstreamAPIError
from letternest.models.content import BookmarkedPost

INVALID_TOKEN_MESSAGE = "Your Twitter access token is invalid. Please reconnect your Twitter bookmarks."
RATE_LIMITED_MESSAGE = "Twitter API rate limit exceeded. Please try again later."
NO_BOOKMARKS_MESSAGE = "You don't have any bookmarks. Please save some tweets before generating a newsletter."
EMPTY_RESPONSE_MESSAGE = "Failed to retrieve bookmarks from Twitter"


class BookmarkAPIClient(HTTPAPIClient):
    """Fetches a user's most recent bookmarks."""

    service_name = "Twitter API"

    def __init__(self, base_url: str = "https://api.twitter.com/2", timeout: int = 120):
        super().__init__(timeout)
        self.base_url = base_url.rstrip("/")

    async def fetch_bookmarks(self, numeric_id: str, access_token: str, max_results: int) -> List[BookmarkedPost]:
        """Fetch up to ``max_results`` bookmarks.

        Raises:
            PreconditionError: token rejected, rate limited, or no bookmarks saved
            UpstreamAPIError: any other failure
        """
        response = await self._request(
            "GET",
            f"{self.base_url}/users/{numeric_id}/bookmarks",
            headers={"Authorization": f"Bearer {access_token}"},
            params={
                "max_results": str(max_results),
                "expansions": "author_id,attachments.media_keys",
                "tweet.fields": "created_at,text,public_metrics,entities",
                "user.fields": "name,username,profile_image_url",
            },
        )

        if response.status == 401:
            raise PreconditionError(INVALID_TOKEN_MESSAGE, 401, "BOOKMARK_TOKEN_INVALID")
        if response.status == 429:
            raise PreconditionError(RATE_LIMITED_MESSAGE, 429, "BOOKMARK_RATE_LIMITED")
        if not response.ok:
            raise UpstreamAPIError(self.service_name, f"Twitter API error: {response.status}", response.status)

        payload = response.payload or {}
        data = payload.get("data") or []
        if not data:
            if (payload.get("meta") or {}).get("result_count") == 0:
                raise PreconditionError(NO_BOOKMARKS_MESSAGE, 404, "NO_BOOKMARKS")
            raise UpstreamAPIError(self.service_name, EMPTY_RESPONSE_MESSAGE)

        bookmarks = [BookmarkedPost.from_api(item) for item in data]
        self.logger.info("Fetched bookmarks", count=len(bookmarks), requested=max_results)
        return bookmarks
