"""Apify client that scrapes full post data for a batch of ids."""

from typing import List

from letternest.infrastructure.api_clients.base import HTTPAPIClient
from letternest.infrastructure.error_handling import UpstreamAPIError, handle_service_errors
from letternest.models.content import PostDetails

FILTER_FLAGS = (
    "blue_verified",
    "consumer_video",
    "has_engagement",
    "hashtags",
    "images",
    "links",
    "media",
    "mentions",
    "native_video",
    "nativeretweets",
    "news",
    "pro_video",
    "quote",
    "replies",
    "safe",
    "spaces",
    "twimg",
    "verified",
    "videos",
    "vine",
)


class PostScraperClient(HTTPAPIClient):
    """Runs the post scraper actor synchronously and returns its dataset."""

    service_name = "Apify API"

    def __init__(self, api_key: str, actor: str, timeout: int = 120):
        super().__init__(timeout)
        self.api_key = api_key
        self.actor = actor

    @property
    def run_url(self) -> str:
        return f"https://api.apify.com/v2/acts/{self.actor}/run-sync-get-dataset-items"

    @handle_service_errors("Apify API")
    async def fetch_posts(self, post_ids: List[str]) -> List[PostDetails]:
        """Scrape every id in one batched call. Any failure fails the batch."""
        body = {f"filter:{flag}": False for flag in FILTER_FLAGS}
        body.update({
            "include:nativeretweets": False,
            "lang": "en",
            "maxItems": len(post_ids),
            "tweetIDs": list(post_ids),
        })

        response = await self._request(
            "POST",
            self.run_url,
            headers={"Content-Type": "application/json"},
            params={"token": self.api_key},
            json_body=body,
        )
        if not response.ok:
            raise UpstreamAPIError(self.service_name, f"Apify API error: {response.status}", response.status)
        if not isinstance(response.payload, list):
            raise UpstreamAPIError(self.service_name, "Unexpected scraper payload")

        posts = [PostDetails.from_scraper(item) for item in response.payload]
        self.logger.info("Scraped posts", requested=len(post_ids), received=len(posts))
        return posts
