"""HTTP clients for the third-party APIs the pipeline depends on."""

from .auth import SessionAuthClient
from .base import APIResponse, HTTPAPIClient
from .bookmarks import BookmarkAPIClient
from .email import ResendEmailClient
from .identity import IdentityLookupClient
from .scraper import PostScraperClient
from .search import WebSearchClient

__all__ = [
    "APIResponse",
    "BookmarkAPIClient",
    "HTTPAPIClient",
    "IdentityLookupClient",
    "PostScraperClient",
    "ResendEmailClient",
    "SessionAuthClient",
    "WebSearchClient",
]
