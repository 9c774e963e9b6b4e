"""Content models: bookmarked posts, scraped post details and web enrichment."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

URL_PATTERN = re.compile(r"https?://\S+")
POST_SEPARATOR = "\n---\n\n"


@dataclass
class BookmarkedPost:
    """A bookmark as returned by the bookmark API."""

    post_id: str
    text: str = ""
    author_id: Optional[str] = None
    created_at: Optional[str] = None
    public_metrics: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BookmarkedPost":
        return cls(
            post_id=str(data["id"]),
            text=data.get("text", ""),
            author_id=data.get("author_id"),
            created_at=data.get("created_at"),
            public_metrics=data.get("public_metrics") or {},
        )


@dataclass
class PostDetails:
    """Full post data returned by the scraper."""

    post_id: str
    text: str = ""
    reply_count: int = 0
    like_count: int = 0
    view_count: int = 0
    created_at: Optional[str] = None
    author_name: str = "Unknown"
    photo_url: Optional[str] = None

    @classmethod
    def from_scraper(cls, item: Dict[str, Any]) -> "PostDetails":
        """Build from one scraper dataset item."""
        photo_url = None
        media = (item.get("extendedEntities") or {}).get("media") or []
        for entry in media:
            if entry.get("type") == "photo" and entry.get("media_url_https"):
                photo_url = entry["media_url_https"]
                break

        return cls(
            post_id=str(item.get("id", "")),
            text=item.get("text") or "",
            reply_count=item.get("replyCount") or 0,
            like_count=item.get("likeCount") or 0,
            view_count=item.get("viewCount") or 0,
            created_at=item.get("createdAt"),
            author_name=(item.get("author") or {}).get("name") or "Unknown",
            photo_url=photo_url,
        )

    @property
    def clean_text(self) -> str:
        """Post text with URLs stripped."""
        return URL_PATTERN.sub("", self.text).strip()

    @property
    def date_label(self) -> str:
        """YYYY-MM-DD when the scraper gave a parseable date, else N/A."""
        if not self.created_at:
            return "N/A"
        try:
            return date_parser.parse(self.created_at).strftime("%Y-%m-%d")
        except (ValueError, OverflowError):
            return "N/A"


def format_posts_for_analysis(posts: List[PostDetails]) -> str:
    """Render scraped posts as the plain-text block fed to the analysis prompt."""
    blocks = []
    for index, post in enumerate(posts, start=1):
        blocks.append(
            f"Tweet {index}\n"
            f"ID: {post.post_id}\n"
            f"Text: {post.clean_text}\n"
            f"Replies: {post.reply_count}\n"
            f"Likes: {post.like_count}\n"
            f"Impressions: {post.view_count}\n"
            f"Date: {post.date_label}\n"
            f"Author: {post.author_name}\n"
            f"PhotoUrl: {post.photo_url or 'N/A'}"
        )
    return POST_SEPARATOR.join(blocks)


@dataclass
class EnrichmentTopic:
    """A search query proposed by the LLM for one theme."""

    theme: str
    query: str
    goal: str


@dataclass
class WebEnrichment:
    """Search result summary attached to a theme."""

    theme: str
    summary: str
    sources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"themeName": self.theme, "webSummary": self.summary, "sources": self.sources}
