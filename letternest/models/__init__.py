"""Data models for the LetterNest newsletter service."""

from letternest.models.content import (
    BookmarkedPost,
    EnrichmentTopic,
    PostDetails,
    WebEnrichment,
    format_posts_for_analysis,
)
from letternest.models.email import EmailContent
from letternest.models.job import JobModel, JobStatus, NewsletterModel
from letternest.models.user import DeliveryResult, DeliveryStatus, Platform, UserProfile

__all__ = [
    "BookmarkedPost",
    "DeliveryResult",
    "DeliveryStatus",
    "EmailContent",
    "EnrichmentTopic",
    "JobModel",
    "JobStatus",
    "NewsletterModel",
    "Platform",
    "PostDetails",
    "UserProfile",
    "WebEnrichment",
    "format_posts_for_analysis",
]
