"""Explicit wiring of every external client the service uses."""

from dataclasses import dataclass
from typing import Optional

from letternest.infrastructure.api_clients import (
    BookmarkAPIClient,
    IdentityLookupClient,
    PostScraperClient,
    ResendEmailClient,
    SessionAuthClient,
    WebSearchClient,
)
from letternest.infrastructure.config import ApplicationConfig
from letternest.infrastructure.database import Database, init_database
from letternest.services.entitlement import EntitlementService
from letternest.services.identity import IdentityResolver
from letternest.services.notification import NotificationService
from letternest.services.openai_service import OpenAIService
from letternest.services.rendering import NewsletterRenderer
from letternest.services.tweet_drafts import TweetDraftService
from letternest.services.web_enrichment import WebEnrichmentService


@dataclass
class ServiceContainer:
    """Clients and services handed to each pipeline run and request handler.

    Build one with ``build_services`` in production; tests construct it
    directly with fakes.
    """

    config: ApplicationConfig
    database: Database
    auth: SessionAuthClient
    bookmarks: BookmarkAPIClient
    scraper: PostScraperClient
    llm: OpenAIService
    entitlement: EntitlementService
    identity: IdentityResolver
    enrichment: WebEnrichmentService
    renderer: NewsletterRenderer
    notifications: NotificationService
    tweet_drafts: TweetDraftService

    async def close(self) -> None:
        await self.database.close()


def assemble_services(
    config: ApplicationConfig,
    database: Database,
    auth: SessionAuthClient,
    bookmarks: BookmarkAPIClient,
    scraper: PostScraperClient,
    identity_lookup: IdentityLookupClient,
    llm: OpenAIService,
    search: WebSearchClient,
    email: ResendEmailClient,
    renderer: Optional[NewsletterRenderer] = None,
) -> ServiceContainer:
    """Build the service layer on top of already-constructed clients."""
    return ServiceContainer(
        config=config,
        database=database,
        auth=auth,
        bookmarks=bookmarks,
        scraper=scraper,
        llm=llm,
        entitlement=EntitlementService(database),
        identity=IdentityResolver(database, identity_lookup),
        enrichment=WebEnrichmentService(llm, search),
        renderer=renderer or NewsletterRenderer(base_url=f"https://{config.domain}"),
        notifications=NotificationService(email),
        tweet_drafts=TweetDraftService(llm, config.openai_tweet_model),
    )


async def build_services(config: ApplicationConfig) -> ServiceContainer:
    """Create real clients from configuration and initialize the database."""
    timeout = config.request_timeout
    database = await init_database(config)
    llm = OpenAIService(
        api_key=config.openai_api_key,
        model=config.openai_model,
        max_tokens=config.openai_max_tokens,
    )
    return assemble_services(
        config=config,
        database=database,
        auth=SessionAuthClient(config.auth_url, config.auth_api_key),
        bookmarks=BookmarkAPIClient(config.twitter_api_base_url, timeout),
        scraper=PostScraperClient(config.apify_api_key, config.apify_actor, timeout),
        identity_lookup=IdentityLookupClient(config.rapidapi_key, config.rapidapi_host),
        llm=llm,
        search=WebSearchClient(config.perplexity_api_key, config.perplexity_model),
        email=ResendEmailClient(config.resend_api_key),
    )
