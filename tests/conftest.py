"""
Pytest configuration and fixtures.
"""

import time
from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from letternest.api.main import create_app
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
from letternest.services.container import ServiceContainer, assemble_services
from tests.factories import (
    OTHER_TOKEN,
    OTHER_USER_ID,
    USER_ID,
    USER_TOKEN,
    ScriptedLLM,
    make_bookmarks,
    make_posts,
)


@pytest.fixture
def config(tmp_path) -> ApplicationConfig:
    """Configuration pointing at a throwaway SQLite file."""
    return ApplicationConfig(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path}/test.db",
        environment="development",
        auth_url="https://auth.test",
        openai_api_key="test-openai",
        resend_api_key="test-resend",
        perplexity_api_key="",
    )


@pytest_asyncio.fixture
async def database(config) -> AsyncGenerator[Database, None]:
    db = await init_database(config)
    yield db
    await db.close()


@pytest.fixture
def clients() -> Dict[str, MagicMock]:
    """Fake third-party clients; tests adjust return values per case."""
    tokens = {USER_TOKEN: USER_ID, OTHER_TOKEN: OTHER_USER_ID}

    auth = MagicMock(spec=SessionAuthClient)
    auth.get_user_id = AsyncMock(side_effect=lambda token: tokens.get(token))

    bookmarks = MagicMock(spec=BookmarkAPIClient)
    bookmarks.fetch_bookmarks = AsyncMock(
        side_effect=lambda numeric_id, access_token, max_results: make_bookmarks(max_results)
    )

    scraper = MagicMock(spec=PostScraperClient)
    scraper.fetch_posts = AsyncMock(side_effect=make_posts)

    identity_lookup = MagicMock(spec=IdentityLookupClient)
    identity_lookup.lookup_numeric_id = AsyncMock(return_value="44196397")

    search = MagicMock(spec=WebSearchClient)
    search.available = False
    search.search = AsyncMock()

    email = MagicMock(spec=ResendEmailClient)
    email.send_email = AsyncMock(return_value="email-123")

    return {
        "auth": auth,
        "bookmarks": bookmarks,
        "scraper": scraper,
        "identity_lookup": identity_lookup,
        "search": search,
        "email": email,
    }


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def services(config, database, clients, llm) -> ServiceContainer:
    return assemble_services(
        config=config,
        database=database,
        auth=clients["auth"],
        bookmarks=clients["bookmarks"],
        scraper=clients["scraper"],
        identity_lookup=clients["identity_lookup"],
        llm=llm,
        search=clients["search"],
        email=clients["email"],
    )


@pytest.fixture
def make_profile(database):
    """Insert a profile that passes every generation precondition by default."""
    async def _make_profile(**overrides):
        fields = {
            "id": USER_ID,
            "email": "reader@example.com",
            "subscription_tier": "pro",
            "remaining_newsletter_generations": 5,
            "twitter_bookmark_access_token": "bookmark-token",
            "twitter_bookmark_token_expires_at": int(time.time()) + 3600,
            "twitter_handle": "@reader",
        }
        fields.update(overrides)
        return await database.create_profile(**fields)

    return _make_profile


@pytest_asyncio.fixture
async def client(services) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app wired with the fake services."""
    app = create_app(services=services)
    # Unhandled errors come back as the 500 response the app sends instead of being re-raised
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

