"""
Service and helper tests.
"""

import re
import time
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from letternest.infrastructure.error_handling import PreconditionError, UpstreamAPIError
from letternest.infrastructure.logging import run_context
from letternest.models.content import PostDetails, format_posts_for_analysis
from letternest.models.email import EmailContent
from letternest.models.user import UserProfile
from letternest.services.entitlement import (
    NO_GENERATIONS,
    NO_SUBSCRIPTION,
    NO_TOKEN,
    PROFILE_NOT_FOUND,
    TOKEN_EXPIRED,
    check_entitlement,
)
from letternest.services.notification import NotificationService
from letternest.services.openai_service import OpenAIService
from letternest.services.rendering import NewsletterRenderer, clean_markdown
from letternest.services.tweet_drafts import MISSING_TWEET, extract_tweet_options
from letternest.services.web_enrichment import parse_enrichment_topics
from letternest.strategies import CREATIVE_SHOWCASE, MODERN_CLEAN, TEMPLATES, get_template


def entitled_profile(**overrides) -> UserProfile:
    fields = {
        "user_id": "user-1",
        "email": "reader@example.com",
        "subscription_tier": "pro",
        "remaining_generations": 3,
        "access_token": "token",
        "token_expires_at": 2_000_000_000,
    }
    fields.update(overrides)
    return UserProfile(**fields)


class TestEntitlement:
    NOW = 1_900_000_000

    def test_entitled_profile_passes(self):
        profile = entitled_profile()
        assert check_entitlement(profile, self.NOW) is profile

    def test_token_without_expiry_passes(self):
        assert check_entitlement(entitled_profile(token_expires_at=None), self.NOW)

    @pytest.mark.parametrize(
        "overrides, status, message",
        [
            ({"subscription_tier": None}, 403, NO_SUBSCRIPTION),
            ({"subscription_tier": ""}, 403, NO_SUBSCRIPTION),
            ({"remaining_generations": 0}, 403, NO_GENERATIONS),
            ({"remaining_generations": None}, 403, NO_GENERATIONS),
            ({"access_token": None}, 401, NO_TOKEN),
            ({"token_expires_at": NOW - 1}, 401, TOKEN_EXPIRED),
        ],
    )
    def test_blocked(self, overrides, status, message):
        with pytest.raises(PreconditionError) as exc_info:
            check_entitlement(entitled_profile(**overrides), self.NOW)

        assert exc_info.value.status_code == status
        assert exc_info.value.user_message == message

    def test_missing_profile(self):
        with pytest.raises(PreconditionError) as exc_info:
            check_entitlement(None)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == PROFILE_NOT_FOUND

    def test_first_failure_wins(self):
        profile = entitled_profile(subscription_tier=None, remaining_generations=0, access_token=None)

        with pytest.raises(PreconditionError) as exc_info:
            check_entitlement(profile, self.NOW)

        assert exc_info.value.message == NO_SUBSCRIPTION

    def test_defaults_to_current_time(self):
        with pytest.raises(PreconditionError):
            check_entitlement(entitled_profile(token_expires_at=int(time.time()) - 10))


class TestCleanMarkdown:
    def test_strips_code_fence(self):
        assert clean_markdown("```markdown\n# Title\n\nBody\n```") == "# Title\n\nBody"

    def test_strips_bare_fence(self):
        assert clean_markdown("```\n# Title\n```") == "# Title"

    def test_drops_preamble_before_first_heading(self):
        text = "Sure! Here is the refined newsletter:\n\n# Title\n\nBody"
        assert clean_markdown(text) == "# Title\n\nBody"

    def test_drops_preamble_before_html_block(self):
        text = "Here you go\n<div class=\"hero\">Hi</div>"
        assert clean_markdown(text) == "<div class=\"hero\">Hi</div>"

    def test_leaves_clean_markdown_alone(self):
        text = "# Title\n\nIntro\n\n## Section"
        assert clean_markdown(text) == text

    def test_no_heading_keeps_text(self):
        assert clean_markdown("just prose") == "just prose"


class TestEnrichmentTopics:
    def test_parses_multiple_themes(self):
        text = (
            "===\n"
            "THEME 1: AI agents\n"
            "QUERY: ai agent launches\n"
            "ENRICHMENT GOAL: latest releases\n"
            "===\n"
            "THEME 2: Chip supply\n"
            "QUERY: gpu supply outlook\n"
            "ENRICHMENT GOAL: lead times and pricing\n"
            "==="
        )

        topics = parse_enrichment_topics(text)

        assert [(topic.theme, topic.query, topic.goal) for topic in topics] == [
            ("AI agents", "ai agent launches", "latest releases"),
            ("Chip supply", "gpu supply outlook", "lead times and pricing"),
        ]

    def test_unstructured_text_yields_nothing(self):
        assert parse_enrichment_topics("No themes need enrichment.") == []


class TestTweetOptions:
    def test_extracts_all_three(self):
        text = "<tweet1> one </tweet1>\n<tweet2>two\nlines</tweet2><tweet3>three</tweet3>"
        assert extract_tweet_options(text) == ["one", "two\nlines", "three"]

    def test_missing_tags_get_placeholder(self):
        assert extract_tweet_options("<tweet2>only</tweet2>") == [MISSING_TWEET, "only", MISSING_TWEET]


class TestPostFormatting:
    def test_analysis_block(self):
        posts = [
            PostDetails(
                post_id="1",
                text="Agents are here https://t.co/abc",
                reply_count=2,
                like_count=40,
                view_count=900,
                created_at="Wed Mar 05 10:00:00 +0000 2025",
                author_name="Ada",
                photo_url="https://pbs.twimg.com/p.jpg",
            ),
            PostDetails(post_id="2", text="Second", created_at="not a date"),
        ]

        text = format_posts_for_analysis(posts)

        first, second = text.split("\n---\n\n")
        assert first.splitlines() == [
            "Tweet 1",
            "ID: 1",
            "Text: Agents are here",
            "Replies: 2",
            "Likes: 40",
            "Impressions: 900",
            "Date: 2025-03-05",
            "Author: Ada",
            "PhotoUrl: https://pbs.twimg.com/p.jpg",
        ]
        assert "Date: N/A" in second
        assert "PhotoUrl: N/A" in second
        assert "Author: Unknown" in second


class TestTemplates:
    def test_registry(self):
        assert set(TEMPLATES) == {"modern-clean", "twin-focus", "creative-showcase"}
        assert get_template("modern-clean") is MODERN_CLEAN
        assert get_template("classic") is None

    def test_subjects(self):
        issue = date(2025, 3, 5)
        assert MODERN_CLEAN.subject_for(issue) == "Your Modern Clean Newsletter - March 5, 2025"
        assert CREATIVE_SHOWCASE.subject_for(issue) == "Creative Showcase: Your Visual Newsletter from LetterNest"

    def test_markdown_prompt_carries_date_and_analysis(self):
        messages = MODERN_CLEAN.markdown_messages("THE ANALYSIS", date(2025, 3, 5))

        assert messages[0]["role"] == "system"
        assert "March 5, 2025" in messages[1]["content"]
        assert "THE ANALYSIS" in messages[1]["content"]

    def test_posts_with_braces_are_inserted_verbatim(self):
        messages = MODERN_CLEAN.analysis_messages("code: {x: 1}")
        assert "code: {x: 1}" in messages[1]["content"]


class TestRenderer:
    def test_render_email(self):
        renderer = NewsletterRenderer(base_url="https://newsletters.example.com")

        email = renderer.render_email(
            "# Hello\n\nSome **bold** text.\n\n- one\n- two",
            CREATIVE_SHOWCASE,
            from_email="news@example.com",
            issue_date=date(2025, 3, 5),
        )

        assert email.subject == CREATIVE_SHOWCASE.subject
        assert email.sender == "LetterNest Creative <news@example.com>"
        assert email.text.startswith("# Hello")
        assert "<strong>bold</strong>" in email.html
        assert "<li" in email.html
        assert "March 5, 2025" in email.html
        # cssutils switches to single quotes when the font stack itself is quoted
        assert re.search(r"<h1[^>]*style=('[^']*|\"[^\"]*)font-size", email.html)

    def test_raw_html_blocks_survive(self):
        renderer = NewsletterRenderer()

        html = renderer.render_html(
            "# Title\n\n<div class=\"card\">\n<p>Inside</p>\n</div>",
            MODERN_CLEAN,
            date(2025, 3, 5),
        )

        assert 'class="card"' in html
        assert "Inside" in html


class TestOpenAIService:
    def make_service(self, response=None, error=None):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
        return OpenAIService(api_key="test", model="gpt-4.1", max_tokens=12000, client=client), client

    @pytest.mark.asyncio
    async def test_returns_stripped_content(self):
        response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="  # Title \n"))])
        service, client = self.make_service(response)

        result = await service.complete([{"role": "user", "content": "hi"}], temperature=0.2, purpose="markdown formatting")

        assert result == "# Title"
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4.1"
        assert kwargs["max_tokens"] == 12000
        assert kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_missing_content_is_an_error(self):
        service, _ = self.make_service(SimpleNamespace(choices=[]))

        with pytest.raises(UpstreamAPIError):
            await service.complete([{"role": "user", "content": "hi"}], temperature=0.6)

    @pytest.mark.asyncio
    async def test_model_override(self):
        response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="ok"))])
        service, client = self.make_service(response)

        await service.complete([], temperature=0.7, max_tokens=1500, model="gpt-4o")

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 1500


class TestNotificationService:
    EMAIL = EmailContent(
        subject="Subject",
        html="<p>Hi</p>",
        text="Hi",
        from_email="news@example.com",
        from_name="LetterNest",
    )

    @pytest.mark.asyncio
    async def test_send_success(self):
        email_client = MagicMock()
        email_client.send_email = AsyncMock(return_value="msg-9")

        result = await NotificationService(email_client).send_newsletter(self.EMAIL, entitled_profile())

        assert result.success is True
        assert result.delivery_id == "msg-9"
        assert email_client.send_email.await_args.kwargs["sender"] == "LetterNest <news@example.com>"

    @pytest.mark.asyncio
    async def test_send_failure_is_reported_not_raised(self):
        email_client = MagicMock()
        email_client.send_email = AsyncMock(side_effect=UpstreamAPIError("Resend API", "boom", 500))

        result = await NotificationService(email_client).send_newsletter(self.EMAIL, entitled_profile())

        assert result.success is False
        assert "boom" in result.error_message

    @pytest.mark.asyncio
    async def test_profile_without_email(self):
        email_client = MagicMock()
        email_client.send_email = AsyncMock()

        result = await NotificationService(email_client).send_newsletter(self.EMAIL, entitled_profile(email=None))

        assert result.success is False
        email_client.send_email.assert_not_awaited()


class TestRunContext:
    def test_binds_and_clears_run_identifiers(self):
        structlog.contextvars.clear_contextvars()

        with run_context(user_id="user-1", generation_id="gen-1", template="modern-clean", job_id="job-1"):
            bound = structlog.contextvars.get_contextvars()

        assert bound == {
            "user_id": "user-1",
            "generation_id": "gen-1",
            "template": "modern-clean",
            "job_id": "job-1",
        }
        assert structlog.contextvars.get_contextvars() == {}
