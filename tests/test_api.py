"""
API endpoint tests.
"""

import time
from unittest.mock import AsyncMock

import aiohttp
import pytest

from letternest.models.job import JobStatus
from letternest.services.entitlement import NO_GENERATIONS, NO_SUBSCRIPTION, PROFILE_NOT_FOUND, TOKEN_EXPIRED
from tests.factories import AUTH_HEADER, OTHER_TOKEN, USER_ID, remaining_generations

GENERATE_URL = "/api/v1/newsletters/modern-clean"
INVALID_SELECTION = "Invalid selection. Please choose 10, 20, or 30 tweets."


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestGenerateNewsletter:
    """Tests for POST /api/v1/newsletters/{template}."""

    @pytest.mark.asyncio
    async def test_accepts_and_runs_in_background(self, client, database, clients, make_profile):
        await make_profile()

        response = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "processing"
        assert "Modern Clean" in body["message"]

        job = await database.get_job(body["jobId"])
        assert job.user_id == USER_ID
        assert job.selected_count == 10
        assert job.status == JobStatus.SUCCEEDED.value
        assert job.newsletter_id is not None
        assert job.delivered is True

        clients["bookmarks"].fetch_bookmarks.assert_awaited_once()
        assert clients["bookmarks"].fetch_bookmarks.await_args.args[2] == 10
        clients["email"].send_email.assert_awaited_once()
        assert await database.count_newsletters(USER_ID) == 1
        assert await remaining_generations(database) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"selectedCount": 15}, {"selectedCount": "ten"}, {}, [10]])
    async def test_invalid_selection_makes_no_outbound_calls(self, client, database, clients, make_profile, body):
        await make_profile()

        response = await client.post(GENERATE_URL, json=body, headers=AUTH_HEADER)

        assert response.status_code == 400
        assert response.json() == {"error": INVALID_SELECTION}
        clients["auth"].get_user_id.assert_not_awaited()
        clients["bookmarks"].fetch_bookmarks.assert_not_awaited()
        assert await remaining_generations(database) == 5

    @pytest.mark.asyncio
    async def test_malformed_json(self, client, clients):
        response = await client.post(
            GENERATE_URL,
            content="{not json",
            headers={**AUTH_HEADER, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": INVALID_SELECTION}
        clients["auth"].get_user_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_template(self, client, clients):
        response = await client.post(
            "/api/v1/newsletters/no-such-template",
            json={"selectedCount": 10},
            headers=AUTH_HEADER,
        )

        assert response.status_code == 404
        assert "error" in response.json()
        clients["auth"].get_user_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_authorization_header(self, client):
        response = await client.post(GENERATE_URL, json={"selectedCount": 20})

        assert response.status_code == 401
        assert response.json() == {"error": "No authorization header"}

    @pytest.mark.asyncio
    async def test_rejected_session_token(self, client, clients):
        response = await client.post(
            GENERATE_URL,
            json={"selectedCount": 20},
            headers={"Authorization": "Bearer forged"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication failed"}
        clients["bookmarks"].fetch_bookmarks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhausted_quota_is_rejected_before_accepting(self, client, database, clients, make_profile):
        await make_profile(remaining_newsletter_generations=0)

        response = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        assert response.status_code == 403
        assert response.json() == {"error": NO_GENERATIONS}
        assert await database.list_jobs(USER_ID) == []
        clients["bookmarks"].fetch_bookmarks.assert_not_awaited()
        assert await remaining_generations(database) == 0

    @pytest.mark.asyncio
    async def test_unsubscribed_user(self, client, make_profile):
        await make_profile(subscription_tier=None)

        response = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        assert response.status_code == 403
        assert response.json() == {"error": NO_SUBSCRIPTION}

    @pytest.mark.asyncio
    async def test_expired_bookmark_token(self, client, clients, make_profile):
        await make_profile(twitter_bookmark_token_expires_at=int(time.time()) - 60)

        response = await client.post(GENERATE_URL, json={"selectedCount": 30}, headers=AUTH_HEADER)

        assert response.status_code == 401
        assert response.json() == {"error": TOKEN_EXPIRED}
        clients["bookmarks"].fetch_bookmarks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_profile(self, client):
        response = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        assert response.status_code == 404
        assert response.json() == {"error": PROFILE_NOT_FOUND}

    @pytest.mark.asyncio
    async def test_background_failure_is_recorded_on_the_job(self, client, database, clients, make_profile):
        await make_profile()
        clients["scraper"].fetch_posts.side_effect = None
        clients["scraper"].fetch_posts.return_value = []

        response = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        assert response.status_code == 202
        job = await database.get_job(response.json()["jobId"])
        assert job.status == JobStatus.FAILED.value
        assert job.error == "Internal server error"
        clients["email"].send_email.assert_not_awaited()
        assert await remaining_generations(database) == 5


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    async def test_unreachable_auth_provider(self, client, clients):
        clients["auth"].get_user_id.side_effect = aiohttp.ClientConnectionError("connection refused")

        response = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        clients["bookmarks"].fetch_bookmarks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_database_error_in_history(self, client, services, monkeypatch):
        monkeypatch.setattr(
            services.database,
            "list_newsletters",
            AsyncMock(side_effect=RuntimeError("database is locked")),
        )

        response = await client.get("/api/v1/newsletters", headers=AUTH_HEADER)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestCors:
    @pytest.mark.asyncio
    async def test_preflight_from_allowed_origin(self, client):
        response = await client.options(
            GENERATE_URL,
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-max-age"] == "86400"
        assert "POST" in response.headers["access-control-allow-methods"]

    @pytest.mark.asyncio
    async def test_preflight_from_unknown_origin(self, client):
        response = await client.options(
            GENERATE_URL,
            headers={
                "Origin": "https://evil.example",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert "access-control-allow-origin" not in response.headers


class TestJobs:
    @pytest.mark.asyncio
    async def test_poll_own_job(self, client, make_profile):
        await make_profile()
        accepted = await client.post(GENERATE_URL, json={"selectedCount": 20}, headers=AUTH_HEADER)
        job_id = accepted.json()["jobId"]

        response = await client.get(f"/api/v1/jobs/{job_id}", headers=AUTH_HEADER)

        assert response.status_code == 200
        job = response.json()
        assert job["id"] == job_id
        assert job["status"] == "succeeded"
        assert job["selectedCount"] == 20
        assert job["template"] == "modern-clean"
        assert job["newsletterId"]

    @pytest.mark.asyncio
    async def test_other_users_job_is_hidden(self, client, make_profile):
        await make_profile()
        accepted = await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)
        job_id = accepted.json()["jobId"]

        response = await client.get(
            f"/api/v1/jobs/{job_id}",
            headers={"Authorization": f"Bearer {OTHER_TOKEN}"},
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Job not found"}

    @pytest.mark.asyncio
    async def test_list_jobs_requires_auth(self, client):
        response = await client.get("/api/v1/jobs")

        assert response.status_code == 401
        assert response.json() == {"error": "No authorization header"}

    @pytest.mark.asyncio
    async def test_list_jobs(self, client, make_profile):
        await make_profile()
        await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)
        await client.post("/api/v1/newsletters/twin-focus", json={"selectedCount": 10}, headers=AUTH_HEADER)

        response = await client.get("/api/v1/jobs", headers=AUTH_HEADER)

        assert response.status_code == 200
        templates = {job["template"] for job in response.json()["jobs"]}
        assert templates == {"modern-clean", "twin-focus"}


class TestNewsletterHistory:
    @pytest.mark.asyncio
    async def test_lists_stored_newsletters(self, client, make_profile):
        await make_profile()
        await client.post(GENERATE_URL, json={"selectedCount": 10}, headers=AUTH_HEADER)

        response = await client.get("/api/v1/newsletters", headers=AUTH_HEADER)

        assert response.status_code == 200
        newsletters = response.json()["newsletters"]
        assert len(newsletters) == 1
        assert newsletters[0]["markdown_text"].startswith("# Weekly Digest")

    @pytest.mark.asyncio
    async def test_rejects_out_of_range_limit(self, client):
        response = await client.get("/api/v1/newsletters?limit=0", headers=AUTH_HEADER)

        assert response.status_code == 400


class TestTweetDrafts:
    @pytest.mark.asyncio
    async def test_generates_three_options(self, client, make_profile, llm):
        await make_profile(voice_profile_analysis="Short, punchy, no emoji.")

        response = await client.post(
            "/api/v1/tweets/generate",
            json={
                "prompt": "agents in production",
                "selectedTopics": [{"header": "AI agents", "subTopics": ["evals"]}],
            },
            headers=AUTH_HEADER,
        )

        assert response.status_code == 200
        assert response.json() == {"tweets": ["First", "Second", "Third"]}
        system_prompt = llm.calls_for("tweet drafts")[0]["messages"][0]["content"]
        assert "Short, punchy, no emoji." in system_prompt
        assert "TREND 1: AI agents" in system_prompt

    @pytest.mark.asyncio
    async def test_requires_prompt(self, client, make_profile):
        await make_profile()

        response = await client.post("/api/v1/tweets/generate", json={"prompt": ""}, headers=AUTH_HEADER)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_profile(self, client):
        response = await client.post("/api/v1/tweets/generate", json={"prompt": "hello"}, headers=AUTH_HEADER)

        assert response.status_code == 404
        assert response.json() == {"error": "User profile not found"}
