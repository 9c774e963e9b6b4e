"""
Database layer tests.
"""

import pytest

from letternest.models.job import JobStatus
from letternest.models.user import Platform
from tests.factories import USER_ID, remaining_generations


class TestGenerationCredits:
    @pytest.mark.asyncio
    async def test_decrement_consumes_one_credit(self, database, make_profile):
        await make_profile(remaining_newsletter_generations=2)

        assert await database.decrement_remaining_generations(USER_ID) is True
        assert await remaining_generations(database) == 1

    @pytest.mark.asyncio
    async def test_decrement_never_goes_below_zero(self, database, make_profile):
        await make_profile(remaining_newsletter_generations=1)

        assert await database.decrement_remaining_generations(USER_ID) is True
        assert await database.decrement_remaining_generations(USER_ID) is False
        assert await database.decrement_remaining_generations(USER_ID) is False
        assert await remaining_generations(database) == 0

    @pytest.mark.asyncio
    async def test_decrement_unknown_user(self, database):
        assert await database.decrement_remaining_generations("missing") is False

    @pytest.mark.asyncio
    async def test_decrement_with_null_counter(self, database, make_profile):
        await make_profile(remaining_newsletter_generations=None)

        assert await database.decrement_remaining_generations(USER_ID) is False
        assert await remaining_generations(database) is None


class TestMonthlyReset:
    @pytest.mark.asyncio
    async def test_resets_by_platform_and_tier(self, database):
        await database.create_profile(id="n-paid", subscription_tier="pro", remaining_newsletter_generations=0)
        await database.create_profile(id="n-free", subscription_tier=None, remaining_newsletter_generations=3)
        await database.create_profile(
            id="c-paid",
            platform=Platform.CREATOR.value,
            subscription_tier="creator",
            remaining_tweet_generations=2,
        )
        await database.create_profile(
            id="c-free",
            platform=Platform.CREATOR.value,
            subscription_tier=None,
            remaining_tweet_generations=0,
        )

        counts = await database.reset_monthly_limits(newsletter_quota=20, tweet_quota=150, free_tweet_quota=5)

        assert counts == {"newsletter": 2, "creator": 2}
        assert (await database.get_profile("n-paid")).remaining_generations == 20
        assert (await database.get_profile("n-free")).remaining_generations == 0


class TestNumericId:
    @pytest.mark.asyncio
    async def test_save_numeric_id(self, database, make_profile):
        await make_profile()

        await database.save_numeric_id(USER_ID, "783214")

        assert (await database.get_profile(USER_ID)).numeric_id == "783214"

    @pytest.mark.asyncio
    async def test_missing_profile(self, database):
        assert await database.get_profile("nobody") is None


class TestJobs:
    @pytest.mark.asyncio
    async def test_job_lifecycle(self, database, make_profile):
        await make_profile()

        job = await database.create_job(USER_ID, "twin-focus", 30)
        assert job.status == JobStatus.QUEUED.value

        await database.mark_job_running(job.id)
        running = await database.get_job(job.id)
        assert running.status == JobStatus.RUNNING.value
        assert running.started_at is not None

        await database.mark_job_finished(job.id, JobStatus.FAILED, error="Twitter API rate limit exceeded.")
        finished = await database.get_job(job.id)
        assert finished.status == JobStatus.FAILED.value
        assert finished.error == "Twitter API rate limit exceeded."
        assert finished.finished_at is not None

    @pytest.mark.asyncio
    async def test_finish_requires_terminal_status(self, database, make_profile):
        await make_profile()
        job = await database.create_job(USER_ID, "modern-clean", 10)

        with pytest.raises(ValueError):
            await database.mark_job_finished(job.id, JobStatus.RUNNING)

    @pytest.mark.asyncio
    async def test_unknown_job(self, database):
        assert await database.get_job("missing") is None


class TestNewsletterStorage:
    @pytest.mark.asyncio
    async def test_insert_and_list(self, database, make_profile):
        await make_profile()

        first = await database.insert_newsletter(USER_ID, "# One")
        second = await database.insert_newsletter(USER_ID, "# Two")

        records = await database.list_newsletters(USER_ID)
        assert {record.id for record in records} == {first.id, second.id}
        assert await database.count_newsletters(USER_ID) == 2
        assert await database.list_newsletters(USER_ID, limit=1) != []
