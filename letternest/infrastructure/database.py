"""Database management and models for the LetterNest newsletter service."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import select, update

from letternest.infrastructure.config import ApplicationConfig
from letternest.infrastructure.logging import get_logger
from letternest.models.job import JobStatus
from letternest.models.user import Platform, UserProfile

Base = declarative_base()
logger = get_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """User profile with subscription, quota and connected-account data."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=True)
    platform = Column(String(20), default=Platform.NEWSLETTER.value, nullable=False)
    subscription_tier = Column(String(100), nullable=True)
    remaining_newsletter_generations = Column(Integer, nullable=True)
    remaining_tweet_generations = Column(Integer, nullable=True)
    twitter_bookmark_access_token = Column(Text, nullable=True)
    twitter_bookmark_refresh_token = Column(Text, nullable=True)
    twitter_bookmark_token_expires_at = Column(Integer, nullable=True)
    twitter_handle = Column(String(255), nullable=True)
    numerical_id = Column(String(64), nullable=True)
    newsletter_content_preferences = Column(JSON, nullable=True)
    newsletter_day_preference = Column(String(50), nullable=True)
    voice_profile_analysis = Column(Text, nullable=True)
    personal_tweet_dataset = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_user_profile(self) -> UserProfile:
        """Detach the row into the dataclass the pipeline works with."""
        return UserProfile(
            user_id=self.id,
            email=self.email,
            subscription_tier=self.subscription_tier,
            remaining_generations=self.remaining_newsletter_generations,
            access_token=self.twitter_bookmark_access_token,
            refresh_token=self.twitter_bookmark_refresh_token,
            token_expires_at=self.twitter_bookmark_token_expires_at,
            twitter_handle=self.twitter_handle,
            numeric_id=self.numerical_id,
            content_preferences=dict(self.newsletter_content_preferences or {}),
            day_preference=self.newsletter_day_preference,
            voice_profile_analysis=self.voice_profile_analysis,
            personal_tweet_dataset=self.personal_tweet_dataset,
            platform=Platform(self.platform),
        )

    def __repr__(self):
        return f"<Profile(id={self.id}, tier={self.subscription_tier})>"


class GeneratedNewsletter(Base):
    """A newsletter produced by one successful pipeline run. Insert-only."""

    __tablename__ = "newsletter_storage"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    markdown_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_newsletter_storage_user_id", "user_id"),
    )


class GenerationJob(Base):
    """Background generation request and its outcome."""

    __tablename__ = "generation_jobs"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    template = Column(String(50), nullable=False)
    selected_count = Column(Integer, nullable=False)
    status = Column(String(20), default=JobStatus.QUEUED.value, nullable=False)
    error = Column(Text, nullable=True)
    newsletter_id = Column(String(36), nullable=True)
    delivered = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_generation_jobs_user_id", "user_id"),
        Index("idx_generation_jobs_status", "status"),
    )


class Database:
    """Database manager with async support."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_async_engine(database_url, echo=False)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init_tables(self) -> None:
        """Initialize database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()

    def get_session(self) -> AsyncSession:
        """Get database session."""
        return self.session_factory()

    # Profile operations
    async def create_profile(self, **fields: Any) -> Profile:
        """Insert a profile row. Used by seeding and tests."""
        async with self.get_session() as session:
            profile = Profile(**fields)
            session.add(profile)
            await session.commit()
            await session.refresh(profile)
            return profile

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Load a profile snapshot, or None when the user has no profile."""
        async with self.get_session() as session:
            result = await session.execute(select(Profile).where(Profile.id == user_id))
            row = result.scalar_one_or_none()
            return row.to_user_profile() if row else None

    async def save_numeric_id(self, user_id: str, numeric_id: str) -> None:
        """Memoize the resolved platform id on the profile."""
        async with self.get_session() as session:
            await session.execute(
                update(Profile).where(Profile.id == user_id).values(numerical_id=numeric_id)
            )
            await session.commit()

    async def decrement_remaining_generations(self, user_id: str) -> bool:
        """Consume one generation credit if the user has any left.

        A single conditional UPDATE, so concurrent runs can never push the
        counter below zero.

        Returns:
            True when a credit was consumed
        """
        async with self.get_session() as session:
            result = await session.execute(
                update(Profile)
                .where(
                    Profile.id == user_id,
                    Profile.remaining_newsletter_generations > 0,
                )
                .values(
                    remaining_newsletter_generations=Profile.remaining_newsletter_generations - 1
                )
            )
            await session.commit()
            return result.rowcount == 1

    async def reset_monthly_limits(
        self,
        newsletter_quota: int,
        tweet_quota: int,
        free_tweet_quota: int,
    ) -> Dict[str, int]:
        """Reset every profile's monthly counters according to its platform and tier.

        Returns:
            Number of profiles touched per platform
        """
        subscribed = Profile.subscription_tier.isnot(None)
        unsubscribed = Profile.subscription_tier.is_(None)
        newsletter = Profile.platform == Platform.NEWSLETTER.value
        creator = Profile.platform == Platform.CREATOR.value

        async with self.get_session() as session:
            counts = {Platform.NEWSLETTER.value: 0, Platform.CREATOR.value: 0}
            statements = [
                (Platform.NEWSLETTER, [newsletter, subscribed], {"remaining_newsletter_generations": newsletter_quota}),
                (Platform.NEWSLETTER, [newsletter, unsubscribed], {"remaining_newsletter_generations": 0}),
                (Platform.CREATOR, [creator, subscribed], {"remaining_tweet_generations": tweet_quota}),
                (Platform.CREATOR, [creator, unsubscribed], {"remaining_tweet_generations": free_tweet_quota}),
            ]
            for platform, conditions, values in statements:
                result = await session.execute(update(Profile).where(*conditions).values(**values))
                counts[platform.value] += result.rowcount
            await session.commit()

        logger.info("Monthly limits reset", **counts)
        return counts

    # Newsletter storage
    async def insert_newsletter(self, user_id: str, markdown_text: str) -> GeneratedNewsletter:
        """Persist a generated newsletter."""
        async with self.get_session() as session:
            record = GeneratedNewsletter(user_id=user_id, markdown_text=markdown_text)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return record

    async def list_newsletters(self, user_id: str, limit: int = 20) -> List[GeneratedNewsletter]:
        """Most recent newsletters for a user."""
        async with self.get_session() as session:
            result = await session.execute(
                select(GeneratedNewsletter)
                .where(GeneratedNewsletter.user_id == user_id)
                .order_by(GeneratedNewsletter.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def count_newsletters(self, user_id: str) -> int:
        async with self.get_session() as session:
            result = await session.execute(
                select(func.count(GeneratedNewsletter.id)).where(GeneratedNewsletter.user_id == user_id)
            )
            return result.scalar_one()

    # Generation jobs
    async def create_job(self, user_id: str, template: str, selected_count: int) -> GenerationJob:
        """Record a newly accepted generation request as queued."""
        async with self.get_session() as session:
            job = GenerationJob(
                user_id=user_id,
                template=template,
                selected_count=selected_count,
                status=JobStatus.QUEUED.value,
            )
            session.add(job)
            await session.commit()
            await session.refresh(job)
            return job

    async def mark_job_running(self, job_id: str) -> None:
        await self._update_job(job_id, status=JobStatus.RUNNING.value, started_at=_utcnow())

    async def mark_job_finished(
        self,
        job_id: str,
        status: JobStatus,
        error: Optional[str] = None,
        newsletter_id: Optional[str] = None,
        delivered: Optional[bool] = None,
    ) -> None:
        """Move a job into a terminal state."""
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal job status")
        await self._update_job(
            job_id,
            status=status.value,
            error=error,
            newsletter_id=newsletter_id,
            delivered=delivered,
            finished_at=_utcnow(),
        )

    async def _update_job(self, job_id: str, **values: Any) -> None:
        async with self.get_session() as session:
            await session.execute(update(GenerationJob).where(GenerationJob.id == job_id).values(**values))
            await session.commit()

    async def get_job(self, job_id: str) -> Optional[GenerationJob]:
        async with self.get_session() as session:
            result = await session.execute(select(GenerationJob).where(GenerationJob.id == job_id))
            return result.scalar_one_or_none()

    async def list_jobs(self, user_id: str, limit: int = 20) -> List[GenerationJob]:
        """Most recent jobs for a user."""
        async with self.get_session() as session:
            result = await session.execute(
                select(GenerationJob)
                .where(GenerationJob.user_id == user_id)
                .order_by(GenerationJob.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())


async def init_database(config: ApplicationConfig) -> Database:
    """Initialize database with configuration."""
    db = Database(config.async_database_url)
    await db.init_tables()
    return db
