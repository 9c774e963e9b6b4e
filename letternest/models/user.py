"""User models for the LetterNest newsletter service."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Platform(str, Enum):
    """Which product a profile signed up for."""

    NEWSLETTER = "newsletter"
    CREATOR = "creator"


class DeliveryStatus(str, Enum):
    """Email delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class UserProfile:
    """Snapshot of a profile row as read by the pipeline."""

    user_id: str
    email: Optional[str] = None
    subscription_tier: Optional[str] = None
    remaining_generations: Optional[int] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_expires_at: Optional[int] = None
    twitter_handle: Optional[str] = None
    numeric_id: Optional[str] = None
    content_preferences: Dict[str, Any] = field(default_factory=dict)
    day_preference: Optional[str] = None
    voice_profile_analysis: Optional[str] = None
    personal_tweet_dataset: Optional[str] = None
    platform: Platform = Platform.NEWSLETTER

    @property
    def is_subscribed(self) -> bool:
        return bool(self.subscription_tier)

    def token_expired(self, now_epoch: float) -> bool:
        """True when a stored expiry exists and lies in the past."""
        return self.token_expires_at is not None and self.token_expires_at < now_epoch


@dataclass
class DeliveryResult:
    """Result of email delivery attempt."""

    success: bool
    delivery_id: Optional[str] = None
    status: DeliveryStatus = DeliveryStatus.PENDING
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
