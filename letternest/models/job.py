"""Generation job models exposed by the HTTP API."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    """Lifecycle of a background newsletter generation."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


class JobModel(BaseModel):
    """Pydantic model for a persisted generation job."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, populate_by_name=True)

    id: str
    user_id: str = Field(serialization_alias="userId")
    template: str
    selected_count: int = Field(serialization_alias="selectedCount")
    status: JobStatus
    error: Optional[str] = None
    newsletter_id: Optional[str] = Field(default=None, serialization_alias="newsletterId")
    delivered: Optional[bool] = None
    created_at: datetime = Field(serialization_alias="createdAt")
    started_at: Optional[datetime] = Field(default=None, serialization_alias="startedAt")
    finished_at: Optional[datetime] = Field(default=None, serialization_alias="finishedAt")


class NewsletterModel(BaseModel):
    """Pydantic model for a stored newsletter."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    markdown_text: str
    created_at: datetime
