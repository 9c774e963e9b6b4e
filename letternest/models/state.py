"""Workflow state shared by the LangGraph nodes of one generation run.

The state is a TypedDict so LangGraph can merge node results into it.
Nodes mutate it in place and return it. Problems are appended to
``errors`` with a severity; a CRITICAL entry makes the graph route to
the failure handler, everything else is recorded and the run goes on.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict

from letternest.models.content import BookmarkedPost, PostDetails, WebEnrichment
from letternest.models.email import EmailContent
from letternest.models.user import DeliveryResult, UserProfile


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingStage(str, Enum):
    ENTITLEMENT = "entitlement"
    IDENTITY = "identity"
    BOOKMARKS = "bookmarks"
    SCRAPING = "scraping"
    ANALYSIS = "analysis"
    ENRICHMENT = "enrichment"
    FORMATTING = "formatting"
    ENHANCEMENT = "enhancement"
    RENDERING = "rendering"
    DELIVERY = "delivery"
    PERSISTENCE = "persistence"
    QUOTA = "quota"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorSeverity(str, Enum):
    """How far a recorded problem reaches.

    Only CRITICAL stops the run. HIGH marks a step whose outcome the
    user will notice (an undelivered email), LOW a skipped nicety.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ProcessingError:
    stage: ProcessingStage
    message: str
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    error_code: Optional[str] = None
    # Text safe to show on the job record; ``message`` is for logs only
    user_message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.message}"


@dataclass
class GenerationRequest:
    """Who the run is for and what they asked for.

    ``timestamp`` doubles as the issue date printed in the newsletter.
    """

    user_id: str
    selected_count: int
    template: str
    job_id: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class GenerationMetadata:
    generation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None
    current_stage: ProcessingStage = ProcessingStage.ENTITLEMENT

    llm_calls: int = 0
    bookmarks_fetched: int = 0
    posts_scraped: int = 0
    searches_performed: int = 0

    # Seconds spent per finished stage
    stage_durations: Dict[ProcessingStage, float] = field(default_factory=dict)
    _stage_clock: Dict[ProcessingStage, float] = field(default_factory=dict, repr=False)

    @property
    def total_processing_time(self) -> float:
        return ((self.end_time or _utcnow()) - self.start_time).total_seconds()

    def mark_stage_start(self, stage: ProcessingStage) -> None:
        self.current_stage = stage
        self._stage_clock[stage] = time.perf_counter()

    def mark_stage_end(self, stage: ProcessingStage) -> None:
        # Safe to call twice: error handlers close a stage the node may have closed
        started = self._stage_clock.pop(stage, None)
        if started is not None:
            self.stage_durations[stage] = time.perf_counter() - started


class NewsletterGenerationState(TypedDict):
    generation_request: GenerationRequest
    user_profile: Optional[UserProfile]

    numeric_id: Optional[str]
    bookmarks: List[BookmarkedPost]
    post_details: List[PostDetails]

    # Each LLM step writes its own slot so later steps can fall back
    analysis: Optional[str]
    web_enrichment: List[WebEnrichment]
    enriched_analysis: Optional[str]
    markdown: Optional[str]
    enhanced_markdown: Optional[str]
    final_markdown: Optional[str]
    email_content: Optional[EmailContent]

    delivery_result: Optional[DeliveryResult]
    newsletter_id: Optional[str]
    credit_consumed: bool
    generation_metadata: GenerationMetadata

    errors: List[ProcessingError]
    warnings: List[str]


def create_initial_state(generation_request: GenerationRequest) -> NewsletterGenerationState:
    state: NewsletterGenerationState = {
        "generation_request": generation_request,
        "user_profile": None,
        "numeric_id": None,
        "bookmarks": [],
        "post_details": [],
        "analysis": None,
        "web_enrichment": [],
        "enriched_analysis": None,
        "markdown": None,
        "enhanced_markdown": None,
        "final_markdown": None,
        "email_content": None,
        "delivery_result": None,
        "newsletter_id": None,
        "credit_consumed": False,
        "generation_metadata": GenerationMetadata(),
        "errors": [],
        "warnings": [],
    }
    return state


def add_error(
    state: NewsletterGenerationState,
    stage: ProcessingStage,
    message: str,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    user_message: Optional[str] = None,
) -> ProcessingError:
    """Record a problem against ``stage`` and return the new entry."""
    error = ProcessingError(
        stage,
        message,
        severity,
        error_code,
        user_message,
        dict(details or {}),
    )
    state["errors"].append(error)
    return error


def add_warning(state: NewsletterGenerationState, message: str) -> None:
    stage = state["generation_metadata"].current_stage.value
    state["warnings"].append(f"[{stage}] {message}")


def first_critical_error(state: NewsletterGenerationState) -> Optional[ProcessingError]:
    """The error that ended the run, or None while it may still continue."""
    return next(
        (error for error in state["errors"] if error.severity == ErrorSeverity.CRITICAL),
        None,
    )


def has_critical_errors(state: NewsletterGenerationState) -> bool:
    return first_critical_error(state) is not None
