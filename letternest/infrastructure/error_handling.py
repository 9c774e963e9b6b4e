"""Unified error handling utilities for the LetterNest pipeline."""

import functools
from typing import Any, Callable, Optional, TypeVar, cast

from letternest.infrastructure.logging import get_logger
from letternest.models.state import ErrorSeverity, NewsletterGenerationState, ProcessingStage, add_error

F = TypeVar("F", bound=Callable[..., Any])
logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Internal server error"


class NewsletterError(Exception):
    """Base class for errors raised by the newsletter service."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Message safe to show to the end user."""
        return GENERIC_FAILURE_MESSAGE


class PreconditionError(NewsletterError):
    """A user-fixable condition that blocks generation.

    The message is shown to the user verbatim.
    """

    status_code = 403

    def __init__(self, message: str, status_code: int = 403, error_code: Optional[str] = None):
        super().__init__(message, status_code)
        self.error_code = error_code

    @property
    def user_message(self) -> str:
        return self.message


class UpstreamAPIError(NewsletterError):
    """A third-party HTTP API answered with an error or unusable payload."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.service = service
        self.upstream_status = status_code

    def __str__(self) -> str:
        if self.upstream_status is not None:
            return f"{self.service} error {self.upstream_status}: {self.message}"
        return f"{self.service} error: {self.message}"


def handle_agent_errors(
    stage: ProcessingStage,
    severity: ErrorSeverity = ErrorSeverity.CRITICAL,
    error_code: Optional[str] = None,
    log_level: str = "error",
) -> Callable[[F], F]:
    """
    Decorator for unified error handling in workflow nodes.

    Any exception escaping the node is recorded on the state and the state
    is returned so the graph can route to its failure handler.

    Usage:
        @handle_agent_errors(ProcessingStage.BOOKMARKS, ErrorSeverity.CRITICAL, "BOOKMARK_FETCH_FAILED")
        async def fetch_bookmarks(state, config):
            ...
            return state
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            state = args[0] if args and isinstance(args[0], dict) else None

            try:
                return await func(*args, **kwargs)
            except Exception as e:
                user_message = e.user_message if isinstance(e, NewsletterError) else GENERIC_FAILURE_MESSAGE
                log_func = getattr(logger, log_level, logger.error)
                log_func(
                    "Workflow node failed",
                    node=func.__name__,
                    stage=stage.value,
                    error=str(e),
                    exc_info=not isinstance(e, PreconditionError),
                )

                if state is None:
                    raise

                add_error(
                    state,
                    stage,
                    f"Error in {func.__name__}: {e}",
                    severity,
                    getattr(e, "error_code", None) or error_code,
                    {"function": func.__name__, "exception_type": type(e).__name__},
                    user_message=user_message,
                )
                state["generation_metadata"].mark_stage_end(stage)
                return state

        return cast(F, wrapper)
    return decorator


def handle_service_errors(
    service_name: str,
    log_level: str = "error",
    reraise: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for service-level error handling without state dependency.

    Usage:
        @handle_service_errors("Bookmark API")
        async def fetch_bookmarks(self, ...):
            ...
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except PreconditionError:
                raise
            except Exception as e:
                log_func = getattr(logger, log_level, logger.error)
                log_func(
                    "Service call failed",
                    service=service_name,
                    operation=func.__name__,
                    error=str(e),
                )
                if reraise:
                    raise
                return None

        return cast(F, wrapper)
    return decorator


class ErrorContext:
    """Async context manager recording a non-fatal failure on the state.

    The exception is suppressed and stored as a warning-level error so the
    pipeline can continue with the previous stage's output.
    """

    def __init__(
        self,
        state: NewsletterGenerationState,
        stage: ProcessingStage,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        error_code: Optional[str] = None,
    ):
        self.state = state
        self.stage = stage
        self.operation = operation
        self.severity = severity
        self.error_code = error_code

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or not issubclass(exc_type, Exception):
            return False

        logger.warning(
            "Non-fatal stage failed, continuing",
            operation=self.operation,
            stage=self.stage.value,
            error=str(exc_val),
        )
        add_error(
            self.state,
            self.stage,
            f"Error during {self.operation}: {exc_val}",
            self.severity,
            self.error_code,
            {"operation": self.operation, "exception_type": exc_type.__name__},
        )
        return True
