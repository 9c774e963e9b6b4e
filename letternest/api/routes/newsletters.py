"""
Newsletter generation and history endpoints.
"""

from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from letternest.api.deps import authenticate, get_current_user_id, get_services
from letternest.infrastructure.error_handling import GENERIC_FAILURE_MESSAGE, PreconditionError
from letternest.infrastructure.logging import get_logger
from letternest.models.job import NewsletterModel
from letternest.models.state import GenerationRequest
from letternest.services.container import ServiceContainer
from letternest.strategies import get_template
from letternest.workflows.newsletter import run_newsletter_generation

logger = get_logger(__name__)

router = APIRouter(prefix="/newsletters", tags=["newsletters"])

INVALID_SELECTION = "Invalid selection. Please choose 10, 20, or 30 tweets."


class GenerationPayload(BaseModel):
    """Body of a generation request."""

    model_config = ConfigDict(populate_by_name=True)

    selected_count: Literal[10, 20, 30] = Field(alias="selectedCount")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/{template_key}", status_code=status.HTTP_202_ACCEPTED)
async def generate_newsletter(
    template_key: str,
    request: Request,
    background_tasks: BackgroundTasks,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    services: ServiceContainer = Depends(get_services),
):
    """
    Accept a generation request and run the pipeline in the background.

    The body is validated before any outbound call. Entitlement is checked
    before answering so quota and token problems are reported directly
    instead of through the job record.
    """
    template = get_template(template_key)
    if template is None:
        return error_response(status.HTTP_404_NOT_FOUND, f"Unknown newsletter template: {template_key}")

    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        payload = GenerationPayload.model_validate(body)
    except ValidationError:
        return error_response(status.HTTP_400_BAD_REQUEST, INVALID_SELECTION)

    user_id = await authenticate(authorization, services)

    try:
        await services.entitlement.load_entitled_profile(user_id)
        job = await services.database.create_job(user_id, template.key, payload.selected_count)
    except PreconditionError as e:
        return error_response(e.status_code, e.message)
    except Exception as e:
        logger.error("Failed to start newsletter generation", user_id=user_id, error=str(e), exc_info=True)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE)

    generation_request = GenerationRequest(
        user_id=user_id,
        selected_count=payload.selected_count,
        template=template.key,
        job_id=job.id,
    )
    background_tasks.add_task(run_newsletter_generation, services, template, generation_request)

    logger.info(
        "Newsletter generation accepted",
        user_id=user_id,
        template=template.key,
        selected_count=payload.selected_count,
        job_id=job.id,
    )
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={
            "status": "processing",
            "message": (
                f"Your {template.display_name} newsletter generation has started. "
                "You will receive an email when it's ready."
            ),
            "jobId": job.id,
        },
    )


@router.get("")
async def list_newsletters(
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Most recent stored newsletters of the caller."""
    if not 1 <= limit <= 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="limit must be between 1 and 100")

    records = await services.database.list_newsletters(user_id, limit)
    return {
        "newsletters": [
            NewsletterModel.model_validate(record).model_dump(mode="json")
            for record in records
        ]
    }
