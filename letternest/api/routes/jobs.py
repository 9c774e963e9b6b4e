"""
Generation job status endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from letternest.api.deps import get_current_user_id, get_services
from letternest.models.job import JobModel
from letternest.services.container import ServiceContainer

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Poll one generation job. Other users' jobs look like missing ones."""
    job = await services.database.get_job(job_id)
    if job is None or job.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return JobModel.model_validate(job).model_dump(mode="json", by_alias=True)


@router.get("")
async def list_jobs(
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    if not 1 <= limit <= 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="limit must be between 1 and 100")

    jobs = await services.database.list_jobs(user_id, limit)
    return {"jobs": [JobModel.model_validate(job).model_dump(mode="json", by_alias=True) for job in jobs]}
