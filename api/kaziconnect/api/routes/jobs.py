from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status

from kaziconnect.api.deps import get_page, pagination_for, require_employer
from kaziconnect.schemas.common import Envelope, PageOut
from kaziconnect.schemas.jobs import (
    ExperienceLevel,
    JobCreateRequest,
    JobEnvelope,
    JobOut,
    JobStatsEnvelope,
    JobStatsOut,
    JobType,
    JobUpdateRequest,
)
from kaziconnect.services.filters import Page
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.get("", response_model=PageOut[JobOut])
async def list_jobs(
    search: str | None = Query(default=None, min_length=1, max_length=100),
    location: str | None = Query(default=None, min_length=1, max_length=100),
    category: str | None = Query(default=None, min_length=1, max_length=100),
    job_type: JobType | None = Query(default=None),
    experience_level: ExperienceLevel | None = Query(default=None),
    salary_min: Decimal | None = Query(default=None, ge=0),
    salary_max: Decimal | None = Query(default=None, ge=0),
    employer_id: int | None = Query(default=None, ge=1),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[JobOut]:
    rows, total = await repository.list_jobs(
        filters={
            "search": search,
            "location": location,
            "category": category,
            "job_type": job_type,
            "experience_level": experience_level,
            "salary_min": salary_min,
            "salary_max": salary_max,
            "employer_id": employer_id,
        },
        page=page,
    )
    return PageOut[JobOut](items=[JobOut(**row) for row in rows], pagination=pagination_for(page, total))


@router.get("/mine", response_model=PageOut[JobOut])
async def list_my_jobs(
    principal=Depends(require_employer),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[JobOut]:
    rows, total = await repository.list_employer_jobs(user_id=principal.user_id, page=page)
    return PageOut[JobOut](items=[JobOut(**row) for row in rows], pagination=pagination_for(page, total))


@router.get("/stats/my-stats", response_model=JobStatsEnvelope)
async def my_job_stats(principal=Depends(require_employer), repository=Depends(get_repository)) -> JobStatsEnvelope:
    stats = await repository.get_job_stats(user_id=principal.user_id)
    return JobStatsEnvelope(stats=JobStatsOut(**stats))


@router.get("/{job_id}", response_model=JobEnvelope)
async def get_job(job_id: int, repository=Depends(get_repository)) -> JobEnvelope:
    row = await repository.get_job(job_id)
    return JobEnvelope(job=JobOut(**row))


@router.post("", response_model=JobEnvelope, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreateRequest,
    principal=Depends(require_employer),
    repository=Depends(get_repository),
) -> JobEnvelope:
    row = await repository.create_job(user_id=principal.user_id, payload=payload.model_dump())
    return JobEnvelope(message="Job posted successfully", job=JobOut(**row))


@router.put("/{job_id}", response_model=JobEnvelope)
async def update_job(
    job_id: int,
    payload: JobUpdateRequest,
    principal=Depends(require_employer),
    repository=Depends(get_repository),
) -> JobEnvelope:
    row = await repository.update_job(user_id=principal.user_id, job_id=job_id, patch=payload.model_dump())
    return JobEnvelope(message="Job updated successfully", job=JobOut(**row))


@router.delete("/{job_id}", response_model=Envelope)
async def delete_job(job_id: int, principal=Depends(require_employer), repository=Depends(get_repository)) -> Envelope:
    await repository.delete_job(user_id=principal.user_id, job_id=job_id)
    return Envelope(message="Job deleted successfully")
