from fastapi import APIRouter, Depends, Query, status

from kaziconnect.api.deps import get_page, pagination_for, require_employer, require_job_seeker
from kaziconnect.core.auth import Role
from kaziconnect.core.security import require_roles
from kaziconnect.schemas.applications import (
    ApplicationEnvelope,
    ApplicationOut,
    ApplicationStatsEnvelope,
    ApplicationStatsOut,
    ApplicationStatus,
    ApplicationStatusPatchRequest,
    ApplyRequest,
)
from kaziconnect.schemas.common import Envelope, PageOut
from kaziconnect.services.filters import Page
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.post("", response_model=ApplicationEnvelope, status_code=status.HTTP_201_CREATED)
async def apply_for_job(
    payload: ApplyRequest,
    principal=Depends(require_job_seeker),
    repository=Depends(get_repository),
) -> ApplicationEnvelope:
    row = await repository.apply_for_job(
        user_id=principal.user_id,
        job_id=payload.job_id,
        cover_letter=payload.cover_letter,
    )
    return ApplicationEnvelope(message="Application submitted successfully", application=ApplicationOut(**row))


@router.get("/my-applications", response_model=PageOut[ApplicationOut])
async def list_my_applications(
    application_status: ApplicationStatus | None = Query(default=None, alias="status"),
    principal=Depends(require_job_seeker),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[ApplicationOut]:
    rows, total = await repository.list_my_applications(
        user_id=principal.user_id,
        filters={"status": application_status},
        page=page,
    )
    return PageOut[ApplicationOut](
        items=[ApplicationOut(**row) for row in rows],
        pagination=pagination_for(page, total),
    )


@router.get("/job/{job_id}", response_model=PageOut[ApplicationOut])
async def list_job_applications(
    job_id: int,
    application_status: ApplicationStatus | None = Query(default=None, alias="status"),
    principal=Depends(require_employer),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[ApplicationOut]:
    rows, total = await repository.list_job_applications(
        user_id=principal.user_id,
        job_id=job_id,
        filters={"status": application_status},
        page=page,
    )
    return PageOut[ApplicationOut](
        items=[ApplicationOut(**row) for row in rows],
        pagination=pagination_for(page, total),
    )


@router.get("/stats", response_model=ApplicationStatsEnvelope)
async def application_stats(
    principal=Depends(require_roles(Role.JOB_SEEKER, Role.EMPLOYER)),
    repository=Depends(get_repository),
) -> ApplicationStatsEnvelope:
    stats = await repository.get_application_stats(user_id=principal.user_id, role=principal.role.value)
    return ApplicationStatsEnvelope(stats=ApplicationStatsOut(**stats))


@router.put("/{application_id}/status", response_model=ApplicationEnvelope)
async def update_application_status(
    application_id: int,
    payload: ApplicationStatusPatchRequest,
    principal=Depends(require_employer),
    repository=Depends(get_repository),
) -> ApplicationEnvelope:
    row = await repository.update_application_status(
        user_id=principal.user_id,
        application_id=application_id,
        status=payload.status,
        notes=payload.notes,
    )
    return ApplicationEnvelope(message="Application status updated", application=ApplicationOut(**row))


@router.delete("/{application_id}", response_model=Envelope)
async def withdraw_application(
    application_id: int,
    principal=Depends(require_job_seeker),
    repository=Depends(get_repository),
) -> Envelope:
    await repository.withdraw_application(user_id=principal.user_id, application_id=application_id)
    return Envelope(message="Application withdrawn successfully")
