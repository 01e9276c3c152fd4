from fastapi import APIRouter, Depends, Query

from kaziconnect.api.deps import get_page, pagination_for, require_admin
from kaziconnect.core.auth import Role
from kaziconnect.schemas.admin import (
    ActivityOut,
    AdminStatsEnvelope,
    AdminStatsOut,
    AdminUserEnvelope,
    AdminUserOut,
    EmployerDecisionEnvelope,
    EmployerDecisionOut,
    EmployerRejectRequest,
    PendingEmployerOut,
    UserStatusPatchRequest,
)
from kaziconnect.schemas.common import Envelope, PageOut
from kaziconnect.schemas.disputes import (
    DisputeEnvelope,
    DisputeOut,
    DisputePriority,
    DisputeResolveRequest,
    DisputeStatus,
    DisputeStatusPatchRequest,
)
from kaziconnect.schemas.jobs import JobDeactivateRequest, JobEnvelope, JobOut
from kaziconnect.services.filters import Page
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.get("/stats", response_model=AdminStatsEnvelope)
async def dashboard_stats(principal=Depends(require_admin), repository=Depends(get_repository)) -> AdminStatsEnvelope:
    stats = await repository.get_admin_stats()
    return AdminStatsEnvelope(stats=AdminStatsOut(**stats))


@router.get("/users", response_model=PageOut[AdminUserOut])
async def list_users(
    role: Role | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None, min_length=1, max_length=100),
    principal=Depends(require_admin),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[AdminUserOut]:
    rows, total = await repository.list_users(
        filters={"role": role.value if role else None, "is_active": is_active, "search": search},
        page=page,
    )
    return PageOut[AdminUserOut](items=[AdminUserOut(**row) for row in rows], pagination=pagination_for(page, total))


@router.put("/users/{user_id}/status", response_model=AdminUserEnvelope)
async def set_user_status(
    user_id: int,
    payload: UserStatusPatchRequest,
    principal=Depends(require_admin),
    repository=Depends(get_repository),
) -> AdminUserEnvelope:
    row = await repository.set_user_active(
        user_id=user_id,
        is_active=payload.is_active,
        admin_user_id=principal.user_id,
    )
    verb = "activated" if payload.is_active else "deactivated"
    return AdminUserEnvelope(message=f"User {verb} successfully", user=AdminUserOut(**row))


@router.delete("/users/{user_id}", response_model=Envelope)
async def delete_user(user_id: int, principal=Depends(require_admin), repository=Depends(get_repository)) -> Envelope:
    await repository.delete_user(user_id=user_id, admin_user_id=principal.user_id)
    return Envelope(message="User deleted successfully")


@router.get("/employers/pending", response_model=PageOut[PendingEmployerOut])
async def list_pending_employers(
    principal=Depends(require_admin),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[PendingEmployerOut]:
    rows, total = await repository.list_pending_employers(page=page)
    return PageOut[PendingEmployerOut](
        items=[PendingEmployerOut(**row) for row in rows],
        pagination=pagination_for(page, total),
    )


@router.put("/employers/{employer_id}/approve", response_model=EmployerDecisionEnvelope)
async def approve_employer(
    employer_id: int,
    principal=Depends(require_admin),
    repository=Depends(get_repository),
) -> EmployerDecisionEnvelope:
    row = await repository.approve_employer(employer_id=employer_id, admin_user_id=principal.user_id)
    return EmployerDecisionEnvelope(message="Employer approved successfully", employer=EmployerDecisionOut(**row))


@router.put("/employers/{employer_id}/reject", response_model=EmployerDecisionEnvelope)
async def reject_employer(
    employer_id: int,
    payload: EmployerRejectRequest | None = None,
    principal=Depends(require_admin),
    repository=Depends(get_repository),
) -> EmployerDecisionEnvelope:
    row = await repository.reject_employer(
        employer_id=employer_id,
        admin_user_id=principal.user_id,
        reason=payload.reason if payload else None,
    )
    return EmployerDecisionEnvelope(message="Employer rejected", employer=EmployerDecisionOut(**row))


@router.get("/jobs", response_model=PageOut[JobOut])
async def list_jobs(
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None, min_length=1, max_length=100),
    principal=Depends(require_admin),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[JobOut]:
    rows, total = await repository.list_admin_jobs(filters={"is_active": is_active, "search": search}, page=page)
    return PageOut[JobOut](items=[JobOut(**row) for row in rows], pagination=pagination_for(page, total))


@router.put("/jobs/{job_id}/deactivate", response_model=JobEnvelope)
async def deactivate_job(
    job_id: int,
    payload: JobDeactivateRequest | None = None,
    principal=Depends(require_admin),
    repository=Depends(get_repository),
) -> JobEnvelope:
    row = await repository.deactivate_job(
        job_id=job_id,
        admin_user_id=principal.user_id,
        reason=payload.reason if payload else None,
    )
    return JobEnvelope(message="Job deactivated successfully", job=JobOut(**row))


@router.get("/disputes", response_model=PageOut[DisputeOut])
async def list_disputes(
    dispute_status: DisputeStatus | None = Query(default=None, alias="status"),
    priority: DisputePriority | None = Query(default=None),
    principal=Depends(require_admin),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[DisputeOut]:
    rows, total = await repository.list_disputes(filters={"status": dispute_status, "priority": priority}, page=page)
    return PageOut[DisputeOut](items=[DisputeOut(**row) for row in rows], pagination=pagination_for(page, total))


@router.put("/disputes/{dispute_id}/resolve", response_model=DisputeEnvelope)
async def resolve_dispute(
    dispute_id: int,
    payload: DisputeResolveRequest,
    principal=Depends(require_admin),
    repository=Depends(get_repository),
) -> DisputeEnvelope:
    row = await repository.resolve_dispute(
        dispute_id=dispute_id,
        admin_user_id=principal.user_id,
        resolution=payload.resolution,
    )
    return DisputeEnvelope(message="Dispute resolved successfully", dispute=DisputeOut(**row))


@router.put("/disputes/{dispute_id}/status", response_model=DisputeEnvelope)
async def update_dispute_status(
    dispute_id: int,
    payload: DisputeStatusPatchRequest,
    principal=Depends(require_admin),
    repository=Depends(get_repository),
) -> DisputeEnvelope:
    row = await repository.update_dispute_status(
        dispute_id=dispute_id,
        admin_user_id=principal.user_id,
        status=payload.status,
    )
    return DisputeEnvelope(message="Dispute status updated", dispute=DisputeOut(**row))


@router.get("/activity", response_model=PageOut[ActivityOut])
async def list_activity(
    user_id: int | None = Query(default=None, ge=1),
    action: str | None = Query(default=None, min_length=1, max_length=100),
    principal=Depends(require_admin),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[ActivityOut]:
    rows, total = await repository.list_activity(filters={"user_id": user_id, "action": action}, page=page)
    return PageOut[ActivityOut](items=[ActivityOut(**row) for row in rows], pagination=pagination_for(page, total))
