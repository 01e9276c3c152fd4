from fastapi import APIRouter, Depends, status

from kaziconnect.api.deps import get_page, pagination_for, require_job_seeker
from kaziconnect.schemas.applications import SavedJobEnvelope, SavedJobOut
from kaziconnect.schemas.common import Envelope, PageOut
from kaziconnect.services.filters import Page
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.get("", response_model=PageOut[SavedJobOut])
async def list_saved_jobs(
    principal=Depends(require_job_seeker),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[SavedJobOut]:
    rows, total = await repository.list_saved_jobs(user_id=principal.user_id, page=page)
    return PageOut[SavedJobOut](items=[SavedJobOut(**row) for row in rows], pagination=pagination_for(page, total))


@router.post("/{job_id}", response_model=SavedJobEnvelope, status_code=status.HTTP_201_CREATED)
async def save_job(job_id: int, principal=Depends(require_job_seeker), repository=Depends(get_repository)) -> SavedJobEnvelope:
    row = await repository.save_job(user_id=principal.user_id, job_id=job_id)
    return SavedJobEnvelope(message="Job saved", saved_job=SavedJobOut(**row))


@router.delete("/{job_id}", response_model=Envelope)
async def unsave_job(job_id: int, principal=Depends(require_job_seeker), repository=Depends(get_repository)) -> Envelope:
    await repository.unsave_job(user_id=principal.user_id, job_id=job_id)
    return Envelope(message="Job removed from saved jobs")
