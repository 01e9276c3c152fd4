from fastapi import APIRouter, Depends, status

from kaziconnect.api.deps import get_page, pagination_for
from kaziconnect.core.security import get_principal
from kaziconnect.schemas.common import PageOut
from kaziconnect.schemas.disputes import DisputeCreateRequest, DisputeEnvelope, DisputeOut
from kaziconnect.services.filters import Page
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.post("", response_model=DisputeEnvelope, status_code=status.HTTP_201_CREATED)
async def file_dispute(
    payload: DisputeCreateRequest,
    principal=Depends(get_principal),
    repository=Depends(get_repository),
) -> DisputeEnvelope:
    row = await repository.file_dispute(
        user_id=principal.user_id,
        subject=payload.subject,
        description=payload.description,
        related_type=payload.related_type,
        related_id=payload.related_id,
        priority=payload.priority,
    )
    return DisputeEnvelope(message="Dispute filed successfully", dispute=DisputeOut(**row))


@router.get("/mine", response_model=PageOut[DisputeOut])
async def list_my_disputes(
    principal=Depends(get_principal),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[DisputeOut]:
    rows, total = await repository.list_my_disputes(user_id=principal.user_id, page=page)
    return PageOut[DisputeOut](items=[DisputeOut(**row) for row in rows], pagination=pagination_for(page, total))
