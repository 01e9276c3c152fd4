from fastapi import APIRouter, Depends

from kaziconnect.core.security import get_principal
from kaziconnect.schemas.profiles import (
    ProfileEnvelope,
    ProfileUpdateRequest,
    PublicProfileEnvelope,
    PublicProfileOut,
    build_user_profile,
)
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.get("", response_model=ProfileEnvelope)
async def get_profile(principal=Depends(get_principal), repository=Depends(get_repository)) -> ProfileEnvelope:
    record = await repository.get_user_profile(principal.user_id)
    return ProfileEnvelope(user=build_user_profile(record.user, record.extension))


@router.put("", response_model=ProfileEnvelope)
async def update_profile(
    payload: ProfileUpdateRequest,
    principal=Depends(get_principal),
    repository=Depends(get_repository),
) -> ProfileEnvelope:
    record = await repository.update_profile(
        user_id=principal.user_id,
        patch=payload.model_dump(exclude_none=True),
    )
    return ProfileEnvelope(
        message="Profile updated successfully",
        user=build_user_profile(record.user, record.extension),
    )


@router.get("/{user_id}", response_model=PublicProfileEnvelope)
async def get_public_profile(user_id: int, repository=Depends(get_repository)) -> PublicProfileEnvelope:
    row = await repository.get_public_profile(user_id)
    return PublicProfileEnvelope(profile=PublicProfileOut(**row))
