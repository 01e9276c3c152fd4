from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from kaziconnect.core.auth import Role
from kaziconnect.core.config import Settings, get_settings
from kaziconnect.core.security import create_access_token, get_principal, hash_password, verify_password
from kaziconnect.schemas.auth import AuthOut, ChangePasswordRequest, LoginRequest, RegisterRequest
from kaziconnect.schemas.common import Envelope
from kaziconnect.schemas.profiles import ProfileEnvelope, build_user_profile
from kaziconnect.services.repository import UserProfileRecord, get_repository

router = APIRouter()


def _auth_response(record: UserProfileRecord, settings: Settings, message: str) -> AuthOut:
    profile = build_user_profile(record.user, record.extension)
    token = create_access_token(
        user_id=profile.user_id,
        email=profile.email,
        role=Role(profile.role),
        settings=settings,
    )
    return AuthOut(message=message, token=token, user=profile)


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> AuthOut:
    password_hash = await run_in_threadpool(hash_password, payload.password, rounds=settings.password_hash_rounds)
    record = await repository.create_user(
        email=payload.email,
        password_hash=password_hash,
        role=payload.role,
        full_name=payload.full_name,
        phone_number=payload.phone,
        company_name=payload.company_name,
        industry=payload.industry,
        location=payload.location,
    )
    return _auth_response(record, settings, "Registration successful")


@router.post("/login", response_model=AuthOut)
async def login(
    payload: LoginRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> AuthOut:
    credentials = await repository.get_login_credentials(payload.email)
    if credentials is None or not await run_in_threadpool(
        verify_password, payload.password, credentials.password_hash
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not credentials.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled. Contact support.")

    record = await repository.record_login(credentials.user_id)
    return _auth_response(record, settings, "Login successful")


@router.get("/me", response_model=ProfileEnvelope)
async def me(principal=Depends(get_principal), repository=Depends(get_repository)) -> ProfileEnvelope:
    record = await repository.get_user_profile(principal.user_id)
    return ProfileEnvelope(user=build_user_profile(record.user, record.extension))


@router.post("/change-password", response_model=Envelope)
async def change_password(
    payload: ChangePasswordRequest,
    principal=Depends(get_principal),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> Envelope:
    credentials = await repository.get_user_credentials(principal.user_id)
    if not await run_in_threadpool(verify_password, payload.current_password, credentials.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")

    password_hash = await run_in_threadpool(hash_password, payload.new_password, rounds=settings.password_hash_rounds)
    await repository.update_password(user_id=principal.user_id, password_hash=password_hash)
    return Envelope(message="Password changed successfully")
