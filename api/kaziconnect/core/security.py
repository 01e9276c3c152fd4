from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException, status

from kaziconnect.core.auth import Principal, Role, parse_role
from kaziconnect.core.config import Settings, get_settings
from kaziconnect.services.repository import RepositoryNotFoundError, get_repository

# bcrypt ignores everything past 72 bytes; reject instead of silently truncating.
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str, *, rounds: int = 10) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise ValueError("password must be at most 72 bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("ascii"))
    except ValueError:
        return False


def create_access_token(
    *,
    user_id: int,
    email: str,
    role: Role,
    settings: Settings,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Principal:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "iss"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token") from exc

    return _principal_from_claims(payload)


def _principal_from_claims(payload: dict[str, Any]) -> Principal:
    try:
        user_id = int(payload.get("sub", ""))
    except (TypeError, ValueError):
        user_id = 0
    email = payload.get("email")
    role = parse_role(payload.get("role"))
    if user_id <= 0 or not isinstance(email, str) or not email or role is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token claims")
    return Principal(user_id=user_id, email=email, role=role)


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication scheme in header",
        )
    token = credentials.strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="empty bearer token")
    return token


async def get_principal(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
    repository=Depends(get_repository),
) -> Principal:
    token = _extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")
    principal = decode_access_token(token, settings)

    # Deactivation applies to tokens that were already issued.
    try:
        account = await repository.get_user_credentials(principal.user_id)
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found") from exc
    if not account.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled. Contact support.")
    return principal


def require_roles(*roles: Role) -> Callable[..., Any]:
    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        try:
            principal.require_roles(roles)
        except PermissionError as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Insufficient permissions.",
            ) from exc
        return principal

    return dependency
