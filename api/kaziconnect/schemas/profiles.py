from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

from kaziconnect.core.auth import Role
from kaziconnect.schemas.common import Envelope
from kaziconnect.schemas.validators import normalize_phone

Gender = Literal["Male", "Female", "Other"]
CompanySize = Literal["1-10", "11-50", "51-200", "201-500", "500+"]


class _UserFields(BaseModel):
    user_id: int
    username: str
    email: str
    is_active: bool = True
    email_verified: bool = False
    registration_date: datetime | None = None
    last_login: datetime | None = None


class JobSeekerProfile(_UserFields):
    role: Literal["job-seeker"] = "job-seeker"
    seeker_id: int | None = None
    full_name: str | None = None
    phone_number: str | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    location: str | None = None
    education: str | None = None
    experience: str | None = None
    skills: str | None = None
    resume_path: str | None = None
    profile_picture: str | None = None
    bio: str | None = None


class EmployerProfile(_UserFields):
    role: Literal["employer"] = "employer"
    employer_id: int | None = None
    company_name: str | None = None
    industry: str | None = None
    location: str | None = None
    phone_number: str | None = None
    website: str | None = None
    company_size: CompanySize | None = None
    description: str | None = None
    logo: str | None = None
    is_approved: bool = False
    approved_by: int | None = None
    approved_date: datetime | None = None
    rejected_date: datetime | None = None
    rejection_reason: str | None = None


class AdminProfile(_UserFields):
    role: Literal["admin"] = "admin"


UserProfile = Annotated[Union[JobSeekerProfile, EmployerProfile, AdminProfile], Field(discriminator="role")]

_SEEKER_EXTENSION_KEYS = {
    "seeker_id": "id",
    "full_name": "full_name",
    "phone_number": "phone_number",
    "date_of_birth": "date_of_birth",
    "gender": "gender",
    "location": "location",
    "education": "education",
    "experience": "experience",
    "skills": "skills",
    "resume_path": "resume_path",
    "profile_picture": "profile_picture",
    "bio": "bio",
}
_EMPLOYER_EXTENSION_KEYS = {
    "employer_id": "id",
    "company_name": "company_name",
    "industry": "industry",
    "location": "location",
    "phone_number": "phone_number",
    "website": "website",
    "company_size": "company_size",
    "description": "description",
    "logo": "logo",
    "is_approved": "is_approved",
    "approved_by": "approved_by",
    "approved_date": "approved_date",
    "rejected_date": "rejected_date",
    "rejection_reason": "rejection_reason",
}


def build_user_profile(user: dict[str, Any], extension: dict[str, Any] | None) -> UserProfile:
    """Combine a ``users`` row with its role-profile row into the tagged profile."""
    base = {
        "user_id": user["id"],
        "username": user["username"],
        "email": user["email"],
        "is_active": bool(user.get("is_active", True)),
        "email_verified": bool(user.get("email_verified", False)),
        "registration_date": user.get("registration_date"),
        "last_login": user.get("last_login"),
    }
    extension = extension or {}
    role = Role(user["role"])
    match role:
        case Role.JOB_SEEKER:
            return JobSeekerProfile(**base, **_pick(extension, _SEEKER_EXTENSION_KEYS))
        case Role.EMPLOYER:
            return EmployerProfile(**base, **_pick(extension, _EMPLOYER_EXTENSION_KEYS))
        case Role.ADMIN:
            return AdminProfile(**base)


def _pick(row: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    return {field: row[column] for field, column in mapping.items() if column in row and row[column] is not None}


class ProfileEnvelope(Envelope):
    user: UserProfile


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = Field(default=None, min_length=3, max_length=100)
    phone_number: str | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    location: str | None = Field(default=None, max_length=100)
    education: str | None = None
    experience: str | None = None
    skills: str | None = None
    bio: str | None = Field(default=None, max_length=1000)
    company_name: str | None = Field(default=None, min_length=1, max_length=150)
    industry: str | None = Field(default=None, max_length=100)
    website: str | None = Field(default=None, max_length=255)
    company_size: CompanySize | None = None
    description: str | None = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("phone_number")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        return normalize_phone(value)


class PublicProfileOut(BaseModel):
    user_id: int
    username: str
    role: Role
    full_name: str | None = None
    location: str | None = None
    skills: str | None = None
    education: str | None = None
    experience: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    company_name: str | None = None
    industry: str | None = None
    website: str | None = None
    description: str | None = None
    logo: str | None = None


class PublicProfileEnvelope(Envelope):
    profile: PublicProfileOut
