from datetime import datetime

from pydantic import BaseModel, Field

from kaziconnect.core.auth import Role
from kaziconnect.schemas.common import Envelope


class AdminStatsOut(BaseModel):
    total_users: int = 0
    job_seekers: int = 0
    employers: int = 0
    active_jobs: int = 0
    total_applications: int = 0
    successful_matches: int = 0
    pending_employers: int = 0
    pending_disputes: int = 0


class AdminStatsEnvelope(Envelope):
    stats: AdminStatsOut


class AdminUserOut(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    is_active: bool
    email_verified: bool
    registration_date: datetime
    last_login: datetime | None = None


class AdminUserEnvelope(Envelope):
    user: AdminUserOut


class UserStatusPatchRequest(BaseModel):
    is_active: bool


class EmployerRejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class PendingEmployerOut(BaseModel):
    employer_id: int
    user_id: int
    company_name: str
    industry: str | None = None
    location: str | None = None
    phone_number: str | None = None
    website: str | None = None
    email: str
    registration_date: datetime
    created_at: datetime


class EmployerDecisionOut(BaseModel):
    employer_id: int
    user_id: int
    company_name: str
    is_approved: bool
    approved_by: int | None = None
    approved_date: datetime | None = None
    rejected_date: datetime | None = None
    rejection_reason: str | None = None
    user_is_active: bool


class EmployerDecisionEnvelope(Envelope):
    employer: EmployerDecisionOut


class ActivityOut(BaseModel):
    id: int
    user_id: int | None = None
    action: str
    description: str | None = None
    created_at: datetime
