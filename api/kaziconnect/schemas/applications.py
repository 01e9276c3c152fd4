from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from kaziconnect.schemas.common import Envelope

ApplicationStatus = Literal["pending", "reviewed", "shortlisted", "interview", "rejected", "accepted"]


class ApplyRequest(BaseModel):
    job_id: int = Field(ge=1)
    cover_letter: str | None = Field(default=None, max_length=2000)

    model_config = {"str_strip_whitespace": True}


class ApplicationStatusPatchRequest(BaseModel):
    status: ApplicationStatus
    notes: str | None = Field(default=None, max_length=2000)


class ApplicationOut(BaseModel):
    id: int
    seeker_id: int
    job_id: int
    cover_letter: str | None = None
    status: ApplicationStatus = "pending"
    application_date: datetime
    reviewed_date: datetime | None = None
    reviewed_by: int | None = None
    notes: str | None = None
    # Joined for seekers listing their own applications.
    job_title: str | None = None
    location: str | None = None
    salary: float | None = None
    job_type: str | None = None
    company_name: str | None = None
    logo: str | None = None
    # Joined for employers reviewing a job's applicants.
    full_name: str | None = None
    phone_number: str | None = None
    seeker_location: str | None = None
    skills: str | None = None
    education: str | None = None
    experience: str | None = None
    resume_path: str | None = None
    profile_picture: str | None = None


class ApplicationEnvelope(Envelope):
    application: ApplicationOut


class ApplicationStatsOut(BaseModel):
    total: int = 0
    pending: int = 0
    reviewed: int = 0
    shortlisted: int = 0
    interview: int = 0
    accepted: int = 0
    rejected: int = 0


class ApplicationStatsEnvelope(Envelope):
    stats: ApplicationStatsOut


class SavedJobOut(BaseModel):
    id: int
    job_id: int
    saved_date: datetime
    job_title: str
    location: str | None = None
    job_type: str | None = None
    salary: float | None = None
    is_active: bool = True
    company_name: str | None = None


class SavedJobEnvelope(Envelope):
    saved_job: SavedJobOut
