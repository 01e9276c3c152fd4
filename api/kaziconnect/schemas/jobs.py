from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from kaziconnect.schemas.common import Envelope

JobType = Literal["full-time", "part-time", "contract", "internship", "remote"]
SalaryPeriod = Literal["hourly", "monthly", "yearly"]
ExperienceLevel = Literal["entry", "intermediate", "senior", "executive"]


class JobCreateRequest(BaseModel):
    job_title: str = Field(min_length=5, max_length=150)
    description: str = Field(min_length=50)
    location: str = Field(min_length=1, max_length=100)
    requirements: str | None = None
    responsibilities: str | None = None
    salary: float | None = Field(default=None, ge=0)
    salary_period: SalaryPeriod = "monthly"
    job_type: JobType = "full-time"
    category: str | None = Field(default=None, min_length=1, max_length=100)
    experience_level: ExperienceLevel = "entry"
    education_level: str | None = Field(default=None, max_length=100)
    application_deadline: date | None = None

    model_config = {"str_strip_whitespace": True}


class JobUpdateRequest(BaseModel):
    job_title: str | None = Field(default=None, min_length=5, max_length=150)
    description: str | None = Field(default=None, min_length=50)
    location: str | None = Field(default=None, min_length=1, max_length=100)
    requirements: str | None = None
    responsibilities: str | None = None
    salary: float | None = Field(default=None, ge=0)
    salary_period: SalaryPeriod | None = None
    job_type: JobType | None = None
    category: str | None = Field(default=None, min_length=1, max_length=100)
    experience_level: ExperienceLevel | None = None
    education_level: str | None = Field(default=None, max_length=100)
    application_deadline: date | None = None
    is_active: bool | None = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class JobDeactivateRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class JobOut(BaseModel):
    id: int
    employer_id: int
    job_title: str
    description: str
    requirements: str | None = None
    responsibilities: str | None = None
    salary: float | None = None
    salary_period: SalaryPeriod = "monthly"
    location: str | None = None
    job_type: JobType = "full-time"
    category: str | None = None
    experience_level: ExperienceLevel = "entry"
    education_level: str | None = None
    application_deadline: date | None = None
    expiry_date: date | None = None
    posted_date: datetime
    updated_at: datetime
    is_active: bool = True
    views: int = 0
    applications_count: int = 0
    company_name: str | None = None
    company_location: str | None = None
    industry: str | None = None
    website: str | None = None
    logo: str | None = None
    company_description: str | None = None
    employer_approved: bool | None = None


class JobEnvelope(Envelope):
    job: JobOut


class JobStatsOut(BaseModel):
    total_jobs: int = 0
    active_jobs: int = 0
    total_views: int = 0
    total_applications: int = 0


class JobStatsEnvelope(Envelope):
    stats: JobStatsOut
