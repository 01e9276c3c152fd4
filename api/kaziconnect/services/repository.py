from __future__ import annotations

import asyncio
import logging
import re
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from kaziconnect.core.config import get_settings
from kaziconnect.core.telemetry import traced
from kaziconnect.services.filters import FilterError, FilterSpec, Page, QueryBuilder

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an operation violates uniqueness or set-once rules."""


class RepositoryForbiddenError(RepositoryError):
    """Raised when an operation is not permitted for the actor."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


class RepositoryStateError(RepositoryValidationError):
    """Raised when the target entity is in a state that does not accept the operation."""


@dataclass(slots=True)
class UserCredentialRecord:
    user_id: int
    email: str
    role: str
    password_hash: str
    is_active: bool


@dataclass(slots=True)
class UserProfileRecord:
    user: dict[str, Any]
    extension: dict[str, Any] | None


# Column -> SQL type cast for bound values; None means the column type is inferred.
JOB_COLUMNS: dict[str, str | None] = {
    "job_title": None,
    "description": None,
    "requirements": None,
    "responsibilities": None,
    "salary": "numeric",
    "salary_period": "salary_period",
    "location": None,
    "job_type": "job_type",
    "category": None,
    "experience_level": "experience_level",
    "education_level": None,
    "application_deadline": "date",
}
SEEKER_PROFILE_COLUMNS: dict[str, str | None] = {
    "full_name": None,
    "phone_number": None,
    "date_of_birth": "date",
    "gender": "seeker_gender",
    "location": None,
    "education": None,
    "experience": None,
    "skills": None,
    "bio": None,
}
EMPLOYER_PROFILE_COLUMNS: dict[str, str | None] = {
    "company_name": None,
    "industry": None,
    "location": None,
    "phone_number": None,
    "website": None,
    "company_size": "company_size",
    "description": None,
}

JOB_FILTERS: dict[str, FilterSpec] = {
    "search": FilterSpec(columns=("j.job_title", "j.description", "e.company_name"), operator="ilike"),
    "location": FilterSpec.on("j.location", "ilike"),
    "category": FilterSpec.on("j.category"),
    "job_type": FilterSpec.on("j.job_type", cast="job_type"),
    "experience_level": FilterSpec.on("j.experience_level", cast="experience_level"),
    "salary_min": FilterSpec.on("j.salary", "gte", cast="numeric"),
    "salary_max": FilterSpec.on("j.salary", "lte", cast="numeric"),
    "employer_id": FilterSpec.on("j.employer_id", cast="bigint"),
}
ADMIN_JOB_FILTERS: dict[str, FilterSpec] = {
    "is_active": FilterSpec.on("j.is_active"),
    "search": FilterSpec(columns=("j.job_title", "e.company_name"), operator="ilike"),
}
APPLICATION_FILTERS: dict[str, FilterSpec] = {
    "status": FilterSpec.on("a.status", cast="application_status"),
}
NOTIFICATION_FILTERS: dict[str, FilterSpec] = {
    "is_read": FilterSpec.on("n.is_read"),
}
DISPUTE_FILTERS: dict[str, FilterSpec] = {
    "status": FilterSpec.on("d.status", cast="dispute_status"),
    "priority": FilterSpec.on("d.priority", cast="dispute_priority"),
}
USER_FILTERS: dict[str, FilterSpec] = {
    "role": FilterSpec.on("u.role", cast="user_role"),
    "is_active": FilterSpec.on("u.is_active"),
    "search": FilterSpec(columns=("u.username", "u.email"), operator="ilike"),
}
ACTIVITY_FILTERS: dict[str, FilterSpec] = {
    "user_id": FilterSpec.on("l.user_id", cast="bigint"),
    "action": FilterSpec.on("l.action"),
}

USERNAME_INVALID_CHARS_RE = re.compile(r"[^a-z0-9._-]+")

_USER_SELECT = """
select
  id,
  username,
  email,
  role::text as role,
  is_active,
  email_verified,
  registration_date,
  last_login
from users
"""
_SEEKER_SELECT = """
select
  id,
  user_id,
  full_name,
  phone_number,
  date_of_birth,
  gender::text as gender,
  location,
  education,
  experience,
  skills,
  resume_path,
  profile_picture,
  bio
from job_seekers
where user_id = $1
"""
_EMPLOYER_SELECT = """
select
  id,
  user_id,
  company_name,
  industry,
  location,
  phone_number,
  website,
  company_size::text as company_size,
  description,
  logo,
  is_approved,
  approved_by,
  approved_date,
  rejected_date,
  rejection_reason
from employers
where user_id = $1
"""
_JOB_SELECT = """
select
  j.id,
  j.employer_id,
  j.job_title,
  j.description,
  j.requirements,
  j.responsibilities,
  j.salary,
  j.salary_period::text as salary_period,
  j.location,
  j.job_type::text as job_type,
  j.category,
  j.experience_level::text as experience_level,
  j.education_level,
  j.application_deadline,
  j.expiry_date,
  j.posted_date,
  j.updated_at,
  j.is_active,
  j.views,
  j.applications_count,
  e.company_name,
  e.location as company_location,
  e.industry,
  e.website,
  e.logo,
  e.description as company_description,
  e.is_approved as employer_approved
"""
_JOB_FROM = "from job_postings j join employers e on e.id = j.employer_id"
_APPLICATION_COLUMNS = """
  a.id,
  a.seeker_id,
  a.job_id,
  a.cover_letter,
  a.status::text as status,
  a.application_date,
  a.reviewed_date,
  a.reviewed_by,
  a.notes
"""
_DISPUTE_SELECT = """
select
  d.id,
  d.user_id,
  d.subject,
  d.description,
  d.related_type::text as related_type,
  d.related_id,
  d.status::text as status,
  d.priority::text as priority,
  d.filed_date,
  d.resolved_date,
  d.resolved_by,
  d.resolution,
  u.username,
  u.email
"""
_DISPUTE_FROM = "from disputes d join users u on u.id = d.user_id"
_NOTIFICATION_SELECT = """
select
  n.id,
  n.recipient_id,
  n.title,
  n.message,
  n.kind::text as kind,
  n.related_type::text as related_type,
  n.related_id,
  n.is_read,
  n.sent_date
"""
_EMPLOYER_DECISION_SELECT = """
select
  e.id as employer_id,
  e.user_id,
  e.company_name,
  e.is_approved,
  e.approved_by,
  e.approved_date,
  e.rejected_date,
  e.rejection_reason,
  u.is_active as user_is_active
from employers e
join users u on u.id = e.user_id
where e.id = $1
"""


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout: float = 15.0,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None
        self._pool_lock = asyncio.Lock()

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # -- identity ---------------------------------------------------------

    @traced("create_user")
    async def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: str,
        full_name: str | None = None,
        phone_number: str | None = None,
        company_name: str | None = None,
        industry: str | None = None,
        location: str | None = None,
    ) -> UserProfileRecord:
        if role not in {"job-seeker", "employer"}:
            raise RepositoryValidationError("role must be one of: job-seeker, employer")
        if role == "employer" and not self._coerce_text(company_name):
            raise RepositoryValidationError("Company name is required for employers")

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    existing = await conn.fetchval("select 1 from users where email = $1", email)
                    if existing:
                        raise RepositoryConflictError("Email already registered")

                    user_id = await conn.fetchval(
                        """
                        insert into users (username, email, password_hash, role)
                        values ($1, $2, $3, $4::user_role)
                        returning id
                        """,
                        self._derive_username(email),
                        email,
                        password_hash,
                        role,
                    )
                    if role == "job-seeker":
                        await conn.execute(
                            """
                            insert into job_seekers (user_id, full_name, phone_number, location)
                            values ($1, $2, $3, $4)
                            """,
                            user_id,
                            self._coerce_text(full_name) or email.split("@", 1)[0],
                            phone_number,
                            location,
                        )
                    else:
                        await conn.execute(
                            """
                            insert into employers (user_id, company_name, phone_number, industry, location)
                            values ($1, $2, $3, $4, $5)
                            """,
                            user_id,
                            company_name,
                            phone_number,
                            industry,
                            location,
                        )
                    await self._record_activity(conn, user_id=user_id, action="register", description=f"registered as {role}")
                    record = await self._fetch_profile_record(conn, user_id=user_id)
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError("Email already registered") from exc

        logger.info("user registered user_id=%s role=%s", user_id, role)
        return record

    async def get_login_credentials(self, identifier: str) -> UserCredentialRecord | None:
        normalized = self._coerce_text(identifier)
        if not normalized:
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select id, email, role::text as role, password_hash, is_active
            from users
            where email = lower($1) or username = $1
            order by (email = lower($1)) desc
            limit 1
            """,
            normalized,
        )
        return self._credential_row_to_record(row) if row else None

    async def get_user_credentials(self, user_id: int) -> UserCredentialRecord:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            "select id, email, role::text as role, password_hash, is_active from users where id = $1",
            user_id,
        )
        if not row:
            raise RepositoryNotFoundError("User not found")
        return self._credential_row_to_record(row)

    async def record_login(self, user_id: int) -> UserProfileRecord:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                updated = await conn.fetchval(
                    "update users set last_login = now() where id = $1 returning id",
                    user_id,
                )
                if not updated:
                    raise RepositoryNotFoundError("User not found")
                await self._record_activity(conn, user_id=user_id, action="login", description="logged in")
                return await self._fetch_profile_record(conn, user_id=user_id)

    async def update_password(self, *, user_id: int, password_hash: str) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                updated = await conn.fetchval(
                    "update users set password_hash = $2 where id = $1 returning id",
                    user_id,
                    password_hash,
                )
                if not updated:
                    raise RepositoryNotFoundError("User not found")
                await self._record_activity(conn, user_id=user_id, action="password_change", description="changed password")

    # -- profiles ---------------------------------------------------------

    async def get_user_profile(self, user_id: int) -> UserProfileRecord:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await self._fetch_profile_record(conn, user_id=user_id)

    async def update_profile(self, *, user_id: int, patch: Mapping[str, Any]) -> UserProfileRecord:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                role = await conn.fetchval("select role::text from users where id = $1", user_id)
                if role is None:
                    raise RepositoryNotFoundError("User not found")

                if role == "job-seeker":
                    table, columns = "job_seekers", SEEKER_PROFILE_COLUMNS
                elif role == "employer":
                    table, columns = "employers", EMPLOYER_PROFILE_COLUMNS
                else:
                    table, columns = None, {}

                provided = {name: value for name, value in patch.items() if value is not None}
                unsupported = sorted(name for name in provided if name not in columns)
                if unsupported:
                    raise RepositoryValidationError(f"fields not applicable to {role} profiles: {', '.join(unsupported)}")

                if table and provided:
                    builder = QueryBuilder()
                    user_token = builder.bind(user_id)
                    assignments = self._coalesce_assignments(builder, columns, provided)
                    await conn.execute(
                        f"""
                        update {table}
                        set {assignments}, updated_at = now()
                        where user_id = {user_token}
                        """,
                        *builder.params,
                    )
                    await self._record_activity(conn, user_id=user_id, action="profile_update", description="updated profile")

                return await self._fetch_profile_record(conn, user_id=user_id)

    async def get_public_profile(self, user_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select
              u.id as user_id,
              u.username,
              u.role::text as role,
              s.full_name,
              coalesce(s.location, case when e.is_approved then e.location end) as location,
              s.skills,
              s.education,
              s.experience,
              s.bio,
              s.profile_picture,
              case when e.is_approved then e.company_name end as company_name,
              case when e.is_approved then e.industry end as industry,
              case when e.is_approved then e.website end as website,
              case when e.is_approved then e.description end as description,
              case when e.is_approved then e.logo end as logo
            from users u
            left join job_seekers s on s.user_id = u.id
            left join employers e on e.user_id = u.id
            where u.id = $1
              and u.is_active = true
            """,
            user_id,
        )
        if not row:
            raise RepositoryNotFoundError("User not found")
        return dict(row)

    # -- job postings -----------------------------------------------------

    @traced("create_job")
    async def create_job(self, *, user_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        provided = {name: value for name, value in payload.items() if value is not None}
        unsupported = sorted(name for name in provided if name not in JOB_COLUMNS)
        if unsupported:
            raise RepositoryValidationError(f"unsupported job fields: {', '.join(unsupported)}")
        for required in ("job_title", "description"):
            if not self._coerce_text(provided.get(required)):
                raise RepositoryValidationError(f"{required} is required")

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                employer = await conn.fetchrow(
                    "select id, is_approved from employers where user_id = $1",
                    user_id,
                )
                if not employer:
                    raise RepositoryNotFoundError("Employer profile not found")
                if not employer["is_approved"]:
                    raise RepositoryForbiddenError("Employer account pending approval. Cannot post jobs yet.")

                builder = QueryBuilder()
                columns = ["employer_id"]
                values = [builder.bind(employer["id"])]
                for name, cast in JOB_COLUMNS.items():
                    if name not in provided:
                        continue
                    columns.append(name)
                    token = builder.bind(self._job_value(name, provided[name]))
                    values.append(f"{token}::{cast}" if cast else token)

                job_id = await conn.fetchval(
                    f"""
                    insert into job_postings ({", ".join(columns)})
                    values ({", ".join(values)})
                    returning id
                    """,
                    *builder.params,
                )
                await self._record_activity(
                    conn,
                    user_id=user_id,
                    action="job_created",
                    description=f"posted job {job_id}",
                )
                row = await self._fetch_job_row(conn, job_id=job_id)

        logger.info("job created job_id=%s employer_id=%s", job_id, employer["id"])
        return self._salaried_row_to_dict(row)

    async def update_job(self, *, user_id: int, job_id: int, patch: Mapping[str, Any]) -> dict[str, Any]:
        columns: dict[str, str | None] = {**JOB_COLUMNS, "is_active": None}
        provided = {name: value for name, value in patch.items() if value is not None}
        unsupported = sorted(name for name in provided if name not in columns)
        if unsupported:
            raise RepositoryValidationError(f"unsupported job fields: {', '.join(unsupported)}")

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                await self._lock_owned_job(conn, job_id=job_id, user_id=user_id, action="update")
                if provided:
                    builder = QueryBuilder()
                    job_token = builder.bind(job_id)
                    assignments = self._coalesce_assignments(
                        builder,
                        columns,
                        {name: self._job_value(name, value) for name, value in provided.items()},
                    )
                    await conn.execute(
                        f"""
                        update job_postings
                        set {assignments}, updated_at = now()
                        where id = {job_token}
                        """,
                        *builder.params,
                    )
                row = await self._fetch_job_row(conn, job_id=job_id)
        return self._salaried_row_to_dict(row)

    async def delete_job(self, *, user_id: int, job_id: int) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                await self._lock_owned_job(conn, job_id=job_id, user_id=user_id, action="delete")
                await conn.execute(
                    "update job_postings set is_active = false, updated_at = now() where id = $1",
                    job_id,
                )
                await self._record_activity(conn, user_id=user_id, action="job_deleted", description=f"deleted job {job_id}")

    @traced("deactivate_job")
    async def deactivate_job(self, *, job_id: int, admin_user_id: int, reason: str | None) -> dict[str, Any]:
        normalized_reason = self._coerce_text(reason)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                owner = await conn.fetchrow(
                    """
                    select j.id, j.job_title, e.user_id as employer_user_id
                    from job_postings j
                    join employers e on e.id = j.employer_id
                    where j.id = $1
                    for update of j
                    """,
                    job_id,
                )
                if not owner:
                    raise RepositoryNotFoundError("Job not found")
                await conn.execute(
                    "update job_postings set is_active = false, updated_at = now() where id = $1",
                    job_id,
                )
                await self._record_activity(
                    conn,
                    user_id=admin_user_id,
                    action="job_deactivated",
                    description=f"deactivated job {job_id}" + (f": {normalized_reason}" if normalized_reason else ""),
                )
                row = await self._fetch_job_row(conn, job_id=job_id)

        message = f'Your job posting "{owner["job_title"]}" has been deactivated.'
        if normalized_reason:
            message = f"{message} Reason: {normalized_reason}"
        await self._notify_best_effort(
            recipient_id=owner["employer_user_id"],
            title="Job Deactivated",
            message=message,
            kind="warning",
            related_type="job",
            related_id=job_id,
        )
        logger.info("job deactivated job_id=%s admin_user_id=%s", job_id, admin_user_id)
        return self._salaried_row_to_dict(row)

    async def list_jobs(self, *, filters: Mapping[str, Any], page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        builder.where("j.is_active = true")
        self._apply_filters(builder, filters, JOB_FILTERS)
        rows, total = await self._fetch_page(
            select_sql=_JOB_SELECT,
            from_sql=_JOB_FROM,
            builder=builder,
            order_by="j.posted_date desc, j.id desc",
            page=page,
        )
        return [self._salaried_row_to_dict(row) for row in rows], total

    async def get_job(self, job_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await self._fetch_job_row(conn, job_id=job_id)
            if not row:
                raise RepositoryNotFoundError("Job not found")
            views = await conn.fetchval(
                "update job_postings set views = views + 1 where id = $1 returning views",
                job_id,
            )
        job = self._salaried_row_to_dict(row)
        job["views"] = views
        return job

    async def list_employer_jobs(self, *, user_id: int, page: Page) -> tuple[list[dict[str, Any]], int]:
        employer_id = await self._require_employer_id(user_id)
        builder = QueryBuilder()
        builder.where(f"j.employer_id = {builder.bind(employer_id)}")
        rows, total = await self._fetch_page(
            select_sql=_JOB_SELECT,
            from_sql=_JOB_FROM,
            builder=builder,
            order_by="j.posted_date desc, j.id desc",
            page=page,
        )
        return [self._salaried_row_to_dict(row) for row in rows], total

    async def list_admin_jobs(self, *, filters: Mapping[str, Any], page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        self._apply_filters(builder, filters, ADMIN_JOB_FILTERS)
        rows, total = await self._fetch_page(
            select_sql=_JOB_SELECT,
            from_sql=_JOB_FROM,
            builder=builder,
            order_by="j.posted_date desc, j.id desc",
            page=page,
        )
        return [self._salaried_row_to_dict(row) for row in rows], total

    async def get_job_stats(self, *, user_id: int) -> dict[str, int]:
        employer_id = await self._require_employer_id(user_id)
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select
              count(*) as total_jobs,
              count(*) filter (where is_active) as active_jobs,
              coalesce(sum(views), 0) as total_views,
              coalesce(sum(applications_count), 0) as total_applications
            from job_postings
            where employer_id = $1
            """,
            employer_id,
        )
        return {key: int(row[key]) for key in ("total_jobs", "active_jobs", "total_views", "total_applications")}

    # -- applications -----------------------------------------------------

    @traced("apply_for_job")
    async def apply_for_job(self, *, user_id: int, job_id: int, cover_letter: str | None) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    seeker = await conn.fetchrow(
                        "select id, full_name from job_seekers where user_id = $1",
                        user_id,
                    )
                    if not seeker:
                        raise RepositoryNotFoundError("Job seeker profile not found")

                    # Serializes concurrent submissions for the same job.
                    job = await conn.fetchrow(
                        """
                        select j.id, j.job_title, j.is_active, e.user_id as employer_user_id
                        from job_postings j
                        join employers e on e.id = j.employer_id
                        where j.id = $1
                        for update of j
                        """,
                        job_id,
                    )
                    if not job:
                        raise RepositoryNotFoundError("Job not found")
                    if not job["is_active"]:
                        raise RepositoryStateError("Job is no longer accepting applications")

                    existing = await conn.fetchval(
                        "select 1 from applications where seeker_id = $1 and job_id = $2",
                        seeker["id"],
                        job_id,
                    )
                    if existing:
                        raise RepositoryConflictError("You have already applied for this job")

                    row = await conn.fetchrow(
                        f"""
                        insert into applications as a (seeker_id, job_id, cover_letter, status)
                        values ($1, $2, $3, 'pending')
                        returning {_APPLICATION_COLUMNS}
                        """,
                        seeker["id"],
                        job_id,
                        self._coerce_text(cover_letter),
                    )
                    await conn.execute(
                        "update job_postings set applications_count = applications_count + 1 where id = $1",
                        job_id,
                    )
                    await self._record_activity(
                        conn,
                        user_id=user_id,
                        action="application_submitted",
                        description=f"applied to job {job_id}",
                    )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError("You have already applied for this job") from exc

        application = self._salaried_row_to_dict(row)
        await self._notify_best_effort(
            recipient_id=job["employer_user_id"],
            title="New Application",
            message=f'{seeker["full_name"]} applied for "{job["job_title"]}".',
            kind="info",
            related_type="application",
            related_id=application["id"],
        )
        return application

    @traced("update_application_status")
    async def update_application_status(
        self,
        *,
        user_id: int,
        application_id: int,
        status: str,
        notes: str | None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    owner = await conn.fetchrow(
                        """
                        select
                          a.id,
                          a.status::text as status,
                          j.job_title,
                          e.user_id as employer_user_id,
                          s.user_id as seeker_user_id
                        from applications a
                        join job_postings j on j.id = a.job_id
                        join employers e on e.id = j.employer_id
                        join job_seekers s on s.id = a.seeker_id
                        where a.id = $1
                        for update of a
                        """,
                        application_id,
                    )
                    if not owner:
                        raise RepositoryNotFoundError("Application not found")
                    if owner["employer_user_id"] != user_id:
                        raise RepositoryForbiddenError("Not authorized to update this application")

                    self._validate_application_transition(from_status=owner["status"], to_status=status)
                    row = await conn.fetchrow(
                        f"""
                        update applications as a
                        set
                          status = $2::application_status,
                          notes = coalesce($3, notes),
                          reviewed_date = now(),
                          reviewed_by = $4
                        where a.id = $1
                        returning {_APPLICATION_COLUMNS}
                        """,
                        application_id,
                        status,
                        self._coerce_text(notes),
                        user_id,
                    )
                    await self._record_activity(
                        conn,
                        user_id=user_id,
                        action="application_status_changed",
                        description=f"application {application_id}: {owner['status']} -> {status}",
                    )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError("invalid application status") from exc

        await self._notify_best_effort(
            recipient_id=owner["seeker_user_id"],
            title="Application Update",
            message=f'Your application for "{owner["job_title"]}" is now {status}.',
            kind="info",
            related_type="application",
            related_id=application_id,
        )
        return self._salaried_row_to_dict(row)

    @traced("withdraw_application")
    async def withdraw_application(self, *, user_id: int, application_id: int) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                seeker_id = await conn.fetchval("select id from job_seekers where user_id = $1", user_id)
                if seeker_id is None:
                    raise RepositoryNotFoundError("Job seeker profile not found")

                application = await conn.fetchrow(
                    "select id, seeker_id, job_id from applications where id = $1 for update",
                    application_id,
                )
                if not application:
                    raise RepositoryNotFoundError("Application not found")
                if application["seeker_id"] != seeker_id:
                    raise RepositoryForbiddenError("Not authorized to withdraw this application")

                await conn.execute("delete from applications where id = $1", application_id)
                await conn.execute(
                    """
                    update job_postings
                    set applications_count = greatest(applications_count - 1, 0)
                    where id = $1
                    """,
                    application["job_id"],
                )
                await self._record_activity(
                    conn,
                    user_id=user_id,
                    action="application_withdrawn",
                    description=f"withdrew application {application_id}",
                )

    async def list_my_applications(
        self,
        *,
        user_id: int,
        filters: Mapping[str, Any],
        page: Page,
    ) -> tuple[list[dict[str, Any]], int]:
        seeker_id = await self._require_seeker_id(user_id)
        builder = QueryBuilder()
        builder.where(f"a.seeker_id = {builder.bind(seeker_id)}")
        self._apply_filters(builder, filters, APPLICATION_FILTERS)
        rows, total = await self._fetch_page(
            select_sql=f"""
            select
              {_APPLICATION_COLUMNS},
              j.job_title,
              j.location,
              j.salary,
              j.job_type::text as job_type,
              e.company_name,
              e.logo
            """,
            from_sql="""
            from applications a
            join job_postings j on j.id = a.job_id
            join employers e on e.id = j.employer_id
            """,
            builder=builder,
            order_by="a.application_date desc, a.id desc",
            page=page,
        )
        return [self._salaried_row_to_dict(row) for row in rows], total

    async def list_job_applications(
        self,
        *,
        user_id: int,
        job_id: int,
        filters: Mapping[str, Any],
        page: Page,
    ) -> tuple[list[dict[str, Any]], int]:
        pool = await self._get_pool()
        owner_user_id = await pool.fetchval(
            """
            select e.user_id
            from job_postings j
            join employers e on e.id = j.employer_id
            where j.id = $1
            """,
            job_id,
        )
        if owner_user_id is None:
            raise RepositoryNotFoundError("Job not found")
        if owner_user_id != user_id:
            raise RepositoryForbiddenError("Not authorized to view these applications")

        builder = QueryBuilder()
        builder.where(f"a.job_id = {builder.bind(job_id)}")
        self._apply_filters(builder, filters, APPLICATION_FILTERS)
        rows, total = await self._fetch_page(
            select_sql=f"""
            select
              {_APPLICATION_COLUMNS},
              s.full_name,
              s.phone_number,
              s.location as seeker_location,
              s.skills,
              s.education,
              s.experience,
              s.resume_path,
              s.profile_picture
            """,
            from_sql="from applications a join job_seekers s on s.id = a.seeker_id",
            builder=builder,
            order_by="a.application_date desc, a.id desc",
            page=page,
        )
        return [self._salaried_row_to_dict(row) for row in rows], total

    async def get_application_stats(self, *, user_id: int, role: str) -> dict[str, int]:
        if role == "job-seeker":
            seeker_id = await self._require_seeker_id(user_id)
            scope_sql, scope_value = "a.seeker_id = $1", seeker_id
        elif role == "employer":
            employer_id = await self._require_employer_id(user_id)
            scope_sql, scope_value = "j.employer_id = $1", employer_id
        else:
            raise RepositoryForbiddenError("Application stats are available to job seekers and employers")

        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select
              count(*) as total,
              count(*) filter (where a.status = 'pending') as pending,
              count(*) filter (where a.status = 'reviewed') as reviewed,
              count(*) filter (where a.status = 'shortlisted') as shortlisted,
              count(*) filter (where a.status = 'interview') as interview,
              count(*) filter (where a.status = 'accepted') as accepted,
              count(*) filter (where a.status = 'rejected') as rejected
            from applications a
            join job_postings j on j.id = a.job_id
            where {scope_sql}
            """,
            scope_value,
        )
        return {key: int(value) for key, value in dict(row).items()}

    # -- saved jobs -------------------------------------------------------

    async def save_job(self, *, user_id: int, job_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    seeker_id = await conn.fetchval("select id from job_seekers where user_id = $1", user_id)
                    if seeker_id is None:
                        raise RepositoryNotFoundError("Job seeker profile not found")
                    job_exists = await conn.fetchval("select 1 from job_postings where id = $1", job_id)
                    if not job_exists:
                        raise RepositoryNotFoundError("Job not found")
                    saved_id = await conn.fetchval(
                        """
                        insert into saved_jobs (seeker_id, job_id)
                        values ($1, $2)
                        on conflict on constraint unique_saved do nothing
                        returning id
                        """,
                        seeker_id,
                        job_id,
                    )
                    if saved_id is None:
                        raise RepositoryConflictError("Job already saved")
                    row = await conn.fetchrow(
                        """
                        select
                          sj.id,
                          sj.job_id,
                          sj.saved_date,
                          j.job_title,
                          j.location,
                          j.job_type::text as job_type,
                          j.salary,
                          j.is_active,
                          e.company_name
                        from saved_jobs sj
                        join job_postings j on j.id = sj.job_id
                        join employers e on e.id = j.employer_id
                        where sj.id = $1
                        """,
                        saved_id,
                    )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError("Job already saved") from exc
        return self._salaried_row_to_dict(row)

    async def unsave_job(self, *, user_id: int, job_id: int) -> None:
        seeker_id = await self._require_seeker_id(user_id)
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            "delete from saved_jobs where seeker_id = $1 and job_id = $2 returning id",
            seeker_id,
            job_id,
        )
        if deleted is None:
            raise RepositoryNotFoundError("Saved job not found")

    async def list_saved_jobs(self, *, user_id: int, page: Page) -> tuple[list[dict[str, Any]], int]:
        seeker_id = await self._require_seeker_id(user_id)
        builder = QueryBuilder()
        builder.where(f"sj.seeker_id = {builder.bind(seeker_id)}")
        rows, total = await self._fetch_page(
            select_sql="""
            select
              sj.id,
              sj.job_id,
              sj.saved_date,
              j.job_title,
              j.location,
              j.job_type::text as job_type,
              j.salary,
              j.is_active,
              e.company_name
            """,
            from_sql="""
            from saved_jobs sj
            join job_postings j on j.id = sj.job_id
            join employers e on e.id = j.employer_id
            """,
            builder=builder,
            order_by="sj.saved_date desc, sj.id desc",
            page=page,
        )
        return [self._salaried_row_to_dict(row) for row in rows], total

    # -- notifications ----------------------------------------------------

    async def send_notification(
        self,
        *,
        recipient_id: int,
        title: str,
        message: str,
        kind: str = "info",
        related_type: str | None = None,
        related_id: int | None = None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            insert into notifications as n (recipient_id, title, message, kind, related_type, related_id)
            values ($1, $2, $3, $4::notification_kind, $5::notification_related_type, $6)
            returning
              n.id,
              n.recipient_id,
              n.title,
              n.message,
              n.kind::text as kind,
              n.related_type::text as related_type,
              n.related_id,
              n.is_read,
              n.sent_date
            """,
            recipient_id,
            title,
            message,
            kind,
            related_type,
            related_id,
        )
        return dict(row)

    async def list_notifications(
        self,
        *,
        user_id: int,
        filters: Mapping[str, Any],
        page: Page,
    ) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        builder.where(f"n.recipient_id = {builder.bind(user_id)}")
        self._apply_filters(builder, filters, NOTIFICATION_FILTERS)
        rows, total = await self._fetch_page(
            select_sql=_NOTIFICATION_SELECT,
            from_sql="from notifications n",
            builder=builder,
            order_by="n.sent_date desc, n.id desc",
            page=page,
        )
        return [dict(row) for row in rows], total

    async def mark_notification_read(self, *, user_id: int, notification_id: int) -> None:
        pool = await self._get_pool()
        updated = await pool.fetchval(
            """
            update notifications
            set is_read = true
            where id = $1 and recipient_id = $2
            returning id
            """,
            notification_id,
            user_id,
        )
        if updated is None:
            raise RepositoryNotFoundError("Notification not found")

    async def mark_all_notifications_read(self, *, user_id: int) -> int:
        pool = await self._get_pool()
        result = await pool.execute(
            "update notifications set is_read = true where recipient_id = $1 and is_read = false",
            user_id,
        )
        return self._affected_rows(result)

    async def delete_notification(self, *, user_id: int, notification_id: int) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            "delete from notifications where id = $1 and recipient_id = $2 returning id",
            notification_id,
            user_id,
        )
        if deleted is None:
            raise RepositoryNotFoundError("Notification not found")

    async def unread_count(self, *, user_id: int) -> int:
        pool = await self._get_pool()
        count = await pool.fetchval(
            "select count(*) from notifications where recipient_id = $1 and is_read = false",
            user_id,
        )
        return int(count or 0)

    # -- disputes ---------------------------------------------------------

    async def file_dispute(
        self,
        *,
        user_id: int,
        subject: str,
        description: str,
        related_type: str | None = None,
        related_id: int | None = None,
        priority: str = "medium",
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    dispute_id = await conn.fetchval(
                        """
                        insert into disputes (user_id, subject, description, related_type, related_id, priority)
                        values ($1, $2, $3, $4::dispute_related_type, $5, $6::dispute_priority)
                        returning id
                        """,
                        user_id,
                        subject,
                        description,
                        related_type,
                        related_id,
                        priority,
                    )
                    await self._record_activity(conn, user_id=user_id, action="dispute_filed", description=f"filed dispute {dispute_id}")
                    row = await conn.fetchrow(f"{_DISPUTE_SELECT} {_DISPUTE_FROM} where d.id = $1", dispute_id)
        except pg_exc.ForeignKeyViolationError as exc:
            raise RepositoryNotFoundError("User not found") from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError("invalid dispute priority or related type") from exc
        return dict(row)

    async def list_my_disputes(self, *, user_id: int, page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        builder.where(f"d.user_id = {builder.bind(user_id)}")
        rows, total = await self._fetch_page(
            select_sql=_DISPUTE_SELECT,
            from_sql=_DISPUTE_FROM,
            builder=builder,
            order_by="d.filed_date desc, d.id desc",
            page=page,
        )
        return [dict(row) for row in rows], total

    async def list_disputes(self, *, filters: Mapping[str, Any], page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        self._apply_filters(builder, filters, DISPUTE_FILTERS)
        rows, total = await self._fetch_page(
            select_sql=_DISPUTE_SELECT,
            from_sql=_DISPUTE_FROM,
            builder=builder,
            order_by="d.filed_date desc, d.id desc",
            page=page,
        )
        return [dict(row) for row in rows], total

    @traced("resolve_dispute")
    async def resolve_dispute(self, *, dispute_id: int, admin_user_id: int, resolution: str) -> dict[str, Any]:
        normalized_resolution = self._coerce_text(resolution)
        if not normalized_resolution:
            raise RepositoryValidationError("resolution must be a non-empty string")

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                existing = await conn.fetchrow(
                    "select id, user_id, subject, status::text as status from disputes where id = $1 for update",
                    dispute_id,
                )
                if not existing:
                    raise RepositoryNotFoundError("Dispute not found")
                self._validate_dispute_transition(from_status=existing["status"], to_status="resolved")

                await conn.execute(
                    """
                    update disputes
                    set
                      status = 'resolved',
                      resolution = $2,
                      resolved_by = $3,
                      resolved_date = now()
                    where id = $1
                    """,
                    dispute_id,
                    normalized_resolution,
                    admin_user_id,
                )
                await self._record_activity(
                    conn,
                    user_id=admin_user_id,
                    action="dispute_resolved",
                    description=f"resolved dispute {dispute_id}",
                )
                row = await conn.fetchrow(f"{_DISPUTE_SELECT} {_DISPUTE_FROM} where d.id = $1", dispute_id)

        await self._notify_best_effort(
            recipient_id=existing["user_id"],
            title="Dispute Resolved",
            message=f'Your dispute "{existing["subject"]}" has been resolved: {normalized_resolution}',
            kind="success",
            related_type="dispute",
            related_id=dispute_id,
        )
        logger.info("dispute resolved dispute_id=%s admin_user_id=%s", dispute_id, admin_user_id)
        return dict(row)

    @traced("update_dispute_status")
    async def update_dispute_status(self, *, dispute_id: int, admin_user_id: int, status: str) -> dict[str, Any]:
        if status == "resolved":
            raise RepositoryValidationError("use the resolve operation to resolve a dispute")

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    existing = await conn.fetchrow(
                        "select id, status::text as status from disputes where id = $1 for update",
                        dispute_id,
                    )
                    if not existing:
                        raise RepositoryNotFoundError("Dispute not found")
                    self._validate_dispute_transition(from_status=existing["status"], to_status=status)

                    await conn.execute(
                        "update disputes set status = $2::dispute_status where id = $1",
                        dispute_id,
                        status,
                    )
                    await self._record_activity(
                        conn,
                        user_id=admin_user_id,
                        action="dispute_status_changed",
                        description=f"dispute {dispute_id}: {existing['status']} -> {status}",
                    )
                    row = await conn.fetchrow(f"{_DISPUTE_SELECT} {_DISPUTE_FROM} where d.id = $1", dispute_id)
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError("invalid dispute status") from exc
        return dict(row)

    # -- admin ------------------------------------------------------------

    async def get_admin_stats(self) -> dict[str, int]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select
              (select count(*) from users) as total_users,
              (select count(*) from users where role = 'job-seeker') as job_seekers,
              (select count(*) from users where role = 'employer') as employers,
              (select count(*) from job_postings where is_active) as active_jobs,
              (select count(*) from applications) as total_applications,
              (select count(*) from applications where status = 'accepted') as successful_matches,
              (
                select count(*)
                from employers e
                join users u on u.id = e.user_id
                where not e.is_approved and e.rejected_date is null and u.is_active
              ) as pending_employers,
              (select count(*) from disputes where status in ('open', 'investigating')) as pending_disputes
            """
        )
        return {key: int(value) for key, value in dict(row).items()}

    async def list_users(self, *, filters: Mapping[str, Any], page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        self._apply_filters(builder, filters, USER_FILTERS)
        rows, total = await self._fetch_page(
            select_sql="""
            select
              u.id,
              u.username,
              u.email,
              u.role::text as role,
              u.is_active,
              u.email_verified,
              u.registration_date,
              u.last_login
            """,
            from_sql="from users u",
            builder=builder,
            order_by="u.registration_date desc, u.id desc",
            page=page,
        )
        return [dict(row) for row in rows], total

    @traced("set_user_active")
    async def set_user_active(self, *, user_id: int, is_active: bool, admin_user_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    """
                    update users
                    set is_active = $2
                    where id = $1
                    returning id
                    """,
                    user_id,
                    is_active,
                )
                if not row:
                    raise RepositoryNotFoundError("User not found")
                await self._record_activity(
                    conn,
                    user_id=admin_user_id,
                    action="user_activated" if is_active else "user_deactivated",
                    description=f"user {user_id}",
                )
                user = await conn.fetchrow(f"{_USER_SELECT} where id = $1", user_id)
        return dict(user)

    @traced("delete_user")
    async def delete_user(self, *, user_id: int, admin_user_id: int) -> None:
        if user_id == admin_user_id:
            raise RepositoryValidationError("Cannot delete your own account")
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                deleted = await conn.fetchval("delete from users where id = $1 returning id", user_id)
                if deleted is None:
                    raise RepositoryNotFoundError("User not found")
                await self._record_activity(conn, user_id=admin_user_id, action="user_deleted", description=f"user {user_id}")

    async def list_pending_employers(self, *, page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        builder.where("not e.is_approved")
        builder.where("e.rejected_date is null")
        builder.where("u.is_active")
        rows, total = await self._fetch_page(
            select_sql="""
            select
              e.id as employer_id,
              e.user_id,
              e.company_name,
              e.industry,
              e.location,
              e.phone_number,
              e.website,
              u.email,
              u.registration_date,
              e.created_at
            """,
            from_sql="from employers e join users u on u.id = e.user_id",
            builder=builder,
            order_by="e.created_at asc, e.id asc",
            page=page,
        )
        return [dict(row) for row in rows], total

    @traced("approve_employer")
    async def approve_employer(self, *, employer_id: int, admin_user_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                existing = await self._lock_employer(conn, employer_id=employer_id)
                self._validate_employer_decision(
                    is_approved=existing["is_approved"],
                    rejected=existing["rejected_date"] is not None,
                )
                await conn.execute(
                    """
                    update employers
                    set
                      is_approved = true,
                      approved_by = $2,
                      approved_date = now(),
                      updated_at = now()
                    where id = $1
                    """,
                    employer_id,
                    admin_user_id,
                )
                await self._record_activity(
                    conn,
                    user_id=admin_user_id,
                    action="employer_approved",
                    description=f"approved employer {employer_id}",
                )
                row = await conn.fetchrow(_EMPLOYER_DECISION_SELECT, employer_id)

        await self._notify_best_effort(
            recipient_id=existing["user_id"],
            title="Account Approved",
            message="Your employer account has been approved. You can now post jobs!",
            kind="success",
            related_type="profile",
            related_id=employer_id,
        )
        logger.info("employer approved employer_id=%s admin_user_id=%s", employer_id, admin_user_id)
        return dict(row)

    @traced("reject_employer")
    async def reject_employer(self, *, employer_id: int, admin_user_id: int, reason: str | None) -> dict[str, Any]:
        normalized_reason = self._coerce_text(reason)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                # Rejection also revokes an earlier approval and may be repeated.
                existing = await self._lock_employer(conn, employer_id=employer_id)
                await conn.execute(
                    """
                    update employers
                    set
                      is_approved = false,
                      rejected_date = now(),
                      rejection_reason = $2,
                      updated_at = now()
                    where id = $1
                    """,
                    employer_id,
                    normalized_reason,
                )
                await conn.execute("update users set is_active = false where id = $1", existing["user_id"])
                await self._record_activity(
                    conn,
                    user_id=admin_user_id,
                    action="employer_rejected",
                    description=f"rejected employer {employer_id}" + (f": {normalized_reason}" if normalized_reason else ""),
                )
                row = await conn.fetchrow(_EMPLOYER_DECISION_SELECT, employer_id)

        await self._notify_best_effort(
            recipient_id=existing["user_id"],
            title="Account Rejected",
            message=(
                "Your employer account application was not approved. Reason: "
                + (normalized_reason or "Please contact support for more information.")
            ),
            kind="error",
            related_type="profile",
            related_id=employer_id,
        )
        logger.info("employer rejected employer_id=%s admin_user_id=%s", employer_id, admin_user_id)
        return dict(row)

    async def list_activity(self, *, filters: Mapping[str, Any], page: Page) -> tuple[list[dict[str, Any]], int]:
        builder = QueryBuilder()
        self._apply_filters(builder, filters, ACTIVITY_FILTERS)
        rows, total = await self._fetch_page(
            select_sql="select l.id, l.user_id, l.action, l.description, l.created_at",
            from_sql="from activity_logs l",
            builder=builder,
            order_by="l.created_at desc, l.id desc",
            page=page,
        )
        return [dict(row) for row in rows], total

    # -- internals --------------------------------------------------------

    async def _notify_best_effort(self, **notification: Any) -> None:
        try:
            await self.send_notification(**notification)
        except (asyncpg.PostgresError, OSError, RepositoryUnavailableError) as exc:
            logger.warning(
                "notification dropped recipient_id=%s title=%s error=%s",
                notification.get("recipient_id"),
                notification.get("title"),
                exc,
            )

    @staticmethod
    async def _record_activity(
        conn: asyncpg.Connection,
        *,
        user_id: int | None,
        action: str,
        description: str | None,
    ) -> None:
        await conn.execute(
            "insert into activity_logs (user_id, action, description) values ($1, $2, $3)",
            user_id,
            action,
            description,
        )

    async def _fetch_profile_record(self, conn: asyncpg.Connection, *, user_id: int) -> UserProfileRecord:
        user = await conn.fetchrow(f"{_USER_SELECT} where id = $1", user_id)
        if not user:
            raise RepositoryNotFoundError("User not found")
        extension: asyncpg.Record | None = None
        if user["role"] == "job-seeker":
            extension = await conn.fetchrow(_SEEKER_SELECT, user_id)
        elif user["role"] == "employer":
            extension = await conn.fetchrow(_EMPLOYER_SELECT, user_id)
        return UserProfileRecord(user=dict(user), extension=dict(extension) if extension else None)

    @staticmethod
    async def _fetch_job_row(conn: asyncpg.Connection, *, job_id: int) -> asyncpg.Record | None:
        return await conn.fetchrow(f"{_JOB_SELECT} {_JOB_FROM} where j.id = $1", job_id)

    @staticmethod
    async def _lock_owned_job(conn: asyncpg.Connection, *, job_id: int, user_id: int, action: str) -> None:
        owner_user_id = await conn.fetchval(
            """
            select e.user_id
            from job_postings j
            join employers e on e.id = j.employer_id
            where j.id = $1
            for update of j
            """,
            job_id,
        )
        if owner_user_id is None:
            raise RepositoryNotFoundError("Job not found")
        if owner_user_id != user_id:
            raise RepositoryForbiddenError(f"Not authorized to {action} this job")

    @staticmethod
    async def _lock_employer(conn: asyncpg.Connection, *, employer_id: int) -> asyncpg.Record:
        row = await conn.fetchrow(
            """
            select id, user_id, is_approved, rejected_date
            from employers
            where id = $1
            for update
            """,
            employer_id,
        )
        if not row:
            raise RepositoryNotFoundError("Employer not found")
        return row

    async def _require_seeker_id(self, user_id: int) -> int:
        pool = await self._get_pool()
        seeker_id = await pool.fetchval("select id from job_seekers where user_id = $1", user_id)
        if seeker_id is None:
            raise RepositoryNotFoundError("Job seeker profile not found")
        return int(seeker_id)

    async def _require_employer_id(self, user_id: int) -> int:
        pool = await self._get_pool()
        employer_id = await pool.fetchval("select id from employers where user_id = $1", user_id)
        if employer_id is None:
            raise RepositoryNotFoundError("Employer profile not found")
        return int(employer_id)

    async def _fetch_page(
        self,
        *,
        select_sql: str,
        from_sql: str,
        builder: QueryBuilder,
        order_by: str,
        page: Page,
    ) -> tuple[list[asyncpg.Record], int]:
        pool = await self._get_pool()
        where_sql = builder.where_sql()
        count_params = list(builder.params)
        limit_token = builder.bind(page.limit)
        offset_token = builder.bind(page.offset)
        try:
            async with pool.acquire() as conn:
                total = await conn.fetchval(f"select count(*) {from_sql} where {where_sql}", *count_params)
                rows = await conn.fetch(
                    f"""
                    {select_sql}
                    {from_sql}
                    where {where_sql}
                    order by {order_by}
                    limit {limit_token}
                    offset {offset_token}
                    """,
                    *builder.params,
                )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError("invalid filter value") from exc
        return list(rows), int(total or 0)

    @staticmethod
    def _apply_filters(builder: QueryBuilder, filters: Mapping[str, Any], allowed: Mapping[str, FilterSpec]) -> None:
        try:
            builder.apply(filters, allowed)
        except FilterError as exc:
            raise RepositoryValidationError(str(exc)) from exc

    @staticmethod
    def _coalesce_assignments(
        builder: QueryBuilder,
        columns: Mapping[str, str | None],
        values: Mapping[str, Any],
    ) -> str:
        assignments = []
        for name, cast in columns.items():
            if name not in values:
                continue
            token = builder.bind(values[name])
            if cast:
                token = f"{token}::{cast}"
            assignments.append(f"{name} = coalesce({token}, {name})")
        return ", ".join(assignments)

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("KC_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        async with self._pool_lock:
            # Another caller may have created the pool while this one waited.
            if self._pool is None:
                try:
                    self._pool = await asyncpg.create_pool(
                        dsn=self.database_url,
                        min_size=self.min_pool_size,
                        max_size=self.max_pool_size,
                        command_timeout=self.command_timeout,
                    )
                except Exception as exc:  # pragma: no cover - depends on environment
                    raise RepositoryUnavailableError("database unavailable") from exc
        return self._pool

    @staticmethod
    def _credential_row_to_record(row: asyncpg.Record) -> UserCredentialRecord:
        return UserCredentialRecord(
            user_id=int(row["id"]),
            email=row["email"],
            role=row["role"],
            password_hash=row["password_hash"],
            is_active=bool(row["is_active"]),
        )

    @staticmethod
    def _salaried_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        item = dict(row)
        if item.get("salary") is not None:
            item["salary"] = float(item["salary"])
        return item

    @staticmethod
    def _validate_application_transition(*, from_status: str, to_status: str) -> None:
        # Employers may move an application between any two statuses.
        allowed_statuses = {"pending", "reviewed", "shortlisted", "interview", "rejected", "accepted"}
        if from_status not in allowed_statuses or to_status not in allowed_statuses:
            raise RepositoryValidationError(f"invalid application status transition: {from_status} -> {to_status}")

    @staticmethod
    def _validate_dispute_transition(*, from_status: str, to_status: str) -> None:
        allowed_transitions = {
            "open": {"investigating", "resolved", "closed"},
            "investigating": {"resolved", "closed"},
            "resolved": {"closed"},
            "closed": set(),
        }
        allowed = allowed_transitions.get(from_status)
        if not allowed or to_status not in allowed:
            raise RepositoryConflictError(f"invalid dispute status transition: {from_status} -> {to_status}")

    @staticmethod
    def _validate_employer_decision(*, is_approved: bool, rejected: bool) -> None:
        if rejected:
            raise RepositoryConflictError("Employer has already been rejected")
        if is_approved:
            raise RepositoryConflictError("Employer has already been approved")

    @staticmethod
    def _derive_username(email: str) -> str:
        local_part = email.split("@", 1)[0].lower()
        base = USERNAME_INVALID_CHARS_RE.sub("", local_part)[:30] or "user"
        return f"{base}_{secrets.token_hex(3)}"

    @staticmethod
    def _job_value(name: str, value: Any) -> Any:
        if name == "salary" and value is not None and not isinstance(value, Decimal):
            return Decimal(str(value))
        return value

    @staticmethod
    def _affected_rows(status: str) -> int:
        # asyncpg returns the command tag, e.g. "UPDATE 3".
        try:
            return int(status.rsplit(" ", 1)[-1])
        except (AttributeError, ValueError):
            return 0

    @staticmethod
    def _coerce_text(value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return None


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout=settings.database_command_timeout_seconds,
    )
