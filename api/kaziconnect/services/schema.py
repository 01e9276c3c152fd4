from __future__ import annotations

import asyncpg  # type: ignore[import-untyped]


def _enum(name: str, *values: str) -> str:
    labels = ", ".join(f"'{value}'" for value in values)
    return f"""
    do $$
    begin
      create type {name} as enum ({labels});
    exception
      when duplicate_object then null;
    end
    $$;
    """


USER_ROLES = ("job-seeker", "employer", "admin")
APPLICATION_STATUSES = ("pending", "reviewed", "shortlisted", "interview", "rejected", "accepted")
NOTIFICATION_KINDS = ("info", "success", "warning", "error")
NOTIFICATION_RELATED_TYPES = ("application", "job", "profile", "system", "dispute")
DISPUTE_STATUSES = ("open", "investigating", "resolved", "closed")
DISPUTE_PRIORITIES = ("low", "medium", "high", "critical")
DISPUTE_RELATED_TYPES = ("job", "application", "employer", "other")
JOB_TYPES = ("full-time", "part-time", "contract", "internship", "remote")
SALARY_PERIODS = ("hourly", "monthly", "yearly")
EXPERIENCE_LEVELS = ("entry", "intermediate", "senior", "executive")
COMPANY_SIZES = ("1-10", "11-50", "51-200", "201-500", "500+")
GENDERS = ("Male", "Female", "Other")

SCHEMA_STATEMENTS: tuple[str, ...] = (
    _enum("user_role", *USER_ROLES),
    _enum("application_status", *APPLICATION_STATUSES),
    _enum("notification_kind", *NOTIFICATION_KINDS),
    _enum("notification_related_type", *NOTIFICATION_RELATED_TYPES),
    _enum("dispute_status", *DISPUTE_STATUSES),
    _enum("dispute_priority", *DISPUTE_PRIORITIES),
    _enum("dispute_related_type", *DISPUTE_RELATED_TYPES),
    _enum("job_type", *JOB_TYPES),
    _enum("salary_period", *SALARY_PERIODS),
    _enum("experience_level", *EXPERIENCE_LEVELS),
    _enum("company_size", *COMPANY_SIZES),
    _enum("seeker_gender", *GENDERS),
    """
    create table if not exists users (
      id bigint generated always as identity primary key,
      username text not null unique,
      email text not null unique,
      password_hash text not null,
      role user_role not null,
      registration_date timestamptz not null default now(),
      is_active boolean not null default true,
      email_verified boolean not null default false,
      last_login timestamptz
    )
    """,
    "create index if not exists idx_users_role on users (role)",
    """
    create table if not exists job_seekers (
      id bigint generated always as identity primary key,
      user_id bigint not null unique references users (id) on delete cascade,
      full_name text not null,
      phone_number text,
      date_of_birth date,
      gender seeker_gender,
      location text,
      education text,
      experience text,
      skills text,
      resume_path text,
      profile_picture text,
      bio text,
      created_at timestamptz not null default now(),
      updated_at timestamptz not null default now()
    )
    """,
    "create index if not exists idx_job_seekers_location on job_seekers (location)",
    """
    create table if not exists employers (
      id bigint generated always as identity primary key,
      user_id bigint not null unique references users (id) on delete cascade,
      company_name text not null,
      industry text,
      location text,
      phone_number text,
      website text,
      company_size company_size,
      description text,
      logo text,
      is_approved boolean not null default false,
      approved_by bigint references users (id) on delete set null,
      approved_date timestamptz,
      rejected_date timestamptz,
      rejection_reason text,
      created_at timestamptz not null default now(),
      updated_at timestamptz not null default now()
    )
    """,
    "create index if not exists idx_employers_approved on employers (is_approved)",
    """
    create table if not exists job_postings (
      id bigint generated always as identity primary key,
      employer_id bigint not null references employers (id) on delete cascade,
      job_title text not null,
      description text not null,
      requirements text,
      responsibilities text,
      salary numeric(12, 2),
      salary_period salary_period not null default 'monthly',
      location text,
      job_type job_type not null default 'full-time',
      category text,
      experience_level experience_level not null default 'entry',
      education_level text,
      application_deadline date,
      expiry_date date,
      posted_date timestamptz not null default now(),
      updated_at timestamptz not null default now(),
      is_active boolean not null default true,
      views integer not null default 0,
      applications_count integer not null default 0 check (applications_count >= 0)
    )
    """,
    "create index if not exists idx_job_postings_active_posted on job_postings (is_active, posted_date desc)",
    "create index if not exists idx_job_postings_employer on job_postings (employer_id)",
    "create index if not exists idx_job_postings_category on job_postings (category)",
    """
    create table if not exists applications (
      id bigint generated always as identity primary key,
      seeker_id bigint not null references job_seekers (id) on delete cascade,
      job_id bigint not null references job_postings (id) on delete cascade,
      cover_letter text,
      status application_status not null default 'pending',
      application_date timestamptz not null default now(),
      reviewed_date timestamptz,
      reviewed_by bigint references users (id) on delete set null,
      notes text,
      constraint unique_application unique (seeker_id, job_id)
    )
    """,
    "create index if not exists idx_applications_job_status on applications (job_id, status)",
    """
    create table if not exists notifications (
      id bigint generated always as identity primary key,
      recipient_id bigint not null references users (id) on delete cascade,
      title text not null,
      message text not null,
      kind notification_kind not null default 'info',
      related_type notification_related_type,
      related_id bigint,
      is_read boolean not null default false,
      sent_date timestamptz not null default now()
    )
    """,
    "create index if not exists idx_notifications_recipient on notifications (recipient_id, is_read, sent_date desc)",
    """
    create table if not exists disputes (
      id bigint generated always as identity primary key,
      user_id bigint not null references users (id) on delete cascade,
      subject text not null,
      description text not null,
      related_type dispute_related_type,
      related_id bigint,
      status dispute_status not null default 'open',
      priority dispute_priority not null default 'medium',
      filed_date timestamptz not null default now(),
      resolved_date timestamptz,
      resolved_by bigint references users (id) on delete set null,
      resolution text
    )
    """,
    "create index if not exists idx_disputes_status on disputes (status, priority)",
    """
    create table if not exists saved_jobs (
      id bigint generated always as identity primary key,
      seeker_id bigint not null references job_seekers (id) on delete cascade,
      job_id bigint not null references job_postings (id) on delete cascade,
      saved_date timestamptz not null default now(),
      constraint unique_saved unique (seeker_id, job_id)
    )
    """,
    """
    create table if not exists activity_logs (
      id bigint generated always as identity primary key,
      user_id bigint references users (id) on delete set null,
      action text not null,
      description text,
      ip_address text,
      user_agent text,
      created_at timestamptz not null default now()
    )
    """,
    "create index if not exists idx_activity_logs_user on activity_logs (user_id, created_at desc)",
    "create index if not exists idx_activity_logs_action on activity_logs (action)",
)

# Leaves first, so a truncate/drop in this order never trips a foreign key.
TABLES_BY_DEPENDENCY: tuple[str, ...] = (
    "activity_logs",
    "saved_jobs",
    "disputes",
    "notifications",
    "applications",
    "job_postings",
    "employers",
    "job_seekers",
    "users",
)


async def apply_schema(conn: asyncpg.Connection) -> None:
    async with conn.transaction():
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)
