from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from kaziconnect.schemas.profiles import (
    AdminProfile,
    EmployerProfile,
    JobSeekerProfile,
    ProfileUpdateRequest,
    UserProfile,
    build_user_profile,
)


def _user(role: str, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": 10,
        "username": "wanjiku_1a2b3c",
        "email": "wanjiku@example.co.ke",
        "role": role,
        "is_active": True,
        "email_verified": False,
        "registration_date": datetime(2024, 1, 5, tzinfo=timezone.utc),
        "last_login": None,
    }
    row.update(overrides)
    return row


def test_seeker_profile_merges_extension_fields() -> None:
    profile = build_user_profile(
        _user("job-seeker"),
        {"id": 3, "user_id": 10, "full_name": "Wanjiku Kamau", "skills": "python, sql", "bio": None},
    )

    assert isinstance(profile, JobSeekerProfile)
    assert profile.role == "job-seeker"
    assert profile.seeker_id == 3
    assert profile.full_name == "Wanjiku Kamau"
    assert profile.skills == "python, sql"
    assert profile.bio is None


def test_employer_profile_carries_approval_state() -> None:
    approved_at = datetime(2024, 2, 1, tzinfo=timezone.utc)
    profile = build_user_profile(
        _user("employer"),
        {"id": 8, "company_name": "Safari Tech", "is_approved": True, "approved_by": 1, "approved_date": approved_at},
    )

    assert isinstance(profile, EmployerProfile)
    assert profile.employer_id == 8
    assert profile.is_approved is True
    assert profile.approved_date == approved_at
    assert profile.rejected_date is None


def test_admin_profile_ignores_extension() -> None:
    profile = build_user_profile(_user("admin"), {"company_name": "ignored"})

    assert isinstance(profile, AdminProfile)
    assert "company_name" not in profile.model_dump()


def test_unknown_role_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_user_profile(_user("moderator"), None)


def test_profile_union_is_discriminated_by_role() -> None:
    adapter = TypeAdapter(UserProfile)

    parsed = adapter.validate_python({"role": "employer", "user_id": 1, "username": "acme", "email": "hr@acme.test"})
    assert isinstance(parsed, EmployerProfile)
    assert parsed.is_approved is False

    with pytest.raises(ValidationError):
        adapter.validate_python({"role": "guest", "user_id": 1, "username": "x", "email": "x@y.z"})


def test_profile_update_normalizes_kenyan_phone_numbers() -> None:
    patch = ProfileUpdateRequest(phone_number="0712 345 678")
    assert patch.phone_number == "0712345678"

    with pytest.raises(ValidationError):
        ProfileUpdateRequest(phone_number="12345")


def test_profile_update_forbids_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        ProfileUpdateRequest.model_validate({"role": "admin"})
