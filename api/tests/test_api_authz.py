from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from kaziconnect.core.auth import Role
from kaziconnect.core.config import get_settings
from kaziconnect.core.security import create_access_token, hash_password
from kaziconnect.main import app
from kaziconnect.services.repository import (
    RepositoryConflictError,
    RepositoryForbiddenError,
    RepositoryNotFoundError,
    RepositoryStateError,
    RepositoryUnavailableError,
    UserCredentialRecord,
    UserProfileRecord,
    get_repository,
)

SEEKER_USER_ID = 11
EMPLOYER_USER_ID = 22
ADMIN_USER_ID = 1
DELETED_USER_ID = 77
NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def _job_row(job_id: int, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": job_id,
        "employer_id": 5,
        "job_title": "Backend Engineer",
        "description": "Build and maintain payment integrations for merchants across East Africa.",
        "location": "Nairobi",
        "salary": 150000.0,
        "posted_date": NOW,
        "updated_at": NOW,
        "is_active": True,
        "company_name": "Safari Tech",
    }
    row.update(overrides)
    return row


class FakeKaziRepository:
    def __init__(self) -> None:
        self.password_hash = hash_password("Sup3rSecret", rounds=4)
        self.applications: dict[tuple[int, int], dict[str, Any]] = {}
        self.jobs = {1: _job_row(1), 2: _job_row(2, is_active=False)}
        self.notifications_unread = 2
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.inactive_user_ids: set[int] = set()

    def _profile(self, user_id: int, role: str, email: str) -> UserProfileRecord:
        return UserProfileRecord(
            user={
                "id": user_id,
                "username": email.split("@")[0],
                "email": email,
                "role": role,
                "is_active": True,
                "email_verified": False,
                "registration_date": NOW,
                "last_login": None,
            },
            extension={"id": 5, "company_name": "Safari Tech", "is_approved": False} if role == "employer" else None,
        )

    async def create_user(self, *, email: str, password_hash: str, role: str, **fields: Any) -> UserProfileRecord:
        self.calls.append(("create_user", {"email": email, "role": role, **fields}))
        if email == "taken@example.com":
            raise RepositoryConflictError("Email already registered")
        assert password_hash.startswith("$2")
        return self._profile(99, role, email)

    async def get_login_credentials(self, identifier: str) -> UserCredentialRecord | None:
        if identifier == "seeker@example.com":
            return UserCredentialRecord(SEEKER_USER_ID, identifier, "job-seeker", self.password_hash, True)
        if identifier == "rejected@example.com":
            return UserCredentialRecord(EMPLOYER_USER_ID, identifier, "employer", self.password_hash, False)
        return None

    async def get_user_credentials(self, user_id: int) -> UserCredentialRecord:
        if user_id == DELETED_USER_ID:
            raise RepositoryNotFoundError("User not found")
        return UserCredentialRecord(user_id, f"user{user_id}@example.com", "job-seeker", self.password_hash, user_id not in self.inactive_user_ids)

    async def record_login(self, user_id: int) -> UserProfileRecord:
        return self._profile(user_id, "job-seeker", "seeker@example.com")

    async def get_user_profile(self, user_id: int) -> UserProfileRecord:
        if user_id == EMPLOYER_USER_ID:
            return self._profile(user_id, "employer", "hr@safari.test")
        return self._profile(user_id, "job-seeker", "seeker@example.com")

    async def list_jobs(self, *, filters: dict[str, Any], page: Any) -> tuple[list[dict[str, Any]], int]:
        self.calls.append(("list_jobs", filters))
        rows = [row for row in self.jobs.values() if row["is_active"]]
        return rows[page.offset : page.offset + page.limit], 25

    async def get_job(self, job_id: int) -> dict[str, Any]:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError("Job not found")
        return self.jobs[job_id]

    async def create_job(self, *, user_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        raise RepositoryForbiddenError("Employer account pending approval. Cannot post jobs yet.")

    async def apply_for_job(self, *, user_id: int, job_id: int, cover_letter: str | None) -> dict[str, Any]:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError("Job not found")
        if not self.jobs[job_id]["is_active"]:
            raise RepositoryStateError("Job is no longer accepting applications")
        if (user_id, job_id) in self.applications:
            raise RepositoryConflictError("You have already applied for this job")
        row = {
            "id": len(self.applications) + 1,
            "seeker_id": 3,
            "job_id": job_id,
            "cover_letter": cover_letter,
            "status": "pending",
            "application_date": NOW,
        }
        self.applications[(user_id, job_id)] = row
        return row

    async def update_application_status(self, *, user_id: int, application_id: int, status: str, notes: str | None) -> dict[str, Any]:
        if user_id != EMPLOYER_USER_ID:
            raise RepositoryForbiddenError("Not authorized to update this application")
        return {
            "id": application_id,
            "seeker_id": 3,
            "job_id": 1,
            "status": status,
            "notes": notes,
            "application_date": NOW,
            "reviewed_date": NOW,
            "reviewed_by": user_id,
        }

    async def unread_count(self, *, user_id: int) -> int:
        return self.notifications_unread

    async def mark_all_notifications_read(self, *, user_id: int) -> int:
        updated, self.notifications_unread = self.notifications_unread, 0
        return updated

    async def reject_employer(self, *, employer_id: int, admin_user_id: int, reason: str | None) -> dict[str, Any]:
        self.calls.append(("reject_employer", {"employer_id": employer_id, "reason": reason}))
        return {
            "employer_id": employer_id,
            "user_id": EMPLOYER_USER_ID,
            "company_name": "Safari Tech",
            "is_approved": False,
            "rejected_date": NOW,
            "rejection_reason": reason,
            "user_is_active": False,
        }

    async def get_admin_stats(self) -> dict[str, int]:
        raise RuntimeError("stats query exploded")

    async def list_disputes(self, *, filters: dict[str, Any], page: Any) -> tuple[list[dict[str, Any]], int]:
        raise RepositoryUnavailableError("database unavailable")


def _token(user_id: int, role: Role) -> dict[str, str]:
    token = create_access_token(user_id=user_id, email=f"user{user_id}@example.com", role=role, settings=get_settings())
    return {"Authorization": f"Bearer {token}"}


SEEKER = _token(SEEKER_USER_ID, Role.JOB_SEEKER)
EMPLOYER = _token(EMPLOYER_USER_ID, Role.EMPLOYER)
ADMIN = _token(ADMIN_USER_ID, Role.ADMIN)


@pytest.fixture
def fake_repo() -> FakeKaziRepository:
    return FakeKaziRepository()


@pytest.fixture
def authz_client(fake_repo: FakeKaziRepository) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: fake_repo

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client

    app.dependency_overrides.clear()


def test_missing_token_is_unauthenticated(authz_client: TestClient) -> None:
    response = authz_client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Access token required"}


def test_garbage_token_is_unauthenticated(authz_client: TestClient) -> None:
    response = authz_client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_me_returns_tagged_profile(authz_client: TestClient) -> None:
    response = authz_client.get("/api/auth/me", headers=EMPLOYER)
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["role"] == "employer"
    assert user["employer_id"] == 5
    assert user["is_approved"] is False


def test_register_returns_token_and_profile(authz_client: TestClient, fake_repo: FakeKaziRepository) -> None:
    response = authz_client.post(
        "/api/auth/register",
        json={
            "email": "New.Seeker@Example.com",
            "password": "Sup3rSecret",
            "role": "job-seeker",
            "full_name": "New Seeker",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["role"] == "job-seeker"
    assert fake_repo.calls[0][1]["email"] == "new.seeker@example.com"


def test_register_duplicate_email_conflicts(authz_client: TestClient) -> None:
    response = authz_client.post(
        "/api/auth/register",
        json={"email": "taken@example.com", "password": "Sup3rSecret", "role": "job-seeker"},
    )
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Email already registered"}


def test_register_validation_errors_use_400(authz_client: TestClient) -> None:
    response = authz_client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "weak", "role": "admin"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert len(body["errors"]) >= 3


def test_login_success_and_failures(authz_client: TestClient) -> None:
    ok = authz_client.post("/api/auth/login", json={"email": "seeker@example.com", "password": "Sup3rSecret"})
    assert ok.status_code == 200
    assert ok.json()["user"]["user_id"] == SEEKER_USER_ID

    wrong = authz_client.post("/api/auth/login", json={"email": "seeker@example.com", "password": "Wr0ngPassword"})
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid credentials"

    unknown = authz_client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "Sup3rSecret"})
    assert unknown.status_code == 401

    disabled = authz_client.post("/api/auth/login", json={"email": "rejected@example.com", "password": "Sup3rSecret"})
    assert disabled.status_code == 403
    assert disabled.json()["message"] == "Account is disabled. Contact support."


def test_public_job_list_is_paginated(authz_client: TestClient, fake_repo: FakeKaziRepository) -> None:
    response = authz_client.get("/api/jobs", params={"page": 2, "limit": 10, "search": "engineer", "job_type": "contract"})
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 25, "total_pages": 3}
    assert fake_repo.calls[-1] == (
        "list_jobs",
        {
            "search": "engineer",
            "location": None,
            "category": None,
            "job_type": "contract",
            "experience_level": None,
            "salary_min": None,
            "salary_max": None,
            "employer_id": None,
        },
    )


@pytest.mark.parametrize("query", [{"limit": 0}, {"limit": 101}, {"page": 0}, {"job_type": "gig"}])
def test_job_list_rejects_out_of_range_params(authz_client: TestClient, query: dict[str, Any]) -> None:
    response = authz_client.get("/api/jobs", params=query)
    assert response.status_code == 400


def test_job_detail_not_found(authz_client: TestClient) -> None:
    response = authz_client.get("/api/jobs/404")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Job not found"}


def test_create_job_requires_employer_role(authz_client: TestClient) -> None:
    payload = {
        "job_title": "Backend Engineer",
        "description": "Build and maintain payment integrations for merchants across East Africa.",
        "location": "Nairobi",
    }
    response = authz_client.post("/api/jobs", json=payload, headers=SEEKER)
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. Insufficient permissions."

    pending = authz_client.post("/api/jobs", json=payload, headers=EMPLOYER)
    assert pending.status_code == 403
    assert pending.json()["message"] == "Employer account pending approval. Cannot post jobs yet."


def test_apply_flow_maps_engine_failures(authz_client: TestClient) -> None:
    created = authz_client.post("/api/applications", json={"job_id": 1, "cover_letter": "Hello"}, headers=SEEKER)
    assert created.status_code == 201
    assert created.json()["application"]["status"] == "pending"

    duplicate = authz_client.post("/api/applications", json={"job_id": 1}, headers=SEEKER)
    assert duplicate.status_code == 409

    inactive = authz_client.post("/api/applications", json={"job_id": 2}, headers=SEEKER)
    assert inactive.status_code == 400
    assert inactive.json()["message"] == "Job is no longer accepting applications"

    missing = authz_client.post("/api/applications", json={"job_id": 3}, headers=SEEKER)
    assert missing.status_code == 404


def test_deactivated_account_token_is_refused(authz_client: TestClient, fake_repo: FakeKaziRepository) -> None:
    fake_repo.inactive_user_ids.add(SEEKER_USER_ID)

    response = authz_client.post("/api/applications", json={"job_id": 1}, headers=SEEKER)
    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Account is disabled. Contact support."}
    assert fake_repo.applications == {}

    assert authz_client.get("/api/notifications/unread-count", headers=SEEKER).status_code == 403


def test_token_for_deleted_user_is_unauthenticated(authz_client: TestClient) -> None:
    response = authz_client.get("/api/auth/me", headers=_token(DELETED_USER_ID, Role.JOB_SEEKER))
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_employers_cannot_apply(authz_client: TestClient) -> None:
    response = authz_client.post("/api/applications", json={"job_id": 1}, headers=EMPLOYER)
    assert response.status_code == 403


def test_status_update_requires_owning_employer(authz_client: TestClient) -> None:
    other_employer = _token(33, Role.EMPLOYER)
    denied = authz_client.put("/api/applications/7/status", json={"status": "shortlisted"}, headers=other_employer)
    assert denied.status_code == 403
    assert denied.json()["message"] == "Not authorized to update this application"

    allowed = authz_client.put(
        "/api/applications/7/status",
        json={"status": "shortlisted", "notes": "Strong portfolio"},
        headers=EMPLOYER,
    )
    assert allowed.status_code == 200
    application = allowed.json()["application"]
    assert application["status"] == "shortlisted"
    assert application["reviewed_by"] == EMPLOYER_USER_ID


def test_mark_all_read_is_idempotent(authz_client: TestClient) -> None:
    first = authz_client.put("/api/notifications/read-all", headers=SEEKER)
    second = authz_client.put("/api/notifications/read-all", headers=SEEKER)

    assert first.json()["updated"] == 2
    assert second.json()["updated"] == 0
    assert authz_client.get("/api/notifications/unread-count", headers=SEEKER).json()["count"] == 0


def test_admin_routes_reject_other_roles(authz_client: TestClient) -> None:
    for headers in (SEEKER, EMPLOYER):
        response = authz_client.put("/api/admin/employers/5/reject", json={"reason": "x"}, headers=headers)
        assert response.status_code == 403


def test_admin_reject_accepts_missing_body(authz_client: TestClient, fake_repo: FakeKaziRepository) -> None:
    response = authz_client.put("/api/admin/employers/5/reject", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["employer"]["user_is_active"] is False
    assert fake_repo.calls[-1] == ("reject_employer", {"employer_id": 5, "reason": None})


def test_dispute_status_patch_cannot_resolve(authz_client: TestClient) -> None:
    response = authz_client.put("/api/admin/disputes/1/status", json={"status": "resolved"}, headers=ADMIN)
    assert response.status_code == 400


def test_store_outage_maps_to_503(authz_client: TestClient) -> None:
    response = authz_client.get("/api/admin/disputes", headers=ADMIN)
    assert response.status_code == 503
    assert response.json() == {"success": False, "message": "database unavailable"}


def test_unexpected_errors_hide_detail_outside_development(
    authz_client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    dev = authz_client.get("/api/admin/stats", headers=ADMIN)
    assert dev.status_code == 500
    assert dev.json()["message"] == "Internal server error"
    assert "stats query exploded" in dev.json()["detail"]

    monkeypatch.setenv("KC_ENVIRONMENT", "production")
    get_settings.cache_clear()
    try:
        prod = authz_client.get("/api/admin/stats", headers=ADMIN)
    finally:
        monkeypatch.delenv("KC_ENVIRONMENT")
        get_settings.cache_clear()
    assert prod.status_code == 500
    assert prod.json() == {"success": False, "message": "Internal server error"}
