from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from kaziconnect.services.filters import QueryBuilder
from kaziconnect.services.repository import (
    PostgresRepository,
    RepositoryConflictError,
    RepositoryStateError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)


def _repository(database_url: str | None = None) -> PostgresRepository:
    return PostgresRepository(database_url=database_url, min_pool_size=1, max_pool_size=1)


@pytest.mark.parametrize(
    ("from_status", "to_status"),
    [
        ("open", "investigating"),
        ("open", "resolved"),
        ("open", "closed"),
        ("investigating", "resolved"),
        ("investigating", "closed"),
        ("resolved", "closed"),
    ],
)
def test_dispute_transition_allowed(from_status: str, to_status: str) -> None:
    PostgresRepository._validate_dispute_transition(from_status=from_status, to_status=to_status)


@pytest.mark.parametrize(
    ("from_status", "to_status"),
    [
        ("resolved", "resolved"),
        ("closed", "resolved"),
        ("closed", "investigating"),
        ("resolved", "investigating"),
        ("investigating", "investigating"),
        ("investigating", "open"),
    ],
)
def test_dispute_transition_rejected(from_status: str, to_status: str) -> None:
    with pytest.raises(RepositoryConflictError):
        PostgresRepository._validate_dispute_transition(from_status=from_status, to_status=to_status)


def test_employer_decisions_are_set_once() -> None:
    PostgresRepository._validate_employer_decision(is_approved=False, rejected=False)
    with pytest.raises(RepositoryConflictError, match="approved"):
        PostgresRepository._validate_employer_decision(is_approved=True, rejected=False)
    with pytest.raises(RepositoryConflictError, match="rejected"):
        PostgresRepository._validate_employer_decision(is_approved=False, rejected=True)


def test_application_status_moves_freely_between_known_statuses() -> None:
    PostgresRepository._validate_application_transition(from_status="accepted", to_status="pending")
    PostgresRepository._validate_application_transition(from_status="rejected", to_status="shortlisted")
    with pytest.raises(RepositoryValidationError):
        PostgresRepository._validate_application_transition(from_status="pending", to_status="withdrawn")


def test_state_error_maps_to_validation_family() -> None:
    assert issubclass(RepositoryStateError, RepositoryValidationError)


def test_coalesce_assignments_keep_previous_values() -> None:
    builder = QueryBuilder()
    job_token = builder.bind(5)
    sql = PostgresRepository._coalesce_assignments(
        builder,
        {"job_title": None, "salary": "numeric", "job_type": "job_type"},
        {"salary": 120000, "job_type": "contract"},
    )

    assert job_token == "$1"
    assert sql == "salary = coalesce($2::numeric, salary), job_type = coalesce($3::job_type, job_type)"
    assert builder.params == [5, 120000, "contract"]


def test_blank_text_counts_as_not_provided() -> None:
    assert PostgresRepository._coerce_text("   ") is None
    assert PostgresRepository._coerce_text(" kept ") == "kept"
    assert PostgresRepository._coerce_text(None) is None


def test_affected_rows_reads_command_tag() -> None:
    assert PostgresRepository._affected_rows("UPDATE 3") == 3
    assert PostgresRepository._affected_rows("UPDATE 0") == 0


def test_derived_usernames_are_sanitized_and_unique() -> None:
    first = PostgresRepository._derive_username("John.Doe+jobs@example.com")
    second = PostgresRepository._derive_username("John.Doe+jobs@example.com")

    assert first.startswith("john.doejobs_")
    assert first != second


def test_missing_database_url_is_unavailable() -> None:
    with pytest.raises(RepositoryUnavailableError):
        asyncio.run(_repository().unread_count(user_id=1))


def test_notification_failures_are_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    repository = _repository("postgresql://unused")

    async def _broken_send(**_: Any) -> dict[str, Any]:
        raise OSError("connection reset")

    repository.send_notification = _broken_send  # type: ignore[method-assign]

    with caplog.at_level(logging.WARNING, logger="kaziconnect.services.repository"):
        asyncio.run(
            repository._notify_best_effort(recipient_id=9, title="Account Approved", message="ok", kind="success")
        )

    assert "notification dropped recipient_id=9" in caplog.text


def test_notification_programming_errors_propagate() -> None:
    repository = _repository("postgresql://unused")

    async def _buggy_send(**_: Any) -> dict[str, Any]:
        raise TypeError("bad call")

    repository.send_notification = _buggy_send  # type: ignore[method-assign]

    with pytest.raises(TypeError):
        asyncio.run(repository._notify_best_effort(recipient_id=9, title="t", message="m"))


def test_concurrent_first_use_creates_one_pool(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[object] = []

    class _Pool:
        async def close(self) -> None:
            return None

    async def _create_pool(**_: Any) -> _Pool:
        await asyncio.sleep(0)
        pool = _Pool()
        created.append(pool)
        return pool

    monkeypatch.setattr("kaziconnect.services.repository.asyncpg.create_pool", _create_pool)
    repository = _repository("postgresql://unused")

    async def _first_use() -> list[object]:
        pools = await asyncio.gather(*(repository._get_pool() for _ in range(5)))
        await repository.close()
        return pools

    pools = asyncio.run(_first_use())

    assert len(created) == 1
    assert all(pool is created[0] for pool in pools)
