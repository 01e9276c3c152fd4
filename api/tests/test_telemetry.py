from __future__ import annotations

import asyncio
import logging

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from kaziconnect.core import telemetry
from kaziconnect.core.config import Settings


def test_parse_otlp_headers_skips_malformed_entries() -> None:
    assert telemetry.parse_otlp_headers("authorization=Bearer abc, x-team = jobs ,broken,=nokey") == {
        "authorization": "Bearer abc",
        "x-team": "jobs",
    }
    assert telemetry.parse_otlp_headers(None) == {}


def test_span_attributes_keep_integer_ids_only() -> None:
    attributes = telemetry.span_attributes({"job_id": 7, "user_id": 3, "reason": "spam", "is_active": True, "seeker_id": True})
    assert attributes == {"kaziconnect.job_id": 7, "kaziconnect.user_id": 3}


def test_exporter_is_skipped_without_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    assert telemetry._build_exporter(Settings(otel_exporter_otlp_endpoint=None)) is None


def test_exporter_endpoint_falls_back_to_otel_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", raising=False)
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318/v1/traces")
    assert telemetry._exporter_endpoint(Settings(otel_exporter_otlp_endpoint=None)) == "http://collector:4318/v1/traces"
    assert telemetry._exporter_endpoint(Settings(otel_exporter_otlp_endpoint="http://local:4318")) == "http://local:4318"


def test_traced_records_repository_span(monkeypatch: pytest.MonkeyPatch) -> None:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(telemetry.trace, "get_tracer", provider.get_tracer)

    @telemetry.traced("apply_for_job")
    async def apply(*, user_id: int, job_id: int, cover_letter: str | None) -> str:
        return "ok"

    assert asyncio.run(apply(user_id=11, job_id=5, cover_letter=None)) == "ok"

    (span,) = exporter.get_finished_spans()
    assert span.name == "repository.apply_for_job"
    assert dict(span.attributes or {}) == {"kaziconnect.user_id": 11, "kaziconnect.job_id": 5}


def test_disabled_telemetry_is_a_noop() -> None:
    from fastapi import FastAPI

    app = FastAPI()
    runtime = telemetry.setup_api_telemetry(app, Settings(otel_enabled=False))
    assert runtime.enabled is False
    telemetry.shutdown_api_telemetry(app, runtime)


def test_log_records_carry_trace_fields() -> None:
    telemetry.configure_api_logging()
    record = logging.getLogRecordFactory()("kaziconnect", logging.INFO, __file__, 1, "msg", None, None)
    assert record.trace_id == "-"
    assert record.span_id == "-"
