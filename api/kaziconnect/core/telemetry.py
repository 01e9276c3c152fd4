from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
import functools
import logging
import os
from typing import Any, TypeVar

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from kaziconnect.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s trace_id=%(trace_id)s span_id=%(span_id)s %(message)s"
TRACER_NAME = "kaziconnect"
# Health probes are polled by load balancers and would drown real traffic.
UNTRACED_PATHS = "healthz,health"
_ENDPOINT_ENV_VARS = ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "OTEL_EXPORTER_OTLP_ENDPOINT")

_BASE_LOG_RECORD_FACTORY = logging.getLogRecordFactory()
_log_correlation_installed = False

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


@dataclass(slots=True)
class TelemetryRuntime:
    enabled: bool
    provider: TracerProvider | None


def configure_api_logging(level: int = logging.INFO) -> None:
    """Install trace-aware log records and a root handler if none exists yet."""
    _install_log_correlation()
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)


def setup_api_telemetry(app: FastAPI, settings: Settings) -> TelemetryRuntime:
    if not settings.otel_enabled:
        return TelemetryRuntime(enabled=False, provider=None)

    if settings.otel_log_correlation:
        _install_log_correlation()

    provider = TracerProvider(
        resource=build_resource(settings),
        sampler=TraceIdRatioBased(settings.otel_trace_sample_ratio),
    )
    exporter = _build_exporter(settings)
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    # Repository spans go through the global provider; request spans use it explicitly.
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls=UNTRACED_PATHS)
    return TelemetryRuntime(enabled=True, provider=provider)


def shutdown_api_telemetry(app: FastAPI, runtime: TelemetryRuntime) -> None:
    if not runtime.enabled:
        return
    FastAPIInstrumentor.uninstrument_app(app)
    if runtime.provider is not None:
        runtime.provider.force_flush()
        runtime.provider.shutdown()


def build_resource(settings: Settings) -> Resource:
    return Resource.create(
        {
            SERVICE_NAME: settings.otel_service_name,
            DEPLOYMENT_ENVIRONMENT: settings.environment,
        }
    )


def traced(operation: str) -> Callable[[F], F]:
    """Run a repository coroutine inside a span named ``repository.<operation>``.

    Integer keyword arguments ending in ``_id`` (job_id, employer_id, ...) are
    attached as ``kaziconnect.*`` span attributes so a trace shows which
    records a state change touched.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(TRACER_NAME)
            with tracer.start_as_current_span(f"repository.{operation}", attributes=span_attributes(kwargs)):
                return await func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def span_attributes(arguments: Mapping[str, Any]) -> dict[str, int]:
    return {
        f"kaziconnect.{name}": value
        for name, value in arguments.items()
        if name.endswith("_id") and isinstance(value, int) and not isinstance(value, bool)
    }


def parse_otlp_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2``; entries without ``=`` or a key are ignored."""
    headers: dict[str, str] = {}
    for item in (raw or "").split(","):
        key, separator, value = item.partition("=")
        key = key.strip()
        if separator and key:
            headers[key] = value.strip()
    return headers


def _exporter_endpoint(settings: Settings) -> str | None:
    if settings.otel_exporter_otlp_endpoint:
        return settings.otel_exporter_otlp_endpoint
    for name in _ENDPOINT_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def _build_exporter(settings: Settings) -> OTLPSpanExporter | None:
    endpoint = _exporter_endpoint(settings)
    if endpoint is None:
        logging.getLogger(__name__).info(
            "no OTLP endpoint configured; spans stay in-process for service=%s",
            settings.otel_service_name,
        )
        return None

    headers = parse_otlp_headers(settings.otel_exporter_otlp_headers or os.getenv("OTEL_EXPORTER_OTLP_HEADERS"))
    return OTLPSpanExporter(endpoint=endpoint, headers=headers or None)


def _install_log_correlation() -> None:
    global _log_correlation_installed
    if _log_correlation_installed:
        return

    def record_factory(*args: object, **kwargs: object) -> logging.LogRecord:
        record = _BASE_LOG_RECORD_FACTORY(*args, **kwargs)
        context = trace.get_current_span().get_span_context()
        record.trace_id = format(context.trace_id, "032x") if context.is_valid else "-"
        record.span_id = format(context.span_id, "016x") if context.is_valid else "-"
        return record

    logging.setLogRecordFactory(record_factory)
    _log_correlation_installed = True
