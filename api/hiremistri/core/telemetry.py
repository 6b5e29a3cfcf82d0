from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from hiremistri.core.config import Settings

logger = logging.getLogger(__name__)

PLAIN_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
CORRELATED_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s trace_id=%(trace_id)s span_id=%(span_id)s %(message)s"

_BASE_LOG_RECORD_FACTORY = logging.getLogRecordFactory()
_httpx_instrumentor = HTTPXClientInstrumentor()


def configure_logging(settings: Settings) -> None:
    """Install trace-id log correlation when enabled and a root handler if none exists."""
    if settings.otel_log_correlation:
        logging.setLogRecordFactory(_correlated_record)
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=logging.INFO,
        format=CORRELATED_LOG_FORMAT if settings.otel_log_correlation else PLAIN_LOG_FORMAT,
    )


def setup_tracing(settings: Settings) -> TracerProvider | None:
    configure_logging(settings)
    if not settings.otel_enabled:
        return None

    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: settings.otel_service_name,
                DEPLOYMENT_ENVIRONMENT: settings.environment,
            }
        ),
        sampler=TraceIdRatioBased(settings.otel_trace_sample_ratio),
    )
    if settings.otel_exporter_otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            headers=parse_otlp_headers(settings.otel_exporter_otlp_headers) or None,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        logger.info("no OTLP endpoint configured; spans stay in-process service=%s", settings.otel_service_name)
    trace.set_tracer_provider(provider)
    # identity lookups and SendGrid calls go through httpx
    _httpx_instrumentor.instrument(tracer_provider=provider)
    return provider


def shutdown_tracing(provider: TracerProvider | None) -> None:
    if provider is None:
        return
    _httpx_instrumentor.uninstrument()
    provider.force_flush()
    provider.shutdown()


def parse_otlp_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2``; entries without ``=`` or a key are dropped."""
    parsed: dict[str, str] = {}
    for item in (raw or "").split(","):
        key, separator, value = item.partition("=")
        if separator and key.strip():
            parsed[key.strip()] = value.strip()
    return parsed


def _correlated_record(*args: object, **kwargs: object) -> logging.LogRecord:
    record = _BASE_LOG_RECORD_FACTORY(*args, **kwargs)
    context = trace.get_current_span().get_span_context()
    record.trace_id = format(context.trace_id, "032x") if context.is_valid else "-"
    record.span_id = format(context.span_id, "016x") if context.is_valid else "-"
    return record
