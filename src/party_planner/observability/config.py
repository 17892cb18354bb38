"""Tracing, metrics and structured logging setup for the party planner."""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "party-planner"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
METRIC_EXPORT_INTERVAL_MS = 60000

# Routes that are never traced
EXCLUDED_URLS = "health"

# Chatty third-party loggers held at WARNING regardless of LOG_LEVEL
NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")


def _service_name() -> str:
    return os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME)


def _environment() -> str:
    return os.getenv("ENVIRONMENT", "development")


def _otlp_endpoint(signal: str) -> str:
    """OTLP HTTP endpoint for a signal ("traces" or "metrics")."""
    base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")
    return f"{base}/v1/{signal}"


def get_service_resource() -> Resource:
    """Resource identifying this service and its deployment environment."""
    return Resource.create(
        {
            "service.name": _service_name(),
            "deployment.environment": _environment(),
        }
    )


def setup_tracing(resource: Resource) -> None:
    """Install a tracer provider that batches spans to the OTLP endpoint.

    Args:
        resource: Service resource attached to every span
    """
    endpoint = _otlp_endpoint("traces")
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)

    logger.info(f"Tracing exports to {endpoint}")


def setup_metrics(resource: Resource) -> None:
    """Install a meter provider that periodically pushes to the OTLP endpoint.

    Args:
        resource: Service resource attached to every metric
    """
    endpoint = _otlp_endpoint("metrics")
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    logger.info(f"Metrics export to {endpoint}")


def setup_auto_instrumentation() -> None:
    """Instrument httpx (dish library calls) and botocore (DynamoDB calls).

    Safe to call on every warm start; already-instrumented libraries are skipped.
    """
    instrumented = []
    for name, instrumentor in (
        ("httpx", HTTPXClientInstrumentor()),
        ("botocore", BotocoreInstrumentor()),
    ):
        if instrumentor.is_instrumented_by_opentelemetry:
            continue
        instrumentor.instrument()
        instrumented.append(name)

    if instrumented:
        logger.info(f"Auto-instrumentation enabled for {', '.join(instrumented)}")


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Initialize tracing, metrics and auto-instrumentation.

    Exporters are always off when ENVIRONMENT is "test"; spans and metrics
    are then still produced but stay in-process.

    Args:
        app: Optional FastAPI application to instrument
        enable_exporters: Whether to ship telemetry over OTLP
    """
    if _environment() == "test":
        enable_exporters = False

    resource = get_service_resource()

    if enable_exporters:
        setup_tracing(resource)
        setup_metrics(resource)
    else:
        trace.set_tracer_provider(TracerProvider(resource=resource))
        metrics.set_meter_provider(MeterProvider(resource=resource))

    setup_auto_instrumentation()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)
        logger.info(f"FastAPI application instrumented, excluding {EXCLUDED_URLS}")


def configure_logging(log_level: str = "INFO") -> None:
    """Send JSON log lines to stderr, stamped with service and environment.

    LOG_LEVEL in the environment wins over the argument. Unknown level
    names fall back to INFO.

    Args:
        log_level: Default level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": _service_name(), "environment": _environment()},
        timestamp=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"JSON logging configured at {logging.getLevelName(level)}")
