"""OpenTelemetry instrumentation for the URL Shortener application."""

import logging
from contextlib import suppress
from functools import lru_cache
from typing import Optional, Tuple, Union, Dict

from loguru import logger as loguru_logger
from opentelemetry import trace, metrics
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import (
    ParentBasedTraceIdRatio,
    TraceIdRatioBased,
)

from shortlink.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache
def setup_telemetry() -> Tuple[Optional[TracerProvider], Optional[MeterProvider]]:
    """Initialize OpenTelemetry tracer and meter providers."""
    if not settings.OTEL_ENABLED:
        logger.info("OpenTelemetry instrumentation is disabled")
        return None, None

    try:
        resource = Resource.create({
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": settings.ENVIRONMENT.value,
            **_parse_resource_attributes(settings.OTEL_RESOURCE_ATTRIBUTES)
        })

        return _setup_tracing(resource), _setup_metrics(resource)
    except Exception as e:
        logger.error(f"Failed to initialize OpenTelemetry: {e}")
        return None, None


def instrument_app(app=None, db_engine=None) -> None:
    """Instrument the FastAPI app and the database engine."""
    if not settings.OTEL_ENABLED:
        return

    if app is not None:
        with suppress(Exception):
            FastAPIInstrumentor.instrument_app(
                app,
                tracer_provider=trace.get_tracer_provider(),
                meter_provider=metrics.get_meter_provider(),
            )
            logger.info("FastAPI instrumentation enabled")

    if db_engine is not None:
        with suppress(Exception):
            SQLAlchemyInstrumentor().instrument(
                engine=db_engine.sync_engine,
                tracer_provider=trace.get_tracer_provider(),
                meter_provider=metrics.get_meter_provider()
            )
            logger.info("SQLAlchemy instrumentation enabled")


def _setup_tracing(resource: Resource) -> TracerProvider:
    """Set up tracing with the provided resource."""
    tracer_provider = TracerProvider(
        resource=resource,
        sampler=_create_sampler(
            settings.OTEL_TRACES_SAMPLER,
            float(settings.OTEL_TRACES_SAMPLER_ARG)
        )
    )
    trace.set_tracer_provider(tracer_provider)

    otlp_exporter = OTLPSpanExporter(
        endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    logger.info("OpenTelemetry tracer configured with OTLP exporter")

    return tracer_provider


def _setup_metrics(resource: Resource) -> MeterProvider:
    """Set up metrics with the provided resource."""
    metric_exporter = OTLPMetricExporter(
        endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    reader = PeriodicExportingMetricReader(
        metric_exporter,
        export_interval_millis=settings.OTEL_METRICS_EXPORT_INTERVAL_MILLIS
    )

    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(meter_provider)
    logger.info("OpenTelemetry metrics configured with OTLP exporter")

    return meter_provider


def _create_sampler(sampler_type: str, sampler_arg: float) -> Union[ParentBasedTraceIdRatio, TraceIdRatioBased]:
    """Create a sampler based on configuration."""
    if sampler_type.lower() == "parentbased_traceidratio":
        return ParentBasedTraceIdRatio(sampler_arg)
    else:
        return TraceIdRatioBased(sampler_arg)


def _parse_resource_attributes(attributes_str: str) -> Dict[str, str]:
    """Parse resource attributes from string format."""
    if not attributes_str:
        return {}

    attributes = {}
    for pair in attributes_str.split(","):
        with suppress(ValueError):
            key, value = pair.strip().split("=", 1)
            attributes[key] = value

    return attributes


def get_tracer(name: str = None) -> trace.Tracer:
    """Get a tracer for creating spans."""
    name = name or settings.OTEL_SERVICE_NAME
    return trace.get_tracer(name)


def get_meter(name: str = None) -> metrics.Meter:
    """Get a meter for creating metrics."""
    name = name or settings.OTEL_SERVICE_NAME
    return metrics.get_meter(name)


_operation_duration = get_meter("shortlink.services").create_histogram(
    name="shortlink.operation.duration",
    description="Duration of service operations",
    unit="ms",
)


def record_operation(operation: str, duration_ms: float, outcome: str) -> None:
    """Operation hook wired into the services by the API dependencies.

    Records the duration histogram and logs the operation, escalating to a
    warning once the configured thresholds are crossed.
    """
    _operation_duration.record(duration_ms, {"operation": operation, "outcome": outcome})

    bound = loguru_logger.bind(operation=operation, duration_ms=round(duration_ms, 2), outcome=outcome)
    if duration_ms > settings.OPERATION_ERROR_MS:
        bound.error(f"{operation} exceeded error threshold ({duration_ms:.1f} ms)")
    elif duration_ms > settings.OPERATION_WARN_MS:
        bound.warning(f"{operation} exceeded warning threshold ({duration_ms:.1f} ms)")
    else:
        bound.debug(f"{operation} completed: {outcome}")
