"""
Tracer/meter access for ``run_traced_optional`` plus optional OTLP bootstrap.

``get_tracer``/``get_meter`` only need ``opentelemetry-api``; they hand out
instruments from the provider installed by ``init_tracer``/``init_metrics``
when there is one, otherwise from the global (often no-op) provider.
``init_*`` additionally need ``opentelemetry-sdk`` and the OTLP exporters and
quietly do nothing without them.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

try:
    from opentelemetry import metrics, trace
except ImportError:  # pragma: no cover - OTEL not installed
    metrics = None  # type: ignore[assignment]
    trace = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "retry_core"

_tracer_provider: Optional[Any] = None
_meter_provider: Optional[Any] = None


def _build_resource(service_name: str):
    from opentelemetry.sdk.resources import Resource

    return Resource.create(
        {
            "service.name": service_name,
            "service.version": os.getenv("RETRY_CORE_SERVICE_VERSION", "dev"),
        }
    )


def _exporter_classes(exporter: str):
    """(span exporter, metric exporter) classes for "http" (default) or "grpc"."""
    if exporter.lower() == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    else:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    return OTLPSpanExporter, OTLPMetricExporter


def init_tracer(service_name: str = "retry-core", exporter: str = "http") -> None:
    """
    Install a TracerProvider exporting spans over OTLP.

    :param service_name: logical service name (appears in Jaeger, Tempo, etc.)
    :param exporter: "http" (default) or "grpc"
    """
    global _tracer_provider

    if trace is None or _tracer_provider is not None:
        return

    try:
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        span_exporter_cls, _ = _exporter_classes(exporter)
    except ImportError as exc:
        logger.warning("tracing not initialized, OTEL SDK/exporter missing: %s", exc)
        return

    provider = TracerProvider(resource=_build_resource(service_name))
    provider.add_span_processor(BatchSpanProcessor(span_exporter_cls()))
    trace.set_tracer_provider(provider)
    _tracer_provider = provider


def init_metrics(service_name: str = "retry-core", exporter: str = "http") -> None:
    """
    Install a MeterProvider exporting metrics over OTLP.

    :param service_name: logical service name
    :param exporter: "http" (default) or "grpc"
    """
    global _meter_provider

    if metrics is None or _meter_provider is not None:
        return

    try:
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

        _, metric_exporter_cls = _exporter_classes(exporter)
    except ImportError as exc:
        logger.warning("metrics not initialized, OTEL SDK/exporter missing: %s", exc)
        return

    reader = PeriodicExportingMetricReader(metric_exporter_cls())
    provider = MeterProvider(resource=_build_resource(service_name), metric_readers=[reader])
    metrics.set_meter_provider(provider)
    _meter_provider = provider


def get_tracer(instrumentation_name: str = INSTRUMENTATION_NAME):
    """Tracer from our provider (or the global one); ``None`` without opentelemetry."""
    if trace is None:
        return None
    if _tracer_provider is None:
        return trace.get_tracer(instrumentation_name)
    return _tracer_provider.get_tracer(instrumentation_name)


def get_meter(instrumentation_name: str = INSTRUMENTATION_NAME):
    """Meter from our provider (or the global one); ``None`` without opentelemetry."""
    if metrics is None:
        return None
    if _meter_provider is None:
        return metrics.get_meter(instrumentation_name)
    return _meter_provider.get_meter(instrumentation_name)
