from __future__ import annotations

import dataclasses
import os
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from . import otel_setup
from .cancel import CancelSignal
from .config import RetryConfig
from .core import _maybe_await, run


# --- Helpers for env flags ----------------------------------------------------

_TRUTHY = {"1", "true", "yes", "on"}


def _otel_enabled(explicit: Optional[bool]) -> bool:
    if explicit is not None:
        return explicit
    return os.getenv("RETRY_CORE_OTEL_ENABLED", "").lower() in _TRUTHY


def _metrics_enabled() -> bool:
    return os.getenv("RETRY_CORE_OTEL_METRICS_ENABLED", "").lower() in _TRUTHY


# --- Metrics plumbing (lazy / optional) --------------------------------------

_ops_counter = None
_attempts_counter = None
_duration_histogram = None
_metrics_instruments_ready = False


def _ensure_metrics() -> None:
    """
    Lazily create metric instruments if metrics are enabled and OTEL is available.
    Safe to call multiple times.
    """
    global _ops_counter, _attempts_counter, _duration_histogram, _metrics_instruments_ready

    if _metrics_instruments_ready:
        return

    if not _metrics_enabled():
        return

    meter = otel_setup.get_meter()
    if meter is None:
        return

    _ops_counter = meter.create_counter(
        "retry_operations_total",
        description="Total number of retry-core runs.",
    )
    _attempts_counter = meter.create_counter(
        "retry_attempts_total",
        description="Total number of operation attempts (including retries).",
    )
    _duration_histogram = meter.create_histogram(
        "retry_operation_duration_seconds",
        description="Latency of retry-core runs, waits included.",
        unit="s",
    )

    _metrics_instruments_ready = True


# --- Traced execution ---------------------------------------------------------


async def run_traced_optional(
    op: Callable[..., Any] | Callable[..., Awaitable[Any]],
    *,
    args: Tuple[Any, ...] = (),
    kwargs: Optional[Dict[str, Any]] = None,
    config: Optional[RetryConfig] = None,
    signal: Optional[CancelSignal] = None,
    overall_timeout_s: Optional[float] = None,
    raises: bool = True,
    default: Any = None,
    # tracing knobs (all optional)
    otel_enabled: Optional[bool] = None,  # None -> read env RETRY_CORE_OTEL_ENABLED
    span_name: str = "retry.operation",
    base_attrs: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Run with tracing *if* OpenTelemetry is installed and enabled.
    Otherwise, falls back to plain `run()` with zero overhead.

    The run gets one span; every failed attempt and every retry is recorded
    as a span event. The caller's own ``on_retry``/``on_failed`` still run.

    When RETRY_CORE_OTEL_METRICS_ENABLED=1 (and OTEL metrics are available),
    this also emits:
      - retry_operations_total
      - retry_attempts_total
      - retry_operation_duration_seconds
    """
    config = config or RetryConfig()
    run_kw: Dict[str, Any] = dict(
        args=args,
        kwargs=kwargs,
        signal=signal,
        overall_timeout_s=overall_timeout_s,
        raises=raises,
        default=default,
    )

    # Fast path: OTEL disabled entirely -> no tracing, no metrics
    if not _otel_enabled(otel_enabled):
        return await run(op, config=config, **run_kw)

    tracer = otel_setup.get_tracer()
    if tracer is None:
        # Otel not installed -> silently fall back
        return await run(op, config=config, **run_kw)

    from opentelemetry.trace import SpanKind, Status, StatusCode

    _ensure_metrics()
    metrics_active = _metrics_instruments_ready and _metrics_enabled()

    attrs = {
        "retry.retries": config.retries,
        "retry.overall_timeout_s": overall_timeout_s,
    }
    if base_attrs:
        attrs.update({k: v for k, v in base_attrs.items() if v is not None})

    metric_attrs_base = {"retry.span_name": span_name}

    def set_attrs(span, d):
        for k, v in d.items():
            if v is not None:
                span.set_attribute(k, v)

    start = time.perf_counter()

    def record_run(outcome: str) -> None:
        if metrics_active and _ops_counter is not None and _duration_histogram is not None:
            metric_attrs = {**metric_attrs_base, "retry.outcome": outcome}
            _ops_counter.add(1, attributes=metric_attrs)
            _duration_histogram.record(time.perf_counter() - start, attributes=metric_attrs)

    with tracer.start_as_current_span(span_name, kind=SpanKind.INTERNAL) as root:
        set_attrs(root, attrs)
        # counted per invocation, so runs cancelled up front report 0
        attempts = {"n": 0}

        async def counted_op(*a: Any, **kw: Any) -> Any:
            attempts["n"] += 1
            return await _maybe_await(op(*a, **kw))

        async def on_retry(n: int) -> None:
            root.add_event("retry.retry", {"retry.attempt.number": n})
            if config.on_retry is not None:
                await _maybe_await(config.on_retry(n))

        async def on_failed(n: int, exc: BaseException) -> None:
            root.add_event(
                "retry.failed",
                {"retry.attempt.number": n, "exception.type": type(exc).__name__},
            )
            if config.on_failed is not None:
                await _maybe_await(config.on_failed(n, exc))

        traced = dataclasses.replace(config, on_retry=on_retry, on_failed=on_failed)

        try:
            result = await run(counted_op, config=traced, **{**run_kw, "raises": True})
        except Exception as exc:
            root.record_exception(exc)
            root.set_attribute("retry.outcome", "error")
            root.set_attribute("retry.attempts", attempts["n"])
            root.set_status(Status(StatusCode.ERROR))
            record_run("error")
            if metrics_active and _attempts_counter is not None:
                _attempts_counter.add(attempts["n"], attributes=metric_attrs_base)
            if raises:
                raise
            # raises == False -> fall back to default
            return default

        root.set_attribute("retry.outcome", "success")
        root.set_attribute("retry.attempts", attempts["n"])
        record_run("success")
        if metrics_active and _attempts_counter is not None:
            _attempts_counter.add(attempts["n"], attributes=metric_attrs_base)
        return result
