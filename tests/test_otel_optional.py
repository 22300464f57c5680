import importlib
import os

import pytest

from retry_core import RetryConfig, run_traced_optional
import retry_core.otel_setup as otel_setup


async def _dummy_op(value: int = 1) -> int:
    return value


class Boom(RuntimeError):
    pass


@pytest.mark.asyncio
async def test_run_traced_optional_explicitly_disabled():
    """
    If otel_enabled=False, run_traced_optional should just delegate to
    core.run(). This path must work even if opentelemetry is not installed.
    """
    os.environ.pop("RETRY_CORE_OTEL_ENABLED", None)

    result = await run_traced_optional(
        _dummy_op,
        args=(42,),
        config=RetryConfig(retries=2),
        otel_enabled=False,
    )

    assert result == 42


@pytest.mark.asyncio
async def test_run_traced_optional_env_disabled_by_default(monkeypatch):
    monkeypatch.delenv("RETRY_CORE_OTEL_ENABLED", raising=False)

    result = await run_traced_optional(_dummy_op, args=(7,), otel_enabled=None)

    assert result == 7


@pytest.mark.asyncio
async def test_traced_run_keeps_caller_observers():
    pytest.importorskip("opentelemetry")
    retried = []
    failed = []
    attempts = []

    async def op():
        attempts.append(1)
        if len(attempts) < 3:
            raise Boom("boom")
        return "ok"

    config = RetryConfig(
        retries=3,
        on_retry=retried.append,
        on_failed=lambda n, e: failed.append(n),
    )
    out = await run_traced_optional(op, config=config, otel_enabled=True, span_name="test.op")
    assert out == "ok"
    assert retried == [1, 2]
    assert failed == [0, 1]
    # the caller's config is left untouched
    assert config.on_retry == retried.append


@pytest.mark.asyncio
async def test_traced_run_failure_respects_raises(monkeypatch):
    pytest.importorskip("opentelemetry")
    monkeypatch.setenv("RETRY_CORE_OTEL_ENABLED", "1")

    async def op():
        raise Boom("boom")

    with pytest.raises(Boom):
        await run_traced_optional(op, config=RetryConfig(retries=1))

    out = await run_traced_optional(op, config=RetryConfig(retries=1), raises=False, default="fb")
    assert out == "fb"


def test_otel_setup_skips_init_without_exporters(monkeypatch, caplog):
    """
    init_tracer / init_metrics must be safe when the OTEL SDK or the OTLP
    exporters are not installed: they log and leave no provider behind.
    """
    importlib.reload(otel_setup)

    def missing(exporter):
        raise ImportError("no exporter")

    monkeypatch.setattr(otel_setup, "_exporter_classes", missing)
    otel_setup.init_tracer(service_name="test-svc", exporter="grpc")
    otel_setup.init_metrics(service_name="test-svc", exporter="http")

    assert otel_setup._tracer_provider is None
    assert otel_setup._meter_provider is None
    if otel_setup.trace is not None:
        assert any("not initialized" in r.getMessage() for r in caplog.records)


@pytest.fixture
def span_exporter(monkeypatch):
    pytest.importorskip("opentelemetry.sdk")
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(otel_setup, "_tracer_provider", provider)
    return exporter


@pytest.mark.asyncio
async def test_traced_run_records_attempts_and_events(span_exporter):
    attempts = []

    def op():
        attempts.append(1)
        if len(attempts) < 3:
            raise Boom("boom")
        return "ok"

    out = await run_traced_optional(
        op,
        config=RetryConfig(retries=3),
        otel_enabled=True,
        span_name="test.op",
        base_attrs={"test.tag": "a"},
    )
    assert out == "ok"

    (span,) = span_exporter.get_finished_spans()
    assert span.name == "test.op"
    assert span.attributes["retry.attempts"] == 3
    assert span.attributes["retry.outcome"] == "success"
    assert span.attributes["test.tag"] == "a"
    names = [e.name for e in span.events]
    assert names.count("retry.failed") == 2
    assert names.count("retry.retry") == 2


@pytest.mark.asyncio
async def test_traced_run_expired_deadline_records_zero_attempts(span_exporter):
    from retry_core import DeadlineExceeded

    attempts = []

    async def op():
        attempts.append(1)
        return "never"

    with pytest.raises(DeadlineExceeded):
        await run_traced_optional(
            op, config=RetryConfig(retries=3), overall_timeout_s=0, otel_enabled=True
        )

    assert attempts == []
    (span,) = span_exporter.get_finished_spans()
    assert span.attributes["retry.attempts"] == 0
    assert span.attributes["retry.outcome"] == "error"


def test_get_tracer_uses_installed_provider(span_exporter):
    tracer = otel_setup.get_tracer()
    with tracer.start_as_current_span("direct"):
        pass
    assert [s.name for s in span_exporter.get_finished_spans()] == ["direct"]
