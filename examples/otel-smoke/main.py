import asyncio
import os
import random

from retry_core import RetryConfig, jittered_exponential_delay
from retry_core.otel_setup import init_tracer, init_metrics
from retry_core.otel_runtime import run_traced_optional

# Enable tracing / metrics via env (can still be disabled by user)
os.environ.setdefault("RETRY_CORE_OTEL_ENABLED", "1")
os.environ.setdefault("RETRY_CORE_OTEL_METRICS_ENABLED", "1")

# Defaults for local collector
os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "http://127.0.0.1:4317")


async def flaky_op(fail_prob: float) -> str:
    """Fails randomly (to trigger retries), otherwise sleeps a bit and succeeds."""
    if random.random() < fail_prob:
        raise RuntimeError("transient boom in retry-core smoke demo")

    await asyncio.sleep(random.uniform(0.02, 0.15))
    return "ok"


async def main() -> None:
    # RETRY_CORE_OTEL_EXPORTER=http (default) | grpc
    exporter = os.getenv("RETRY_CORE_OTEL_EXPORTER", "http").lower()
    if exporter not in ("http", "grpc"):
        print(f"[retry-core] Unknown RETRY_CORE_OTEL_EXPORTER={exporter!r}, falling back to 'http'")
        exporter = "http"

    service_name = "retry-core-otel-smoke"
    init_tracer(service_name=service_name, exporter=exporter)
    init_metrics(service_name=service_name, exporter=exporter)

    n_ops = int(os.getenv("RETRY_CORE_SMOKE_OPS", "50"))
    fail_prob = float(os.getenv("RETRY_CORE_SMOKE_FAIL_PROB", "0.5"))
    print(f"[retry-core] running smoke: n_ops={n_ops}, fail_prob={fail_prob}, exporter={exporter}")

    config = RetryConfig(
        retries=2,
        delay=jittered_exponential_delay(0.05, 0.1, jitter=0.0),
        retry_on=(RuntimeError,),
    )

    for i in range(n_ops):
        try:
            result = await run_traced_optional(
                flaky_op,
                args=(fail_prob,),
                config=config,
                otel_enabled=True,
                span_name="retry.smoke",
                base_attrs={"retry.demo_op_index": i},
            )
            print(f"[retry-core] op #{i} -> {result}")
        except RuntimeError as exc:
            # If all retries fail, we still record spans + metrics
            print(f"[retry-core] op #{i} failed after retries: {exc!r}")

    print("[retry-core] smoke run complete")


if __name__ == "__main__":
    asyncio.run(main())
