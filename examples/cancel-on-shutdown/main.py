import asyncio
import random

from retry_core import (
    CancelSignal,
    RetryConfig,
    exponential_delay,
    run,
    terminal,
)


class NotFound(Exception):
    pass


async def flaky_fetch(key: str) -> str:
    roll = random.random()
    if roll < 0.1:
        # retrying won't help
        raise terminal(NotFound(key))
    if roll < 0.7:
        raise ConnectionError("connection reset")
    return f"value-for-{key}"


async def main() -> None:
    config = RetryConfig(
        retries=5,
        delay=exponential_delay(0.1, 1.0),
        on_retry=lambda n: print(f"  retry #{n}"),
        on_failed=lambda n, exc: print(f"  attempt {n} failed: {exc!r}"),
    )

    # Cancelled from "outside" after 1.5s, e.g. by a shutdown handler
    shutdown = CancelSignal()
    asyncio.get_running_loop().call_later(1.5, shutdown.cancel)

    for key in ("a", "b", "c"):
        print(f"fetch {key}")
        try:
            print("  ->", await run(flaky_fetch, args=(key,), config=config, signal=shutdown))
        except Exception as exc:
            print(f"  gave up: {exc!r}")


if __name__ == "__main__":
    asyncio.run(main())
