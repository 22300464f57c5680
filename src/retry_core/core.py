from __future__ import annotations
import asyncio
import logging
from typing import Any, Callable, Optional

from .cancel import CancelSignal, any_signal
from .config import RetryConfig
from .errors import TerminalError

logger = logging.getLogger(__name__)


async def _maybe_await(res: Any) -> Any:
    return await res if asyncio.iscoroutine(res) or asyncio.isfuture(res) else res


async def _sleep_or_cancel(delay: float, signal: Optional[CancelSignal]) -> Optional[BaseException]:
    """
    Wait ``delay`` seconds unless ``signal`` fires first.

    Returns the signal's error when it wins the race, ``None`` when the delay
    elapsed. The losing waiter is cancelled by ``wait_for``.
    """
    if signal is None:
        if delay > 0:
            await asyncio.sleep(delay)
        return None
    err = signal.error
    if err is not None or delay <= 0:
        return err
    try:
        return await asyncio.wait_for(signal.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return None


async def _attempts(
    op: Callable[..., Any],
    args: tuple,
    kwargs: dict[str, Any],
    config: RetryConfig,
    signal: Optional[CancelSignal],
) -> Any:
    if signal is not None and signal.error is not None:
        logger.debug("retry cancelled before first attempt: %r", signal.error)
        raise signal.error

    n = 0
    while True:
        if n > 0 and config.on_retry is not None:
            await _maybe_await(config.on_retry(n))

        failure: Optional[BaseException] = None
        try:
            return await _maybe_await(op(*args, **kwargs))
        except TerminalError as exc:
            failure = exc
        except config.retry_on as exc:
            failure = exc

        if isinstance(failure, TerminalError):
            inner = failure.error
            if inner is None:
                logger.debug("attempt %d: stopped by terminal marker without error", n)
                return None
            if config.on_failed is not None:
                await _maybe_await(config.on_failed(n, inner))
            logger.info("attempt %d: terminal failure, not retrying: %r", n, inner)
            raise inner

        assert failure is not None  # for type checkers
        if config.on_failed is not None:
            await _maybe_await(config.on_failed(n, failure))

        if config.classifier is not None and not await _maybe_await(config.classifier(failure)):
            logger.info("attempt %d: non-transient failure, not retrying: %r", n, failure)
            raise failure

        if n >= config.retries:
            logger.info("attempt %d: retry budget exhausted: %r", n, failure)
            raise failure

        delay = config.delay(n, failure)
        logger.debug("attempt %d failed (%r); next attempt in %.3fs", n, failure, delay)
        cancelled = await _sleep_or_cancel(delay, signal)
        if cancelled is not None:
            logger.info("retry cancelled while waiting after attempt %d: %r", n, cancelled)
            raise cancelled
        n += 1


async def run(
    op: Callable[..., Any],
    *,
    args: tuple = (),
    kwargs: dict[str, Any] | None = None,
    config: Optional[RetryConfig] = None,
    signal: Optional[CancelSignal] = None,
    overall_timeout_s: float | None = None,
    raises: bool = True,
    default: Any = None,
) -> Any:
    """
    Call ``op`` until it succeeds, gives a terminal verdict, runs out of
    retries, or ``signal`` fires while waiting between attempts.

    ``op`` may be sync or async. Its return value is the result of the run.
    Exceptions matching ``config.retry_on`` are retried; ``TerminalError``
    stops immediately and is unwrapped; anything else propagates untouched.
    When the budget is spent the last error is raised as-is. A fired signal
    raises its own error (``Cancelled``/``DeadlineExceeded`` by default).

    ``overall_timeout_s`` adds a deadline on top of ``signal``. Like the
    signal, it is only checked before the first attempt and while waiting;
    a running attempt is never interrupted.

    With ``raises=False`` every failure outcome returns ``default`` instead.
    """
    config = config or RetryConfig()
    kwargs = kwargs or {}
    if overall_timeout_s is not None:
        signal = any_signal(signal, CancelSignal(timeout_s=overall_timeout_s))

    try:
        return await _attempts(op, args, kwargs, config, signal)
    except Exception:
        if raises:
            raise
        return default
