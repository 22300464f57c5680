from __future__ import annotations
import asyncio
import time
from typing import Optional

from .errors import Cancelled, DeadlineExceeded


class CancelSignal:
    """
    One-shot cancellation signal with an optional deadline.

    The signal fires at most once: either through ``cancel()`` or when the
    deadline passes, and keeps the first error it was fired with. It holds no
    per-run state, so one signal may be shared by any number of runs.

    ``cancel()`` is not thread-safe: call it on the event loop's thread. From
    other threads (signal handlers, worker pools) use ``cancel_threadsafe()``.
    """

    def __init__(self, timeout_s: Optional[float] = None):
        self._event = asyncio.Event()
        self._error: Optional[BaseException] = None
        self._deadline = None if timeout_s is None else time.monotonic() + timeout_s

    def _fire(self, error: BaseException) -> None:
        if self._error is None:
            self._error = error
            self._event.set()

    def cancel(self, error: Optional[BaseException] = None) -> None:
        self._fire(error if error is not None else Cancelled())

    def cancel_threadsafe(
        self, loop: asyncio.AbstractEventLoop, error: Optional[BaseException] = None
    ) -> None:
        """Schedule ``cancel(error)`` on ``loop`` from any thread."""
        loop.call_soon_threadsafe(self.cancel, error)

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def error(self) -> Optional[BaseException]:
        if self._error is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._fire(DeadlineExceeded())
        return self._error

    @property
    def cancelled(self) -> bool:
        return self.error is not None

    async def wait(self) -> BaseException:
        """Block until the signal fires; returns the error it fired with."""
        err = self.error
        if err is not None:
            return err
        remaining = self.remaining()
        if remaining is None:
            await self._event.wait()
        else:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                self._fire(DeadlineExceeded())
        assert self._error is not None  # for type checkers
        return self._error


class _AnySignal(CancelSignal):
    """Fires when the first of several signals fires."""

    def __init__(self, *signals: CancelSignal):
        super().__init__()
        self._signals = signals

    @property
    def error(self) -> Optional[BaseException]:
        if self._error is None:
            for s in self._signals:
                err = s.error
                if err is not None:
                    self._fire(err)
                    break
        return self._error

    def remaining(self) -> Optional[float]:
        values = [r for r in (s.remaining() for s in self._signals) if r is not None]
        return min(values) if values else None

    async def wait(self) -> BaseException:
        err = self.error
        if err is not None:
            return err
        waiters = [asyncio.ensure_future(s.wait()) for s in self._signals]
        waiters.append(asyncio.ensure_future(self._event.wait()))
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for w in waiters:
                w.cancel()
            # the losers must be gone by the time wait() returns or raises
            await asyncio.gather(*waiters, return_exceptions=True)
        err = self.error
        assert err is not None  # for type checkers
        return err


def any_signal(*signals: Optional[CancelSignal]) -> Optional[CancelSignal]:
    """Combine signals; ``None`` entries are ignored."""
    present = [s for s in signals if s is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return _AnySignal(*present)
