from __future__ import annotations
import asyncio
import threading

import pytest
from retry_core import CancelSignal, Cancelled, DeadlineExceeded, any_signal


def test_fresh_signal_has_no_error():
    s = CancelSignal()
    assert s.error is None
    assert not s.cancelled
    assert s.remaining() is None


def test_first_cancel_error_wins():
    s = CancelSignal()
    first = RuntimeError("first")
    s.cancel(first)
    s.cancel(RuntimeError("second"))
    assert s.error is first


def test_default_cancel_error():
    s = CancelSignal()
    s.cancel()
    assert isinstance(s.error, Cancelled)
    assert not isinstance(s.error, DeadlineExceeded)


def test_expired_deadline_is_seen_lazily():
    s = CancelSignal(timeout_s=0)
    assert isinstance(s.error, DeadlineExceeded)
    assert isinstance(s.error, TimeoutError)
    assert s.remaining() == 0.0


@pytest.mark.asyncio
async def test_wait_resolves_on_cancel():
    s = CancelSignal()
    asyncio.get_running_loop().call_later(0.01, s.cancel)
    err = await asyncio.wait_for(s.wait(), timeout=1.0)
    assert isinstance(err, Cancelled)


@pytest.mark.asyncio
async def test_wait_resolves_on_deadline():
    s = CancelSignal(timeout_s=0.02)
    err = await asyncio.wait_for(s.wait(), timeout=1.0)
    assert isinstance(err, DeadlineExceeded)


def test_any_signal_skips_missing():
    s = CancelSignal()
    assert any_signal(None, None) is None
    assert any_signal(None, s) is s


@pytest.mark.asyncio
async def test_any_signal_follows_first_to_fire():
    a = CancelSignal()
    b = CancelSignal(timeout_s=5.0)
    combined = any_signal(a, b)
    assert combined.remaining() <= 5.0
    reason = RuntimeError("a fired")
    asyncio.get_running_loop().call_later(0.01, a.cancel, reason)
    err = await asyncio.wait_for(combined.wait(), timeout=1.0)
    assert err is reason
    assert combined.error is reason


def test_signal_lives_in_cancel_module():
    import retry_core
    import retry_core.cancel

    assert retry_core.cancel.CancelSignal is retry_core.CancelSignal
    assert retry_core.cancel.any_signal is retry_core.any_signal


@pytest.mark.asyncio
async def test_cancel_threadsafe_from_other_thread():
    s = CancelSignal()
    loop = asyncio.get_running_loop()
    reason = RuntimeError("from thread")
    threading.Thread(target=s.cancel_threadsafe, args=(loop, reason)).start()
    err = await asyncio.wait_for(s.wait(), timeout=1.0)
    assert err is reason
