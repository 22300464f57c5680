from __future__ import annotations
from typing import Any, Callable


# Maps (attempt index, last error) to the wait in seconds before the next attempt
DelayStrategy = Callable[[int, BaseException], float]

# Called before each retry (n >= 1); may be sync or return an awaitable
OnRetryFn = Callable[[int], Any]

# Called after each failed attempt (n >= 0); may be sync or return an awaitable
OnFailedFn = Callable[[int, BaseException], Any]

# Decide if an exception is transient (should retry); may be sync or return an awaitable
TransientClassifier = Callable[[BaseException], Any]
