from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type

from .delay import fixed_delay
from .types import DelayStrategy, OnFailedFn, OnRetryFn, TransientClassifier


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry budget, observers and delay strategy for ``run()``.

    ``retries`` counts the attempts *after* the first one, so ``retries=0``
    means a single call. The config holds no per-run state and may be shared
    by concurrent runs.
    """

    retries: int = 0
    on_retry: Optional[OnRetryFn] = None
    on_failed: Optional[OnFailedFn] = None
    delay: DelayStrategy = field(default_factory=lambda: fixed_delay(0.0))
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    classifier: Optional[TransientClassifier] = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be >= 0")

    async def run(self, op: Callable[..., Any], **kw: Any) -> Any:
        """Shortcut for ``retry_core.run(op, config=self, **kw)``."""
        from .core import run

        return await run(op, config=self, **kw)
