"""Functional options for building a ``RetryConfig`` step by step."""

from __future__ import annotations
import dataclasses
from typing import Any, Callable, Dict, Optional, Type

from .cancel import CancelSignal
from .config import RetryConfig
from .core import run
from .types import DelayStrategy, OnFailedFn, OnRetryFn, TransientClassifier

Option = Callable[[Dict[str, Any]], None]


def with_retries(retries: int) -> Option:
    def apply(fields: Dict[str, Any]) -> None:
        fields["retries"] = retries

    return apply


def with_on_retry(fn: OnRetryFn) -> Option:
    def apply(fields: Dict[str, Any]) -> None:
        fields["on_retry"] = fn

    return apply


def with_on_failed(fn: OnFailedFn) -> Option:
    def apply(fields: Dict[str, Any]) -> None:
        fields["on_failed"] = fn

    return apply


def with_delay(strategy: DelayStrategy) -> Option:
    def apply(fields: Dict[str, Any]) -> None:
        fields["delay"] = strategy

    return apply


def with_retry_on(*exc_types: Type[BaseException]) -> Option:
    def apply(fields: Dict[str, Any]) -> None:
        fields["retry_on"] = tuple(exc_types)

    return apply


def with_classifier(fn: TransientClassifier) -> Option:
    def apply(fields: Dict[str, Any]) -> None:
        fields["classifier"] = fn

    return apply


def new_config(*options: Option, base: Optional[RetryConfig] = None) -> RetryConfig:
    """Apply ``options`` in order (last write wins) on top of ``base``."""
    fields: Dict[str, Any] = {}
    for opt in options:
        opt(fields)
    return dataclasses.replace(base or RetryConfig(), **fields)


async def do(
    op: Callable[..., Any],
    *options: Option,
    signal: Optional[CancelSignal] = None,
    **kw: Any,
) -> Any:
    """Build a config from ``options`` and run ``op`` with it."""
    return await run(op, config=new_config(*options), signal=signal, **kw)
