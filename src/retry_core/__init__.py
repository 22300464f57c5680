import logging

from .cancel import CancelSignal, any_signal
from .config import RetryConfig
from .core import run
from .delay import (
    exponential_delay,
    fixed_delay,
    jittered_exponential_delay,
    linear_delay,
    random_delay,
)
from .errors import Cancelled, DeadlineExceeded, RetryCoreError, TerminalError, terminal
from .options import (
    do,
    new_config,
    with_classifier,
    with_delay,
    with_on_failed,
    with_on_retry,
    with_retries,
    with_retry_on,
)
from .otel_runtime import run_traced_optional

__all__ = [
    "run",
    "run_traced_optional",
    "do",
    "RetryConfig",
    "new_config",
    "with_retries",
    "with_on_retry",
    "with_on_failed",
    "with_delay",
    "with_retry_on",
    "with_classifier",
    "fixed_delay",
    "linear_delay",
    "exponential_delay",
    "random_delay",
    "jittered_exponential_delay",
    "CancelSignal",
    "any_signal",
    "RetryCoreError",
    "TerminalError",
    "terminal",
    "Cancelled",
    "DeadlineExceeded",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
