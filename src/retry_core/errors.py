from __future__ import annotations
from typing import Optional


class RetryCoreError(Exception):
    """Base class for errors raised by retry-core itself."""


class TerminalError(RetryCoreError):
    """
    Raised by an operation to stop retrying regardless of the remaining budget.

    The wrapped ``error`` is what the run ends with: it is re-raised to the
    caller, or, when it is ``None``, the run returns ``None`` ("stop, but as a
    success").
    """

    def __init__(self, error: Optional[BaseException] = None):
        super().__init__(error)
        self.error = error

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error!r})"


def terminal(error: Optional[BaseException] = None) -> TerminalError:
    """Mark ``error`` (possibly ``None``) as final: ``raise terminal(exc)``."""
    return TerminalError(error)


class Cancelled(RetryCoreError):
    """The run's cancel signal fired before the next attempt could start."""

    def __init__(self, message: str = "retry cancelled"):
        super().__init__(message)


class DeadlineExceeded(Cancelled, TimeoutError):
    """The run's deadline passed before the next attempt could start."""

    def __init__(self, message: str = "retry deadline exceeded"):
        super().__init__(message)
