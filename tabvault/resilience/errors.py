"""Error taxonomy for the resilience core.

Errors raised inside a scheduled cycle or sweep are caught at the cycle
boundary and converted into scheduler / monitor state.  Only the manual
trigger path reports an outcome back to the caller.
"""

from __future__ import annotations


class ResilienceError(Exception):
    """Base class for all resilience-core errors."""


class ValidationError(ResilienceError, ValueError):
    """Raised when a snapshot fails the validation gate.  Never written."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Snapshot validation failed: {reason}")
        self.reason = reason


class AtomicWriteError(ResilienceError, RuntimeError):
    """Raised when a step of the atomic-save protocol fails.

    The canonical snapshot list is untouched when this is raised; the
    underlying cause is always chained via ``__cause__``.
    """

    def __init__(self, snapshot_id: str, message: str) -> None:
        super().__init__(message)
        self.snapshot_id = snapshot_id


class IntegrityError(AtomicWriteError):
    """Raised when a read-back after a write does not match what was written."""


class PlatformError(ResilienceError):
    """Raised when the tab platform fails to enumerate, discard or notify."""

    def __init__(self, message: str, *, tab_id: int | None = None) -> None:
        super().__init__(message)
        self.tab_id = tab_id


class WorkspaceNotFoundError(LookupError):
    """Raised when a workspace is not found."""
