"""
Exception types shared across Welcomer.

Loader-phase and dispatch-phase errors are contained where they happen and
only ever logged. Ledger errors are the one family that reaches callers.
"""

from __future__ import annotations

from pathlib import Path


class WelcomerError(Exception):
    """Base class for all Welcomer errors."""


class DirectoryNotFound(WelcomerError):
    """The handler directory to scan does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Handler directory not found: {path}")
        self.path = path


class InvalidModuleShape(WelcomerError):
    """A loaded module does not expose a usable event handler."""

    def __init__(self, reason: str, source: Path | None = None) -> None:
        message = f"{source}: {reason}" if source else reason
        super().__init__(message)
        self.reason = reason
        self.source = source


class HandlerExecutionFailure(WelcomerError):
    """An event handler raised while processing a notification."""

    def __init__(self, event_name: str, once: bool, cause: BaseException) -> None:
        kind = "once" if once else "on"
        super().__init__(f"Error in {event_name} ({kind}) event: {cause!r}")
        self.event_name = event_name
        self.once = once
        self.cause = cause


class LedgerError(WelcomerError):
    """Base class for join ledger failures."""


class LedgerInconsistency(LedgerError):
    """The insert was suppressed by the unique constraint but no row could be read back."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Failed to record join for {user_id}: insert suppressed but no existing record found")
        self.user_id = user_id


class StorageUnavailable(LedgerError):
    """The underlying database raised during a ledger operation."""
