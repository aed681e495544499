"""Shared error base types.

Integration errors compose these so retry and severity behavior stays
consistent between the dispatcher, the REST client and the web transport.
"""

from __future__ import annotations

from typing import Optional


class SlashwireError(Exception):
    """Base error for the library."""

    recoverable: bool = False
    severity: str = "error"

    def __init__(self, message: str, *, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message


class TransientError(SlashwireError):
    """Failure that may succeed if the same operation is attempted again."""

    recoverable = True
    severity = "warning"


class PermanentError(SlashwireError):
    """Failure that will not go away by retrying."""

    recoverable = False
    severity = "error"


class ConfigError(SlashwireError):
    """Raised when a configuration file cannot be loaded."""
