from __future__ import annotations

from typing import Optional

from .core.exceptions import PermanentError, SlashwireError, TransientError


class DiscordError(SlashwireError):
    """Base Discord error."""


class DiscordAPIError(DiscordError):
    """Discord API request error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        user_message: Optional[str] = None,
    ) -> None:
        if user_message is None:
            user_message = "Discord API error."
        super().__init__(message, user_message=user_message)
        self.status_code = status_code
        self.retry_after = retry_after


class DiscordTransientError(DiscordAPIError, TransientError):
    """Retryable Discord API error (rate limits, network issues)."""


class DiscordPermanentError(DiscordAPIError, PermanentError):
    """Non-retryable Discord API error (auth failures, invalid requests)."""

    recoverable = PermanentError.recoverable
    severity = PermanentError.severity


class InteractionParseError(DiscordError, PermanentError):
    """Inbound payload does not have the shape of a Discord interaction or event."""


class DispatchError(DiscordError, PermanentError):
    """A request could not be routed to a handler."""


class UnknownHandlerError(DispatchError):
    """No handler is registered under the routed name."""

    def __init__(self, name: str, *, kind: str = "command") -> None:
        super().__init__(f"Received {kind} ({name}) has no registered {kind} handler")
        self.name = name
        self.kind = kind


class InvalidCustomIdError(DispatchError):
    """A component custom_id is not in `handler/remainder` form."""

    def __init__(self, custom_id: str) -> None:
        super().__init__(
            f"Received custom_id ({custom_id}) is not in the correct format"
        )
        self.custom_id = custom_id


class InputBuildError(DispatchError):
    """Command input could not be built from the interaction payload."""


class OptionValueError(InputBuildError):
    """An option value is missing or has the wrong type."""


class MissingResolvedError(InputBuildError):
    """The resolved block, or one of its entity maps, is missing."""


class UnresolvedEntityError(InputBuildError):
    """A referenced id has no entry in the resolved entity map."""


class HandlerNoResponseError(DiscordError, PermanentError):
    """The handler finished without sending a primary response."""


class ResponseTimeoutError(HandlerNoResponseError):
    """The handler did not respond within the configured deadline."""


class InteractionAlreadyRespondedError(DiscordError):
    """A primary response was already delivered for this interaction."""

    recoverable = True
    severity = "warning"

    def __init__(self, message: str = "Interaction has already been responded to.") -> None:
        super().__init__(message)


class EventAlreadyAcknowledgedError(InteractionAlreadyRespondedError):
    """The event was already acknowledged."""

    def __init__(self) -> None:
        super().__init__("Event has already been responded to.")


class RegistryFrozenError(DiscordError, PermanentError):
    """Handlers were registered after dispatch started."""
