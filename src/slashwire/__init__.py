"""Discord interactions over HTTP: slash commands, components, modals and webhook events."""

from .channel import ResponseChannel, ResponseChannelClosed
from .client import Client
from .components import (
    build_action_row,
    build_button,
    build_custom_id,
    build_label,
    build_modal,
    build_select_menu,
    build_select_option,
    build_text_input,
)
from .config import BotConfig, BotConfigError
from .dispatcher import CommandDispatcher, EventDispatcher
from .errors import (
    DiscordAPIError,
    DispatchError,
    EventAlreadyAcknowledgedError,
    HandlerNoResponseError,
    InputBuildError,
    InteractionAlreadyRespondedError,
    ResponseTimeoutError,
)
from .events import (
    ApplicationAuthorizedEventData,
    ApplicationDeauthorizedEventData,
    EntitlementCreateEventData,
    EventInput,
    EventType,
    RawEventData,
)
from .inputs import CommandInput
from .interactions import OptionValue, OptionValueKind
from .registry import Command, CommandRegistry, Event, EventRegistry
from .responder import CommandResponder, EventResponder
from .responses import AutocompleteChoice, File, MessageResponse, Modal
from .rest import DiscordRestClient

__version__ = "0.1.0"

__all__ = [
    "ApplicationAuthorizedEventData",
    "ApplicationDeauthorizedEventData",
    "AutocompleteChoice",
    "BotConfig",
    "BotConfigError",
    "Client",
    "Command",
    "CommandDispatcher",
    "CommandInput",
    "CommandRegistry",
    "CommandResponder",
    "DiscordAPIError",
    "DiscordRestClient",
    "DispatchError",
    "EntitlementCreateEventData",
    "Event",
    "EventAlreadyAcknowledgedError",
    "EventDispatcher",
    "EventInput",
    "EventRegistry",
    "EventResponder",
    "EventType",
    "File",
    "HandlerNoResponseError",
    "InputBuildError",
    "InteractionAlreadyRespondedError",
    "MessageResponse",
    "Modal",
    "OptionValue",
    "OptionValueKind",
    "RawEventData",
    "ResponseChannel",
    "ResponseChannelClosed",
    "ResponseTimeoutError",
    "build_action_row",
    "build_button",
    "build_custom_id",
    "build_label",
    "build_modal",
    "build_select_menu",
    "build_select_option",
    "build_text_input",
]
