"""Handler registries.

Handlers are added while the application is being configured. `freeze()`
publishes a read-only snapshot that concurrent dispatches read without
locking; adding after that point is an error.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Generic,
    Hashable,
    Iterator,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

from .constants import COMMAND_CHAT_INPUT
from .errors import RegistryFrozenError
from .events import EventType

if TYPE_CHECKING:
    from .events import EventData, EventInput
    from .inputs import CommandInput
    from .responder import CommandResponder

logger = logging.getLogger(__name__)

CommandFunc = Callable[["CommandInput", "CommandResponder"], Awaitable[Any]]
EventFunc = Callable[["EventInput", "EventData"], Awaitable[Any]]


@dataclass(frozen=True)
class Command:
    """A command handler plus the metadata used to register it with Discord.

    Set `ignore` for handlers that only serve as component or modal routing
    targets and must not be advertised as application commands.
    """

    name: str
    func: CommandFunc
    description: str = ""
    command_type: int = COMMAND_CHAT_INPUT
    options: tuple[dict[str, Any], ...] = ()
    name_localizations: Optional[dict[str, str]] = None
    description_localizations: Optional[dict[str, str]] = None
    default_member_permissions: Optional[str] = None
    nsfw: bool = False
    integration_types: Optional[tuple[int, ...]] = None
    contexts: Optional[tuple[int, ...]] = None
    ignore: bool = False

    def to_application_command(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.command_type,
            "description": self.description,
        }
        if self.options:
            payload["options"] = list(self.options)
        if self.name_localizations:
            payload["name_localizations"] = self.name_localizations
        if self.description_localizations:
            payload["description_localizations"] = self.description_localizations
        if self.default_member_permissions is not None:
            payload["default_member_permissions"] = self.default_member_permissions
        if self.nsfw:
            payload["nsfw"] = True
        if self.integration_types is not None:
            payload["integration_types"] = list(self.integration_types)
        if self.contexts is not None:
            payload["contexts"] = list(self.contexts)
        return payload


@dataclass(frozen=True)
class Event:
    event_type: EventType
    func: EventFunc = field(compare=False)


K = TypeVar("K", bound=Hashable)
R = TypeVar("R", bound=Union[Command, Event])


class HandlerRegistry(ABC, Generic[K, R]):
    kind = "handler"

    def __init__(self) -> None:
        self._handlers: dict[K, R] = {}
        self._snapshot: Optional[Mapping[K, R]] = None

    @abstractmethod
    def _key(self, record: R) -> K:
        ...

    @property
    def frozen(self) -> bool:
        return self._snapshot is not None

    def add(self, record: R) -> None:
        if self._snapshot is not None:
            raise RegistryFrozenError(
                f"Cannot register {self.kind} {self._key(record)!s} after dispatch started"
            )
        key = self._key(record)
        if key in self._handlers:
            logger.warning("Replacing registered %s %s", self.kind, key)
        self._handlers[key] = record

    def freeze(self) -> Mapping[K, R]:
        if self._snapshot is None:
            self._snapshot = MappingProxyType(dict(self._handlers))
        return self._snapshot

    @property
    def handlers(self) -> Mapping[K, R]:
        if self._snapshot is not None:
            return self._snapshot
        return MappingProxyType(self._handlers)

    def get(self, key: K) -> Optional[R]:
        return self.handlers.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.handlers

    def __iter__(self) -> Iterator[R]:
        return iter(list(self.handlers.values()))

    def __len__(self) -> int:
        return len(self.handlers)


class CommandRegistry(HandlerRegistry[str, Command]):
    kind = "command"

    def _key(self, record: Command) -> str:
        return record.name

    def convert_commands(self) -> list[dict[str, Any]]:
        """Payload for a bulk overwrite; `ignore` commands are skipped."""
        return [
            command.to_application_command()
            for command in self.handlers.values()
            if not command.ignore
        ]


class EventRegistry(HandlerRegistry[EventType, Event]):
    kind = "event"

    def _key(self, record: Event) -> EventType:
        return record.event_type
