from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .channel import ResponseChannel
from .constants import (
    INTERACTION_APPLICATION_COMMAND,
    INTERACTION_AUTOCOMPLETE,
)
from .core.logging_utils import log_event
from .errors import (
    DispatchError,
    InvalidCustomIdError,
    ResponseTimeoutError,
    UnknownHandlerError,
)
from .events import EventBody, EventInput
from .inputs import build_command_input
from .interactions import Interaction, extract_user_id, split_custom_id
from .registry import CommandRegistry, EventRegistry
from .responder import CommandResponder, EventResponder
from .responses import CommandResponse, InteractionCallback, build_callback
from .rest import DiscordRestClient

T = TypeVar("T")


class _TaskDispatcher:
    """Runs handlers on detached tasks and waits for their primary response."""

    def __init__(
        self,
        *,
        rest: Optional[DiscordRestClient] = None,
        response_timeout_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._rest = rest
        self._owns_rest = False
        self._response_timeout_seconds = response_timeout_seconds
        self._logger = logger or logging.getLogger(__name__)
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle_event = asyncio.Event()
        self._idle_event.set()

    def _resolve_rest(self, rest: Optional[DiscordRestClient]) -> DiscordRestClient:
        if rest is not None:
            return rest
        if self._rest is None:
            self._rest = DiscordRestClient()
            self._owns_rest = True
        return self._rest

    async def close(self) -> None:
        if self._owns_rest and self._rest is not None:
            await self._rest.close()
            self._rest = None
            self._owns_rest = False

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every spawned handler task has finished."""

        await self._idle_event.wait()

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not self._tasks:
            self._idle_event.set()

    async def _run_handler(
        self,
        handler: Callable[[], Awaitable[Any]],
        channel: ResponseChannel[Any],
        *,
        kind: str,
        name: str,
    ) -> None:
        try:
            await handler()
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "slashwire.handler.failed",
                kind=kind,
                name=name,
                exc=exc,
            )
        finally:
            channel.producer_finished()

    def _spawn(
        self,
        handler: Callable[[], Awaitable[Any]],
        channel: ResponseChannel[Any],
        *,
        kind: str,
        name: str,
    ) -> None:
        task = asyncio.create_task(
            self._run_handler(handler, channel, kind=kind, name=name),
            name=f"slashwire-{kind}-{name}",
        )
        self._tasks.add(task)
        self._idle_event.clear()
        task.add_done_callback(self._task_done)

    async def _receive(self, channel: ResponseChannel[T], *, kind: str, name: str) -> T:
        try:
            if self._response_timeout_seconds is None:
                return await channel.recv()
            try:
                return await asyncio.wait_for(
                    channel.recv(), timeout=self._response_timeout_seconds
                )
            except asyncio.TimeoutError as exc:
                raise ResponseTimeoutError(
                    f"{kind.capitalize()} handler ({name}) did not respond within "
                    f"{self._response_timeout_seconds}s"
                ) from exc
        finally:
            channel.close()


class CommandDispatcher(_TaskDispatcher):
    def __init__(
        self,
        registry: CommandRegistry,
        *,
        rest: Optional[DiscordRestClient] = None,
        response_timeout_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(
            rest=rest,
            response_timeout_seconds=response_timeout_seconds,
            logger=logger,
        )
        self._registry = registry

    def _route(self, interaction: Interaction) -> tuple[str, Optional[str]]:
        data = interaction.data
        if data is None:
            raise DispatchError("Interaction has no data")
        if interaction.interaction_type in (
            INTERACTION_APPLICATION_COMMAND,
            INTERACTION_AUTOCOMPLETE,
        ):
            if not data.name:
                raise DispatchError("Command interaction is missing a command name")
            return data.name, None
        if data.custom_id is None:
            raise DispatchError("Component interaction is missing a custom_id")
        parts = split_custom_id(data.custom_id)
        if parts is None:
            raise InvalidCustomIdError(data.custom_id)
        return parts

    async def handle_command(
        self,
        interaction: Interaction,
        *,
        rest: Optional[DiscordRestClient] = None,
    ) -> InteractionCallback:
        if not interaction.is_routable():
            raise DispatchError(
                f"Unexpected interaction type {interaction.interaction_type} in handle_command"
            )
        name, custom_id = self._route(interaction)
        command = self._registry.get(name)
        if command is None:
            raise UnknownHandlerError(name, kind="command")

        rest_client = self._resolve_rest(rest)
        command_input = build_command_input(
            interaction, name, custom_id=custom_id, rest=rest_client
        )
        log_event(
            self._logger,
            logging.INFO,
            "slashwire.dispatch.received",
            kind="command",
            name=name,
            interaction_id=interaction.id,
            interaction_type=interaction.interaction_type,
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            user_id=extract_user_id(interaction.raw),
        )

        channel: ResponseChannel[CommandResponse] = ResponseChannel(
            description="Command handler"
        )
        responder = CommandResponder(
            channel,
            application_id=interaction.application_id,
            token=interaction.token,
            rest=rest_client,
        )
        self._spawn(
            lambda: command.func(command_input, responder),
            channel,
            kind="command",
            name=name,
        )
        response = await self._receive(channel, kind="command", name=name)
        callback = build_callback(response)
        log_event(
            self._logger,
            logging.INFO,
            "slashwire.dispatch.responded",
            kind="command",
            name=name,
            interaction_id=interaction.id,
            response_type=callback.response_type,
            file_count=len(callback.files),
        )
        return callback


class EventDispatcher(_TaskDispatcher):
    def __init__(
        self,
        registry: EventRegistry,
        *,
        rest: Optional[DiscordRestClient] = None,
        response_timeout_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(
            rest=rest,
            response_timeout_seconds=response_timeout_seconds,
            logger=logger,
        )
        self._registry = registry

    async def handle_event(
        self,
        event_body: EventBody,
        *,
        rest: Optional[DiscordRestClient] = None,
    ) -> None:
        name = event_body.event_type.value
        event = self._registry.get(event_body.event_type)
        if event is None:
            raise UnknownHandlerError(name, kind="event")
        data = event_body.data
        if data is None:
            raise DispatchError("Event has no data")

        log_event(
            self._logger,
            logging.INFO,
            "slashwire.dispatch.received",
            kind="event",
            name=name,
            timestamp=event_body.timestamp.isoformat(),
        )
        channel: ResponseChannel[None] = ResponseChannel(description="Event handler")
        event_input = EventInput(
            event_type=event_body.event_type,
            timestamp=event_body.timestamp,
            rest=self._resolve_rest(rest),
            responder=EventResponder(channel),
        )
        self._spawn(
            lambda: event.func(event_input, data),
            channel,
            kind="event",
            name=name,
        )
        await self._receive(channel, kind="event", name=name)
        log_event(
            self._logger,
            logging.INFO,
            "slashwire.dispatch.responded",
            kind="event",
            name=name,
        )
