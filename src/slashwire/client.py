"""Application entry point tying registries, dispatchers and the web app together."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Iterable, Optional, Union

import uvicorn
from fastapi import FastAPI

from .command_registry import sync_commands
from .config import BotConfig
from .constants import COMMAND_CHAT_INPUT
from .dispatcher import CommandDispatcher, EventDispatcher
from .events import EventType
from .registry import (
    Command,
    CommandFunc,
    CommandRegistry,
    Event,
    EventFunc,
    EventRegistry,
)
from .rest import DiscordRestClient
from .webhook import create_webhook_app


def _event_type(value: Union[EventType, str]) -> EventType:
    if isinstance(value, EventType):
        return value
    member = EventType.__members__.get(value)
    if member is None:
        raise ValueError(f"Unknown event type: {value!r}")
    return member


class Client:
    def __init__(
        self,
        config: BotConfig,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.commands = CommandRegistry()
        self.events = EventRegistry()
        self._logger = logger or logging.getLogger(__name__)
        self._rest: Optional[DiscordRestClient] = None
        self._command_dispatcher: Optional[CommandDispatcher] = None
        self._event_dispatcher: Optional[EventDispatcher] = None

    def register_command(self, command: Command) -> None:
        self.commands.add(command)

    def register_commands(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.register_command(command)

    def register_event(self, event: Event) -> None:
        self.events.add(event)

    def register_events(self, events: Iterable[Event]) -> None:
        for event in events:
            self.register_event(event)

    def command(
        self,
        name: str,
        *,
        description: str = "",
        command_type: int = COMMAND_CHAT_INPUT,
        **metadata: Any,
    ) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator form of `register_command`."""

        def decorator(func: CommandFunc) -> CommandFunc:
            self.register_command(
                Command(
                    name=name,
                    func=func,
                    description=description,
                    command_type=command_type,
                    **metadata,
                )
            )
            return func

        return decorator

    def event(
        self, event_type: Union[EventType, str]
    ) -> Callable[[EventFunc], EventFunc]:
        def decorator(func: EventFunc) -> EventFunc:
            self.register_event(Event(event_type=_event_type(event_type), func=func))
            return func

        return decorator

    @property
    def rest(self) -> DiscordRestClient:
        if self._rest is None:
            self._rest = DiscordRestClient(bot_token=self.config.bot_token)
        return self._rest

    def _lifespan(self) -> Callable[[FastAPI], Any]:
        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            try:
                yield
            finally:
                await self.shutdown()

        return lifespan

    def create_app(self) -> FastAPI:
        """Freeze the registries and build the webhook app."""
        public_key = self.config.require_public_key()
        self.commands.freeze()
        self.events.freeze()
        self._command_dispatcher = CommandDispatcher(
            self.commands,
            rest=self.rest,
            response_timeout_seconds=self.config.response_timeout_seconds,
            logger=self._logger,
        )
        self._event_dispatcher = EventDispatcher(
            self.events,
            rest=self.rest,
            response_timeout_seconds=self.config.response_timeout_seconds,
            logger=self._logger,
        )
        return create_webhook_app(
            public_key=public_key,
            command_dispatcher=self._command_dispatcher,
            event_dispatcher=self._event_dispatcher,
            rest=self.rest,
            lifespan=self._lifespan(),
        )

    async def shutdown(self) -> None:
        for dispatcher in (self._command_dispatcher, self._event_dispatcher):
            if dispatcher is not None:
                await dispatcher.wait_idle()
        if self._rest is not None:
            await self._rest.close()
            self._rest = None

    async def sync_commands(self) -> None:
        """Bulk-overwrite Discord's command list with the registered commands."""
        bot_token, application_id = self.config.require_application_credentials()
        registration = self.config.command_registration
        async with DiscordRestClient(bot_token=bot_token) as rest:
            await sync_commands(
                rest,
                application_id=application_id,
                commands=self.commands.convert_commands(),
                scope=registration.scope,
                guild_ids=registration.guild_ids,
                logger=self._logger,
            )

    def start(self) -> None:
        """Serve the webhook app with uvicorn until interrupted."""
        app = self.create_app()
        self._logger.info(
            "Serving interactions on http://%s:%d", self.config.host, self.config.port
        )
        uvicorn.run(app, host=self.config.host, port=self.config.port)
