"""Handler-facing responders.

Primary responses go through the interaction's `ResponseChannel`; each one
returns only after the dispatcher has taken the reply and closed the
channel. Follow-up operations call the interaction webhook over REST.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from .channel import ResponseChannel, ResponseChannelClosed
from .constants import MESSAGE_FLAG_EPHEMERAL
from .errors import EventAlreadyAcknowledgedError, InteractionAlreadyRespondedError
from .responses import (
    AutocompleteChoice,
    AutocompleteResult,
    CommandResponse,
    DeferMessage,
    DeferUpdate,
    LaunchActivity,
    MessageLike,
    MessageResponse,
    Modal,
    OpenModal,
    SendMessage,
    UpdateMessage,
)
from .rest import DiscordRestClient

ChoiceLike = Union[AutocompleteChoice, dict[str, Any]]


def _coerce_choice(choice: ChoiceLike) -> AutocompleteChoice:
    if isinstance(choice, AutocompleteChoice):
        return choice
    return AutocompleteChoice(
        name=str(choice["name"]),
        value=choice["value"],
        name_localizations=choice.get("name_localizations"),
    )


class CommandResponder:
    def __init__(
        self,
        channel: ResponseChannel[CommandResponse],
        *,
        application_id: str,
        token: str,
        rest: DiscordRestClient,
    ) -> None:
        self._channel = channel
        self.application_id = application_id
        self.token = token
        self.rest = rest

    @property
    def responded(self) -> bool:
        return self._channel.is_closed()

    async def _respond(self, response: CommandResponse) -> None:
        try:
            self._channel.send(response)
        except ResponseChannelClosed as exc:
            raise InteractionAlreadyRespondedError() from exc
        await self._channel.closed()

    def _webhook_path(self, message_id: Optional[str] = None) -> str:
        path = f"/webhooks/{self.application_id}/{self.token}"
        if message_id is not None:
            path = f"{path}/messages/{message_id}"
        return path

    async def closed(self) -> None:
        """Wait until the primary response was handed to the web transport."""
        await self._channel.closed()

    async def send_message(self, message: MessageLike) -> Optional[dict[str, Any]]:
        """Respond with a message, or send a follow-up if already responded.

        Returns the created message only in the follow-up case.
        """
        body = MessageResponse.coerce(message)
        try:
            await self._respond(SendMessage(body))
        except InteractionAlreadyRespondedError:
            return await self.send_followup_message(body)
        return None

    async def update_message(self, message: MessageLike) -> Optional[dict[str, Any]]:
        """Edit the component's message, or the original response if already responded."""
        body = MessageResponse.coerce(message)
        try:
            await self._respond(UpdateMessage(body))
        except InteractionAlreadyRespondedError:
            return await self.edit_original_message(body)
        return None

    async def defer(self, ephemeral: bool = False) -> None:
        await self._respond(DeferMessage(flags=MESSAGE_FLAG_EPHEMERAL if ephemeral else 0))

    async def defer_update(self) -> None:
        await self._respond(DeferUpdate())

    async def autocomplete(self, choices: Iterable[ChoiceLike]) -> None:
        await self._respond(
            AutocompleteResult(tuple(_coerce_choice(choice) for choice in choices))
        )

    async def open_modal(self, modal: Modal) -> None:
        await self._respond(OpenModal(modal))

    async def launch_activity(self) -> None:
        await self._respond(LaunchActivity())

    async def _send_webhook_message(
        self, method: str, path: str, message: MessageLike
    ) -> dict[str, Any]:
        body = MessageResponse.coerce(message)
        payload = body.to_dict()
        if body.files:
            if method == "POST":
                result = await self.rest.post_files(
                    path, payload, body.files, authenticated=False
                )
            else:
                result = await self.rest.patch_files(
                    path, payload, body.files, authenticated=False
                )
        elif method == "POST":
            result = await self.rest.post(path, payload, authenticated=False)
        else:
            result = await self.rest.patch(path, payload, authenticated=False)
        return result if isinstance(result, dict) else {}

    async def send_followup_message(self, message: MessageLike) -> dict[str, Any]:
        return await self._send_webhook_message("POST", self._webhook_path(), message)

    async def edit_followup_message(
        self, message_id: str, message: MessageLike
    ) -> dict[str, Any]:
        return await self._send_webhook_message(
            "PATCH", self._webhook_path(message_id), message
        )

    async def edit_original_message(self, message: MessageLike) -> dict[str, Any]:
        return await self.edit_followup_message("@original", message)

    async def get_followup_message(self, message_id: str) -> dict[str, Any]:
        result = await self.rest.get(
            self._webhook_path(message_id), authenticated=False
        )
        return result if isinstance(result, dict) else {}

    async def get_original_message(self) -> dict[str, Any]:
        return await self.get_followup_message("@original")

    async def delete_followup_message(self, message_id: str) -> None:
        await self.rest.delete(self._webhook_path(message_id), authenticated=False)

    async def delete_original_message(self) -> None:
        await self.delete_followup_message("@original")


class EventResponder:
    def __init__(self, channel: ResponseChannel[None]) -> None:
        self._channel = channel

    async def ack(self) -> None:
        try:
            self._channel.send(None)
        except ResponseChannelClosed as exc:
            raise EventAlreadyAcknowledgedError() from exc
        await self._channel.closed()
