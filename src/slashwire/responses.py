"""Response bodies and the interaction callback envelope."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from .constants import (
    CALLBACK_AUTOCOMPLETE_RESULT,
    CALLBACK_CHANNEL_MESSAGE_WITH_SOURCE,
    CALLBACK_DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
    CALLBACK_DEFERRED_UPDATE_MESSAGE,
    CALLBACK_LAUNCH_ACTIVITY,
    CALLBACK_MODAL,
    CALLBACK_UPDATE_MESSAGE,
    DISCORD_MAX_AUTOCOMPLETE_CHOICES,
    MESSAGE_FLAG_EPHEMERAL,
)


@dataclass(frozen=True)
class File:
    filename: str
    data: bytes
    description: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class MessageResponse:
    """Message body for primary responses and follow-ups.

    `ephemeral` is folded into `flags` on the wire. `files` never appear in
    the JSON body; they travel as multipart parts.
    """

    content: Optional[str] = None
    tts: Optional[bool] = None
    ephemeral: bool = False
    flags: Optional[int] = None
    embeds: Optional[tuple[dict[str, Any], ...]] = None
    components: Optional[tuple[dict[str, Any], ...]] = None
    attachments: Optional[tuple[dict[str, Any], ...]] = None
    allowed_mentions: Optional[dict[str, Any]] = None
    poll: Optional[dict[str, Any]] = None
    files: tuple[File, ...] = ()

    @classmethod
    def coerce(cls, value: "MessageLike") -> "MessageResponse":
        if isinstance(value, MessageResponse):
            return value
        if isinstance(value, str):
            return cls(content=value)
        if isinstance(value, dict):
            return cls(embeds=(value,))
        if isinstance(value, (list, tuple)):
            return cls(components=tuple(value))
        raise TypeError(f"cannot build a message from {type(value).__name__}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessageResponse":
        flags = data.get("flags")
        ephemeral = isinstance(flags, int) and bool(flags & MESSAGE_FLAG_EPHEMERAL)
        if isinstance(flags, int) and ephemeral:
            flags = flags & ~MESSAGE_FLAG_EPHEMERAL or None

        def _tuple(key: str) -> Optional[tuple[dict[str, Any], ...]]:
            items = data.get(key)
            return tuple(items) if isinstance(items, list) else None

        return cls(
            content=data.get("content"),
            tts=data.get("tts"),
            ephemeral=ephemeral,
            flags=flags if isinstance(flags, int) else None,
            embeds=_tuple("embeds"),
            components=_tuple("components"),
            attachments=_tuple("attachments"),
            allowed_mentions=data.get("allowed_mentions"),
            poll=data.get("poll"),
        )

    def set_content(self, content: Any) -> "MessageResponse":
        return replace(self, content=str(content))

    def set_tts(self, tts: bool) -> "MessageResponse":
        return replace(self, tts=tts)

    def set_ephemeral(self, ephemeral: bool) -> "MessageResponse":
        return replace(self, ephemeral=ephemeral)

    def set_flags(self, flags: int) -> "MessageResponse":
        return replace(self, flags=flags)

    def add_embed(self, embed: dict[str, Any]) -> "MessageResponse":
        return replace(self, embeds=(*(self.embeds or ()), embed))

    def set_components(self, components: list[dict[str, Any]]) -> "MessageResponse":
        return replace(self, components=tuple(components))

    def set_allowed_mentions(self, allowed_mentions: dict[str, Any]) -> "MessageResponse":
        return replace(self, allowed_mentions=allowed_mentions)

    def set_poll(self, poll: dict[str, Any]) -> "MessageResponse":
        return replace(self, poll=poll)

    def add_file(self, file: File) -> "MessageResponse":
        return replace(self, files=(*self.files, file))

    def keep_attachment(self, attachment_id: Any) -> "MessageResponse":
        keep = {"id": str(attachment_id)}
        return replace(self, attachments=(*(self.attachments or ()), keep))

    def wire_flags(self) -> Optional[int]:
        if self.ephemeral:
            return (self.flags or 0) | MESSAGE_FLAG_EPHEMERAL
        return self.flags

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.content is not None:
            body["content"] = self.content
        if self.tts is not None:
            body["tts"] = self.tts
        flags = self.wire_flags()
        if flags is not None:
            body["flags"] = flags
        if self.embeds is not None:
            body["embeds"] = list(self.embeds)
        if self.components is not None:
            body["components"] = list(self.components)
        if self.attachments is not None:
            body["attachments"] = list(self.attachments)
        if self.allowed_mentions is not None:
            body["allowed_mentions"] = self.allowed_mentions
        if self.poll is not None:
            body["poll"] = self.poll
        return body


MessageLike = Union[MessageResponse, str, dict[str, Any], list[dict[str, Any]]]


@dataclass(frozen=True)
class Modal:
    custom_id: str
    title: str
    components: tuple[dict[str, Any], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "custom_id": self.custom_id,
            "title": self.title,
            "components": list(self.components),
        }


@dataclass(frozen=True)
class AutocompleteChoice:
    name: str
    value: Union[str, int, float]
    name_localizations: Optional[dict[str, str]] = None

    def to_dict(self) -> dict[str, Any]:
        choice: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.name_localizations:
            choice["name_localizations"] = self.name_localizations
        return choice


@dataclass(frozen=True)
class DeferMessage:
    flags: int = 0


@dataclass(frozen=True)
class SendMessage:
    message: MessageResponse


@dataclass(frozen=True)
class DeferUpdate:
    pass


@dataclass(frozen=True)
class UpdateMessage:
    message: MessageResponse


@dataclass(frozen=True)
class AutocompleteResult:
    choices: tuple[AutocompleteChoice, ...]


@dataclass(frozen=True)
class OpenModal:
    modal: Modal


@dataclass(frozen=True)
class LaunchActivity:
    pass


CommandResponse = Union[
    DeferMessage,
    SendMessage,
    DeferUpdate,
    UpdateMessage,
    AutocompleteResult,
    OpenModal,
    LaunchActivity,
]


@dataclass(frozen=True)
class InteractionCallback:
    response_type: int
    data: Optional[dict[str, Any]] = None
    files: tuple[File, ...] = field(default=(), compare=False)

    def to_dict(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {"type": self.response_type}
        if self.data is not None:
            envelope["data"] = self.data
        return envelope


def _message_callback(response_type: int, message: MessageResponse) -> InteractionCallback:
    return InteractionCallback(
        response_type=response_type,
        data=message.to_dict(),
        files=message.files,
    )


def build_callback(response: CommandResponse) -> InteractionCallback:
    """Convert a handler's primary response into the callback envelope."""
    if isinstance(response, DeferMessage):
        return InteractionCallback(
            response_type=CALLBACK_DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
            data={"flags": response.flags} if response.flags else None,
        )
    if isinstance(response, SendMessage):
        return _message_callback(
            CALLBACK_CHANNEL_MESSAGE_WITH_SOURCE, response.message
        )
    if isinstance(response, DeferUpdate):
        return InteractionCallback(response_type=CALLBACK_DEFERRED_UPDATE_MESSAGE)
    if isinstance(response, UpdateMessage):
        return _message_callback(CALLBACK_UPDATE_MESSAGE, response.message)
    if isinstance(response, AutocompleteResult):
        choices = response.choices[:DISCORD_MAX_AUTOCOMPLETE_CHOICES]
        return InteractionCallback(
            response_type=CALLBACK_AUTOCOMPLETE_RESULT,
            data={"choices": [choice.to_dict() for choice in choices]},
        )
    if isinstance(response, OpenModal):
        return InteractionCallback(
            response_type=CALLBACK_MODAL, data=response.modal.to_dict()
        )
    if isinstance(response, LaunchActivity):
        return InteractionCallback(response_type=CALLBACK_LAUNCH_ACTIVITY)
    raise TypeError(f"unsupported response {type(response).__name__}")


def attach_file_descriptors(
    data: Optional[dict[str, Any]], files: tuple[File, ...]
) -> dict[str, Any]:
    """Return a copy of `data` whose attachments reference `files[n]` parts."""
    body = dict(data or {})
    attachments = list(body.get("attachments") or [])
    for index, file in enumerate(files):
        descriptor: dict[str, Any] = {"id": index, "filename": file.filename}
        if file.description:
            descriptor["description"] = file.description
        attachments.append(descriptor)
    body["attachments"] = attachments
    return body
