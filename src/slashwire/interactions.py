from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .constants import (
    INTERACTION_APPLICATION_COMMAND,
    INTERACTION_AUTOCOMPLETE,
    INTERACTION_MESSAGE_COMPONENT,
    INTERACTION_MODAL_SUBMIT,
    INTERACTION_PING,
)
from .errors import InteractionParseError

ROUTABLE_INTERACTION_TYPES = frozenset(
    {
        INTERACTION_APPLICATION_COMMAND,
        INTERACTION_MESSAGE_COMPONENT,
        INTERACTION_AUTOCOMPLETE,
        INTERACTION_MODAL_SUBMIT,
    }
)
KNOWN_INTERACTION_TYPES = ROUTABLE_INTERACTION_TYPES | {INTERACTION_PING}

Entity = dict[str, Any]
EntityMap = dict[str, Entity]


def _as_id(value: object) -> str | None:
    if value is None:
        return None
    token = str(value).strip()
    return token or None


def _as_int(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return None


def _as_dict(value: object) -> Optional[dict[str, Any]]:
    return value if isinstance(value, dict) else None


@dataclass(frozen=True)
class InteractionOption:
    name: str
    option_type: int
    value: Any = None
    options: Optional[tuple["InteractionOption", ...]] = None
    focused: bool = False


@dataclass(frozen=True)
class ResolvedData:
    """Entities Discord resolved from ids referenced by the interaction.

    A map is `None` when Discord did not send it, which is distinct from an
    empty map.
    """

    users: Optional[EntityMap] = None
    members: Optional[EntityMap] = None
    roles: Optional[EntityMap] = None
    channels: Optional[EntityMap] = None
    messages: Optional[EntityMap] = None
    attachments: Optional[EntityMap] = None


@dataclass(frozen=True)
class InteractionData:
    id: Optional[str] = None
    name: Optional[str] = None
    command_type: Optional[int] = None
    resolved: Optional[ResolvedData] = None
    options: Optional[tuple[InteractionOption, ...]] = None
    custom_id: Optional[str] = None
    component_type: Optional[int] = None
    values: Optional[tuple[str, ...]] = None
    target_id: Optional[str] = None
    components: Optional[tuple[dict[str, Any], ...]] = None


@dataclass(frozen=True)
class Interaction:
    id: str
    application_id: str
    interaction_type: int
    token: str
    data: Optional[InteractionData] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    channel: Optional[Entity] = None
    member: Optional[Entity] = None
    user: Optional[Entity] = None
    version: int = 1
    message: Optional[Entity] = None
    app_permissions: Optional[str] = None
    locale: Optional[str] = None
    guild_locale: Optional[str] = None
    entitlements: tuple[Entity, ...] = ()
    authorizing_integration_owners: dict[str, Any] = field(default_factory=dict)
    context: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def is_routable(self) -> bool:
        return self.interaction_type in ROUTABLE_INTERACTION_TYPES


class OptionValueKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    USER = "user"
    CHANNEL = "channel"
    ROLE = "role"
    NUMBER = "number"
    ATTACHMENT = "attachment"
    OTHER = "other"


@dataclass(frozen=True)
class OptionValue:
    """A command argument value; exactly one kind per value.

    `OTHER` carries the raw JSON value of option types the library does not
    model, compared by plain equality.
    """

    kind: OptionValueKind
    value: Any

    @classmethod
    def string(cls, value: str) -> "OptionValue":
        return cls(OptionValueKind.STRING, value)

    @classmethod
    def integer(cls, value: int) -> "OptionValue":
        return cls(OptionValueKind.INTEGER, value)

    @classmethod
    def boolean(cls, value: bool) -> "OptionValue":
        return cls(OptionValueKind.BOOLEAN, value)

    @classmethod
    def number(cls, value: float) -> "OptionValue":
        return cls(OptionValueKind.NUMBER, value)

    @classmethod
    def user(cls, value: Entity) -> "OptionValue":
        return cls(OptionValueKind.USER, value)

    @classmethod
    def channel(cls, value: Entity) -> "OptionValue":
        return cls(OptionValueKind.CHANNEL, value)

    @classmethod
    def role(cls, value: Entity) -> "OptionValue":
        return cls(OptionValueKind.ROLE, value)

    @classmethod
    def attachment(cls, value: Entity) -> "OptionValue":
        return cls(OptionValueKind.ATTACHMENT, value)

    @classmethod
    def other(cls, value: Any) -> "OptionValue":
        return cls(OptionValueKind.OTHER, value)

    def _get(self, kind: OptionValueKind) -> Any:
        return self.value if self.kind is kind else None

    def as_string(self) -> Optional[str]:
        return self._get(OptionValueKind.STRING)

    def as_int(self) -> Optional[int]:
        return self._get(OptionValueKind.INTEGER)

    def as_float(self) -> Optional[float]:
        return self._get(OptionValueKind.NUMBER)

    def as_bool(self) -> Optional[bool]:
        return self._get(OptionValueKind.BOOLEAN)

    def as_user(self) -> Optional[Entity]:
        return self._get(OptionValueKind.USER)

    def as_channel(self) -> Optional[Entity]:
        return self._get(OptionValueKind.CHANNEL)

    def as_role(self) -> Optional[Entity]:
        return self._get(OptionValueKind.ROLE)

    def as_attachment(self) -> Optional[Entity]:
        return self._get(OptionValueKind.ATTACHMENT)

    def __str__(self) -> str:
        if self.kind is OptionValueKind.STRING:
            return f'"{self.value}"'
        if self.kind is OptionValueKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind in (
            OptionValueKind.USER,
            OptionValueKind.CHANNEL,
            OptionValueKind.ROLE,
        ):
            return f'"{self.value.get("id")}"'
        if self.kind is OptionValueKind.ATTACHMENT:
            return str(self.value.get("url", ""))
        return str(self.value)


def _parse_entity_map(value: object, label: str) -> Optional[EntityMap]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InteractionParseError(f"resolved.{label} must be an object")
    parsed: EntityMap = {}
    for key, entity in value.items():
        if isinstance(entity, dict):
            parsed[str(key)] = entity
    return parsed


def parse_resolved_data(value: object) -> Optional[ResolvedData]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InteractionParseError("resolved must be an object")
    return ResolvedData(
        users=_parse_entity_map(value.get("users"), "users"),
        members=_parse_entity_map(value.get("members"), "members"),
        roles=_parse_entity_map(value.get("roles"), "roles"),
        channels=_parse_entity_map(value.get("channels"), "channels"),
        messages=_parse_entity_map(value.get("messages"), "messages"),
        attachments=_parse_entity_map(value.get("attachments"), "attachments"),
    )


def parse_option(value: object) -> InteractionOption:
    if not isinstance(value, dict):
        raise InteractionParseError("option must be an object")
    name = value.get("name")
    if not isinstance(name, str) or not name:
        raise InteractionParseError("option is missing a name")
    option_type = _as_int(value.get("type"))
    if option_type is None:
        raise InteractionParseError(f"option {name} is missing a type")
    nested = value.get("options")
    return InteractionOption(
        name=name,
        option_type=option_type,
        value=value.get("value"),
        options=parse_options(nested) if nested is not None else None,
        focused=bool(value.get("focused", False)),
    )


def parse_options(value: object) -> tuple[InteractionOption, ...]:
    if not isinstance(value, list):
        raise InteractionParseError("options must be a list")
    return tuple(parse_option(item) for item in value)


def parse_interaction_data(value: object) -> Optional[InteractionData]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InteractionParseError("data must be an object")
    options = value.get("options")
    values = value.get("values")
    components = value.get("components")
    name = value.get("name")
    custom_id = value.get("custom_id")
    return InteractionData(
        id=_as_id(value.get("id")),
        name=name if isinstance(name, str) else None,
        command_type=_as_int(value.get("type")),
        resolved=parse_resolved_data(value.get("resolved")),
        options=parse_options(options) if options is not None else None,
        custom_id=custom_id if isinstance(custom_id, str) else None,
        component_type=_as_int(value.get("component_type")),
        values=(
            tuple(str(item) for item in values) if isinstance(values, list) else None
        ),
        target_id=_as_id(value.get("target_id")),
        components=(
            tuple(item for item in components if isinstance(item, dict))
            if isinstance(components, list)
            else None
        ),
    )


def parse_interaction(payload: object) -> Interaction:
    """Parse a decoded interaction request body.

    Unknown interaction types are accepted so the web transport can answer
    them itself.
    """
    if not isinstance(payload, dict):
        raise InteractionParseError("interaction payload must be an object")
    interaction_type = _as_int(payload.get("type"))
    if interaction_type is None:
        raise InteractionParseError("interaction is missing a type")
    interaction_id = _as_id(payload.get("id"))
    application_id = _as_id(payload.get("application_id"))
    token = payload.get("token")
    if interaction_type != INTERACTION_PING:
        if not interaction_id:
            raise InteractionParseError("interaction is missing an id")
        if not application_id:
            raise InteractionParseError("interaction is missing an application_id")
        if not isinstance(token, str) or not token:
            raise InteractionParseError("interaction is missing a token")
    entitlements = payload.get("entitlements")
    owners = payload.get("authorizing_integration_owners")
    permissions = payload.get("app_permissions")
    locale = payload.get("locale")
    guild_locale = payload.get("guild_locale")
    return Interaction(
        id=interaction_id or "",
        application_id=application_id or "",
        interaction_type=interaction_type,
        token=token if isinstance(token, str) else "",
        data=parse_interaction_data(payload.get("data")),
        guild_id=_as_id(payload.get("guild_id")),
        channel_id=_as_id(payload.get("channel_id")),
        channel=_as_dict(payload.get("channel")),
        member=_as_dict(payload.get("member")),
        user=_as_dict(payload.get("user")),
        version=_as_int(payload.get("version")) or 1,
        message=_as_dict(payload.get("message")),
        app_permissions=str(permissions) if permissions is not None else None,
        locale=locale if isinstance(locale, str) else None,
        guild_locale=guild_locale if isinstance(guild_locale, str) else None,
        entitlements=(
            tuple(item for item in entitlements if isinstance(item, dict))
            if isinstance(entitlements, list)
            else ()
        ),
        authorizing_integration_owners=owners if isinstance(owners, dict) else {},
        context=_as_int(payload.get("context")),
        raw=payload,
    )


def extract_user_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    member = interaction_payload.get("member")
    if isinstance(member, dict):
        member_user = member.get("user")
        if isinstance(member_user, dict):
            user_id = _as_id(member_user.get("id"))
            if user_id:
                return user_id
    user = interaction_payload.get("user")
    if isinstance(user, dict):
        return _as_id(user.get("id"))
    return None


def split_custom_id(custom_id: str) -> Optional[tuple[str, str]]:
    """Split `handler/remainder` on the first `/`; `None` when there is none."""
    name, sep, remainder = custom_id.partition("/")
    if not sep:
        return None
    return name, remainder
