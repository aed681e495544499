"""Build the per-invocation `CommandInput` from a parsed interaction.

Every walk here is a pure function over the payload; any inconsistency
fails the whole request with an `InputBuildError` subclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

from .constants import (
    ATTACHMENT,
    BOOLEAN,
    CHANNEL,
    COMMAND_CHAT_INPUT,
    COMMAND_MESSAGE,
    COMMAND_USER,
    COMPONENT_ACTION_ROW,
    COMPONENT_BUTTON,
    COMPONENT_CHANNEL_SELECT,
    COMPONENT_LABEL,
    COMPONENT_MENTIONABLE_SELECT,
    COMPONENT_ROLE_SELECT,
    COMPONENT_STRING_SELECT,
    COMPONENT_TEXT_INPUT,
    COMPONENT_USER_SELECT,
    INTEGER,
    INTERACTION_APPLICATION_COMMAND,
    INTERACTION_AUTOCOMPLETE,
    INTERACTION_MESSAGE_COMPONENT,
    INTERACTION_MODAL_SUBMIT,
    MENTIONABLE,
    NUMBER,
    ROLE,
    STRING,
    SUB_COMMAND,
    SUB_COMMAND_GROUP,
    USER,
)
from .errors import (
    InputBuildError,
    MissingResolvedError,
    OptionValueError,
    UnresolvedEntityError,
)
from .interactions import (
    Entity,
    EntityMap,
    Interaction,
    InteractionOption,
    OptionValue,
    ResolvedData,
)

if TYPE_CHECKING:
    from .rest import DiscordRestClient


@dataclass
class CommandInput:
    """Values passed to a command handler.

    `custom_id` holds the part of the component custom_id after the handler
    name. `resolved` is not set for context menu commands; see the
    `target_*` fields instead.
    """

    interaction_type: int
    command: str
    user: Entity
    locale: str
    command_type: Optional[int] = None
    component_type: Optional[int] = None
    subcommand_group: Optional[str] = None
    subcommand: Optional[str] = None
    custom_id: Optional[str] = None
    args: dict[str, OptionValue] = field(default_factory=dict)
    resolved: Optional[ResolvedData] = None
    values: Optional[list[str]] = None
    resolved_values: Optional[list[OptionValue]] = None
    focused: Optional[str] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    channel: Optional[Entity] = None
    member: Optional[Entity] = None
    message: Optional[Entity] = None
    target_user: Optional[Entity] = None
    target_member: Optional[Entity] = None
    target_message: Optional[Entity] = None
    app_permissions: Optional[str] = None
    guild_locale: Optional[str] = None
    entitlements: tuple[Entity, ...] = ()
    context: Optional[int] = None
    authorizing_integration_owners: dict[str, Any] = field(default_factory=dict)
    rest: Optional["DiscordRestClient"] = field(default=None, repr=False)

    def is_command(self) -> bool:
        return self.interaction_type == INTERACTION_APPLICATION_COMMAND

    def is_chat_input(self) -> bool:
        return self.command_type == COMMAND_CHAT_INPUT

    def is_user_context(self) -> bool:
        return self.command_type == COMMAND_USER

    def is_message_context(self) -> bool:
        return self.command_type == COMMAND_MESSAGE

    def is_component(self) -> bool:
        return self.interaction_type == INTERACTION_MESSAGE_COMPONENT

    def is_button(self) -> bool:
        return self.component_type == COMPONENT_BUTTON

    def is_string_select(self) -> bool:
        return self.component_type == COMPONENT_STRING_SELECT

    def is_user_select(self) -> bool:
        return self.component_type == COMPONENT_USER_SELECT

    def is_role_select(self) -> bool:
        return self.component_type == COMPONENT_ROLE_SELECT

    def is_mentionable_select(self) -> bool:
        return self.component_type == COMPONENT_MENTIONABLE_SELECT

    def is_channel_select(self) -> bool:
        return self.component_type == COMPONENT_CHANNEL_SELECT

    def is_autocomplete(self) -> bool:
        return self.interaction_type == INTERACTION_AUTOCOMPLETE

    def is_modal_submit(self) -> bool:
        return self.interaction_type == INTERACTION_MODAL_SUBMIT


# (label, resolved map attribute, entity noun)
_REFERENCE_OPTIONS = {
    USER: ("User", "users", "user"),
    CHANNEL: ("Channel", "channels", "channel"),
    ROLE: ("Role", "roles", "role"),
    ATTACHMENT: ("Attachment", "attachments", "attachment"),
}

_SELECT_MAPS = {
    COMPONENT_USER_SELECT: ("User", "users", "user"),
    COMPONENT_ROLE_SELECT: ("Role", "roles", "role"),
    COMPONENT_CHANNEL_SELECT: ("Channel", "channels", "channel"),
}

_ENTITY_VALUE = {
    "users": OptionValue.user,
    "roles": OptionValue.role,
    "channels": OptionValue.channel,
    "attachments": OptionValue.attachment,
}


def _lookup(
    resolved: Optional[ResolvedData],
    attr: str,
    entity_id: str,
    *,
    label: str,
    noun: str,
    source: str,
) -> Entity:
    if resolved is None:
        raise MissingResolvedError(f"{label} {source} provided but no resolved object")
    entities: Optional[EntityMap] = getattr(resolved, attr)
    if entities is None:
        raise MissingResolvedError(
            f"{label} {source} provided but no resolved {attr} object"
        )
    entity = entities.get(entity_id)
    if entity is None:
        raise UnresolvedEntityError(
            f"{label} {source} provided but no matching resolved {noun} found"
        )
    return entity


def _scalar(option: InteractionOption) -> OptionValue:
    value = option.value
    if option.option_type == STRING:
        if value is None:
            raise OptionValueError("String option has no value")
        if not isinstance(value, str):
            raise OptionValueError("String option value is not a string")
        return OptionValue.string(value)
    if option.option_type == INTEGER:
        if value is None:
            raise OptionValueError("Integer option has no value")
        if isinstance(value, bool) or not isinstance(value, int):
            raise OptionValueError("Integer option value is not an integer")
        return OptionValue.integer(value)
    if option.option_type == BOOLEAN:
        if value is None:
            raise OptionValueError("Boolean option has no value")
        if not isinstance(value, bool):
            raise OptionValueError("Boolean option value is not a boolean")
        return OptionValue.boolean(value)
    if value is None:
        raise OptionValueError("Number option has no value")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OptionValueError("Number option value is not a number")
    return OptionValue.number(float(value))


def _reference_id(option: InteractionOption, label: str, noun: str) -> str:
    if option.value is None:
        raise OptionValueError(f"{label} option has no value")
    if not isinstance(option.value, str):
        raise OptionValueError(
            f"{label} option value is not a string ({noun} id)"
        )
    return option.value


def parse_mentionable(
    resolved: Optional[ResolvedData], entity_id: str, *, source: str = "option"
) -> OptionValue:
    """Resolve a user-or-role id; users are checked before roles."""
    if resolved is None:
        raise MissingResolvedError(
            f"Mentionable {source} provided but no resolved object"
        )
    if resolved.users is not None and entity_id in resolved.users:
        return OptionValue.user(resolved.users[entity_id])
    if resolved.roles is not None and entity_id in resolved.roles:
        return OptionValue.role(resolved.roles[entity_id])
    raise UnresolvedEntityError(
        f"Mentionable {source} provided but no matching resolved user or role found"
    )


def parse_options(
    options: Iterable[InteractionOption],
    resolved: Optional[ResolvedData],
    command_input: CommandInput,
    *,
    parent: Optional[int] = None,
) -> None:
    """Walk `options` into `command_input`.

    Valid nesting is group, then subcommand, then leaf options; groups only
    appear at the top level and subcommands only at the top level or in a group.
    """
    for option in options:
        kind = option.option_type
        if parent == SUB_COMMAND_GROUP and kind != SUB_COMMAND:
            raise InputBuildError(
                f"Subcommand group {command_input.subcommand_group} may only contain subcommands"
            )
        if kind == SUB_COMMAND_GROUP:
            if parent is not None:
                raise InputBuildError(
                    f"Subcommand group {option.name} is nested below the top level"
                )
            command_input.subcommand_group = option.name
            if option.options is None:
                raise InputBuildError("Subcommand group has no subcommands")
            parse_options(option.options, resolved, command_input, parent=kind)
            return
        if kind == SUB_COMMAND:
            if parent == SUB_COMMAND:
                raise InputBuildError(
                    f"Subcommand {option.name} is nested inside subcommand "
                    f"{command_input.subcommand}"
                )
            command_input.subcommand = option.name
            if option.options is not None:
                parse_options(option.options, resolved, command_input, parent=kind)
            return

        if kind in (STRING, INTEGER, BOOLEAN, NUMBER):
            value = _scalar(option)
        elif kind in _REFERENCE_OPTIONS:
            label, attr, noun = _REFERENCE_OPTIONS[kind]
            entity_id = _reference_id(option, label, noun)
            entity = _lookup(
                resolved, attr, entity_id, label=label, noun=noun, source="option"
            )
            value = _ENTITY_VALUE[attr](entity)
        elif kind == MENTIONABLE:
            if resolved is None:
                raise MissingResolvedError(
                    "Mentionable option provided but no resolved object"
                )
            entity_id = _reference_id(option, "Mentionable", "user or role")
            value = parse_mentionable(resolved, entity_id)
        else:
            value = OptionValue.other(option.value)

        if option.focused and command_input.focused is None:
            command_input.focused = option.name
        command_input.args[option.name] = value


def parse_select_values(
    values: Iterable[str],
    resolved: Optional[ResolvedData],
    command_input: CommandInput,
) -> None:
    values = list(values)
    component_type = command_input.component_type
    resolved_values: list[OptionValue] = []
    if component_type in _SELECT_MAPS:
        label, attr, noun = _SELECT_MAPS[component_type]
        for value in values:
            entity = _lookup(
                resolved, attr, value, label=label, noun=noun, source="select"
            )
            resolved_values.append(_ENTITY_VALUE[attr](entity))
    elif component_type == COMPONENT_MENTIONABLE_SELECT:
        for value in values:
            resolved_values.append(parse_mentionable(resolved, value, source="select"))
    command_input.values = values
    command_input.resolved_values = resolved_values


def parse_component_values(
    components: Iterable[dict[str, Any]], command_input: CommandInput
) -> None:
    """Walk a submitted modal tree and collect text input values into args."""
    for component in components:
        component_type = component.get("type")
        if component_type == COMPONENT_ACTION_ROW:
            children = component.get("components")
            if isinstance(children, list):
                parse_component_values(
                    [child for child in children if isinstance(child, dict)],
                    command_input,
                )
        elif component_type == COMPONENT_LABEL:
            child = component.get("component")
            if isinstance(child, dict):
                parse_component_values([child], command_input)
        elif component_type == COMPONENT_TEXT_INPUT:
            custom_id = component.get("custom_id")
            if not isinstance(custom_id, str):
                continue
            value = component.get("value")
            command_input.args[custom_id] = OptionValue.string(
                value if isinstance(value, str) else ""
            )


def parse_resolved(
    resolved: Optional[ResolvedData],
    target_id: Optional[str],
    command_input: CommandInput,
) -> None:
    if command_input.command_type == COMMAND_USER:
        if target_id is None:
            raise InputBuildError("User context menu command has no target")
        if resolved is None:
            raise MissingResolvedError("User context menu command has no resolved")
        if resolved.users is None:
            raise MissingResolvedError(
                "User context menu command has no resolved users"
            )
        users = dict(resolved.users)
        user = users.pop(target_id, None)
        if user is None:
            raise UnresolvedEntityError(
                "User context menu command has no matching resolved user"
            )
        command_input.target_user = user
        if resolved.members is not None:
            members = dict(resolved.members)
            command_input.target_member = members.pop(target_id, None)
    elif command_input.command_type == COMMAND_MESSAGE:
        if target_id is None:
            raise InputBuildError("Message context menu command has no target")
        if resolved is None:
            raise MissingResolvedError("Message context menu command has no resolved")
        if resolved.messages is None:
            raise MissingResolvedError(
                "Message context menu command has no resolved messages"
            )
        messages = dict(resolved.messages)
        message = messages.pop(target_id, None)
        if message is None:
            raise UnresolvedEntityError(
                "Message context menu command has no matching resolved message"
            )
        command_input.target_message = message
    else:
        command_input.resolved = resolved


def parse_user(user: Optional[Entity], member: Optional[Entity]) -> Entity:
    if member is not None:
        member_user = member.get("user")
        if not isinstance(member_user, dict):
            raise InputBuildError("No user object in member object")
        return member_user
    if user is None:
        raise InputBuildError("No member or user provided")
    return user


def build_command_input(
    interaction: Interaction,
    command: str,
    *,
    custom_id: Optional[str] = None,
    rest: Optional["DiscordRestClient"] = None,
) -> CommandInput:
    data = interaction.data
    if data is None:
        raise InputBuildError("Interaction has no data")
    if interaction.locale is None:
        raise InputBuildError("Interaction didn't include a locale")

    command_input = CommandInput(
        interaction_type=interaction.interaction_type,
        command=command,
        user=parse_user(interaction.user, interaction.member),
        locale=interaction.locale,
        command_type=data.command_type,
        component_type=data.component_type,
        custom_id=custom_id,
        guild_id=interaction.guild_id,
        channel_id=interaction.channel_id,
        channel=interaction.channel,
        member=interaction.member,
        message=interaction.message,
        app_permissions=interaction.app_permissions,
        guild_locale=interaction.guild_locale,
        entitlements=interaction.entitlements,
        context=interaction.context,
        authorizing_integration_owners=interaction.authorizing_integration_owners,
        rest=rest,
    )

    if data.options is not None:
        parse_options(data.options, data.resolved, command_input)
    if data.components is not None:
        parse_component_values(data.components, command_input)
    if data.values is not None:
        parse_select_values(data.values, data.resolved, command_input)
    parse_resolved(data.resolved, data.target_id, command_input)
    return command_input
