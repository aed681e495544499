from __future__ import annotations

import pytest

from slashwire.errors import (
    InputBuildError,
    MissingResolvedError,
    OptionValueError,
    UnresolvedEntityError,
)
from slashwire.inputs import (
    CommandInput,
    build_command_input,
    parse_component_values,
    parse_mentionable,
    parse_user,
)
from slashwire.interactions import (
    OptionValue,
    OptionValueKind,
    ResolvedData,
    parse_interaction,
    split_custom_id,
)


def _build(payload: dict, command: str = "ping", **kwargs) -> CommandInput:
    return build_command_input(parse_interaction(payload), command, **kwargs)


def test_subcommand_group_path_resolution(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "id": "cmd-1",
            "name": "cfg",
            "type": 1,
            "options": [
                {
                    "type": 2,
                    "name": "g",
                    "options": [
                        {
                            "type": 1,
                            "name": "s",
                            "options": [{"type": 3, "name": "x", "value": "hi"}],
                        }
                    ],
                }
            ],
        }
    )

    command_input = _build(payload, "cfg")

    assert command_input.subcommand_group == "g"
    assert command_input.subcommand == "s"
    assert command_input.args == {"x": OptionValue.string("hi")}
    assert command_input.is_command()
    assert command_input.is_chat_input()


def test_subcommand_without_options_is_allowed(interaction_payload) -> None:
    payload = interaction_payload(
        data={"name": "cfg", "type": 1, "options": [{"type": 1, "name": "show"}]}
    )

    command_input = _build(payload, "cfg")

    assert command_input.subcommand == "show"
    assert command_input.args == {}


def test_subcommand_group_without_options_fails(interaction_payload) -> None:
    payload = interaction_payload(
        data={"name": "cfg", "type": 1, "options": [{"type": 2, "name": "g"}]}
    )

    with pytest.raises(InputBuildError, match="Subcommand group has no subcommands"):
        _build(payload, "cfg")


def test_group_inside_subcommand_is_rejected(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "cfg",
            "type": 1,
            "options": [
                {
                    "type": 1,
                    "name": "outer",
                    "options": [
                        {
                            "type": 2,
                            "name": "grp",
                            "options": [
                                {
                                    "type": 1,
                                    "name": "inner",
                                    "options": [
                                        {"type": 3, "name": "x", "value": "hi"}
                                    ],
                                }
                            ],
                        }
                    ],
                }
            ],
        }
    )

    with pytest.raises(InputBuildError, match="grp is nested below the top level"):
        _build(payload, "cfg")


def test_subcommand_inside_subcommand_is_rejected(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "cfg",
            "type": 1,
            "options": [
                {
                    "type": 1,
                    "name": "outer",
                    "options": [{"type": 1, "name": "inner"}],
                }
            ],
        }
    )

    with pytest.raises(InputBuildError, match="inner is nested inside subcommand outer"):
        _build(payload, "cfg")


def test_group_with_leaf_option_is_rejected(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "cfg",
            "type": 1,
            "options": [
                {
                    "type": 2,
                    "name": "g",
                    "options": [{"type": 3, "name": "x", "value": "hi"}],
                }
            ],
        }
    )

    with pytest.raises(InputBuildError, match="may only contain subcommands"):
        _build(payload, "cfg")


def test_scalar_options(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "calc",
            "type": 1,
            "options": [
                {"type": 4, "name": "count", "value": 3},
                {"type": 5, "name": "loud", "value": True},
                {"type": 10, "name": "ratio", "value": 2},
            ],
        }
    )

    args = _build(payload, "calc").args

    assert args["count"].as_int() == 3
    assert args["loud"].as_bool() is True
    assert args["ratio"].kind is OptionValueKind.NUMBER
    assert args["ratio"].as_float() == 2.0
    assert args["count"].as_string() is None


@pytest.mark.parametrize(
    ("option", "message"),
    [
        ({"type": 3, "name": "x"}, "String option has no value"),
        ({"type": 3, "name": "x", "value": 5}, "String option value is not a string"),
        ({"type": 4, "name": "x", "value": "5"}, "Integer option value is not an integer"),
        ({"type": 5, "name": "x", "value": 1}, "Boolean option value is not a boolean"),
        ({"type": 10, "name": "x", "value": "1.5"}, "Number option value is not a number"),
    ],
)
def test_scalar_type_mismatch_fails_whole_input(
    interaction_payload, option: dict, message: str
) -> None:
    payload = interaction_payload(data={"name": "calc", "type": 1, "options": [option]})

    with pytest.raises(OptionValueError, match=message):
        _build(payload, "calc")


def test_user_option_resolves_entity(interaction_payload) -> None:
    target = {"id": "123", "username": "target"}
    payload = interaction_payload(
        data={
            "name": "poke",
            "type": 1,
            "options": [{"type": 6, "name": "target", "value": "123"}],
            "resolved": {"users": {"123": target}},
        }
    )

    command_input = _build(payload, "poke")

    assert command_input.args["target"] == OptionValue.user(target)
    assert command_input.resolved is not None
    assert command_input.resolved.users == {"123": target}


def test_user_option_missing_entry_fails(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "poke",
            "type": 1,
            "options": [{"type": 6, "name": "target", "value": "123"}],
            "resolved": {"users": {"999": {"id": "999"}}},
        }
    )

    with pytest.raises(
        UnresolvedEntityError, match="no matching resolved user found"
    ):
        _build(payload, "poke")


def test_user_option_without_resolved_block_fails(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "poke",
            "type": 1,
            "options": [{"type": 6, "name": "target", "value": "123"}],
        }
    )

    with pytest.raises(MissingResolvedError, match="no resolved object"):
        _build(payload, "poke")


def test_channel_option_without_channel_map_fails(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "move",
            "type": 1,
            "options": [{"type": 7, "name": "where", "value": "55"}],
            "resolved": {"users": {}},
        }
    )

    with pytest.raises(MissingResolvedError, match="no resolved channels object"):
        _build(payload, "move")


def test_role_and_attachment_options(interaction_payload) -> None:
    role = {"id": "r1", "name": "mods"}
    attachment = {"id": "a1", "url": "https://cdn.test/a1.png"}
    payload = interaction_payload(
        data={
            "name": "upload",
            "type": 1,
            "options": [
                {"type": 8, "name": "role", "value": "r1"},
                {"type": 11, "name": "file", "value": "a1"},
            ],
            "resolved": {"roles": {"r1": role}, "attachments": {"a1": attachment}},
        }
    )

    args = _build(payload, "upload").args

    assert args["role"].as_role() == role
    assert args["file"].as_attachment() == attachment
    assert str(args["file"]) == "https://cdn.test/a1.png"


def test_mentionable_prefers_user_over_role(interaction_payload) -> None:
    user = {"id": "42", "username": "both"}
    role = {"id": "42", "name": "both"}
    payload = interaction_payload(
        data={
            "name": "mention",
            "type": 1,
            "options": [{"type": 9, "name": "who", "value": "42"}],
            "resolved": {"users": {"42": user}, "roles": {"42": role}},
        }
    )

    assert _build(payload, "mention").args["who"] == OptionValue.user(user)


def test_mentionable_falls_back_to_role() -> None:
    role = {"id": "7", "name": "staff"}
    resolved = ResolvedData(users={}, roles={"7": role})

    assert parse_mentionable(resolved, "7") == OptionValue.role(role)


def test_mentionable_unresolved_fails() -> None:
    with pytest.raises(UnresolvedEntityError, match="no matching resolved user or role"):
        parse_mentionable(ResolvedData(users={}, roles={}), "7")


def test_unknown_option_type_is_other(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "future",
            "type": 1,
            "options": [{"type": 99, "name": "thing", "value": {"nested": [1, 2]}}],
        }
    )

    value = _build(payload, "future").args["thing"]

    assert value.kind is OptionValueKind.OTHER
    assert value == OptionValue.other({"nested": [1, 2]})


def test_focused_option_sets_focused(interaction_payload) -> None:
    payload = interaction_payload(
        interaction_type=4,
        data={
            "name": "search",
            "type": 1,
            "options": [
                {"type": 3, "name": "query", "value": "pyt", "focused": True},
                {"type": 3, "name": "lang", "value": "en"},
            ],
        },
    )

    command_input = _build(payload, "search")

    assert command_input.focused == "query"
    assert command_input.is_autocomplete()


def test_custom_id_split_on_first_separator() -> None:
    assert split_custom_id("mybtn/abc/def") == ("mybtn", "abc/def")
    assert split_custom_id("mybtn/") == ("mybtn", "")
    assert split_custom_id("mybtn") is None


def test_user_select_values_are_resolved(interaction_payload) -> None:
    first = {"id": "1", "username": "a"}
    second = {"id": "2", "username": "b"}
    payload = interaction_payload(
        interaction_type=3,
        data={
            "custom_id": "pick/users",
            "component_type": 5,
            "values": ["1", "2"],
            "resolved": {"users": {"1": first, "2": second}},
        },
    )

    command_input = _build(payload, "pick", custom_id="users")

    assert command_input.values == ["1", "2"]
    assert command_input.resolved_values == [
        OptionValue.user(first),
        OptionValue.user(second),
    ]
    assert command_input.is_user_select()
    assert command_input.custom_id == "users"


def test_string_select_keeps_raw_values(interaction_payload) -> None:
    payload = interaction_payload(
        interaction_type=3,
        data={"custom_id": "pick/colour", "component_type": 3, "values": ["red"]},
    )

    command_input = _build(payload, "pick", custom_id="colour")

    assert command_input.values == ["red"]
    assert command_input.resolved_values == []
    assert command_input.is_string_select()


def test_role_select_without_resolved_fails(interaction_payload) -> None:
    payload = interaction_payload(
        interaction_type=3,
        data={"custom_id": "pick/roles", "component_type": 6, "values": ["1"]},
    )

    with pytest.raises(MissingResolvedError, match="Role select provided"):
        _build(payload, "pick", custom_id="roles")


def test_modal_walk_flattens_rows_and_labels(interaction_payload) -> None:
    payload = interaction_payload(
        interaction_type=5,
        data={
            "custom_id": "feedback/form",
            "components": [
                {
                    "type": 1,
                    "components": [
                        {"type": 4, "custom_id": "title", "value": "Hello"}
                    ],
                },
                {
                    "type": 18,
                    "component": {"type": 4, "custom_id": "body", "value": "World"},
                },
                {"type": 18, "component": {"type": 3, "custom_id": "choice"}},
            ],
        },
    )

    command_input = _build(payload, "feedback", custom_id="form")

    assert command_input.args == {
        "title": OptionValue.string("Hello"),
        "body": OptionValue.string("World"),
    }
    assert command_input.is_modal_submit()


def test_text_input_without_value_is_empty_string() -> None:
    command_input = CommandInput(
        interaction_type=5, command="m", user={"id": "1"}, locale="en-US"
    )
    parse_component_values([{"type": 4, "custom_id": "notes"}], command_input)

    assert command_input.args["notes"] == OptionValue.string("")


def test_user_context_menu_moves_target_out_of_resolved(interaction_payload) -> None:
    user = {"id": "77", "username": "target"}
    member = {"nick": "t"}
    payload = interaction_payload(
        data={
            "name": "Inspect",
            "type": 2,
            "target_id": "77",
            "resolved": {"users": {"77": user}, "members": {"77": member}},
        }
    )

    command_input = _build(payload, "Inspect")

    assert command_input.target_user == user
    assert command_input.target_member == member
    assert command_input.resolved is None
    assert command_input.is_user_context()


def test_user_context_menu_member_is_optional(interaction_payload) -> None:
    user = {"id": "77", "username": "target"}
    payload = interaction_payload(
        data={
            "name": "Inspect",
            "type": 2,
            "target_id": "77",
            "resolved": {"users": {"77": user}},
        }
    )

    command_input = _build(payload, "Inspect")

    assert command_input.target_user == user
    assert command_input.target_member is None


def test_message_context_menu_target(interaction_payload) -> None:
    message = {"id": "m1", "content": "quote me"}
    payload = interaction_payload(
        data={
            "name": "Quote",
            "type": 3,
            "target_id": "m1",
            "resolved": {"messages": {"m1": message}},
        }
    )

    command_input = _build(payload, "Quote")

    assert command_input.target_message == message
    assert command_input.resolved is None
    assert command_input.is_message_context()


def test_message_context_menu_missing_target_fails(interaction_payload) -> None:
    payload = interaction_payload(
        data={
            "name": "Quote",
            "type": 3,
            "target_id": "m1",
            "resolved": {"messages": {}},
        }
    )

    with pytest.raises(UnresolvedEntityError):
        _build(payload, "Quote")


def test_user_comes_from_member_then_user() -> None:
    member_user = {"id": "1"}
    dm_user = {"id": "2"}

    assert parse_user(dm_user, {"user": member_user}) == member_user
    assert parse_user(dm_user, None) == dm_user
    with pytest.raises(InputBuildError, match="No member or user provided"):
        parse_user(None, None)


def test_dm_interaction_uses_top_level_user(interaction_payload) -> None:
    payload = interaction_payload(user={"id": "dm-user"})

    command_input = _build(payload)

    assert command_input.user == {"id": "dm-user"}
    assert command_input.member is None


def test_missing_locale_fails(interaction_payload) -> None:
    payload = interaction_payload(locale=None)

    with pytest.raises(InputBuildError, match="locale"):
        _build(payload)


def test_context_fields_are_copied(interaction_payload) -> None:
    payload = interaction_payload(
        app_permissions="2048",
        guild_locale="fi",
        context=0,
        entitlements=[{"id": "e1"}],
        authorizing_integration_owners={"0": "guild-1"},
    )

    command_input = _build(payload)

    assert command_input.guild_id == "guild-1"
    assert command_input.channel_id == "channel-1"
    assert command_input.app_permissions == "2048"
    assert command_input.guild_locale == "fi"
    assert command_input.context == 0
    assert command_input.entitlements == ({"id": "e1"},)
    assert command_input.authorizing_integration_owners == {"0": "guild-1"}
