from __future__ import annotations

import pytest

from slashwire.components import (
    BUTTON_STYLE_LINK,
    BUTTON_STYLE_PRIMARY,
    TEXT_INPUT_STYLE_PARAGRAPH,
    build_action_row,
    build_button,
    build_custom_id,
    build_entity_select_menu,
    build_label,
    build_link_button,
    build_modal,
    build_select_menu,
    build_select_option,
    build_text_input,
)
from slashwire.constants import COMPONENT_USER_SELECT
from slashwire.interactions import split_custom_id


def test_custom_id_routes_back_to_handler() -> None:
    custom_id = build_custom_id("vote", "poll-1", 3)

    assert custom_id == "vote/poll-1/3"
    assert split_custom_id(custom_id) == ("vote", "poll-1/3")
    assert build_custom_id("vote") == "vote/"
    with pytest.raises(ValueError):
        build_custom_id("bad/name")


def test_button_and_action_row() -> None:
    button = build_button(
        "Yes", "vote/yes", style=BUTTON_STYLE_PRIMARY, emoji="👍"
    )
    link = build_link_button("Docs", "https://example.com")

    row = build_action_row([button, link])

    assert row == {
        "type": 1,
        "components": [
            {
                "type": 2,
                "style": 1,
                "label": "Yes",
                "custom_id": "vote/yes",
                "disabled": False,
                "emoji": {"name": "👍"},
            },
            {
                "type": 2,
                "style": BUTTON_STYLE_LINK,
                "label": "Docs",
                "url": "https://example.com",
                "disabled": False,
            },
        ],
    }


def test_action_row_limit() -> None:
    buttons = [build_button(str(i), f"b/{i}") for i in range(6)]

    with pytest.raises(ValueError):
        build_action_row(buttons)


def test_select_menu_caps_options() -> None:
    options = [build_select_option(f"Option {i}", str(i)) for i in range(30)]

    select = build_select_menu(
        "pick/colour", options, placeholder="x" * 200, max_values=40
    )

    assert select["type"] == 3
    assert len(select["options"]) == 25
    assert select["max_values"] == 25
    assert len(select["placeholder"]) == 150


def test_select_option_truncates_fields() -> None:
    option = build_select_option("L" * 120, "v", description="d" * 120, default=True)

    assert len(option["label"]) == 100
    assert len(option["description"]) == 100
    assert option["default"] is True


def test_entity_select_menu() -> None:
    assert build_entity_select_menu(
        COMPONENT_USER_SELECT, "pick/users", max_values=3
    ) == {"type": 5, "custom_id": "pick/users", "min_values": 1, "max_values": 3}


def test_modal_with_label_wrapped_text_input() -> None:
    text_input = build_text_input(
        "body", style=TEXT_INPUT_STYLE_PARAGRAPH, required=False, max_length=500
    )

    modal = build_modal(
        "feedback/form", "Feedback", [build_label("Your feedback", text_input)]
    )

    assert modal.to_dict() == {
        "custom_id": "feedback/form",
        "title": "Feedback",
        "components": [
            {
                "type": 18,
                "label": "Your feedback",
                "component": {
                    "type": 4,
                    "custom_id": "body",
                    "style": 2,
                    "required": False,
                    "max_length": 500,
                },
            }
        ],
    }
