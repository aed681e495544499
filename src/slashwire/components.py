from __future__ import annotations

from typing import Any, Optional

from .constants import (
    COMPONENT_ACTION_ROW,
    COMPONENT_BUTTON,
    COMPONENT_LABEL,
    COMPONENT_STRING_SELECT,
    COMPONENT_TEXT_INPUT,
)
from .responses import Modal

BUTTON_STYLE_PRIMARY = 1
BUTTON_STYLE_SECONDARY = 2
BUTTON_STYLE_SUCCESS = 3
BUTTON_STYLE_DANGER = 4
BUTTON_STYLE_LINK = 5
TEXT_INPUT_STYLE_SHORT = 1
TEXT_INPUT_STYLE_PARAGRAPH = 2
SELECT_OPTION_MAX_OPTIONS = 25
ACTION_ROW_MAX_COMPONENTS = 5


def build_custom_id(handler: str, *parts: Any) -> str:
    """Build a `handler/remainder` custom_id routed back to `handler`."""
    if "/" in handler:
        raise ValueError("handler name must not contain '/'")
    return "/".join([handler, *(str(part) for part in parts)]) if parts else f"{handler}/"


def build_action_row(components: list[dict[str, Any]]) -> dict[str, Any]:
    if len(components) > ACTION_ROW_MAX_COMPONENTS:
        raise ValueError(
            f"action row holds at most {ACTION_ROW_MAX_COMPONENTS} components"
        )
    return {
        "type": COMPONENT_ACTION_ROW,
        "components": components,
    }


def build_button(
    label: str,
    custom_id: str,
    *,
    style: int = BUTTON_STYLE_SECONDARY,
    emoji: Optional[str] = None,
    disabled: bool = False,
) -> dict[str, Any]:
    button: dict[str, Any] = {
        "type": COMPONENT_BUTTON,
        "style": style,
        "label": label,
        "custom_id": custom_id,
        "disabled": disabled,
    }
    if emoji:
        button["emoji"] = {"name": emoji}
    return button


def build_link_button(label: str, url: str, *, disabled: bool = False) -> dict[str, Any]:
    return {
        "type": COMPONENT_BUTTON,
        "style": BUTTON_STYLE_LINK,
        "label": label,
        "url": url,
        "disabled": disabled,
    }


def build_select_menu(
    custom_id: str,
    options: list[dict[str, Any]],
    *,
    placeholder: Optional[str] = None,
    min_values: int = 1,
    max_values: int = 1,
    disabled: bool = False,
) -> dict[str, Any]:
    select: dict[str, Any] = {
        "type": COMPONENT_STRING_SELECT,
        "custom_id": custom_id,
        "options": options[:SELECT_OPTION_MAX_OPTIONS],
        "min_values": min_values,
        "max_values": min(max_values, SELECT_OPTION_MAX_OPTIONS),
        "disabled": disabled,
    }
    if placeholder:
        select["placeholder"] = placeholder[:150]
    return select


def build_entity_select_menu(
    component_type: int,
    custom_id: str,
    *,
    placeholder: Optional[str] = None,
    min_values: int = 1,
    max_values: int = 1,
) -> dict[str, Any]:
    """User, role, mentionable or channel select; Discord supplies the options."""
    select: dict[str, Any] = {
        "type": component_type,
        "custom_id": custom_id,
        "min_values": min_values,
        "max_values": max_values,
    }
    if placeholder:
        select["placeholder"] = placeholder[:150]
    return select


def build_select_option(
    label: str,
    value: str,
    *,
    description: Optional[str] = None,
    emoji: Optional[str] = None,
    default: bool = False,
) -> dict[str, Any]:
    option: dict[str, Any] = {
        "label": label[:100],
        "value": value[:100],
        "default": default,
    }
    if description:
        option["description"] = description[:100]
    if emoji:
        option["emoji"] = {"name": emoji}
    return option


def build_text_input(
    custom_id: str,
    *,
    style: int = TEXT_INPUT_STYLE_SHORT,
    required: bool = True,
    value: Optional[str] = None,
    placeholder: Optional[str] = None,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> dict[str, Any]:
    text_input: dict[str, Any] = {
        "type": COMPONENT_TEXT_INPUT,
        "custom_id": custom_id,
        "style": style,
        "required": required,
    }
    if value is not None:
        text_input["value"] = value
    if placeholder:
        text_input["placeholder"] = placeholder[:100]
    if min_length is not None:
        text_input["min_length"] = min_length
    if max_length is not None:
        text_input["max_length"] = max_length
    return text_input


def build_label(
    label: str,
    component: dict[str, Any],
    *,
    description: Optional[str] = None,
) -> dict[str, Any]:
    wrapped: dict[str, Any] = {
        "type": COMPONENT_LABEL,
        "label": label[:45],
        "component": component,
    }
    if description:
        wrapped["description"] = description[:100]
    return wrapped


def build_modal(
    custom_id: str, title: str, components: list[dict[str, Any]]
) -> Modal:
    return Modal(custom_id=custom_id, title=title[:45], components=tuple(components))
