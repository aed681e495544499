from __future__ import annotations

import pytest

from slashwire.errors import RegistryFrozenError
from slashwire.events import EventType
from slashwire.registry import (
    Command,
    CommandRegistry,
    Event,
    EventRegistry,
    HandlerRegistry,
)


async def _noop(*_args) -> None:
    return None


def test_registry_snapshot_is_read_only_after_freeze() -> None:
    registry = CommandRegistry()
    registry.add(Command("ping", _noop, description="Ping"))

    snapshot = registry.freeze()

    assert registry.frozen
    assert "ping" in registry
    assert registry.get("ping") is snapshot["ping"]
    with pytest.raises(TypeError):
        snapshot["pong"] = Command("pong", _noop)  # type: ignore[index]


def test_add_after_freeze_is_rejected() -> None:
    registry = CommandRegistry()
    registry.freeze()

    with pytest.raises(RegistryFrozenError, match="pong"):
        registry.add(Command("pong", _noop))
    assert len(registry) == 0


def test_duplicate_name_replaces_previous() -> None:
    registry = CommandRegistry()
    first = Command("ping", _noop, description="first")
    second = Command("ping", _noop, description="second")

    registry.add(first)
    registry.add(second)

    assert registry.get("ping") is second
    assert len(registry) == 1


def test_convert_commands_skips_ignored_handlers() -> None:
    registry = CommandRegistry()
    registry.add(
        Command(
            "echo",
            _noop,
            description="Echo text",
            options=({"type": 3, "name": "text", "description": "Text"},),
            default_member_permissions="0",
            integration_types=(0, 1),
            contexts=(0,),
        )
    )
    registry.add(Command("echo-button", _noop, ignore=True))
    registry.add(Command("Inspect", _noop, command_type=2, nsfw=True))

    assert registry.convert_commands() == [
        {
            "name": "echo",
            "type": 1,
            "description": "Echo text",
            "options": [{"type": 3, "name": "text", "description": "Text"}],
            "default_member_permissions": "0",
            "integration_types": [0, 1],
            "contexts": [0],
        },
        {"name": "Inspect", "type": 2, "description": "", "nsfw": True},
    ]


def test_event_registry_is_keyed_by_type() -> None:
    registry = EventRegistry()
    registry.add(Event(EventType.ENTITLEMENT_CREATE, _noop))

    assert EventType.ENTITLEMENT_CREATE in registry
    assert registry.get(EventType.APPLICATION_AUTHORIZED) is None
    assert [event.event_type for event in registry] == [EventType.ENTITLEMENT_CREATE]


def test_base_registry_needs_a_key() -> None:
    with pytest.raises(TypeError):
        HandlerRegistry()  # type: ignore[abstract]
