"""Test harness configuration.

This repo uses a `src/` layout. Ensure tests always import the in-repo code
rather than an installed `slashwire` distribution.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import pytest

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 60


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    src_path = str(src_dir)
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """
    Apply a default per-test timeout.

    This relies on `pytest-timeout` when installed; if it isn't installed, the
    marker is inert but still documents the intent.
    """
    _ = session, config
    for item in items:
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def _make_interaction_payload(
    *,
    interaction_type: int = 2,
    data: Optional[dict[str, Any]] = None,
    member: Optional[dict[str, Any]] = None,
    user: Optional[dict[str, Any]] = None,
    locale: Optional[str] = "en-US",
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "interaction-1",
        "application_id": "app-1",
        "type": interaction_type,
        "token": "token-1",
        "version": 1,
        "guild_id": "guild-1",
        "channel_id": "channel-1",
        "data": data if data is not None else {"id": "cmd-1", "name": "ping", "type": 1},
    }
    if member is None and user is None:
        member = {"user": {"id": "user-1", "username": "tester"}, "roles": []}
    if member is not None:
        payload["member"] = member
    if user is not None:
        payload["user"] = user
    if locale is not None:
        payload["locale"] = locale
    payload.update(extra)
    return payload


@pytest.fixture
def interaction_payload():
    return _make_interaction_payload
