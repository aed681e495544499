"""Webhook event payloads (application authorised, entitlements, ...)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

from .constants import WEBHOOK_EVENT, WEBHOOK_PING
from .errors import InteractionParseError

if TYPE_CHECKING:
    from .responder import EventResponder
    from .rest import DiscordRestClient


class EventType(str, Enum):
    APPLICATION_AUTHORIZED = "APPLICATION_AUTHORIZED"
    APPLICATION_DEAUTHORIZED = "APPLICATION_DEAUTHORIZED"
    ENTITLEMENT_CREATE = "ENTITLEMENT_CREATE"
    QUEST_USER_ENROLLMENT = "QUEST_USER_ENROLLMENT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> "EventType":
        return cls.UNKNOWN


class WebhookType(int, Enum):
    PING = WEBHOOK_PING
    EVENT = WEBHOOK_EVENT
    UNKNOWN = -1

    @classmethod
    def _missing_(cls, value: object) -> "WebhookType":
        return cls.UNKNOWN


@dataclass(frozen=True)
class ApplicationAuthorizedEventData:
    user: dict[str, Any]
    scopes: tuple[str, ...]
    integration_type: Optional[int] = None
    guild: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class ApplicationDeauthorizedEventData:
    user: dict[str, Any]


@dataclass(frozen=True)
class EntitlementCreateEventData:
    entitlement: dict[str, Any]


@dataclass(frozen=True)
class RawEventData:
    data: Any


EventData = Union[
    ApplicationAuthorizedEventData,
    ApplicationDeauthorizedEventData,
    EntitlementCreateEventData,
    RawEventData,
]


@dataclass(frozen=True)
class EventBody:
    event_type: EventType
    timestamp: datetime
    data: Optional[EventData] = None
    raw_type: str = ""


@dataclass(frozen=True)
class EventPayload:
    version: int
    application_id: str
    webhook_type: WebhookType
    event: Optional[EventBody] = None


@dataclass
class EventInput:
    """Metadata passed to event handlers; the event data is the second argument.

    Discord retries unacknowledged events with backoff for a while and
    eventually stops delivering them, so handlers should call `ack()` early.
    """

    event_type: EventType
    timestamp: datetime
    rest: Optional["DiscordRestClient"] = field(default=None, repr=False)
    responder: Optional["EventResponder"] = field(default=None, repr=False)

    async def ack(self) -> None:
        if self.responder is None:
            raise RuntimeError("event input is not bound to a dispatch")
        await self.responder.ack()


def parse_timestamp(value: object) -> datetime:
    if not isinstance(value, str) or not value:
        raise InteractionParseError('Expected a field "timestamp" of type str')
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InteractionParseError(f"Timestamp parsing failed: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _require_dict(value: object, label: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InteractionParseError(f"{label} must be an object")
    return value


def parse_event_data(event_type: EventType, raw: Any) -> EventData:
    if event_type is EventType.APPLICATION_AUTHORIZED:
        body = _require_dict(raw, "APPLICATION_AUTHORIZED data")
        user = _require_dict(body.get("user"), "APPLICATION_AUTHORIZED user")
        scopes = body.get("scopes")
        if not isinstance(scopes, list):
            raise InteractionParseError("APPLICATION_AUTHORIZED scopes must be a list")
        integration_type = body.get("integration_type")
        guild = body.get("guild")
        return ApplicationAuthorizedEventData(
            user=user,
            scopes=tuple(str(scope) for scope in scopes),
            integration_type=integration_type if isinstance(integration_type, int) else None,
            guild=guild if isinstance(guild, dict) else None,
        )
    if event_type is EventType.APPLICATION_DEAUTHORIZED:
        body = _require_dict(raw, "APPLICATION_DEAUTHORIZED data")
        return ApplicationDeauthorizedEventData(
            user=_require_dict(body.get("user"), "APPLICATION_DEAUTHORIZED user")
        )
    if event_type is EventType.ENTITLEMENT_CREATE:
        return EntitlementCreateEventData(
            entitlement=_require_dict(raw, "ENTITLEMENT_CREATE data")
        )
    return RawEventData(data=raw)


def parse_event_body(value: object) -> EventBody:
    body = _require_dict(value, "event")
    raw_type = body.get("type")
    if not isinstance(raw_type, str):
        raise InteractionParseError('Expected a field "type"')
    event_type = EventType(raw_type)
    data = parse_event_data(event_type, body["data"]) if "data" in body else None
    return EventBody(
        event_type=event_type,
        timestamp=parse_timestamp(body.get("timestamp")),
        data=data,
        raw_type=raw_type,
    )


def parse_event_payload(value: object) -> EventPayload:
    payload = _require_dict(value, "event payload")
    raw_webhook_type = payload.get("type")
    if isinstance(raw_webhook_type, bool) or not isinstance(raw_webhook_type, int):
        raise InteractionParseError("event payload is missing a type")
    webhook_type = WebhookType(raw_webhook_type)
    event = payload.get("event")
    version = payload.get("version")
    return EventPayload(
        version=version if isinstance(version, int) else 1,
        application_id=str(payload.get("application_id") or ""),
        webhook_type=webhook_type,
        event=(
            parse_event_body(event)
            if webhook_type is WebhookType.EVENT and event is not None
            else None
        ),
    )
