"""Inbound HTTP transport for interactions and webhook events."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncContextManager, Callable, Optional

import httpx
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .constants import CALLBACK_PONG, INTERACTION_PING, SIGNATURE_HEADER, TIMESTAMP_HEADER
from .core.logging_utils import log_event
from .dispatcher import CommandDispatcher, EventDispatcher
from .errors import InteractionParseError
from .events import WebhookType, parse_event_payload
from .interactions import KNOWN_INTERACTION_TYPES, parse_interaction
from .responses import InteractionCallback, attach_file_descriptors
from .rest import DiscordRestClient

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """Ed25519 check of `timestamp + body` against the application public key."""

    def __init__(self, public_key: str) -> None:
        try:
            self._verify_key = VerifyKey(bytes.fromhex(public_key.strip()))
        except ValueError as exc:
            raise ValueError("public key must be a 32-byte hex string") from exc

    def verify(
        self, signature: Optional[str], timestamp: Optional[str], body: bytes
    ) -> bool:
        if not signature or not timestamp:
            return False
        try:
            self._verify_key.verify(
                timestamp.encode("utf-8") + body, bytes.fromhex(signature)
            )
        except (BadSignatureError, ValueError):
            return False
        return True


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def render_callback(callback: InteractionCallback) -> Response:
    """Serialize a callback as JSON, or multipart/form-data when it carries files."""
    if not callback.files:
        return JSONResponse(callback.to_dict())
    envelope = callback.to_dict()
    envelope["data"] = attach_file_descriptors(callback.data, callback.files)
    encoded = httpx.Request(
        "POST",
        "http://localhost/",
        data={"payload_json": json.dumps(envelope)},
        files=[
            (
                f"files[{index}]",
                (
                    file.filename,
                    file.data,
                    file.content_type or "application/octet-stream",
                ),
            )
            for index, file in enumerate(callback.files)
        ],
    )
    body = encoded.read()
    return Response(content=body, media_type=encoded.headers["Content-Type"])


async def _read_verified_body(
    request: Request, verifier: SignatureVerifier
) -> Optional[bytes]:
    body = await request.body()
    if not verifier.verify(
        request.headers.get(SIGNATURE_HEADER),
        request.headers.get(TIMESTAMP_HEADER),
        body,
    ):
        log_event(
            logger,
            logging.WARNING,
            "slashwire.webhook.bad_signature",
            path=request.url.path,
            has_signature=SIGNATURE_HEADER in request.headers,
            has_timestamp=TIMESTAMP_HEADER in request.headers,
        )
        return None
    return body


def build_webhook_routes(
    *,
    verifier: SignatureVerifier,
    command_dispatcher: CommandDispatcher,
    event_dispatcher: Optional[EventDispatcher] = None,
    rest: Optional[DiscordRestClient] = None,
) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok"}

    @router.post("/")
    async def interactions(request: Request) -> Response:
        body = await _read_verified_body(request, verifier)
        if body is None:
            return _error(401, "Bad signature")
        try:
            interaction = parse_interaction(json.loads(body))
        except (ValueError, InteractionParseError) as exc:
            log_event(logger, logging.INFO, "slashwire.webhook.bad_body", error=str(exc))
            return _error(400, "Bad body")

        if interaction.interaction_type == INTERACTION_PING:
            return JSONResponse({"type": CALLBACK_PONG})
        if interaction.interaction_type not in KNOWN_INTERACTION_TYPES:
            log_event(
                logger,
                logging.INFO,
                "slashwire.webhook.unknown_interaction",
                interaction_type=interaction.interaction_type,
            )
            return _error(404, "Unknown interaction type")

        try:
            callback = await command_dispatcher.handle_command(interaction, rest=rest)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "slashwire.dispatch.failed",
                kind="command",
                interaction_id=interaction.id,
                exc=exc,
            )
            return _error(500, "Handler failed")
        return render_callback(callback)

    @router.post("/events")
    async def events(request: Request) -> Response:
        body = await _read_verified_body(request, verifier)
        if body is None:
            return _error(401, "Bad signature")
        try:
            payload = parse_event_payload(json.loads(body))
        except (ValueError, InteractionParseError) as exc:
            log_event(logger, logging.INFO, "slashwire.webhook.bad_body", error=str(exc))
            return _error(400, "Bad body")

        if payload.webhook_type is WebhookType.PING:
            return Response(status_code=204)
        if payload.webhook_type is not WebhookType.EVENT:
            log_event(
                logger,
                logging.INFO,
                "slashwire.webhook.unknown_event_webhook",
                application_id=payload.application_id,
            )
            return Response(status_code=204)
        if payload.event is None:
            return _error(400, "Bad body")
        if event_dispatcher is None:
            log_event(
                logger,
                logging.WARNING,
                "slashwire.webhook.events_disabled",
                event_type=payload.event.raw_type,
            )
            return _error(500, "Handler failed")

        try:
            await event_dispatcher.handle_event(payload.event, rest=rest)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "slashwire.dispatch.failed",
                kind="event",
                event_type=payload.event.raw_type,
                exc=exc,
            )
            return _error(500, "Handler failed")
        return Response(status_code=204)

    return router


def create_webhook_app(
    *,
    public_key: str,
    command_dispatcher: CommandDispatcher,
    event_dispatcher: Optional[EventDispatcher] = None,
    rest: Optional[DiscordRestClient] = None,
    lifespan: Optional[Callable[[FastAPI], AsyncContextManager[None]]] = None,
    title: str = "slashwire",
) -> FastAPI:
    app = FastAPI(
        title=title,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.include_router(
        build_webhook_routes(
            verifier=SignatureVerifier(public_key),
            command_dispatcher=command_dispatcher,
            event_dispatcher=event_dispatcher,
            rest=rest,
        )
    )
    return app
