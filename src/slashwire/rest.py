from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any, Optional, Sequence, Union

import httpx

from .constants import DISCORD_API_BASE_URL, USER_AGENT
from .errors import DiscordAPIError, DiscordPermanentError, DiscordTransientError
from .responses import File, attach_file_descriptors

logger = logging.getLogger(__name__)

Payload = Optional[Union[dict[str, Any], list[dict[str, Any]]]]


def _body_preview(response: httpx.Response) -> str:
    return (response.text or "").strip().replace("\n", " ")[:200]


def build_multipart_fields(
    payload: Optional[dict[str, Any]], files: Sequence[File]
) -> tuple[dict[str, str], list[tuple[str, tuple[str, bytes, str]]]]:
    """Split a message payload into `payload_json` and `files[n]` parts."""
    body = attach_file_descriptors(payload, tuple(files))
    parts = [
        (
            f"files[{index}]",
            (
                file.filename,
                file.data,
                file.content_type or "application/octet-stream",
            ),
        )
        for index, file in enumerate(files)
    ]
    return {"payload_json": json.dumps(body)}, parts


class DiscordRestClient:
    def __init__(
        self,
        *,
        bot_token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        base_url: str = DISCORD_API_BASE_URL,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 30.0,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"User-Agent": USER_AGENT},
        )
        self._authorization_header = f"Bot {bot_token}" if bot_token else None
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DiscordRestClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    def _headers(self, authenticated: bool) -> dict[str, str]:
        if authenticated and self._authorization_header:
            return {"Authorization": self._authorization_header}
        return {}

    def _calculate_retry_delay(self, attempt: int) -> float:
        delay = self._retry_base_delay * (2**attempt) + random.uniform(0, 1)
        return float(min(delay, self._retry_max_delay))

    def _is_retryable_error(self, exc: Exception) -> bool:
        return isinstance(
            exc,
            (
                httpx.ConnectError,
                httpx.ReadError,
                httpx.WriteError,
                httpx.ConnectTimeout,
                httpx.ReadTimeout,
                httpx.WriteTimeout,
            ),
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Payload = None,
        params: Optional[dict[str, Any]] = None,
        files: Sequence[File] = (),
        authenticated: bool = True,
        expect_json: bool = True,
    ) -> Any:
        rate_limit_retries = 0
        retry_attempt = 0
        label = f"{method} {path}"

        while True:
            request_kwargs: dict[str, Any] = {}
            if files:
                if isinstance(payload, list):
                    raise TypeError("multipart payload must be an object")
                data_fields, file_parts = build_multipart_fields(payload, files)
                request_kwargs["data"] = data_fields
                request_kwargs["files"] = file_parts
            elif payload is not None:
                request_kwargs["json"] = payload
            try:
                response = await self._client.request(
                    method,
                    path,
                    params=params,
                    headers=self._headers(authenticated),
                    **request_kwargs,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                if status_code == 429:
                    retry_after_raw = exc.response.headers.get("Retry-After")
                    try:
                        retry_after = (
                            max(float(retry_after_raw), 0.0)
                            if retry_after_raw is not None
                            else None
                        )
                    except ValueError:
                        retry_after = 0.0
                    if retry_after is not None and rate_limit_retries < self._max_retries:
                        rate_limit_retries += 1
                        logger.info(
                            "Discord rate limited on %s, retrying after %.1fs (attempt %d)",
                            label,
                            retry_after,
                            rate_limit_retries,
                        )
                        await asyncio.sleep(retry_after)
                        continue
                    raise DiscordTransientError(
                        f"Discord API rate limit exceeded for {label}",
                        status_code=status_code,
                        retry_after=retry_after,
                    ) from exc

                body_preview = _body_preview(exc.response)
                if 500 <= status_code < 600:
                    if retry_attempt < self._max_retries:
                        retry_attempt += 1
                        delay = self._calculate_retry_delay(retry_attempt)
                        logger.warning(
                            "Discord server error %d on %s, retrying in %.1fs (attempt %d/%d)",
                            status_code,
                            label,
                            delay,
                            retry_attempt,
                            self._max_retries,
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise DiscordTransientError(
                        f"Discord API server error for {label}: "
                        f"status={status_code} body={body_preview!r}",
                        status_code=status_code,
                    ) from exc
                if status_code in {401, 403}:
                    raise DiscordPermanentError(
                        f"Discord API authentication failure for {label}: "
                        f"status={status_code} body={body_preview!r}",
                        status_code=status_code,
                    ) from exc
                raise DiscordAPIError(
                    f"Discord API request failed for {label}: "
                    f"status={status_code} body={body_preview!r}",
                    status_code=status_code,
                ) from exc
            except httpx.HTTPError as exc:
                if self._is_retryable_error(exc) and retry_attempt < self._max_retries:
                    retry_attempt += 1
                    delay = self._calculate_retry_delay(retry_attempt)
                    logger.warning(
                        "Discord network error on %s: %s, retrying in %.1fs (attempt %d/%d)",
                        label,
                        type(exc).__name__,
                        delay,
                        retry_attempt,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                if self._is_retryable_error(exc):
                    raise DiscordTransientError(
                        f"Discord API network error for {label}: {exc}"
                    ) from exc
                raise DiscordAPIError(
                    f"Discord API network error for {label}: {exc}"
                ) from exc

            if not expect_json or not response.content:
                return None if not expect_json else {}
            try:
                return response.json()
            except ValueError as exc:
                raise DiscordAPIError(
                    f"Discord API returned non-JSON success response for {label}",
                    status_code=response.status_code,
                ) from exc

    async def get(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        *,
        authenticated: bool = True,
    ) -> Any:
        return await self._request(
            "GET", path, params=params, authenticated=authenticated
        )

    async def post(
        self, path: str, payload: Payload = None, *, authenticated: bool = True
    ) -> Any:
        return await self._request(
            "POST", path, payload=payload, authenticated=authenticated
        )

    async def post_files(
        self,
        path: str,
        payload: Optional[dict[str, Any]],
        files: Sequence[File],
        *,
        authenticated: bool = True,
    ) -> Any:
        return await self._request(
            "POST", path, payload=payload, files=files, authenticated=authenticated
        )

    async def patch(
        self, path: str, payload: Payload = None, *, authenticated: bool = True
    ) -> Any:
        return await self._request(
            "PATCH", path, payload=payload, authenticated=authenticated
        )

    async def patch_files(
        self,
        path: str,
        payload: Optional[dict[str, Any]],
        files: Sequence[File],
        *,
        authenticated: bool = True,
    ) -> Any:
        return await self._request(
            "PATCH", path, payload=payload, files=files, authenticated=authenticated
        )

    async def put(
        self, path: str, payload: Payload = None, *, authenticated: bool = True
    ) -> Any:
        return await self._request(
            "PUT", path, payload=payload, authenticated=authenticated
        )

    async def delete(self, path: str, *, authenticated: bool = True) -> None:
        await self._request(
            "DELETE", path, authenticated=authenticated, expect_json=False
        )

    async def list_application_commands(
        self, *, application_id: str, guild_id: str | None = None
    ) -> list[dict[str, Any]]:
        path = (
            f"/applications/{application_id}/commands"
            if guild_id is None
            else f"/applications/{application_id}/guilds/{guild_id}/commands"
        )
        payload = await self.get(path)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def bulk_overwrite_application_commands(
        self,
        *,
        application_id: str,
        commands: list[dict[str, Any]],
        guild_id: str | None = None,
    ) -> list[dict[str, Any]]:
        path = (
            f"/applications/{application_id}/commands"
            if guild_id is None
            else f"/applications/{application_id}/guilds/{guild_id}/commands"
        )
        payload = await self.put(path, commands)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]
