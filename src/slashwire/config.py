from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .core.config import LoadedConfig, LogConfig, load_config

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_PUBLIC_KEY_ENV = "SLASHWIRE_PUBLIC_KEY"
DEFAULT_BOT_TOKEN_ENV = "SLASHWIRE_BOT_TOKEN"
DEFAULT_APP_ID_ENV = "SLASHWIRE_APP_ID"
DEFAULT_COMMAND_SCOPE = "global"


class BotConfigError(Exception):
    """Raised when bot config is invalid."""


@dataclass(frozen=True)
class CommandRegistration:
    scope: str = DEFAULT_COMMAND_SCOPE
    guild_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class BotConfig:
    root: Path
    host: str
    port: int
    public_key_env: str
    bot_token_env: str
    app_id_env: str
    public_key: Optional[str]
    bot_token: Optional[str]
    application_id: Optional[str]
    response_timeout_seconds: Optional[float]
    command_registration: CommandRegistration
    log: Optional[LogConfig] = field(default=None, compare=False)

    @classmethod
    def from_raw(
        cls,
        *,
        root: Path,
        raw: dict[str, Any],
        log: Optional[LogConfig] = None,
    ) -> "BotConfig":
        cfg: dict[str, Any] = raw if isinstance(raw, dict) else {}

        host = str(cfg.get("host", DEFAULT_HOST)).strip()
        if not host:
            raise BotConfigError("host must be non-empty")
        port = cfg.get("port", DEFAULT_PORT)
        if isinstance(port, bool) or not isinstance(port, int):
            raise BotConfigError("port must be an integer")
        if not 0 < port < 65536:
            raise BotConfigError("port must be between 1 and 65535")

        env_names = {}
        for key, default in (
            ("public_key_env", DEFAULT_PUBLIC_KEY_ENV),
            ("bot_token_env", DEFAULT_BOT_TOKEN_ENV),
            ("app_id_env", DEFAULT_APP_ID_ENV),
        ):
            value = str(cfg.get(key, default)).strip()
            if not value:
                raise BotConfigError(f"{key} must be non-empty")
            env_names[key] = value

        timeout_raw = cfg.get("response_timeout_seconds")
        response_timeout_seconds: Optional[float] = None
        if timeout_raw is not None:
            if isinstance(timeout_raw, bool) or not isinstance(
                timeout_raw, (int, float)
            ):
                raise BotConfigError("response_timeout_seconds must be a number")
            if timeout_raw <= 0:
                raise BotConfigError("response_timeout_seconds must be > 0")
            response_timeout_seconds = float(timeout_raw)

        registration_raw = cfg.get("command_registration")
        registration_cfg = (
            registration_raw if isinstance(registration_raw, dict) else {}
        )
        scope = (
            str(registration_cfg.get("scope", DEFAULT_COMMAND_SCOPE)).strip().lower()
        )
        if scope not in {"global", "guild"}:
            raise BotConfigError(
                "command_registration.scope must be 'global' or 'guild'"
            )
        guild_ids = tuple(_parse_string_ids(registration_cfg.get("guild_ids")))
        if scope == "guild" and not guild_ids:
            raise BotConfigError(
                "command_registration.guild_ids is required for guild scope"
            )

        return cls(
            root=root,
            host=host,
            port=port,
            public_key_env=env_names["public_key_env"],
            bot_token_env=env_names["bot_token_env"],
            app_id_env=env_names["app_id_env"],
            public_key=_env_value(env_names["public_key_env"]),
            bot_token=_env_value(env_names["bot_token_env"]),
            application_id=_env_value(env_names["app_id_env"]),
            response_timeout_seconds=response_timeout_seconds,
            command_registration=CommandRegistration(scope=scope, guild_ids=guild_ids),
            log=log,
        )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "BotConfig":
        loaded: LoadedConfig = load_config(path)
        return cls.from_raw(root=loaded.root, raw=loaded.raw, log=loaded.log)

    def require_public_key(self) -> str:
        if not self.public_key:
            raise BotConfigError(
                f"Public key env var {self.public_key_env} is unset"
            )
        return self.public_key

    def require_application_credentials(self) -> tuple[str, str]:
        if not self.bot_token:
            raise BotConfigError(f"Bot token env var {self.bot_token_env} is unset")
        if not self.application_id:
            raise BotConfigError(
                f"Application id env var {self.app_id_env} is unset"
            )
        return self.bot_token, self.application_id


def _env_value(name: str) -> Optional[str]:
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_string_ids(value: Any) -> list[str]:
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    parsed: list[str] = []
    for item in items:
        token = str(item).strip()
        if token:
            parsed.append(token)
    return parsed
