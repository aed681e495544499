from __future__ import annotations

from pathlib import Path

import pytest

from slashwire.config import BotConfig, BotConfigError
from slashwire.core.config import load_config
from slashwire.core.exceptions import ConfigError


def test_defaults_read_secrets_from_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SLASHWIRE_PUBLIC_KEY", " abc ")
    monkeypatch.delenv("SLASHWIRE_BOT_TOKEN", raising=False)
    monkeypatch.setenv("SLASHWIRE_APP_ID", "")

    cfg = BotConfig.from_raw(root=tmp_path, raw={})

    assert cfg.host == "127.0.0.1"
    assert cfg.port == 3000
    assert cfg.public_key == "abc"
    assert cfg.bot_token is None
    assert cfg.application_id is None
    assert cfg.response_timeout_seconds is None
    assert cfg.command_registration.scope == "global"


def test_custom_env_names_and_guild_scope(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TEST_DISCORD_TOKEN", "token")
    monkeypatch.setenv("TEST_DISCORD_APP_ID", "1234567890")

    cfg = BotConfig.from_raw(
        root=tmp_path,
        raw={
            "port": 8080,
            "bot_token_env": "TEST_DISCORD_TOKEN",
            "app_id_env": "TEST_DISCORD_APP_ID",
            "response_timeout_seconds": 2,
            "command_registration": {"scope": "GUILD", "guild_ids": [123, "456"]},
        },
    )

    assert cfg.port == 8080
    assert cfg.require_application_credentials() == ("token", "1234567890")
    assert cfg.response_timeout_seconds == 2.0
    assert cfg.command_registration.scope == "guild"
    assert cfg.command_registration.guild_ids == ("123", "456")


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"port": "80"}, "port must be an integer"),
        ({"port": 0}, "port must be between"),
        ({"host": " "}, "host must be non-empty"),
        ({"response_timeout_seconds": 0}, "response_timeout_seconds must be > 0"),
        ({"response_timeout_seconds": "3"}, "must be a number"),
        ({"command_registration": {"scope": "dm"}}, "scope must be"),
        ({"command_registration": {"scope": "guild"}}, "guild_ids is required"),
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, raw: dict, message: str) -> None:
    with pytest.raises(BotConfigError, match=message):
        BotConfig.from_raw(root=tmp_path, raw=raw)


def test_missing_credentials_are_reported(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("SLASHWIRE_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("SLASHWIRE_BOT_TOKEN", raising=False)
    cfg = BotConfig.from_raw(root=tmp_path, raw={})

    with pytest.raises(BotConfigError, match="SLASHWIRE_PUBLIC_KEY"):
        cfg.require_public_key()
    with pytest.raises(BotConfigError, match="SLASHWIRE_BOT_TOKEN"):
        cfg.require_application_credentials()


def test_load_finds_config_in_parent_directory(tmp_path: Path) -> None:
    (tmp_path / "slashwire.yml").write_text(
        "port: 4000\nlog:\n  path: logs/bot.log\n", encoding="utf-8"
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    cfg = BotConfig.load(nested)

    assert cfg.root == tmp_path.resolve()
    assert cfg.port == 4000
    assert cfg.log is not None
    assert cfg.log.path == (tmp_path / "logs" / "bot.log").resolve()


def test_load_without_file_uses_defaults(tmp_path: Path) -> None:
    loaded = load_config(tmp_path)

    assert loaded.path is None
    assert loaded.raw == {}
    assert loaded.log.path == (tmp_path / ".slashwire" / "slashwire.log").resolve()


def test_invalid_yaml_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / "slashwire.yml").write_text("port: [1, 2\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(tmp_path)


def test_non_mapping_yaml_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / "slashwire.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(tmp_path)
