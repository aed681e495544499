from __future__ import annotations

import asyncio
import dataclasses
import importlib
import json
import logging
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from .client import Client
from .config import BotConfig, BotConfigError
from .core.config import load_config
from .core.exceptions import ConfigError
from .core.logging_utils import setup_rotating_logger
from .doctor import DoctorReport, doctor_checks
from .errors import DiscordAPIError

app = typer.Typer(add_completion=False, help="Serve Discord interactions over HTTP.")


def raise_exit(message: str, *, cause: Optional[BaseException] = None) -> NoReturn:
    typer.echo(message, err=True)
    if cause is not None:
        raise typer.Exit(code=1) from cause
    raise typer.Exit(code=1)


def _load_bot_config(path: Optional[Path]) -> tuple[BotConfig, logging.Logger]:
    try:
        loaded = load_config(path)
        config = BotConfig.from_raw(root=loaded.root, raw=loaded.raw, log=loaded.log)
    except (ConfigError, BotConfigError) as exc:
        raise_exit(str(exc), cause=exc)
    logger = setup_rotating_logger("slashwire", loaded.log)
    return config, logger


def load_client(target: str, config: BotConfig, *, logger: logging.Logger) -> Client:
    """Resolve `module:attr` to a Client.

    `attr` may be a Client, or a callable that receives a fresh Client built
    from the loaded config and registers handlers on it.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"app must look like 'module:attr', got {target!r}")
    module = importlib.import_module(module_name)
    value: Any = module
    for part in attr.split("."):
        value = getattr(value, part)
    if isinstance(value, Client):
        return value
    if callable(value):
        client = Client(config, logger=logger)
        result = value(client)
        return result if isinstance(result, Client) else client
    raise ValueError(f"{target} is neither a Client nor a setup callable")


@app.command("serve")
def serve(
    app_path: str = typer.Option(..., "--app", help="Handlers as module:attr"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to slashwire.yml or its directory"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
) -> None:
    config, logger = _load_bot_config(config_path)
    if host is not None or port is not None:
        config = dataclasses.replace(
            config, host=host or config.host, port=port or config.port
        )
    try:
        client = load_client(app_path, config, logger=logger)
    except (ImportError, AttributeError, ValueError) as exc:
        raise_exit(f"Could not load app {app_path}: {exc}", cause=exc)
    try:
        client.start()
    except BotConfigError as exc:
        raise_exit(str(exc), cause=exc)
    except KeyboardInterrupt:
        typer.echo("Server stopped.")


@app.command("sync-commands")
def sync_commands_cmd(
    app_path: str = typer.Option(..., "--app", help="Handlers as module:attr"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to slashwire.yml or its directory"
    ),
) -> None:
    config, logger = _load_bot_config(config_path)
    try:
        client = load_client(app_path, config, logger=logger)
    except (ImportError, AttributeError, ValueError) as exc:
        raise_exit(f"Could not load app {app_path}: {exc}", cause=exc)
    try:
        asyncio.run(client.sync_commands())
    except (BotConfigError, DiscordAPIError, ValueError) as exc:
        raise_exit(str(exc), cause=exc)
    typer.echo("Application commands synchronized.")


@app.command("doctor")
def doctor_cmd(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to slashwire.yml or its directory"
    ),
    app_path: Optional[str] = typer.Option(
        None, "--app", help="Handlers as module:attr, to check registrations"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON for scripting"),
) -> None:
    config, logger = _load_bot_config(config_path)
    commands = None
    if app_path:
        try:
            commands = load_client(app_path, config, logger=logger).commands
        except (ImportError, AttributeError, ValueError) as exc:
            raise_exit(f"Could not load app {app_path}: {exc}", cause=exc)
    report = DoctorReport(checks=doctor_checks(config, commands=commands))
    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        if report.has_errors():
            raise typer.Exit(code=1)
        return
    for check in report.checks:
        line = f"- {check.status.upper()}: {check.message}"
        if check.fix:
            line = f"{line} Fix: {check.fix}"
        typer.echo(line)
    if report.has_errors():
        raise_exit("Doctor check failed")
    typer.echo("Doctor check passed")


def main() -> None:
    app()
