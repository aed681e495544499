"""Environment checks for a slashwire deployment."""

from __future__ import annotations

import dataclasses
from typing import Any, Optional

from nacl.signing import VerifyKey

from .config import BotConfig
from .registry import CommandRegistry


@dataclasses.dataclass(frozen=True)
class DoctorCheck:
    name: str
    passed: bool
    message: str
    check_id: str
    severity: str = "error"
    fix: Optional[str] = None

    @property
    def status(self) -> str:
        if self.passed:
            return "ok" if self.severity != "warning" else "warning"
        return self.severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "status": self.status,
            "message": self.message,
            "check_id": self.check_id,
            "severity": self.severity,
            "fix": self.fix,
        }


@dataclasses.dataclass(frozen=True)
class DoctorReport:
    checks: list[DoctorCheck]

    def has_errors(self) -> bool:
        return any(
            not check.passed and check.severity == "error" for check in self.checks
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": not self.has_errors(),
            "checks": [check.to_dict() for check in self.checks],
        }


def _public_key_check(config: BotConfig) -> DoctorCheck:
    if not config.public_key:
        return DoctorCheck(
            name="Public key",
            passed=False,
            message=f"Application public key not found in environment: {config.public_key_env}",
            check_id="slashwire.public_key",
            fix=f"Set {config.public_key_env} to the key shown in the developer portal.",
        )
    try:
        VerifyKey(bytes.fromhex(config.public_key))
    except ValueError:
        return DoctorCheck(
            name="Public key",
            passed=False,
            message=f"{config.public_key_env} is not a 32-byte hex Ed25519 key.",
            check_id="slashwire.public_key",
            fix="Copy the public key again from the developer portal.",
        )
    return DoctorCheck(
        name="Public key",
        passed=True,
        message=f"Public key configured (env: {config.public_key_env}).",
        check_id="slashwire.public_key",
        severity="info",
    )


def doctor_checks(
    config: BotConfig, *, commands: Optional[CommandRegistry] = None
) -> list[DoctorCheck]:
    """Check secrets and command registration settings for `config`."""
    checks = [_public_key_check(config)]

    if config.bot_token:
        checks.append(
            DoctorCheck(
                name="Bot token",
                passed=True,
                message=f"Bot token configured (env: {config.bot_token_env}).",
                check_id="slashwire.bot_token",
                severity="info",
            )
        )
    else:
        checks.append(
            DoctorCheck(
                name="Bot token",
                passed=False,
                message=(
                    f"Bot token not found in environment: {config.bot_token_env}; "
                    "follow-ups still work, bot REST calls and command sync do not."
                ),
                check_id="slashwire.bot_token",
                severity="warning",
                fix=f"Set {config.bot_token_env} environment variable.",
            )
        )

    if config.application_id:
        checks.append(
            DoctorCheck(
                name="Application ID",
                passed=True,
                message=f"Application ID configured (env: {config.app_id_env}).",
                check_id="slashwire.app_id",
                severity="info",
            )
        )
    else:
        checks.append(
            DoctorCheck(
                name="Application ID",
                passed=False,
                message=f"Application ID not found in environment: {config.app_id_env}",
                check_id="slashwire.app_id",
                severity="warning",
                fix=f"Set {config.app_id_env} environment variable.",
            )
        )

    registration = config.command_registration
    checks.append(
        DoctorCheck(
            name="Command registration",
            passed=True,
            message=(
                "Commands sync globally."
                if registration.scope == "global"
                else f"Commands sync to guilds: {', '.join(registration.guild_ids)}"
            ),
            check_id="slashwire.command_registration",
            severity="info",
        )
    )

    if commands is not None:
        advertised = commands.convert_commands()
        checks.append(
            DoctorCheck(
                name="Registered commands",
                passed=bool(len(commands)),
                message=(
                    f"{len(commands)} handlers registered, {len(advertised)} advertised."
                    if len(commands)
                    else "No command handlers are registered."
                ),
                check_id="slashwire.commands",
                severity="info" if len(commands) else "warning",
            )
        )

    if config.response_timeout_seconds is not None and config.response_timeout_seconds > 3:
        checks.append(
            DoctorCheck(
                name="Response timeout",
                passed=True,
                message=(
                    f"response_timeout_seconds={config.response_timeout_seconds} exceeds "
                    "Discord's 3 second deadline for the initial response."
                ),
                check_id="slashwire.response_timeout",
                severity="warning",
                fix="Lower response_timeout_seconds or defer slow commands.",
            )
        )
    return checks
