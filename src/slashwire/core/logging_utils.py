from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import LogConfig

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _render_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_render_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _render_value(item) for key, item in value.items()}
    return repr(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    exc: BaseException | None = None,
    **fields: Any,
) -> None:
    """Emit a structured log line: the event name followed by JSON fields."""
    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        payload[key] = _render_value(value)
    if exc is not None:
        payload["error"] = str(exc)
        payload["error_type"] = type(exc).__name__
    try:
        message = json.dumps(payload, sort_keys=False, default=repr)
    except (TypeError, ValueError):
        message = f"{event} {fields!r}"
    logger.log(level, message, exc_info=exc if level >= logging.ERROR else None)


def setup_rotating_logger(name: str, config: LogConfig) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    target = str(config.path.resolve())
    for handler in logger.handlers:
        if (
            isinstance(handler, RotatingFileHandler)
            and getattr(handler, "baseFilename", None) == target
        ):
            return logger
    config.path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        config.path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
