from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .exceptions import ConfigError

CONFIG_FILENAME = "slashwire.yml"
DEFAULT_LOG_PATH = ".slashwire/slashwire.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 3


@dataclasses.dataclass
class LogConfig:
    path: Path
    max_bytes: int
    backup_count: int


@dataclasses.dataclass
class LoadedConfig:
    root: Path
    path: Optional[Path]
    raw: Dict[str, Any]
    log: LogConfig


def _load_yaml_dict(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a mapping: {path}")
    return data


def _parse_log_config(root: Path, raw: Mapping[str, Any]) -> LogConfig:
    log_raw = raw.get("log")
    log_cfg: Mapping[str, Any] = log_raw if isinstance(log_raw, dict) else {}
    path_value = log_cfg.get("path", DEFAULT_LOG_PATH)
    if not isinstance(path_value, str) or not path_value.strip():
        raise ConfigError("log.path must be a non-empty string")
    try:
        max_bytes = int(log_cfg.get("max_bytes", DEFAULT_LOG_MAX_BYTES))
        backup_count = int(log_cfg.get("backup_count", DEFAULT_LOG_BACKUP_COUNT))
    except (TypeError, ValueError) as exc:
        raise ConfigError("log.max_bytes and log.backup_count must be integers") from exc
    if max_bytes <= 0:
        raise ConfigError("log.max_bytes must be > 0")
    if backup_count < 0:
        raise ConfigError("log.backup_count must be >= 0")
    return LogConfig(
        path=(root / path_value).resolve(),
        max_bytes=max_bytes,
        backup_count=backup_count,
    )


def find_config_path(start: Path) -> Optional[Path]:
    if start.is_file():
        return start
    for candidate in (start, *start.parents):
        config_path = candidate / CONFIG_FILENAME
        if config_path.exists():
            return config_path
    return None


def load_config(path: Optional[Path] = None) -> LoadedConfig:
    """Load `slashwire.yml` from `path` (file or directory) or the cwd upwards.

    A missing file is not an error: every setting has a default and secrets
    are read from the environment.
    """
    start = (path or Path.cwd()).expanduser().resolve()
    config_path = find_config_path(start)
    if config_path is None:
        root = start if start.is_dir() else start.parent
        raw: Dict[str, Any] = {}
    else:
        root = config_path.parent
        raw = _load_yaml_dict(config_path)
    return LoadedConfig(
        root=root,
        path=config_path,
        raw=raw,
        log=_parse_log_config(root, raw),
    )
