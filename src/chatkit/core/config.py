"""Chat settings loaded from an optional config file plus environment overrides."""

from __future__ import annotations

import enum
import json
import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

CONFIG_PATH_ENV_VAR = "CHATKIT_CONFIG_PATH"
ENV_PREFIX = "CHATKIT_"
DEFAULT_CONFIG_FILE = "chatkit.toml"

_logger = logging.getLogger("chatkit.config")


class ConfigError(ValueError):
    """Raised when a setting cannot be coerced to its declared type."""


class ChatAlignment(str, enum.Enum):
    START = "start"
    END = "end"


@dataclass(slots=True)
class ChatSettings:
    sender_alignment: ChatAlignment = ChatAlignment.END
    new_message_scroll_threshold: float = 300.0
    bottom_threshold: float = 20.0
    resize_nudge_threshold: float = 10.0
    date_format: str = "%Y.%m.%d"
    read_only: bool = False
    dispatch_endpoint: str | None = None
    dispatch_timeout: float = 10.0

    @property
    def profile_leads_sender(self) -> bool:
        return self.sender_alignment is ChatAlignment.START


def _normalise_key(value: str) -> str:
    return value.strip().upper()


def _parse_toml(raw: str) -> dict[str, Any]:
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as error:
        raise ValueError("Invalid TOML payload") from error
    # settings may live at the top level or under [chatkit]
    section = data.get("chatkit")
    return dict(section) if isinstance(section, Mapping) else data


def _parse_json(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as error:
        raise ValueError("Invalid JSON payload") from error
    if not isinstance(data, dict):
        raise ValueError("JSON config must be an object")
    return data


def _parse_simple_kv(raw: str) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for line in raw.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ValueError("Invalid key/value configuration")
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip('"')
    return data


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        _logger.debug("config.missing", extra={"path": str(path)})
        return {}
    raw_text = path.read_text(encoding="utf-8")
    if not raw_text.strip():
        return {}
    for parser in (_parse_toml, _parse_json, _parse_simple_kv):
        try:
            parsed = parser(raw_text)
        except ValueError:
            continue
        return {_normalise_key(k): v for k, v in parsed.items()}
    raise ConfigError(f"Unreadable config file: {path}")


def _resolve_config_path(path: Path | str | None, environ: Mapping[str, str]) -> Path:
    if path is not None:
        return Path(path).expanduser()
    env_path = environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILE


def _coerce(name: str, default: Any, value: Any) -> Any:
    try:
        if isinstance(default, ChatAlignment) or name == "sender_alignment":
            return ChatAlignment(str(value).strip().lower())
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            lowered = str(value).strip().lower()
            if lowered in {"1", "true", "yes", "on"}:
                return True
            if lowered in {"0", "false", "no", "off"}:
                return False
            raise ValueError(value)
        if isinstance(default, float):
            return float(value)
        if value is None or value == "":
            return None if default is None else default
        return str(value)
    except ValueError as error:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from error


def load_settings(
    path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ChatSettings:
    """Build settings from defaults, then the config file, then ``CHATKIT_*`` variables."""

    environment = os.environ if environ is None else environ
    file_values = _read_config_file(_resolve_config_path(path, environment))
    settings = ChatSettings()
    for spec in fields(ChatSettings):
        key = _normalise_key(spec.name)
        default = getattr(settings, spec.name)
        if key in file_values:
            setattr(settings, spec.name, _coerce(spec.name, default, file_values[key]))
        env_key = f"{ENV_PREFIX}{key}"
        if env_key in environment:
            setattr(settings, spec.name, _coerce(spec.name, default, environment[env_key]))
    return settings
