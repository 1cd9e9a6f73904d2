"""Run configuration loaded from YAML (or JSON) with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .client.directory_client import DEFAULT_BASE_URL
from .client.errors import ConfigError
from .types import Credentials

ENV_PREFIX = "CLIENTCAST_"

# File key -> attribute name. "bolangtId" is how older config.json files spell
# the locale key.
_KEY_ALIASES = {
    "botId": "bot_id",
    "bolangtId": "lang",
    "baseUrl": "base_url",
}

_ENV_OVERRIDES = ("login", "password", "bot_id", "lang", "base_url")


@dataclass
class ClientCastConfig:
    login: str
    password: str
    bot_id: str = ""
    lang: str = "ru"
    base_url: str = DEFAULT_BASE_URL
    detail_workers: int = 300
    send_workers: int = 10
    pace_seconds: float = 0.1
    request_timeout: float = 30.0
    output_dir: str = "users_json"
    test_recipient: Optional[str] = None
    message: Optional[str] = None
    message_file: Optional[str] = None
    log_file: Optional[str] = None
    log_level: str = "INFO"
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def credentials(self) -> Credentials:
        return Credentials(login=self.login, password=self.password, lang=self.lang)

    def read_message(self) -> Optional[str]:
        """Return the broadcast text, reading ``message_file`` if set."""
        if self.message_file:
            try:
                return Path(self.message_file).read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise ConfigError(f"message_file {self.message_file} is not UTF-8 text: {e}") from e
        return self.message


def load_config(path: str | Path | None = None, use_env: bool = True) -> ClientCastConfig:
    """
    Build the run configuration.

    Values come from ``path`` (YAML; JSON is valid YAML) and are then
    overridden by ``CLIENTCAST_*`` environment variables, including ones
    defined in a local ``.env`` file.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        data = {_KEY_ALIASES.get(k, k): v for k, v in loaded.items()}

    if use_env:
        load_dotenv()
        for key in _ENV_OVERRIDES:
            value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
            if value:
                data[key] = value

    return _build_config(data)


def _build_config(data: Dict[str, Any]) -> ClientCastConfig:
    if not data.get("login") or not data.get("password"):
        raise ConfigError("Both 'login' and 'password' must be configured")

    known = set(ClientCastConfig.__dataclass_fields__) - {"extra"}
    try:
        cfg = ClientCastConfig(
            login=str(data["login"]),
            password=str(data["password"]),
            bot_id=str(data.get("bot_id") or ""),
            lang=str(data.get("lang") or "ru"),
            base_url=str(data.get("base_url") or DEFAULT_BASE_URL),
            detail_workers=int(data.get("detail_workers", 300)),
            send_workers=int(data.get("send_workers", 10)),
            pace_seconds=float(data.get("pace_seconds", 0.1)),
            request_timeout=float(data.get("request_timeout", 30.0)),
            output_dir=str(data.get("output_dir") or "users_json"),
            test_recipient=_optional_str(data.get("test_recipient")),
            message=data.get("message"),
            message_file=data.get("message_file"),
            log_file=data.get("log_file"),
            log_level=str(data.get("log_level") or "INFO"),
            extra={k: v for k, v in data.items() if k not in known},
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e

    if cfg.detail_workers < 1 or cfg.send_workers < 1:
        raise ConfigError("Worker counts must be >= 1")
    if cfg.pace_seconds < 0:
        raise ConfigError("pace_seconds must be >= 0")
    if cfg.request_timeout <= 0:
        raise ConfigError("request_timeout must be > 0")
    return cfg


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
