"""Configuration management for slowlog-tail.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--host, --port, etc.)
2. --url flag (parsed into components)
3. Environment variables (REDIS_HOST, REDIS_PORT, REDIS_DB, ...)
4. Named profile (--profile or SLOWLOG_TAIL_PROFILE env var)
5. Config file defaults
6. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import BaseModel, computed_field, field_validator, model_validator

from slowlog_tail.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "slowlog-tail" / "config.toml"

DEFAULT_INTERVAL = 1
DEFAULT_LENGTH = 128

PROFILE_ENV_VAR = "SLOWLOG_TAIL_PROFILE"

# REDISCLI_AUTH is listed first so REDIS_PASSWORD wins when both are set.
_REDIS_ENV_VARS: dict[str, str] = {
    "REDIS_HOST": "host",
    "REDIS_PORT": "port",
    "REDIS_DB": "db",
    "REDIS_USERNAME": "username",
    "REDISCLI_AUTH": "password",  # pragma: allowlist secret
    "REDIS_PASSWORD": "password",  # pragma: allowlist secret
}

_INT_FIELDS = {"port", "db"}

_PROFILE_DEFAULTS: dict[str, Any] = {
    "host": "localhost",
    "port": 6379,
    "db": 0,
    "username": None,
    "password": None,
    "ssl": False,
    "socket_timeout": 10.0,
    "connect_timeout": 10.0,
    "client_name": "slowlog-tail",
}


def parse_url(url: str) -> dict[str, Any]:
    """Supports redis:// and rediss:// schemes with an optional /db path."""
    parsed = urlparse(url)
    if parsed.scheme not in ("redis", "rediss"):
        msg = f"Invalid URL scheme: '{parsed.scheme}'. Expected 'redis' or 'rediss'"
        raise ConfigError(msg)

    result: dict[str, Any] = {"ssl": parsed.scheme == "rediss"}
    if parsed.hostname:
        result["host"] = parsed.hostname
    try:
        port = parsed.port
    except ValueError as e:
        raise ConfigError(f"Invalid port in URL: {e}") from e
    if port:
        result["port"] = port
    db_path = parsed.path.strip("/")
    if db_path:
        if not db_path.isdigit():
            msg = f"Invalid database in URL: '{db_path}'. Must be an integer"
            raise ConfigError(msg)
        result["db"] = int(db_path)
    if parsed.username:
        result["username"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    query_params = parse_qs(parsed.query)
    if "client_name" in query_params:
        result["client_name"] = query_params["client_name"][0]
    return result


class RedisProfile(BaseModel):
    url: str | None = None
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    username: str | None = None
    password: str | None = None
    ssl: bool = False
    socket_timeout: float = 10.0
    connect_timeout: float = 10.0
    client_name: str = "slowlog-tail"

    @model_validator(mode="before")
    @classmethod
    def parse_url_into_components(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("url"):
            url_fields = parse_url(data["url"])
            for key, value in url_fields.items():
                if key not in data:
                    data[key] = value
        return data

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            msg = f"Invalid port: {v}. Must be 1-65535"
            raise ValueError(msg)
        return v

    @field_validator("db")
    @classmethod
    def validate_db(cls, v: int) -> int:
        if v < 0:
            msg = f"Invalid db: {v}. Must be >= 0"
            raise ValueError(msg)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def connection_url(self) -> str:
        userinfo = ""
        if self.username and self.password:
            userinfo = f"{self.username}:***@"
        elif self.password:
            userinfo = ":***@"
        elif self.username:
            userinfo = f"{self.username}@"
        scheme = "rediss" if self.ssl else "redis"
        return f"{scheme}://{userinfo}{self.host}:{self.port}/{self.db}"


class AppConfig(BaseModel):
    default_interval: int = DEFAULT_INTERVAL
    default_length: int = DEFAULT_LENGTH
    default_format: str | None = None
    default_profile: str | None = None
    profiles: dict[str, RedisProfile] = {}

    @field_validator("default_interval")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if not (1 <= v <= 3600):
            msg = f"default_interval must be between 1 and 3600, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("default_length")
    @classmethod
    def validate_length(cls, v: int) -> int:
        if v < 1:
            msg = f"default_length must be >= 1, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str | None) -> str | None:
        if v is not None and v not in ("text", "json", "table"):
            msg = f"Invalid default_format: '{v}'. Must be one of: json, table, text"
            raise ValueError(msg)
        return v


class ResolvedConfig(BaseModel):
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    username: str | None = None
    password: str | None = None
    ssl: bool = False
    socket_timeout: float = 10.0
    connect_timeout: float = 10.0
    client_name: str = "slowlog-tail"
    interval: int = DEFAULT_INTERVAL
    length: int = DEFAULT_LENGTH
    default_format: str | None = None
    active_profile: str | None = None
    sources: dict[str, str] = {}

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except ConfigError:
        raise
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    url: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > URL > env > profile > config defaults > built-in defaults.
    """
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {}

    # Layer 1: Built-in defaults
    resolved.update(_PROFILE_DEFAULTS)
    resolved["interval"] = DEFAULT_INTERVAL
    resolved["length"] = DEFAULT_LENGTH
    resolved["default_format"] = None
    for key in resolved:
        sources[key] = "default"

    # Layer 2: Config file global defaults
    if config.default_interval != DEFAULT_INTERVAL:
        resolved["interval"] = config.default_interval
        sources["interval"] = "config"
    if config.default_length != DEFAULT_LENGTH:
        resolved["length"] = config.default_length
        sources["length"] = "config"
    if config.default_format is not None:
        resolved["default_format"] = config.default_format
        sources["default_format"] = "config"

    # Layer 3: Named profile
    effective_profile = profile_name
    if not effective_profile:
        effective_profile = os.environ.get(PROFILE_ENV_VAR)
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        for key in profile.model_fields_set:
            if key in ("url",):
                continue
            if key in resolved:
                resolved[key] = getattr(profile, key)
                sources[key] = f"profile: {effective_profile}"

    # Layer 4: Environment variables
    for env_var, field_name in _REDIS_ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if field_name in _INT_FIELDS:
            try:
                resolved[field_name] = int(value)
            except ValueError:
                msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
                raise ConfigError(msg) from None
        else:
            resolved[field_name] = value
        sources[field_name] = f"env: {env_var}"

    # Layer 5: URL flag
    if url:
        url_fields = parse_url(url)
        for key, value in url_fields.items():
            if key in resolved:
                resolved[key] = value
                sources[key] = "url"

    # Layer 6: CLI flags (highest priority)
    cli_to_field = {
        "host": "host",
        "port": "port",
        "db": "db",
        "user": "username",
        "password": "password",  # pragma: allowlist secret
        "interval": "interval",
        "length": "length",
    }
    for cli_name, field_name in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            resolved[field_name] = value
            sources[field_name] = f"cli: --{cli_name}"

    resolved["active_profile"] = effective_profile
    resolved["sources"] = sources
    return ResolvedConfig(**resolved)
