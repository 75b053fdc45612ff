"""Configuration loading for the upload signer.

Supports two configuration sources:
1. Environment variables (for deployments) - takes priority
2. config.json file (for local development)

Environment Variables:
    R2_ACCOUNT_ID=xxx
    R2_ACCESS_KEY_ID=xxx
    R2_SECRET_ACCESS_KEY=xxx
    R2_BUCKET=xxx
    R2_PUBLIC_BASE_URL=https://media.example.com
    R2_MAX_AUDIO_BYTES=314572800   (optional)
    SITE_ORIGIN=https://blog.example.com   (optional)

The config.json file uses the lowercase names without the R2_ prefix:
    {"account_id": "...", "access_key_id": "...", ...}

SITE_ORIGIN (config.json: "site_origin") is read on its own by
load_site_origin, so the origin check never depends on the bucket
settings being complete.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

# 300 MiB
DEFAULT_MAX_AUDIO_BYTES = 300 * 1024 * 1024

# Required settings, as (config.json key, environment variable)
REQUIRED_FIELDS = [
    ("account_id", "R2_ACCOUNT_ID"),
    ("access_key_id", "R2_ACCESS_KEY_ID"),
    ("secret_access_key", "R2_SECRET_ACCESS_KEY"),
    ("bucket", "R2_BUCKET"),
    ("public_base_url", "R2_PUBLIC_BASE_URL"),
]


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


class MissingConfiguration(ConfigError):
    """Raised when required deployment settings are absent.

    This is a deployment error, not a per-request one: retrying the
    request cannot fix it.
    """

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required settings: {', '.join(missing)}")
        self.missing = missing


@dataclass(frozen=True)
class SignerConfig:
    """Deployment settings for the object store and the public CDN."""

    account_id: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    bucket: str
    public_base_url: str
    max_audio_bytes: int = DEFAULT_MAX_AUDIO_BYTES

    def missing_fields(self) -> list[str]:
        """Return the environment variable names of empty required settings."""
        return [env for attr, env in REQUIRED_FIELDS if not getattr(self, attr)]

    def require_complete(self) -> None:
        """Raise MissingConfiguration unless every required setting is present."""
        missing = self.missing_fields()
        if missing:
            raise MissingConfiguration(missing)


def parse_max_bytes(value: Any) -> int:
    """Parse the optional maximum upload size override.

    Args:
        value: Raw value from the environment or config.json. None or
               an empty string selects the default.

    Returns:
        The maximum size in bytes.

    Raises:
        ConfigError: If the value is not a positive integer.
    """
    if value is None or value == "":
        return DEFAULT_MAX_AUDIO_BYTES

    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid maximum upload size: {value!r}") from e

    if parsed <= 0:
        raise ConfigError(f"Invalid maximum upload size: {value!r}")
    return parsed


def _build_config(values: dict[str, Any]) -> SignerConfig:
    missing = [env for attr, env in REQUIRED_FIELDS if not values.get(attr)]
    if missing:
        raise MissingConfiguration(missing)

    return SignerConfig(
        account_id=str(values["account_id"]),
        access_key_id=str(values["access_key_id"]),
        secret_access_key=str(values["secret_access_key"]),
        bucket=str(values["bucket"]),
        public_base_url=str(values["public_base_url"]).rstrip("/"),
        max_audio_bytes=parse_max_bytes(values.get("max_audio_bytes")),
    )


def load_from_json(config_path: str) -> SignerConfig:
    """Load the signer configuration from a JSON file.

    Args:
        config_path: Path to the config.json file.

    Returns:
        The loaded SignerConfig.

    Raises:
        ConfigError: If the file doesn't exist or contains invalid JSON.
        MissingConfiguration: If required fields are missing or empty.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    return _build_config(data)


def load_from_env() -> SignerConfig:
    """Load the signer configuration from environment variables.

    Returns:
        The loaded SignerConfig.

    Raises:
        MissingConfiguration: If any required variable is unset or empty.
        ConfigError: If R2_MAX_AUDIO_BYTES is malformed.
    """
    values = {attr: os.environ.get(env, "") for attr, env in REQUIRED_FIELDS}
    values["max_audio_bytes"] = os.environ.get("R2_MAX_AUDIO_BYTES")
    return _build_config(values)


def has_env_config() -> bool:
    """Check if any R2_* environment variables exist."""
    return any(key.startswith("R2_") for key in os.environ)


def load_config(config_path: str = "config.json") -> SignerConfig:
    """Load the signer configuration with environment priority.

    Priority order:
    1. Environment variables (if any R2_* vars exist)
    2. config.json file

    Args:
        config_path: Path to config.json (used as fallback).

    Returns:
        The loaded SignerConfig.

    Raises:
        MissingConfiguration: If neither source is present, or the chosen
                              source lacks required settings.
        ConfigError: If the chosen source is malformed.
    """
    if has_env_config():
        return load_from_env()
    if Path(config_path).exists():
        return load_from_json(config_path)

    raise MissingConfiguration([env for _, env in REQUIRED_FIELDS])


def load_site_origin(config_path: str = "config.json") -> Optional[str]:
    """Read the optional serving origin without loading anything else.

    Uses the same source selection as load_config. An unreadable
    config.json yields None here; load_config reports it afterwards.

    Args:
        config_path: Path to config.json (used as fallback).

    Returns:
        The configured origin, or None to use the request's own origin.
    """
    if has_env_config() or "SITE_ORIGIN" in os.environ:
        return os.environ.get("SITE_ORIGIN") or None

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None

    if not isinstance(data, dict):
        return None
    return data.get("site_origin") or None
