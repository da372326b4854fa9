"""Settings resolution: environment / .env over ~/.config/linctl/config.toml."""

import os
from functools import lru_cache
from pathlib import Path

import tomlkit
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from tomlkit.exceptions import ParseError

from linctl.models import describe_validation_error

CONFIG_PATH = Path.home() / ".config" / "linctl" / "config.toml"

DEFAULT_API_URL = "https://api.linear.app/graphql"

# Keys read from config.toml; anything else in the file is left alone.
_CONFIG_KEYS = ("api_key", "api_url", "timeout", "log_level")


class NotAuthenticatedError(RuntimeError):
    """Raised when no Linear API key is available."""


class ConfigError(RuntimeError):
    """config.toml does not parse, or a setting has an invalid value."""


class LinctlSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LINCTL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = None
    api_url: str = DEFAULT_API_URL
    timeout: float = 30.0  # seconds, per request
    log_level: str = "WARNING"


def _read_config() -> tomlkit.TOMLDocument:
    """Load the config file, returning an empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    with CONFIG_PATH.open() as fh:
        return tomlkit.load(fh)


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Cached read of ~/.config/linctl/config.toml for settings resolution."""
    return _read_config()


def get_settings() -> LinctlSettings:
    """Return settings with env vars and .env overriding config.toml values.

    Precedence (highest to lowest):
    1. LINCTL_* environment variables
    2. LINCTL_* entries in .env in cwd
    3. Top-level keys in ~/.config/linctl/config.toml
    4. Field defaults

    pydantic-settings gives init kwargs the highest priority, so config file
    values are only forwarded for keys the environment left unset.

    Raises ConfigError with a one-line message for an unreadable config file
    or a value that fails validation.
    """
    try:
        env_settings = LinctlSettings()
        toml_config = _load_toml().unwrap()
        file_defaults = {
            key: toml_config[key]
            for key in _CONFIG_KEYS
            if key in toml_config and key not in env_settings.model_fields_set
        }
        if not file_defaults:
            return env_settings
        return LinctlSettings(**file_defaults)
    except ValidationError as exc:
        raise ConfigError(describe_validation_error(exc)) from exc
    except ParseError as exc:
        raise ConfigError(f"{CONFIG_PATH}: {exc}") from exc


def require_api_key(settings: LinctlSettings) -> str:
    if settings.api_key is None or not settings.api_key.get_secret_value().strip():
        raise NotAuthenticatedError("Not authenticated. Run 'linctl auth login' first.")
    return settings.api_key.get_secret_value().strip()


def _write_config(doc: tomlkit.TOMLDocument) -> None:
    """Write the config file owner-only; it holds the API key."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    # os.open only applies the mode when it creates the file
    if CONFIG_PATH.exists():
        CONFIG_PATH.chmod(0o600)
    fd = os.open(CONFIG_PATH, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as fh:
        fh.write(tomlkit.dumps(doc))
    _load_toml.cache_clear()


def save_api_key(api_key: str) -> Path:
    """Write api_key into the config file, preserving comments and other keys."""
    doc = _read_config()
    doc["api_key"] = api_key
    _write_config(doc)
    return CONFIG_PATH


def clear_api_key() -> bool:
    """Remove api_key from the config file. Returns False if nothing was stored."""
    doc = _read_config()
    if "api_key" not in doc:
        return False
    del doc["api_key"]
    _write_config(doc)
    return True
