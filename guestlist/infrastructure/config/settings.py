"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables and a YAML file
(~/.guestlist/config.yaml). This module is the only place that reads
process environment; it turns settings into the explicit ClientConfig and
OrganizationProfile structs consumed by the core.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from guestlist.domain.errors import ConfigurationError
from guestlist.domain.models.api import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    ClientConfig,
    RetryPolicy,
)
from guestlist.domain.models.office import OrganizationProfile

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".guestlist"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ({'a': {'b': 1}} -> {'a.b': 1})."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}".lower()
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(_flatten(yaml_config))
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            logger.warning(f"YAML config file {config_file} did not contain a mapping.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug(".env file not found at or above current directory.")

    # 3. Environment Variables (Highest priority) are handled in get_config
    _loaded = True
    logger.debug("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None, coerce: bool = True) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration
    2. Environment variable (dots become underscores: 'logging.level' -> LOGGING_LEVEL)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key
        default: Default value if the key is not found
        coerce: Convert environment strings to bool/int/float

    Returns:
        The configuration value
    """
    normalized = key.lower()
    if normalized in _test_config:
        return _test_config[normalized]

    env_key = normalized.upper().replace(".", "_")
    if env_key in os.environ:
        value = os.environ[env_key]
        return _coerce(value) if coerce else value

    if normalized in _config:
        return _config[normalized]

    logger.debug(f"Config key '{key}' not found. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _get_str(key: str, default: Optional[str] = None) -> Optional[str]:
    value = get_config(key, default, coerce=False)
    return None if value is None else str(value)


def _get_number(key: str, default: float, cast: type) -> Any:
    value = get_config(key, default)
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Config key '{key}' must be a number, got {value!r}") from None


# --- Convenience Functions ---

def get_gather_api_key() -> Optional[str]:
    """Convenience function to get the Gather.Town API key."""
    return _get_str("gather.api_key")


def build_client_config(api_key: Optional[str] = None, base_url: Optional[str] = None) -> ClientConfig:
    """Builds the explicit client configuration from loaded settings.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    key = api_key if api_key is not None else get_gather_api_key()
    if not key:
        raise ConfigurationError("GATHER_API_KEY is not configured")
    retry = RetryPolicy(
        max_retries=_get_number("gather.max_retries", 3, int),
        initial_backoff_s=_get_number("gather.backoff_seconds", 1.0, float),
    )
    return ClientConfig(
        api_key=key,
        base_url=base_url or _get_str("gather.base_url", DEFAULT_BASE_URL),
        retry=retry,
        timeout_s=_get_number("gather.timeout_seconds", DEFAULT_TIMEOUT_SECONDS, float),
    )


def build_organization_profile() -> OrganizationProfile:
    """Builds the organization profile, falling back to the built-in defaults."""
    defaults = OrganizationProfile()
    return OrganizationProfile(
        organization_name=_get_str("fc.organization_name", defaults.organization_name),
        contact_email=_get_str("fc.contact_email", defaults.contact_email),
        brand_color=_get_str("fc.brand_color", defaults.brand_color),
        logo_url=_get_str("fc.logo_url", defaults.logo_url),
        space_name=_get_str("space.name", defaults.space_name),
        space_description=_get_str("space.description", defaults.space_description),
        space_capacity=_get_number("space.capacity", defaults.space_capacity, int),
        space_template=_get_str("space.template", defaults.space_template),
    )


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update({k.lower(): v for k, v in config_dict.items()})
    logger.debug(f"Set testing configuration: {sorted(config_dict)}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
