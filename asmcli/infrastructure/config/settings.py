"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (~/.asm/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from asmcli.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".asm"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

KEY_ID_VAR = "ASM_KEY_ID"
CLIENT_ID_VAR = "ASM_CLIENT_ID"
PRIVATE_KEY_PATH_VAR = "ASM_PRIVATE_KEY_PATH"
RATE_LIMIT_VAR = "ASM_RATE_LIMIT"
DEFAULT_TIMEOUT_SECONDS = 30.0

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Values set with set_config
    2. Environment Variables
    3. .env file
    4. YAML configuration file

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(_flatten(yaml_config))
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False keeps real environment variables on top
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ('api': {'timeout_seconds'} -> 'api.timeout_seconds')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def _coerce(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        return float(value) if '.' in value else int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None, coerce: bool = True) -> Any:
    """
    Get a configuration value by key.

    Dotted keys are also looked up in the environment with dots replaced by
    underscores ('api.timeout_seconds' -> API_TIMEOUT_SECONDS).

    Args:
        key: The configuration key
        default: Default value if the key is not found
        coerce: Convert environment strings to bool/int/float where they look like one

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    if env_key in os.environ:
        value = os.environ[env_key]
        return _coerce(value) if coerce else value

    if key in _config:
        return _config[key]

    return default


def set_config(key: str, value: Any) -> None:
    """Overrides a configuration value for the rest of the process.

    Args:
        key: Configuration key (e.g., 'logging.level')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value}")
    _test_config[key] = value


def reset_config() -> None:
    """Forgets everything loaded or set. Used between tests."""
    global _config, _loaded
    _config = {}
    _test_config.clear()
    _loaded = False


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def get_credentials() -> Tuple[str, str, str]:
    """Returns (key_id, client_id, private_key_path).

    Raises:
        ConfigurationError: Naming every missing variable, or the key file
            if it does not exist.
    """
    key_id = get_config(KEY_ID_VAR, coerce=False)
    client_id = get_config(CLIENT_ID_VAR, coerce=False)
    private_key_path = get_config(PRIVATE_KEY_PATH_VAR, coerce=False)

    missing = [
        name for name, value in (
            (KEY_ID_VAR, key_id),
            (CLIENT_ID_VAR, client_id),
            (PRIVATE_KEY_PATH_VAR, private_key_path),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    private_key_path = str(Path(str(private_key_path)).expanduser())
    if not Path(private_key_path).exists():
        raise ConfigurationError(f"Private key file not found: {private_key_path}")

    return str(key_id), str(client_id), private_key_path


def get_rate_limit_enabled() -> bool:
    """Whether requests are paced (ASM_RATE_LIMIT, default true)."""
    return bool(get_config(RATE_LIMIT_VAR, True))


def get_timeout_seconds() -> float:
    """Per-request HTTP timeout (api.timeout_seconds, default 30)."""
    return float(get_config('api.timeout_seconds', DEFAULT_TIMEOUT_SECONDS))
