"""User configuration persistence for Meta Surfer.

Saves and loads user preferences from ~/.metasurfer/config.yaml.
CLI arguments override user config, which overrides system defaults.

Priority: CLI args > user config > system defaults
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from utils.config import Config

logger = logging.getLogger(__name__)

CONFIG_FILE = Config.DATA_DIR / "config.yaml"

# Default user preferences
DEFAULT_USER_CONFIG = {
    "model": Config.LITELLM_MODEL,
    "temperature": Config.TEMPERATURE,
    "max_output_tokens": Config.MAX_OUTPUT_TOKENS,
    "default_category": "literature",
}


def load_user_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load user configuration from ~/.metasurfer/config.yaml.

    Args:
        config_file: Override path, mainly for tests

    Returns:
        User config dict, or defaults if file doesn't exist
    """
    path = config_file or CONFIG_FILE
    if not path.exists():
        return dict(DEFAULT_USER_CONFIG)

    try:
        with open(path, encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}

        if not isinstance(user_config, dict):
            logger.warning(f"Ignoring user config at {path}: expected a mapping")
            return dict(DEFAULT_USER_CONFIG)

        merged = dict(DEFAULT_USER_CONFIG)
        merged.update({k: v for k, v in user_config.items() if v is not None})

        logger.info(f"Loaded user config from {path}")
        return merged

    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load user config: {e}")
        return dict(DEFAULT_USER_CONFIG)


def save_user_config(config: Dict[str, Any], config_file: Optional[Path] = None) -> bool:
    """Save user configuration to ~/.metasurfer/config.yaml.

    Args:
        config: Configuration dict to save
        config_file: Override path, mainly for tests

    Returns:
        True if saved successfully
    """
    path = config_file or CONFIG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False, allow_unicode=True)

        logger.info(f"Saved user config to {path}")
        return True

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to save user config: {e}")
        return False


def merge_with_cli_args(
    cli_model: Optional[str] = None,
    cli_temperature: Optional[float] = None,
    cli_max_output_tokens: Optional[int] = None,
    cli_category: Optional[str] = None,
    config_file: Optional[Path] = None,
) -> Dict[str, Any]:
    """Merge user config with CLI arguments.

    CLI arguments take priority over user config.

    Returns:
        Merged configuration dict
    """
    config = load_user_config(config_file)

    if cli_model is not None:
        config["model"] = cli_model
    if cli_temperature is not None:
        config["temperature"] = cli_temperature
    if cli_max_output_tokens is not None:
        config["max_output_tokens"] = cli_max_output_tokens
    if cli_category is not None:
        config["default_category"] = cli_category

    return config
