# magnet_schema/config/loader.py
"""
Configuration loading with auto-creation of defaults.

Uses platformdirs for cross-platform config directory management.
"""

import logging
from pathlib import Path

import yaml
from platformdirs import user_config_path
from pydantic import ValidationError

from magnet_schema.errors import ConfigError

from .schema import MagnetConfig

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Get path to config file, ensuring config directory exists."""
    config_dir = user_config_path("magnet-schema", ensure_exists=True)
    return config_dir / "config.yaml"


def load_config(path: Path | None = None) -> MagnetConfig:
    """
    Load configuration from YAML file.

    If the config file doesn't exist, creates it with defaults.
    Returns validated Pydantic model.

    Args:
        path: Config file to use (default: the per-user config path)

    Raises:
        ConfigError: If the file is not valid YAML or fails validation
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        default_config = MagnetConfig()
        config_dict = default_config.model_dump(mode="json")

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w") as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Created default config at {config_path}")
        return default_config

    try:
        with config_path.open("r") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", str(config_path)) from e

    if config_data is None:
        config_data = {}
    if not isinstance(config_data, dict):
        raise ConfigError("top level must be a mapping", str(config_path))

    try:
        config = MagnetConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}", str(config_path)) from e

    logger.info(f"Loaded config from {config_path}")
    return config
