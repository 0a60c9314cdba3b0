# magnet_schema/config/__init__.py
"""Configuration system for magnet-schema."""

from .loader import get_config_path, load_config
from .schema import DeriveConfig, MagnetConfig, OutputConfig

__all__ = [
    "MagnetConfig",
    "DeriveConfig",
    "OutputConfig",
    "load_config",
    "get_config_path",
]
