"""Configuration module for the group/role mapper."""
from .settings import ConfigError, MapperConfig, load_settings

__all__ = ["ConfigError", "MapperConfig", "load_settings"]
