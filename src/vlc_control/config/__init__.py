"""Configuration management for vlc-control.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from vlc_control.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
