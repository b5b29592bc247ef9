"""Configuration management for vlc-control.

Loads settings from a YAML configuration file with environment variable
overrides (``VLC_CONTROL_`` prefix, ``__`` for nested keys). Supports
.env files.

The allow-list, size limit and retry policy are fixed and deliberately
not configurable here.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from vlc_control.domain.models import parse_address

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/vlc-control.yaml")
LOG_LEVEL_ENV_VAR = "VLC_CONTROL_LOG"


def _check_address(value: str) -> str:
    parse_address(value)
    return value


class VlcConfig(BaseModel):
    address: str = Field(default="127.0.0.1:54322", description="VLC rc interface host:port")
    prompt: str = Field(default=">", min_length=1, max_length=1)
    read_timeout: float | None = Field(
        default=None, gt=0, description="Seconds to wait for a prompt; unset waits forever",
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        return _check_address(value)


class ListenerConfig(BaseModel):
    tcp_address: str = Field(default="0.0.0.0:55550")
    udp_address: str = Field(default="0.0.0.0:55551")

    @field_validator("tcp_address", "udp_address")
    @classmethod
    def validate_addresses(cls, value: str) -> str:
        return _check_address(value)


class ApiConfig(BaseModel):
    enabled: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=55552, ge=1, le=65535)


class ActionsConfig(BaseModel):
    restart_vlc: list[str] = Field(
        default_factory=lambda: ["systemctl", "--user", "restart", "vlc-loader.service"],
        min_length=1,
    )
    shutdown: list[str] = Field(
        default_factory=lambda: ["sudo", "shutdown", "-h", "now"], min_length=1,
    )
    reboot: list[str] = Field(
        default_factory=lambda: ["sudo", "shutdown", "-r", "now"], min_length=1,
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)
    modules: dict[str, str] = Field(
        default_factory=dict,
        description="Per-logger levels, e.g. {\"backend.vlc\": \"DEBUG\"}",
    )


class Settings(BaseSettings):
    """Root configuration for vlc-control.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "VLC_CONTROL_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    vlc: VlcConfig = Field(default_factory=VlcConfig)
    listener: ListenerConfig = Field(default_factory=ListenerConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    actions: ActionsConfig = Field(default_factory=ActionsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Init kwargs hold the YAML file, which environment variables override
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    A missing file is not an error: defaults are used instead.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    settings = Settings(**yaml_data)
    _apply_env_overrides(settings)
    return settings


def _apply_env_overrides(settings: Settings) -> None:
    """Let ``VLC_CONTROL_LOG`` override the configured log level."""
    level = os.environ.get(LOG_LEVEL_ENV_VAR, "")
    if level:
        settings.logging.level = level.upper()
