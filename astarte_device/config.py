"""
Device Configuration

Environment-based configuration for the device identity and property layer.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings

from . import __version__


class DeviceSettings(BaseSettings):
    """Device settings from environment variables (prefix ``ASTARTE_``)."""

    # Device identity
    realm: str = Field(
        default="",
        description="Astarte realm the device belongs to"
    )

    device_id: str = Field(
        default="",
        description="Device identifier registered in the realm"
    )

    credentials_secret: str = Field(
        default="",
        description="Bearer secret used to authenticate pairing requests"
    )

    # Pairing
    pairing_url: str = Field(
        default="http://localhost:4003",
        description="Base URL of the pairing API"
    )

    credentials_dir: str = Field(
        default="./credentials",
        description="Directory where the device key and certificate are written"
    )

    # Property cache
    database_url: str = Field(
        default="sqlite:///./astarte_device.db",
        description="Property cache database URL"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_format: str = Field(
        default="json",
        description="Log format: json or text"
    )

    app_version: str = Field(
        default=__version__,
    )

    class Config:
        env_prefix = "ASTARTE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


_settings: Optional[DeviceSettings] = None


def get_settings() -> DeviceSettings:
    """Get device settings."""
    global _settings
    if _settings is None:
        _settings = DeviceSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
