"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without leaking into the CLI.
- Lets adapters (order API, Telegram, catalog) read config consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user config directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "ovh-sniper"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "ovh-sniper"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ovh-sniper"
    return Path.home() / ".config" / "ovh-sniper"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed and validated at the edge (env vars) without polluting the core.
    - One configuration contract shared by the CLI and the adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="OVH_SNIPER_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="ovh-sniper/0.1",
        min_length=1,
        description="User-Agent sent to the order API and Telegram.",
    )
    api_base_path: str = Field(
        default="/1.0",
        description="Path prefix of the order API on the endpoint host.",
    )
    telegram_api_base_url: str = Field(
        default="https://api.telegram.org",
        min_length=8,
        description="Base URL of the Telegram Bot API.",
    )
    attach_options: bool = Field(
        default=False,
        description="Attach the task's add-on plan codes to the cart item before checkout.",
    )
    config_path: Path | None = Field(
        default=None,
        description="Location of the saved credentials/task/telegram bundle.",
    )
