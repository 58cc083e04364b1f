"""Saved config bundle (credentials + task + telegram) as JSON.

Why JSON:
- Human-editable, and the same camelCase shape the provider uses.
- Lets `run` start from a saved bundle without re-entering secrets.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from core.config import AppSettings, get_user_config_dir
from core.domain.errors import ConfigStoreError
from core.domain.models import ConfigBundle


def default_config_path(settings: AppSettings | None = None) -> Path:
    settings = settings or AppSettings()
    if settings.config_path is not None:
        return settings.config_path
    return get_user_config_dir() / "config.json"


def load_bundle(path: Path) -> ConfigBundle:
    if not path.exists():
        raise ConfigStoreError(f"No saved configuration at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ConfigBundle.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigStoreError(f"Invalid configuration in {path}: {exc}") from exc


def save_bundle(bundle: ConfigBundle, path: Path) -> Path:
    """Write `bundle` as UTF-8 JSON with a stable layout."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = bundle.model_dump(mode="json", by_alias=True)
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return path
