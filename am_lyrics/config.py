from __future__ import annotations

import json
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

DEFAULT_LANGUAGE = "en-GB"
_SAVED_KEYS = ("media_user_token", "language")


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "am-lyrics"
    return Path.home() / ".config" / "am-lyrics"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    data_dir: Path
    cache_db_path: Path
    config_dir: Path

    # Apple Music
    media_user_token: str | None
    language: str

    # HTTP
    api_max_retries: int
    api_backoff_base_s: float
    api_timeout_s: float


def _read_saved(config_dir: Path) -> dict[str, Any]:
    cfg_path = config_dir / "config.json"
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config() -> AppConfig:
    # XDG base dir fallback
    xdg = os.getenv("XDG_CACHE_HOME")
    data_dir = Path(xdg) if xdg else Path.home() / ".cache"
    data_dir = data_dir / "am-lyrics"

    config_dir = _config_dir()
    saved = _read_saved(config_dir)

    # Priority: config.json → environment → default
    token = saved.get("media_user_token") or os.getenv("AM_LYRICS_MEDIA_USER_TOKEN") or None
    language = saved.get("language") or os.getenv("AM_LYRICS_LANGUAGE") or DEFAULT_LANGUAGE

    return AppConfig(
        data_dir=data_dir,
        cache_db_path=data_dir / "cache.sqlite3",
        config_dir=config_dir,
        media_user_token=token,
        language=str(language),
        api_max_retries=int(os.getenv("AM_LYRICS_API_MAX_RETRIES", "3")),
        api_backoff_base_s=float(os.getenv("AM_LYRICS_API_BACKOFF_BASE", "1.0")),
        api_timeout_s=float(os.getenv("AM_LYRICS_API_TIMEOUT", "10.0")),
    )


def save_config_value(key: str, value: str) -> None:
    if key not in _SAVED_KEYS:
        raise ValueError(f"Unknown config key: {key}")
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _read_saved(cfg_path.parent)
    data[key] = value
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
