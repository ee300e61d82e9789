from __future__ import annotations

import pytest

from am_lyrics.config import AppConfig


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path / "data",
        cache_db_path=tmp_path / "cache.sqlite3",
        config_dir=tmp_path / "config",
        media_user_token="media-user-token",
        language="en-GB",
        api_max_retries=2,
        api_backoff_base_s=0.0,
        api_timeout_s=1.0,
    )
