from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheKey:
    song_id: str
    language: str


class TtmlCache:
    """Raw TTML payloads per (song, language); parsing is cheap, fetching is not."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def _init_db(self) -> None:
        with closing(self._connect()) as con, con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS ttml_cache (
                    song_id  TEXT NOT NULL,
                    language TEXT NOT NULL DEFAULT '',
                    has_lyrics INTEGER NOT NULL,
                    ttml TEXT,
                    updated_at INTEGER NOT NULL,
                    PRIMARY KEY (song_id, language)
                );
                """
            )
            con.execute(
                "CREATE INDEX IF NOT EXISTS idx_ttml_cache_updated_at ON ttml_cache(updated_at);"
            )

    def get(self, key: CacheKey) -> tuple[str | None, bool | None]:
        """
        Returns (ttml, has_lyrics) or (None, None) if no entry.
        """
        with closing(self._connect()) as con, con:
            row = con.execute(
                "SELECT has_lyrics, ttml FROM ttml_cache WHERE song_id=? AND language=?",
                (key.song_id, key.language),
            ).fetchone()
            if row is None:
                return None, None
            has = bool(row["has_lyrics"])
            return (row["ttml"] if has else None), has

    def set(self, key: CacheKey, *, has_lyrics: bool, ttml: str | None) -> None:
        now = int(time.time())
        with closing(self._connect()) as con, con:
            con.execute(
                """
                INSERT INTO ttml_cache(song_id, language, has_lyrics, ttml, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(song_id, language) DO UPDATE SET
                    has_lyrics=excluded.has_lyrics,
                    ttml=excluded.ttml,
                    updated_at=excluded.updated_at
                """,
                (key.song_id, key.language, int(has_lyrics), ttml, now),
            )
        logger.debug("Cached song %s (%s), has_lyrics=%s", key.song_id, key.language, has_lyrics)

    def clear(self) -> None:
        with closing(self._connect()) as con, con:
            con.execute("DELETE FROM ttml_cache")
