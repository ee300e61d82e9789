from __future__ import annotations

import sqlite3

import pytest

from am_lyrics.cache.sqlite import CacheKey, TtmlCache


def test_roundtrip_and_upsert(tmp_path):
    cache = TtmlCache(tmp_path / "nested" / "cache.sqlite3")
    key = CacheKey("1", "en-GB")
    assert cache.get(key) == (None, None)

    cache.set(key, has_lyrics=False, ttml=None)
    assert cache.get(key) == (None, False)

    cache.set(key, has_lyrics=True, ttml="<tt/>")
    assert cache.get(key) == ("<tt/>", True)


def test_language_is_part_of_the_key(tmp_path):
    cache = TtmlCache(tmp_path / "cache.sqlite3")
    cache.set(CacheKey("1", "en-GB"), has_lyrics=True, ttml="en")
    assert cache.get(CacheKey("1", "ja")) == (None, None)


def test_clear(tmp_path):
    cache = TtmlCache(tmp_path / "cache.sqlite3")
    cache.set(CacheKey("1", "en"), has_lyrics=True, ttml="x")
    cache.clear()
    assert cache.get(CacheKey("1", "en")) == (None, None)


def test_connections_are_closed(tmp_path, monkeypatch):
    opened = []
    real_connect = sqlite3.connect

    def connect(*args, **kwargs):
        con = real_connect(*args, **kwargs)
        opened.append(con)
        return con

    monkeypatch.setattr(sqlite3, "connect", connect)
    cache = TtmlCache(tmp_path / "cache.sqlite3")
    cache.set(CacheKey("1", "en"), has_lyrics=True, ttml="x")
    assert cache.get(CacheKey("1", "en")) == ("x", True)
    cache.clear()

    assert len(opened) == 4
    for con in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            con.execute("SELECT 1")
