from __future__ import annotations

import logging
from dataclasses import dataclass

from am_lyrics.applemusic.client import AppleMusicClient
from am_lyrics.applemusic.errors import AppleMusicError, LyricsUnavailable
from am_lyrics.applemusic.models import Song, Track
from am_lyrics.cache.sqlite import CacheKey, TtmlCache
from am_lyrics.config import AppConfig
from am_lyrics.lyrics.model import Lyrics
from am_lyrics.ttml.errors import TtmlParseError
from am_lyrics.ttml.extract import parse_ttml

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MatchResult:
    score: int
    track: Track


class LyricsService:
    def __init__(self, cfg: AppConfig, client: AppleMusicClient | None = None):
        self.cfg = cfg
        self.cache = TtmlCache(cfg.cache_db_path)
        self.client = client or self._build_client(cfg)

    @staticmethod
    def _build_client(cfg: AppConfig) -> AppleMusicClient:
        if not cfg.media_user_token:
            raise AppleMusicError(
                "No media user token configured (am-lyrics config --token ... or AM_LYRICS_MEDIA_USER_TOKEN)"
            )
        return AppleMusicClient(
            cfg.media_user_token,
            language=cfg.language,
            max_retries=cfg.api_max_retries,
            backoff_base_s=cfg.api_backoff_base_s,
            timeout_s=cfg.api_timeout_s,
        )

    def get_ttml(self, song_id: str) -> str:
        key = CacheKey(song_id=song_id, language=self.client.language)
        cached, cached_has = self.cache.get(key)
        if cached_has is True and cached is not None:
            logger.debug("Cache hit for song %s", song_id)
            return cached
        # A negative entry is only a hint, lyrics may have been added since
        if cached_has is False:
            logger.debug("Cache: has_lyrics=0 for song %s, asking Apple Music again", song_id)

        try:
            ttml = self.client.ttml(song_id)
        except LyricsUnavailable:
            self.cache.set(key, has_lyrics=False, ttml=None)
            raise
        self.cache.set(key, has_lyrics=True, ttml=ttml)
        return ttml

    def get_lyrics(self, song_id: str) -> Lyrics:
        return parse_ttml(self.get_ttml(song_id), self.client.language)

    def search(self, query: str, limit: int = 50) -> list[Song]:
        return self.client.search(query, limit=limit)

    def match_track(self, artist: str, title: str, *, with_lyrics: bool = True) -> MatchResult | None:
        query = f"{artist} {title}".strip()
        if not query:
            return None
        songs = self.search(query)
        best = find_best_match(artist, title, songs)
        if best is None:
            logger.info("No Apple Music match for %s - %s", artist, title)
            return None

        score, song = best
        track = song.to_track()
        if with_lyrics:
            try:
                track.lyrics = self.get_lyrics(song.id)
            except (AppleMusicError, TtmlParseError) as e:
                # lyrics are an extra, the match itself is still good
                logger.warning("Failed getting lyrics: %s", e)
        return MatchResult(score=score, track=track)


def find_best_match(artist: str, title: str, songs: list[Song]) -> tuple[int, Song] | None:
    """Best search result by artist/title similarity, None if nothing scores above zero."""
    if not songs:
        return None

    title_lower = (title or "").lower().strip()
    artist_lower = (artist or "").lower().strip()
    artists = [a.strip().lower() for a in (artist or "").split(",") if a.strip()] or (
        [artist_lower] if artist_lower else []
    )

    best_score = -1
    best_song: Song | None = None

    for s in songs:
        score = 0
        s_artist = (s.artist_name or "").lower().strip()
        s_title = (s.name or "").lower().strip()

        title_exact = bool(title_lower) and s_title == title_lower
        title_partial = bool(title_lower and s_title and (title_lower in s_title or s_title in title_lower))

        artist_exact = bool(artist_lower) and s_artist == artist_lower
        artist_one_of = s_artist in artists
        artist_partial = bool(s_artist and artist_lower) and (
            s_artist in artist_lower
            or artist_lower in s_artist
            or any(s_artist in a or a in s_artist for a in artists)
        )

        if title_exact:
            score += 50
        elif title_partial:
            score += 15

        if artist_exact:
            score += 50
        elif artist_one_of:
            score += 45
        elif artist_partial:
            score += 20

        # lyrics availability only breaks ties between real matches
        if not score:
            continue
        if s.has_time_synced_lyrics:
            score += 5
        elif s.has_lyrics:
            score += 2

        if score > best_score:
            best_score = score
            best_song = s

    if best_song is None:
        return None
    return best_score, best_song
