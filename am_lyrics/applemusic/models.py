from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from am_lyrics.lyrics.model import Lyrics


@dataclass(frozen=True, slots=True)
class Artwork:
    url: str
    width: int
    height: int

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "Artwork | None":
        if not data or not data.get("url"):
            return None
        return cls(url=data["url"], width=int(data.get("width") or 0), height=int(data.get("height") or 0))

    def full_size_url(self) -> str:
        return (
            self.url.replace("{w}", str(self.width))
            .replace("{h}", str(self.height))
            .replace("{f}", "png")
            .replace("{c}", "")
        )


@dataclass(frozen=True, slots=True)
class Album:
    id: str
    name: str
    artist_name: str
    url: str | None = None
    release_date: str | None = None
    record_label: str | None = None
    track_count: int | None = None
    upc: str | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Album":
        attrs = item.get("attributes") or {}
        return cls(
            id=str(item.get("id", "")),
            name=attrs.get("name", ""),
            artist_name=attrs.get("artistName", ""),
            url=attrs.get("url"),
            release_date=attrs.get("releaseDate"),
            record_label=attrs.get("recordLabel"),
            track_count=attrs.get("trackCount"),
            upc=attrs.get("upc"),
        )


@dataclass(slots=True)
class Track:
    """Normalized track metadata, the shape taggers and exporters consume."""

    platform: str
    title: str
    artists: list[str]
    track_id: str
    album: str | None = None
    album_artists: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    art: str | None = None
    url: str | None = None
    label: str | None = None
    catalog_number: str | None = None
    release_id: str = ""
    duration_ms: int = 0
    track_number: int | None = None
    track_total: int | None = None
    disc_number: int | None = None
    isrc: str | None = None
    release_date: date | None = None
    release_year: int | None = None
    lyrics: Lyrics | None = None


def _parse_release(value: str | None) -> tuple[date | None, int | None]:
    # Apple returns either "2019" or "2019-05-31"
    if not value:
        return None, None
    if len(value) == 4:
        try:
            return None, int(value)
        except ValueError:
            return None, None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date(), None
    except ValueError:
        return None, None


@dataclass(frozen=True, slots=True)
class Song:
    id: str
    name: str
    artist_name: str
    album_name: str
    duration_ms: int
    url: str
    isrc: str | None = None
    genre_names: tuple[str, ...] = ()
    artwork: Artwork | None = None
    composer_name: str | None = None
    disc_number: int | None = None
    track_number: int | None = None
    release_date: str | None = None
    audio_locale: str | None = None
    has_lyrics: bool = False
    has_time_synced_lyrics: bool = False
    albums: tuple[Album, ...] = ()

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Song":
        attrs = item.get("attributes") or {}
        rel = item.get("relationships") or {}
        albums = tuple(Album.from_api(a) for a in (rel.get("albums") or {}).get("data") or [])
        return cls(
            id=str(item.get("id", "")),
            name=attrs.get("name", ""),
            artist_name=attrs.get("artistName", ""),
            album_name=attrs.get("albumName", ""),
            duration_ms=int(attrs.get("durationInMillis") or 0),
            url=attrs.get("url", ""),
            isrc=attrs.get("isrc"),
            genre_names=tuple(attrs.get("genreNames") or ()),
            artwork=Artwork.from_api(attrs.get("artwork")),
            composer_name=attrs.get("composerName"),
            disc_number=attrs.get("discNumber"),
            track_number=attrs.get("trackNumber"),
            release_date=attrs.get("releaseDate"),
            audio_locale=attrs.get("audioLocale"),
            has_lyrics=bool(attrs.get("hasLyrics", False)),
            has_time_synced_lyrics=bool(attrs.get("hasTimeSyncedLyrics", False)),
            albums=albums,
        )

    def to_track(self) -> Track:
        release_date, release_year = _parse_release(self.release_date)
        album = self.albums[0] if self.albums else None
        return Track(
            platform="apple_music",
            title=self.name,
            artists=[self.artist_name],
            track_id=self.id,
            album=self.album_name,
            album_artists=[album.artist_name] if album else [],
            genres=list(self.genre_names),
            art=self.artwork.full_size_url() if self.artwork else None,
            url=self.url,
            label=album.record_label if album else None,
            catalog_number=self.id,
            release_id=album.id if album else "",
            duration_ms=self.duration_ms,
            track_number=self.track_number,
            track_total=album.track_count if album else None,
            disc_number=self.disc_number,
            isrc=self.isrc,
            release_date=release_date,
            release_year=release_year,
        )
