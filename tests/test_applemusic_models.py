from __future__ import annotations

from datetime import date

from am_lyrics.applemusic.models import Artwork, Song
from fakes import song_item


def test_song_from_api():
    song = Song.from_api(song_item("42", "Title", "Artist"))
    assert song.id == "42"
    assert song.name == "Title"
    assert song.artist_name == "Artist"
    assert song.duration_ms == 215000
    assert song.genre_names == ("Pop", "Music")
    assert song.has_time_synced_lyrics is True
    assert song.albums[0].record_label == "Label Records"


def test_song_to_track():
    track = Song.from_api(song_item("42", "Title", "Artist", album_id="77")).to_track()
    assert track.platform == "apple_music"
    assert track.artists == ["Artist"]
    assert track.album_artists == ["Artist"]
    assert track.art == "https://is1-ssl.mzstatic.com/image/3000x3000bb.png"
    assert track.label == "Label Records"
    assert track.catalog_number == "42"
    assert track.release_id == "77"
    assert track.track_number == 3
    assert track.track_total == 12
    assert track.disc_number == 1
    assert track.release_date == date(2019, 5, 31)
    assert track.release_year is None
    assert track.lyrics is None


def test_year_only_release_date():
    item = song_item("1", "T", "A")
    item["attributes"]["releaseDate"] = "1999"
    track = Song.from_api(item).to_track()
    assert track.release_year == 1999
    assert track.release_date is None


def test_sparse_item_without_relationships():
    song = Song.from_api({"id": 5, "attributes": {"name": "Only name"}})
    track = song.to_track()
    assert track.track_id == "5"
    assert track.album_artists == []
    assert track.art is None
    assert track.release_id == ""


def test_artwork_crop_placeholder_removed():
    art = Artwork("https://x/{w}x{h}{c}.{f}", 600, 400)
    assert art.full_size_url() == "https://x/600x400.png"
    assert Artwork.from_api({}) is None
