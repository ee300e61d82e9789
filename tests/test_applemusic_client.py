from __future__ import annotations

import pytest
import requests

from am_lyrics.applemusic.client import AppleMusicClient
from am_lyrics.applemusic.errors import ApiRequestFailed, LyricsUnavailable, NotSubscribed, TokenNotFound
from am_lyrics.ttml.errors import TtmlParseError
from fakes import (
    ACCOUNT_URL,
    CATALOG_URL,
    DEV_TOKEN,
    INDEX_JS_URL,
    LINE_SYNCED_TTML,
    SEARCH_PAGE_URL,
    FakeResponse,
    FakeSession,
    lyrics_payload,
    song_item,
    token_routes,
)


def _client(routes, **kwargs) -> tuple[AppleMusicClient, FakeSession]:
    session = FakeSession(routes)
    kwargs.setdefault("backoff_base_s", 0.0)
    return AppleMusicClient("mut", session=session, **kwargs), session


def test_default_headers():
    client, session = _client(token_routes())
    assert session.headers["Media-User-Token"] == "mut"
    assert session.headers["Origin"] == "https://music.apple.com"
    assert client.storefront is None


def test_fetch_token_reads_storefront():
    client, session = _client(token_routes())
    client.fetch_token()
    assert client.storefront == "gb"
    assert session.urls() == [SEARCH_PAGE_URL, INDEX_JS_URL, ACCOUNT_URL]
    assert session.calls[-1][2] == {"Authorization": f"Bearer {DEV_TOKEN}"}


def test_token_fetched_once_for_many_requests():
    routes = token_routes()
    routes[f"{CATALOG_URL}/songs/1/lyrics"] = lyrics_payload(LINE_SYNCED_TTML)
    client, session = _client(routes)
    client.ttml("1")
    client.ttml("1")
    assert session.urls().count(SEARCH_PAGE_URL) == 1


def test_get_adds_language():
    routes = token_routes()
    routes[f"{CATALOG_URL}/songs/1/lyrics"] = lyrics_payload(LINE_SYNCED_TTML)
    client, session = _client(routes, language="de-DE")
    client.ttml("1")
    url, params, headers = session.calls[-1]
    assert url == f"{CATALOG_URL}/songs/1/lyrics"
    assert params == {"l": "de-DE"}
    assert headers == {"Authorization": f"Bearer {DEV_TOKEN}"}


def test_lyrics_parses_with_client_language():
    routes = token_routes()
    routes[f"{CATALOG_URL}/songs/1/lyrics"] = lyrics_payload(LINE_SYNCED_TTML)
    client, _ = _client(routes, language="fr-FR")
    lyrics = client.lyrics("1")
    assert lyrics.language == "fr-FR"
    assert [line.text for line in lyrics.lines()] == ["First line", "Second line"]


def test_lyrics_bad_ttml_raises_parse_error():
    routes = token_routes()
    routes[f"{CATALOG_URL}/songs/1/lyrics"] = lyrics_payload('<tt><body><div><p begin="x">a</p></div></body></tt>')
    client, _ = _client(routes)
    with pytest.raises(TtmlParseError):
        client.lyrics("1")


def test_missing_ttml():
    routes = token_routes()
    routes[f"{CATALOG_URL}/songs/1/lyrics"] = FakeResponse(json_data={"data": []})
    client, _ = _client(routes)
    with pytest.raises(LyricsUnavailable):
        client.ttml("1")


def test_lyrics_404_is_unavailable():
    client, _ = _client(token_routes())
    with pytest.raises(LyricsUnavailable):
        client.ttml("404")


def test_not_subscribed():
    client, _ = _client(token_routes(active=False))
    with pytest.raises(NotSubscribed):
        client.fetch_token()
    assert client.storefront is None


def test_token_missing_in_bundle():
    routes = token_routes()
    routes[INDEX_JS_URL] = FakeResponse(text="no token here")
    client, _ = _client(routes)
    with pytest.raises(TokenNotFound):
        client.fetch_token()


def test_index_js_missing():
    routes = token_routes()
    routes[SEARCH_PAGE_URL] = FakeResponse(text="<html></html>")
    client, _ = _client(routes)
    with pytest.raises(TokenNotFound):
        client.fetch_token()


def test_network_errors_are_retried():
    routes = token_routes()
    routes[SEARCH_PAGE_URL] = [requests.ConnectionError("boom"), routes[SEARCH_PAGE_URL]]
    client, session = _client(routes, max_retries=2)
    client.fetch_token()
    assert session.urls().count(SEARCH_PAGE_URL) == 2


def test_server_errors_give_up_after_retries():
    routes = token_routes()
    routes[SEARCH_PAGE_URL] = FakeResponse(status_code=503)
    client, session = _client(routes, max_retries=3)
    with pytest.raises(ApiRequestFailed) as exc:
        client.fetch_token()
    assert exc.value.status_code == 503
    assert session.urls().count(SEARCH_PAGE_URL) == 3


def test_client_errors_are_not_retried():
    routes = token_routes()
    routes[SEARCH_PAGE_URL] = FakeResponse(status_code=403)
    client, session = _client(routes, max_retries=3)
    with pytest.raises(ApiRequestFailed):
        client.fetch_token()
    assert session.urls().count(SEARCH_PAGE_URL) == 1


def test_expired_token_is_refreshed_once():
    routes = token_routes()
    routes[f"{CATALOG_URL}/songs/1/lyrics"] = [FakeResponse(status_code=401), lyrics_payload(LINE_SYNCED_TTML)]
    client, session = _client(routes)
    assert client.ttml("1") == LINE_SYNCED_TTML
    assert session.urls().count(SEARCH_PAGE_URL) == 2


def test_invalid_json():
    routes = token_routes()
    routes[f"{CATALOG_URL}/search"] = FakeResponse(text="<html>")
    client, _ = _client(routes)
    with pytest.raises(ApiRequestFailed):
        client.search("x")


def test_search_maps_songs():
    routes = token_routes()
    routes[f"{CATALOG_URL}/search"] = FakeResponse(
        json_data={"results": {"song": {"data": [song_item("1", "A", "B"), song_item("2", "C", "D")], "groupId": "song", "name": "Songs"}}}
    )
    client, session = _client(routes)
    songs = client.search("a b", limit=10)
    assert [s.id for s in songs] == ["1", "2"]
    params = session.calls[-1][1]
    assert params["term"] == "a b"
    assert params["limit"] == "10"
    assert params["types"] == "songs"
    assert params["l"] == "en-GB"


def test_search_without_results():
    routes = token_routes()
    routes[f"{CATALOG_URL}/search"] = FakeResponse(json_data={"results": {}})
    client, _ = _client(routes)
    assert client.search("nothing") == []
