from __future__ import annotations

import logging
import threading
import time
from typing import Any

import regex
import requests

from am_lyrics.lyrics.model import Lyrics
from am_lyrics.ttml.extract import parse_ttml

from .errors import AppleMusicError, ApiRequestFailed, LyricsUnavailable, NotSubscribed, TokenNotFound
from .models import Song

logger = logging.getLogger(__name__)

WEB_URL = "https://music.apple.com"
API_URL = "https://amp-api.music.apple.com/v1"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/86.0.4240.183 Safari/537.36"
)

# The web player embeds its developer token in the hashed index bundle
_INDEX_JS_RE = regex.compile(r'(?<=index\.)(.*?)(?=\.js")')
_TOKEN_RE = regex.compile(r'(?=eyJh)(.*?)(?=")')

_SEARCH_PARAMS = {
    "groups": "song",
    "art[url]": "c,f",
    "extend": "artistUrl",
    "include[songs]": "artists,albums",
    "offset": "0",
    "types": "songs",
    "platform": "web",
    "with": "serverBubbles,lyrics,lyricHighlights",
    "omit[resource]": "autos",
}


class AppleMusicClient:
    def __init__(
        self,
        media_user_token: str,
        *,
        language: str = "en-GB",
        max_retries: int = 3,
        backoff_base_s: float = 1.0,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.language = language
        self.max_retries = max(max_retries, 1)
        self.backoff_base_s = backoff_base_s
        self.timeout_s = timeout_s

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Media-User-Token": media_user_token,
                "Content-Type": "application/json",
                "Origin": WEB_URL,
                "Referer": f"{WEB_URL}/",
                "User-Agent": USER_AGENT,
            }
        )

        # Fetched on first use, shared by every thread using this client
        self._lock = threading.Lock()
        self._access_token: str | None = None
        self._storefront: str | None = None

    @property
    def storefront(self) -> str | None:
        return self._storefront

    def fetch_token(self) -> None:
        """(Re)fetch the developer token and the account storefront."""
        with self._lock:
            self._fetch_token_locked()

    def _fetch_token_locked(self) -> None:
        logger.debug("Fetching Apple Music token")
        body = self._request(f"{WEB_URL}/us/search").text
        m = _INDEX_JS_RE.search(body)
        if not m:
            raise TokenNotFound("Unable to find index.js url")

        index_js = self._request(f"{WEB_URL}/assets/index.{m.group(1)}.js").text
        m = _TOKEN_RE.search(index_js)
        if not m:
            raise TokenNotFound("Unable to find token")
        token = m.group(1)

        r = self._request(
            f"{API_URL}/me/account",
            params={"meta": "subscription", "challenge[subscriptionCapabilities]": "voice,premium"},
            token=token,
        )
        data = self._json(r)
        subscription = (data.get("meta") or {}).get("subscription") or {}
        if not subscription.get("active"):
            raise NotSubscribed("Not subscribed!")
        storefront = subscription.get("storefront")
        if not storefront:
            raise AppleMusicError("Unable to get storefront!")

        logger.debug("Storefront: %s", storefront)
        self._access_token = token
        self._storefront = str(storefront)

    def _session_state(self) -> tuple[str, str]:
        with self._lock:
            if self._access_token is None or self._storefront is None:
                self._fetch_token_locked()
            return self._access_token or "", self._storefront or ""

    def _request(self, url: str, params: dict[str, str] | None = None, token: str | None = None) -> requests.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        for attempt in range(1, self.max_retries + 1):
            try:
                r = self.session.get(url, params=params, headers=headers, timeout=self.timeout_s)
            except requests.RequestException as e:
                logger.warning("Apple Music error (attempt %s/%s): %s", attempt, self.max_retries, e)
                if attempt == self.max_retries:
                    raise ApiRequestFailed(f"Request to {url} failed: {e}") from e
                time.sleep(self.backoff_base_s * attempt)
                continue

            if r.status_code < 400:
                return r
            # client errors other than rate limiting will not fix themselves
            if r.status_code != 429 and r.status_code < 500:
                raise ApiRequestFailed(f"HTTP {r.status_code} for {url}", status_code=r.status_code)
            logger.warning("Apple Music HTTP %s (attempt %s/%s)", r.status_code, attempt, self.max_retries)
            if attempt == self.max_retries:
                raise ApiRequestFailed(f"HTTP {r.status_code} for {url}", status_code=r.status_code)
            time.sleep(self.backoff_base_s * attempt)

        raise ApiRequestFailed(f"Request to {url} failed")

    @staticmethod
    def _json(r: requests.Response) -> dict[str, Any]:
        try:
            data = r.json()
        except ValueError as e:
            raise ApiRequestFailed(f"Invalid JSON from {r.url}") from e
        if not isinstance(data, dict):
            raise ApiRequestFailed(f"Unexpected response from {r.url}")
        return data

    def get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET a catalog path, e.g. "songs/123/lyrics"."""
        token, storefront = self._session_state()
        query = dict(params or {})
        query["l"] = self.language
        url = f"{API_URL}/catalog/{storefront}/{path}"
        logger.debug("GET %s", url)
        try:
            r = self._request(url, params=query, token=token)
        except ApiRequestFailed as e:
            if e.status_code != 401:
                raise
            logger.info("Apple Music token rejected, refreshing")
            self.fetch_token()
            token, storefront = self._session_state()
            r = self._request(f"{API_URL}/catalog/{storefront}/{path}", params=query, token=token)
        return self._json(r)

    def search(self, query: str, limit: int = 50) -> list[Song]:
        params = dict(_SEARCH_PARAMS)
        params["term"] = query
        params["limit"] = str(limit)
        data = self.get("search", params)
        items = ((data.get("results") or {}).get("song") or {}).get("data") or []
        return [Song.from_api(item) for item in items]

    def ttml(self, song_id: str) -> str:
        try:
            data = self.get(f"songs/{song_id}/lyrics")
        except ApiRequestFailed as e:
            if e.status_code == 404:
                raise LyricsUnavailable(f"No lyrics for song {song_id}") from e
            raise
        try:
            ttml = data["data"][0]["attributes"]["ttml"]
        except (KeyError, IndexError, TypeError) as e:
            raise LyricsUnavailable(f"Missing TTML for song {song_id}") from e
        if not isinstance(ttml, str) or not ttml:
            raise LyricsUnavailable(f"Missing TTML for song {song_id}")
        return ttml

    def lyrics(self, song_id: str) -> Lyrics:
        return parse_ttml(self.ttml(song_id), self.language)
