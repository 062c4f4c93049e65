"""Apple Music HTTP client for catalog and library APIs.

Handles authenticated requests against the ``amp-api`` endpoints used to read
album versions and library albums and to add or remove library songs.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urljoin

import requests

from album_migrator.apple_music.parser import (
    build_source_entries,
    parse_catalog_album,
    parse_library_album,
)
from album_migrator.exceptions import AppleMusicAuthError, AppleMusicError, AppleMusicParseError
from album_migrator.models import AlbumVersion, LibraryEntry, Track

logger = logging.getLogger(__name__)

_BASE_URL = "https://amp-api.music.apple.com"
_USER_AGENT = "album-migrator/0.1"
_REQUEST_TIMEOUT = 30
_MAX_RETRIES = 5
_BACKOFF_BASE = 2.0  # seconds
_MAX_PAGES = 50


class AppleMusicClient:
    """HTTP client for Apple Music API interactions.

    Args:
        developer_token: MusicKit developer token (JWT).
        user_token: Media user token; required for library endpoints.
        storefront: Two-letter storefront code for catalog lookups.
        origin: Optional Origin header some tokens are bound to.
    """

    def __init__(
        self,
        developer_token: str,
        user_token: str | None = None,
        storefront: str = "us",
        origin: str | None = None,
    ) -> None:
        self.storefront = storefront
        self._user_token = user_token
        self._session = requests.Session()
        self._session.headers.update(
            {
                "User-Agent": _USER_AGENT,
                "Authorization": f"Bearer {developer_token}",
            }
        )
        if origin:
            self._session.headers["Origin"] = origin

    def _request(
        self,
        method: str,
        path: str,
        *,
        library: bool = False,
        **kwargs: Any,
    ) -> requests.Response:
        """Make an HTTP request with retry and backoff logic.

        Handles HTTP 429 (rate limited) and 503 (service unavailable)
        with exponential backoff.

        Args:
            method: HTTP method.
            path: Path below the API base URL, or an absolute URL.
            library: Whether the endpoint needs the media user token.
            **kwargs: Additional arguments passed to requests.

        Returns:
            The HTTP response.

        Raises:
            AppleMusicError: If max retries exceeded.
            AppleMusicAuthError: If authentication fails (401/403).
        """
        url = urljoin(_BASE_URL, path)
        kwargs.setdefault("timeout", _REQUEST_TIMEOUT)
        if library:
            if not self._user_token:
                raise AppleMusicAuthError(
                    "A media user token is required for library access. "
                    "Set apple_music.user_token in the config file."
                )
            headers = dict(kwargs.pop("headers", None) or {})
            headers["Media-User-Token"] = self._user_token
            kwargs["headers"] = headers

        for attempt in range(_MAX_RETRIES):
            try:
                resp = self._session.request(method, url, **kwargs)
            except requests.RequestException as e:
                if attempt == _MAX_RETRIES - 1:
                    raise AppleMusicError(
                        f"Request to {url} failed after {_MAX_RETRIES} attempts: {e}"
                    ) from e
                wait = _BACKOFF_BASE * (2**attempt)
                logger.warning("Request failed, retrying in %.1fs: %s", wait, e)
                time.sleep(wait)
                continue

            if resp.status_code in (401, 403):
                raise AppleMusicAuthError(
                    "Apple Music rejected the request (HTTP "
                    f"{resp.status_code}). Your developer or user token may have expired."
                )

            if resp.status_code in (429, 503):
                if attempt == _MAX_RETRIES - 1:
                    raise AppleMusicError(
                        f"Rate limited by Apple Music after {_MAX_RETRIES} retries. Try again later."
                    )
                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        wait = max(float(retry_after), _BACKOFF_BASE)
                    except ValueError:
                        wait = _BACKOFF_BASE * (2**attempt)
                else:
                    wait = _BACKOFF_BASE * (2**attempt)
                logger.warning(
                    "Apple Music rate limit detected (HTTP %d), waiting %.1fs...",
                    resp.status_code,
                    wait,
                )
                time.sleep(wait)
                continue

            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                raise AppleMusicError(f"{method} {url} failed: {e}") from e
            return resp

        raise AppleMusicError(f"Request to {url} failed after {_MAX_RETRIES} attempts")

    def _get_json(self, path: str, **kwargs: Any) -> tuple[dict[str, Any], str]:
        resp = self._request("GET", path, **kwargs)
        try:
            data = resp.json()
        except ValueError as e:
            raise AppleMusicParseError(resp.url or path, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise AppleMusicParseError(resp.url or path, "expected a JSON object")
        return data, resp.url or path

    def _follow_pages(self, first: dict[str, Any], *, library: bool = False) -> list[dict[str, Any]]:
        """Collect resources from ``next`` links of a relationship."""
        resources: list[dict[str, Any]] = []
        next_path = first.get("next")
        pages = 0
        while next_path and pages < _MAX_PAGES:
            page, _ = self._get_json(next_path, library=library)
            resources.extend(page.get("data") or [])
            next_path = page.get("next")
            pages += 1
        return resources

    def fetch_catalog_album(self, album_id: str) -> AlbumVersion:
        """Fetch an album version and its full track listing.

        Args:
            album_id: Catalog album id.

        Returns:
            AlbumVersion with tracks sorted by disc/track.
        """
        path = f"/v1/catalog/{self.storefront}/albums/{album_id}"
        payload, url = self._get_json(path)
        extra: list[dict[str, Any]] = []
        data = payload.get("data") or []
        if data and isinstance(data[0], dict):
            tracks_rel = (data[0].get("relationships") or {}).get("tracks") or {}
            extra = self._follow_pages(tracks_rel)
        album = parse_catalog_album(payload, url, extra_songs=extra)
        logger.debug("Fetched %r", album)
        return album

    def fetch_source_entries(self, library_album_id: str) -> tuple[list[LibraryEntry], AlbumVersion]:
        """Fetch a library album and attribute its songs to its catalog album.

        Args:
            library_album_id: Library album id (``l.xxxx``).

        Returns:
            Tuple of (library entries, catalog album they were added from).
        """
        path = f"/v1/me/library/albums/{library_album_id}"
        payload, url = self._get_json(path, library=True, params={"include": "catalog,tracks"})

        data = payload.get("data") or []
        if data and isinstance(data[0], dict):
            tracks_rel = (data[0].get("relationships") or {}).get("tracks") or {}
            extra = self._follow_pages(tracks_rel, library=True)
            if extra:
                tracks_rel.setdefault("data", []).extend(extra)

        library_album = parse_library_album(payload, url)
        catalog_album = self.fetch_catalog_album(library_album.catalog_id)
        entries = build_source_entries(library_album, catalog_album)
        logger.debug(
            "Library album %s holds %d songs of catalog album %s",
            library_album.library_id,
            len(entries),
            catalog_album.album_id,
        )
        return entries, catalog_album

    def add_track(self, track: Track) -> None:
        """Add a catalog song to the library."""
        self._request("POST", "/v1/me/library", library=True, params={"ids[songs]": track.track_id})
        logger.info("Added %s to library", track.track_id)

    def remove_entry(self, entry: LibraryEntry) -> None:
        """Remove one library song."""
        self._request("DELETE", f"/v1/me/library/songs/{entry.library_id}", library=True)
        logger.info("Removed %s from library", entry.library_id)
