"""Unit tests for the Apple Music HTTP client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from album_migrator.apple_music.client import AppleMusicClient
from album_migrator.exceptions import AppleMusicAuthError, AppleMusicError
from album_migrator.models import LibraryEntry, Track


def _response(status: int = 200, payload: dict | None = None, headers: dict | None = None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.url = "https://amp-api.music.apple.com/v1/test"
    resp.json.return_value = payload if payload is not None else {}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def _album_payload(album_id: str = "200") -> dict:
    return {
        "data": [
            {
                "id": album_id,
                "attributes": {"name": "Deluxe", "artistName": "Band", "trackCount": 2},
                "relationships": {
                    "tracks": {
                        "data": [
                            {"id": "d1", "attributes": {"name": "Intro", "discNumber": 1, "trackNumber": 1}}
                        ],
                        "next": f"/v1/catalog/us/albums/{album_id}/tracks?offset=1",
                    }
                },
            }
        ]
    }


@pytest.fixture
def client() -> AppleMusicClient:
    return AppleMusicClient("aaa.bbb.ccc", user_token="user-token", origin="https://music.apple.com")


class TestRequest:
    def test_headers(self, client: AppleMusicClient) -> None:
        assert client._session.headers["Authorization"] == "Bearer aaa.bbb.ccc"
        assert client._session.headers["Origin"] == "https://music.apple.com"

    def test_auth_failure(self, client: AppleMusicClient) -> None:
        with patch.object(client._session, "request", return_value=_response(401)):
            with pytest.raises(AppleMusicAuthError):
                client._request("GET", "/v1/catalog/us/albums/1")

    @patch("album_migrator.apple_music.client.time.sleep")
    def test_rate_limit_retried(self, mock_sleep, client: AppleMusicClient) -> None:
        responses = [_response(429, headers={"Retry-After": "3"}), _response(200)]
        with patch.object(client._session, "request", side_effect=responses) as mock_request:
            resp = client._request("GET", "/v1/catalog/us/albums/1")
        assert resp.status_code == 200
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once_with(3.0)

    @patch("album_migrator.apple_music.client.time.sleep")
    def test_rate_limit_gives_up(self, mock_sleep, client: AppleMusicClient) -> None:
        with patch.object(client._session, "request", return_value=_response(503)):
            with pytest.raises(AppleMusicError, match="Rate limited"):
                client._request("GET", "/v1/catalog/us/albums/1")

    @patch("album_migrator.apple_music.client.time.sleep")
    def test_connection_errors_retried(self, mock_sleep, client: AppleMusicClient) -> None:
        responses = [requests.ConnectionError("reset"), _response(200)]
        with patch.object(client._session, "request", side_effect=responses):
            assert client._request("GET", "/v1/x").status_code == 200

    def test_http_error(self, client: AppleMusicClient) -> None:
        with patch.object(client._session, "request", return_value=_response(404)):
            with pytest.raises(AppleMusicError, match="failed"):
                client._request("GET", "/v1/catalog/us/albums/1")

    def test_library_call_without_user_token(self) -> None:
        client = AppleMusicClient("aaa.bbb.ccc")
        with pytest.raises(AppleMusicAuthError, match="user token"):
            client._request("GET", "/v1/me/library/albums/l.1", library=True)

    def test_library_call_sends_user_token(self, client: AppleMusicClient) -> None:
        with patch.object(client._session, "request", return_value=_response(200)) as mock_request:
            client._request("GET", "/v1/me/library/albums/l.1", library=True)
        assert mock_request.call_args.kwargs["headers"]["Media-User-Token"] == "user-token"


class TestEndpoints:
    def test_fetch_catalog_album_follows_pages(self, client: AppleMusicClient) -> None:
        page = {"data": [{"id": "d2", "attributes": {"name": "Song", "discNumber": 1, "trackNumber": 2}}]}
        responses = [_response(200, _album_payload()), _response(200, page)]
        with patch.object(client._session, "request", side_effect=responses) as mock_request:
            album = client.fetch_catalog_album("200")

        assert [t.track_id for t in album.tracks] == ["d1", "d2"]
        first_url = mock_request.call_args_list[0].args[1]
        assert first_url == "https://amp-api.music.apple.com/v1/catalog/us/albums/200"

    def test_add_track(self, client: AppleMusicClient) -> None:
        track = Track(track_id="d1", title="Intro", album_id="200")
        with patch.object(client._session, "request", return_value=_response(202)) as mock_request:
            client.add_track(track)
        args, kwargs = mock_request.call_args
        assert args == ("POST", "https://amp-api.music.apple.com/v1/me/library")
        assert kwargs["params"] == {"ids[songs]": "d1"}

    def test_remove_entry(self, client: AppleMusicClient) -> None:
        entry = LibraryEntry(
            library_id="i.1", track=Track(track_id="s1", title="Intro", album_id="100"), album_id="100"
        )
        with patch.object(client._session, "request", return_value=_response(204)) as mock_request:
            client.remove_entry(entry)
        args, _ = mock_request.call_args
        assert args == ("DELETE", "https://amp-api.music.apple.com/v1/me/library/songs/i.1")

    def test_fetch_source_entries(self, client: AppleMusicClient) -> None:
        library = {
            "data": [
                {
                    "id": "l.AbC",
                    "relationships": {
                        "catalog": {"data": [{"id": "100"}]},
                        "tracks": {
                            "data": [
                                {
                                    "id": "i.1",
                                    "attributes": {
                                        "name": "Intro",
                                        "playParams": {"catalogId": "s1"},
                                        "dateAdded": "2020-01-01T00:00:00Z",
                                    },
                                }
                            ]
                        },
                    },
                }
            ]
        }
        catalog = {
            "data": [
                {
                    "id": "100",
                    "attributes": {"name": "Record", "artistName": "Band", "trackCount": 1},
                    "relationships": {
                        "tracks": {
                            "data": [
                                {
                                    "id": "s1",
                                    "attributes": {"name": "Intro", "discNumber": 1, "trackNumber": 1},
                                }
                            ]
                        }
                    },
                }
            ]
        }
        responses = [_response(200, library), _response(200, catalog)]
        with patch.object(client._session, "request", side_effect=responses):
            entries, album = client.fetch_source_entries("l.AbC")

        assert album.album_id == "100"
        (entry,) = entries
        assert entry.library_id == "i.1"
        assert entry.track.track_id == "s1"
        assert entry.album_id == "100"
