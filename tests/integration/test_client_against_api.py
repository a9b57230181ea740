"""
End-to-end tests: the client data layer talking to the real app.

TestClient is an httpx.Client, so ClipsClient can use it directly.
"""

import pytest

from dictation.client.clips import ApiError, ClipsClient


def upload(client, auth_headers, title: str):
    response = client.post(
        "/api/clips/upload",
        files={"file": ("test.mp4", b"\x00" * 512, "video/mp4")},
        data={"title": title, "difficultyLevel": "ADVANCED", "subtitleText": "We were on a break!"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestClientAgainstApi:

    def test_fetches_uploaded_clip(self, client, auth_headers):
        uploaded = upload(client, auth_headers, "The One with the Break")
        clips = ClipsClient(client)

        listing = clips.fetch_clips(difficulty="ADVANCED")
        clip = clips.fetch_clip(uploaded["id"])

        assert listing.pagination.total == 1
        assert clip.title == "The One with the Break"
        assert clip.duration_seconds == 10

    def test_invalidate_after_upload_shows_new_clip(self, client, auth_headers):
        clips = ClipsClient(client)
        assert clips.fetch_clips().pagination.total == 0

        upload(client, auth_headers, "The One with the Jam")
        assert clips.fetch_clips().pagination.total == 0

        clips.invalidate()
        assert clips.fetch_clips().pagination.total == 1

    def test_server_validation_error_surfaces_code(self, client):
        with pytest.raises(ApiError) as exc_info:
            ClipsClient(client).fetch_clips(limit=500)

        assert exc_info.value.code == "CLIP_LIST_INVALID_PARAMS"
        assert "limit" in exc_info.value.details

    def test_unknown_clip(self, client):
        with pytest.raises(ApiError) as exc_info:
            ClipsClient(client).fetch_clip("missing")

        assert exc_info.value.code == "CLIP_NOT_FOUND"
