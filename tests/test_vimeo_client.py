from __future__ import annotations

import pytest
import requests

from fakes import FakeApiSession, FakeResponse
from vimeo_migration.exceptions import SessionCreationError, VimeoApiError
from vimeo_migration.integrations.vimeo.client import (
    API_BASE,
    VimeoClient,
    build_session,
    describe_error,
    map_video_status,
    video_id_from_uri,
)
from vimeo_migration.transfer import ResourceStatus, Tus, Unsupported


def _client(routes) -> VimeoClient:
    return VimeoClient("token", session=FakeApiSession(routes))


def test_build_session_sets_auth_and_accept_headers() -> None:
    session = build_session("secret", retries=1)

    assert session.headers["Authorization"] == "Bearer secret"
    assert "version=3.4" in session.headers["Accept"]


def test_video_id_is_last_uri_segment() -> None:
    assert video_id_from_uri("/videos/123456") == "123456"
    assert video_id_from_uri("/videos/123456/") == "123456"


def test_url_keeps_absolute_links() -> None:
    client = _client({})

    assert client.url("/me") == f"{API_BASE}/me"
    assert client.url("https://files.example.com/x") == "https://files.example.com/x"


def test_create_upload_ticket_requests_tus_upload_in_folder() -> None:
    response = FakeResponse(
        200,
        {
            "uri": "/videos/42",
            "upload": {"approach": "tus", "upload_link": "https://files.example.com/42"},
        },
    )
    client = _client({("POST", f"{API_BASE}/me/videos"): response})

    ticket = client.create_upload_ticket(1000, "clip", "/users/1/projects/7")

    assert ticket.mode == Tus()
    assert ticket.upload_link == "https://files.example.com/42"
    assert ticket.resource_uri == "/videos/42"
    _, _, kwargs = client.session.calls[0]
    assert kwargs["json"] == {
        "upload": {"approach": "tus", "size": 1000},
        "name": "clip",
        "folder_uri": "/users/1/projects/7",
    }


def test_create_upload_ticket_reports_other_approaches() -> None:
    response = FakeResponse(
        200, {"uri": "/videos/42", "upload": {"approach": "post", "upload_link": "x"}}
    )
    client = _client({("POST", f"{API_BASE}/me/videos"): response})

    ticket = client.create_upload_ticket(1, "clip")

    assert ticket.mode == Unsupported("post")
    _, _, kwargs = client.session.calls[0]
    assert "folder_uri" not in kwargs["json"]


def test_create_upload_ticket_rejection_raises_session_error() -> None:
    response = FakeResponse(
        401,
        {"error": "Unauthorized", "error_code": 8003, "developer_message": "bad token"},
    )
    client = _client({("POST", f"{API_BASE}/me/videos"): response})

    with pytest.raises(SessionCreationError) as excinfo:
        client.create_upload_ticket(1, "clip")

    message = str(excinfo.value)
    assert "401" in message
    assert "8003" in message
    assert "bad token" in message


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("available", ResourceStatus.READY),
        ("transcoding", ResourceStatus.PROCESSING),
        ("uploading", ResourceStatus.PROCESSING),
        ("transcoding_error", ResourceStatus.ERROR),
        ("error", ResourceStatus.ERROR),
        (None, ResourceStatus.PROCESSING),
    ],
)
def test_map_video_status(raw, expected) -> None:
    assert map_video_status(raw) is expected


def test_get_video_status_reads_status_field() -> None:
    client = _client(
        {("GET", f"{API_BASE}/videos/42"): FakeResponse(200, {"status": "available"})}
    )

    assert client.get_video_status("/videos/42") is ResourceStatus.READY
    _, _, kwargs = client.session.calls[0]
    assert kwargs["params"] == {"fields": "status"}


def test_get_video_status_failure_raises() -> None:
    client = _client({("GET", f"{API_BASE}/videos/42"): FakeResponse(500, text="oops")})

    with pytest.raises(VimeoApiError) as excinfo:
        client.get_video_status("/videos/42")
    assert excinfo.value.status_code == 500


def test_verify_token_falls_back_to_me() -> None:
    client = _client(
        {
            ("GET", f"{API_BASE}/oauth/verify"): FakeResponse(404),
            ("GET", f"{API_BASE}/me"): FakeResponse(200, {"name": "Movo"}),
        }
    )

    assert client.verify_token() == {"name": "Movo"}


def test_verify_token_failure_raises() -> None:
    client = _client({("GET", f"{API_BASE}/me"): FakeResponse(401, {"error": "nope"})})

    with pytest.raises(VimeoApiError, match="Token verification failed"):
        client.verify_token()


def test_describe_error_without_json_uses_text() -> None:
    message = describe_error("Failed", FakeResponse(502, text="bad gateway"))

    assert message == "Failed: 502 - bad gateway"


def test_json_body_rejects_non_json() -> None:
    with pytest.raises(VimeoApiError):
        VimeoClient.json_body(FakeResponse(200, text="<html>"))


def test_network_errors_become_api_errors() -> None:
    def offline(**kwargs):
        raise requests.ConnectionError("offline")

    client = _client({("GET", f"{API_BASE}/me"): offline})

    with pytest.raises(VimeoApiError, match="offline"):
        client.request("GET", "/me")
