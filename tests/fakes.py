"""Stand-ins for ``requests`` sessions and responses used across the tests."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from vimeo_migration.transfer import Tus, UploadMode, UploadTicket


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        headers: Optional[Dict[str, str]] = None,
        text: str = "",
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


Handler = Callable[..., FakeResponse]


class FakeApiSession:
    """Routes ``session.request`` calls to handlers keyed by ``(method, url)``.

    A handler may be a response or a callable receiving the request kwargs.
    Unknown routes answer 404.
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None) -> None:
        self.routes = dict(routes or {})
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        route = self.routes.get((method, url))
        if route is None:
            return FakeResponse(404, {"error": "not found"})
        if callable(route):
            return route(**kwargs)
        return route

    def close(self) -> None:
        self.closed = True


class FakeTusServer:
    """In-memory tus endpoint that appends PATCH bodies to ``received``.

    ``accept_limit`` caps how many bytes of each PATCH are kept, and
    ``omit_offset`` drops the ``Upload-Offset`` header from PATCH responses.
    """

    def __init__(
        self,
        stored: bytes = b"",
        *,
        accept_limit: Optional[int] = None,
        omit_offset: bool = False,
    ) -> None:
        self.received = bytearray(stored)
        self.accept_limit = accept_limit
        self.omit_offset = omit_offset
        self.heads = 0
        self.patches: List[Tuple[int, int]] = []
        self.patch_headers: List[Dict[str, str]] = []
        self.closed = False

    def head(self, url: str, headers: Optional[Dict[str, str]] = None, timeout: Any = None) -> FakeResponse:
        self.heads += 1
        return FakeResponse(204, headers={"Upload-Offset": str(len(self.received))})

    def patch(
        self,
        url: str,
        data: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        timeout: Any = None,
    ) -> FakeResponse:
        headers = headers or {}
        offset = int(headers["Upload-Offset"])
        self.patches.append((offset, len(data)))
        self.patch_headers.append(dict(headers))
        if offset != len(self.received):
            return FakeResponse(409, text="offset mismatch")
        accepted = data if self.accept_limit is None else data[: self.accept_limit]
        self.received.extend(accepted)
        response_headers = {} if self.omit_offset else {"Upload-Offset": str(len(self.received))}
        return FakeResponse(204, headers=response_headers)

    def close(self) -> None:
        self.closed = True


class FakeIssuer:
    def __init__(
        self,
        mode: UploadMode = Tus(),
        upload_link: Optional[str] = "https://files.example.com/upload/1",
        resource_uri: Optional[str] = "/videos/123",
    ) -> None:
        self.mode = mode
        self.upload_link = upload_link
        self.resource_uri = resource_uri
        self.calls: List[Tuple[int, str, Optional[str]]] = []

    def create_upload_ticket(self, size: int, name: str, folder_uri: Optional[str] = None) -> UploadTicket:
        self.calls.append((size, name, folder_uri))
        return UploadTicket(
            upload_link=self.upload_link,
            resource_uri=self.resource_uri,
            mode=self.mode,
        )
