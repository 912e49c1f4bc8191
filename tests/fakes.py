"""Transportes falsos para los tests."""

from __future__ import annotations

from typing import List, Sequence
from urllib.parse import urlsplit

from ordsnap_client.core.models import HttpRequest, HttpResponse


def response(status: int, body: bytes = b"", status_text: str = "") -> HttpResponse:
    if not status_text:
        status_text = "OK" if 200 <= status < 300 else "Service Unavailable"
    return HttpResponse(status=status, status_text=status_text, body=body)


class ScriptedTransport:
    """Devuelve las respuestas en orden; repite la ultima si se acaban."""

    def __init__(self, responses: Sequence[HttpResponse]) -> None:
        self.responses = list(responses)
        self.requests: List[HttpRequest] = []

    def __call__(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        idx = min(len(self.requests) - 1, len(self.responses) - 1)
        return self.responses[idx]

    @property
    def calls(self) -> int:
        return len(self.requests)


class FailingTransport:
    def __init__(self, exc: BaseException) -> None:
        self.exc = exc
        self.calls = 0

    def __call__(self, request: HttpRequest) -> HttpResponse:
        self.calls += 1
        raise self.exc


class FlaskTransport:
    """Envia las peticiones al test_client de una app Flask."""

    def __init__(self, app) -> None:
        self.client = app.test_client()
        self.requests: List[HttpRequest] = []

    def __call__(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        parts = urlsplit(request.url)
        resp = self.client.open(
            parts.path,
            method=request.method,
            query_string=parts.query,
            headers=request.headers,
            data=request.data,
        )
        reason = resp.status.split(" ", 1)[1] if " " in resp.status else ""
        return HttpResponse(
            status=resp.status_code,
            status_text=reason,
            headers=dict(resp.headers.items()),
            body=resp.get_data(),
            url=request.url,
        )
