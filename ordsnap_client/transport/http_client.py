from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urljoin

import urllib.request
import urllib.error

from ordsnap_client.core.models import HttpRequest, HttpResponse, LogicalRequest, RequestKind
from ordsnap_client.core.errors import TransportFailure
from ordsnap_client.config import Credentials
from ordsnap_client.transport.pipeline import TransformPipeline

JSON_CONTENT_TYPE = "application/json"

# Caracteres que se dejan tal cual al normalizar la URL (igual que hace un navegador).
URL_SAFE_CHARS = ":/?&=%#@+,;!$'()*[]~"


def build_query(endpoint: str, params: Optional[Mapping[str, Any]]) -> str:
    """Anade los parametros en orden de insercion: ``/x?a=1&b=2``."""
    pairs = [f"{key}={value}" for key, value in (params or {}).items()]
    if not pairs:
        return endpoint
    return endpoint + "?" + "&".join(pairs)


def serialize_body(body: Any) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


def _merge_options(options: Mapping[str, Any], headers: Dict[str, str]) -> tuple[Dict[str, Any], Dict[str, str]]:
    # Las opciones pueden traer cabeceras propias; las del cliente mandan.
    extra = dict(options)
    merged_headers = dict(extra.pop("headers", None) or {})
    merged_headers.update(headers)
    for key in ("method", "url", "body", "data"):
        extra.pop(key, None)
    return extra, merged_headers


class RequestBuilder:
    """Convierte peticiones logicas en ``HttpRequest`` listas para el transporte."""

    def __init__(
        self,
        host: str,
        pipeline: TransformPipeline,
        credentials: Optional[Credentials] = None,
        plain_options: Optional[Mapping[str, Any]] = None,
        call_options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.host = host
        self.pipeline = pipeline
        self.credentials = credentials
        self.plain_options = dict(plain_options or {})
        self.call_options = dict(call_options or {})

    def _auth_headers(self) -> Dict[str, str]:
        if self.credentials is None:
            return {}
        return {"Authorization": self.credentials.authorization()}

    def url_for(self, path: str) -> str:
        # Espacios y no-ASCII se codifican en %XX; lo ya codificado se respeta
        return quote(urljoin(self.host, path), safe=URL_SAFE_CHARS)

    def build_get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> HttpRequest:
        url = self.url_for(build_query(endpoint, params))
        options, headers = _merge_options(self.plain_options, self._auth_headers())
        return HttpRequest(method="GET", url=url, headers=headers, options=options)

    def build_call(self, endpoint: str, body: Any) -> HttpRequest:
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        headers.update(self._auth_headers())
        logical = LogicalRequest(endpoint=endpoint, method="POST", headers=headers, body=body, kind=RequestKind.CALL)
        transformed = self.pipeline.apply(logical.copy())
        options, merged_headers = _merge_options(self.call_options, transformed.headers)
        return HttpRequest(
            method=transformed.method,
            url=self.url_for(transformed.endpoint),
            headers=merged_headers,
            data=serialize_body(transformed.body),
            options=options,
        )


class UrllibTransport:
    """Primitiva de transporte por defecto basada en ``urllib``.

    Las respuestas 4xx/5xx se devuelven como ``HttpResponse``; solo los fallos
    de red se elevan como ``TransportFailure``.
    """

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self.timeout_s = timeout_s

    def __call__(self, request: HttpRequest) -> HttpResponse:
        req = urllib.request.Request(request.url, data=request.data, method=request.method)
        for key, value in request.headers.items():
            req.add_header(key, value)
        timeout = request.options.get("timeout", self.timeout_s)
        kwargs: Dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            with urllib.request.urlopen(req, **kwargs) as resp:
                return HttpResponse(
                    status=resp.status,
                    status_text=resp.reason or "",
                    headers=dict(resp.headers.items()),
                    body=resp.read(),
                    url=resp.geturl(),
                )
        except urllib.error.HTTPError as e:
            # El servidor respondio: es una respuesta, no un fallo de transporte
            try:
                body = e.read()
            finally:
                e.close()
            return HttpResponse(
                status=e.code,
                status_text=str(e.reason or ""),
                headers=dict(e.headers.items()) if e.headers else {},
                body=body or b"",
                url=request.url,
            )
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise TransportFailure(f"could not reach {request.url}: {reason}", cause=e) from e
