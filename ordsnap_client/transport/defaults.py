"""Descubrimiento de la primitiva de transporte por defecto.

Se prueban, en orden, tres contextos anfitriones:

- browser: Pyodide en el hilo principal (``js.window.XMLHttpRequest``)
- server: CPython con ``urllib.request``
- worker: Pyodide en un web worker (``js.self.XMLHttpRequest``)

Si ninguno ofrece una primitiva, se lanza ``TransportUnavailableError``.
Esto queda fuera del nucleo: el cliente solo necesita un ``Transport``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable, Optional, Sequence, Tuple

from ordsnap_client.core.errors import TransportFailure, TransportUnavailableError
from ordsnap_client.core.models import HttpRequest, HttpResponse, Transport
from ordsnap_client.transport.http_client import UrllibTransport

_logger = logging.getLogger("ordsnap_client.transport.defaults")

Probe = Callable[[], Optional[Transport]]


class XhrTransport:
    """Transporte sincrono sobre XMLHttpRequest (Pyodide)."""

    def __init__(self, xhr_factory: Callable[[], Any]) -> None:
        self._xhr_factory = xhr_factory

    def __call__(self, request: HttpRequest) -> HttpResponse:
        xhr = self._xhr_factory()
        try:
            xhr.open(request.method, request.url, False)
            for key, value in request.headers.items():
                xhr.setRequestHeader(key, value)
            if request.data is not None:
                xhr.send(request.data.decode("utf-8"))
            else:
                xhr.send()
        except Exception as e:
            raise TransportFailure(f"could not reach {request.url}: {e}", cause=e) from e
        if xhr.status == 0:
            raise TransportFailure(f"could not reach {request.url}: network error")
        headers = {}
        for line in str(xhr.getAllResponseHeaders() or "").splitlines():
            name, sep, value = line.partition(":")
            if sep:
                headers[name.strip()] = value.strip()
        return HttpResponse(
            status=int(xhr.status),
            status_text=str(xhr.statusText or ""),
            headers=headers,
            body=str(xhr.responseText or "").encode("utf-8"),
            url=request.url,
        )


def _js_global(name: str) -> Any:
    if sys.platform != "emscripten":
        return None
    try:
        import js  # type: ignore[import-not-found]
    except ImportError:
        return None
    return getattr(js, name, None)


def probe_browser() -> Optional[Transport]:
    window = _js_global("window")
    if window is None or getattr(window, "XMLHttpRequest", None) is None:
        return None
    return XhrTransport(window.XMLHttpRequest.new)


def probe_server() -> Optional[Transport]:
    # En emscripten urllib existe pero no hay sockets
    if sys.platform == "emscripten":
        return None
    return UrllibTransport()


def probe_worker() -> Optional[Transport]:
    scope = _js_global("self")
    if scope is None or getattr(scope, "XMLHttpRequest", None) is None:
        return None
    return XhrTransport(scope.XMLHttpRequest.new)


DEFAULT_PROBES: Tuple[Tuple[str, Probe], ...] = (
    ("browser", probe_browser),
    ("server", probe_server),
    ("worker", probe_worker),
)


def get_default_transport(probes: Optional[Sequence[Tuple[str, Probe]]] = None) -> Transport:
    probes = DEFAULT_PROBES if probes is None else probes
    for name, probe in probes:
        transport = probe()
        if transport is not None:
            _logger.debug("using %s transport", name)
            return transport
        _logger.debug("no transport in %s context", name)
    names = ", ".join(name for name, _ in probes) or "none"
    raise TransportUnavailableError(
        "Transport implementation was not available. "
        f"Probed hosting contexts: {names}. "
        "Please provide a transport to the client, or run in a context where one is available."
    )
