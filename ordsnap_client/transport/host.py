"""Resolucion y canonicalizacion del host destino."""

from __future__ import annotations

import os
import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from ordsnap_client.core.errors import ConfigurationError

# Dominio de la API: los subdominios gestionados redirigen al apex.
API_DOMAIN = "astrox.app"
API_SUB_DOMAIN = ".astrox.app"

PAGE_ORIGIN_ENV = "ORDSNAP_PAGE_ORIGIN"

SCHEME_RE = re.compile(r"^[a-z]+:")


def ambient_origin() -> Optional[str]:
    """Origen de la pagina anfitriona, si el entorno lo expone."""
    return os.environ.get(PAGE_ORIGIN_ENV) or None


def _parse_origin(value: str) -> str:
    parts = urlsplit(value)
    if not parts.scheme or not parts.hostname:
        raise ConfigurationError(f"Invalid host: {value!r}. Expected an absolute origin such as https://example.com")
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", ""))


def canonicalize(origin: str) -> str:
    """Reescribe ``*.astrox.app`` a ``astrox.app`` para evitar redirecciones."""
    parts = urlsplit(origin)
    hostname = parts.hostname or ""
    if not hostname.endswith(API_SUB_DOMAIN):
        return origin
    netloc = API_DOMAIN
    if parts.port is not None:
        netloc += f":{parts.port}"
    if parts.username:
        userinfo = parts.username + (f":{parts.password}" if parts.password else "")
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def resolve_host(host: Optional[str], page_origin: Optional[str] = None) -> str:
    """Devuelve el origen canonico a usar por el cliente.

    - host con esquema: se interpreta como origen completo
    - host sin esquema: se completa con el esquema de la pagina; sin pagina
      no hay forma de completarlo y falla
    - sin host: se usa el origen de la pagina o falla
    """
    if page_origin is None:
        page_origin = ambient_origin()
    if host is not None:
        if not SCHEME_RE.match(host) and page_origin:
            scheme = urlsplit(page_origin).scheme or "https"
            resolved = _parse_origin(f"{scheme}://{host}")
        else:
            resolved = _parse_origin(host)
    else:
        if not page_origin:
            raise ConfigurationError("Must specify a host to connect to.")
        resolved = _parse_origin(page_origin)
    return canonicalize(resolved)


def hostname_of(origin: str) -> str:
    return urlsplit(origin).hostname or ""


def is_local(origin: str) -> bool:
    hostname = hostname_of(origin)
    return hostname == "127.0.0.1" or hostname.endswith("localhost")
