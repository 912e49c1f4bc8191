from __future__ import annotations

"""Modelos del cliente (DTOs) en formato simple.

Los usan el servicio, el pipeline de transformaciones y los transportes.
Sin dependencias externas para poder testear con transportes falsos.
"""

import enum
import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional


class RequestKind(enum.Enum):
    """Sobre de la peticion: lectura (GET) o llamada (POST)."""
    PLAIN = "plain"
    CALL = "call"


@dataclass
class LogicalRequest:
    """Peticion antes de serializar.

    Es lo que reciben las transformaciones. ``body`` sigue siendo un valor
    estructurado (dict, lista...) hasta que el builder lo serializa.
    """
    endpoint: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    kind: RequestKind = RequestKind.CALL

    def copy(self) -> "LogicalRequest":
        return replace(self, headers=dict(self.headers))


@dataclass
class HttpRequest:
    """Peticion lista para el transporte."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    data: Optional[bytes] = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HttpResponse:
    """Respuesta de una llamada de transporte completada (cualquier status)."""
    status: int
    status_text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.text())

    def clone(self) -> "HttpResponse":
        return replace(self, headers=dict(self.headers))


@dataclass(frozen=True)
class Attempt:
    """Registro inmutable de un intento de transporte."""
    ordinal: int
    response: Optional[HttpResponse] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.response is not None and self.response.ok


# Primitiva de transporte: una peticion entra, una respuesta sale.
Transport = Callable[[HttpRequest], HttpResponse]
