"""Pipeline de transformaciones para peticiones de tipo llamada (POST).

Una transformacion es cualquier callable ``(LogicalRequest) -> LogicalRequest | None``.
Devolver ``None`` significa "sin cambios". La prioridad se lee del atributo
``priority`` del callable (0 si no lo tiene) o se pasa al registrarla.
"""

from __future__ import annotations

import secrets
import threading
from typing import Callable, Dict, List, Optional, Tuple

from ordsnap_client.core.models import LogicalRequest

TransformFn = Callable[[LogicalRequest], Optional[LogicalRequest]]

NONCE_HEADER = "X-Request-Nonce"


def transform_priority(fn: TransformFn) -> int:
    return getattr(fn, "priority", 0) or 0


class TransformPipeline:
    """Lista ordenada por prioridad descendente.

    Con prioridades iguales, la ultima registrada se ejecuta antes.
    """

    def __init__(self) -> None:
        self._entries: List[Tuple[int, TransformFn]] = []
        self._lock = threading.Lock()

    def add(self, fn: TransformFn, priority: Optional[int] = None) -> None:
        if priority is None:
            priority = transform_priority(fn)
        try:
            fn.priority = priority  # type: ignore[attr-defined]
        except AttributeError:
            # bound methods y builtins no aceptan atributos; la prioridad vive en la entrada
            pass
        with self._lock:
            # `<=`: con la misma prioridad la recien registrada va delante
            idx = len(self._entries)
            for i, (p, _) in enumerate(self._entries):
                if p <= priority:
                    idx = i
                    break
            self._entries.insert(idx, (priority, fn))

    def snapshot(self) -> List[TransformFn]:
        with self._lock:
            return [fn for _, fn in self._entries]

    def priorities(self) -> List[int]:
        with self._lock:
            return [p for p, _ in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def apply(self, request: LogicalRequest) -> LogicalRequest:
        current = request
        for fn in self.snapshot():
            result = fn(current)
            if result is not None:
                current = result
        return current


def make_nonce() -> str:
    return secrets.token_hex(16)


def make_nonce_transform(nonce_fn: Callable[[], str] = make_nonce, header: str = NONCE_HEADER) -> TransformFn:
    """Anade un nonce unico a cada llamada.

    Sin nonce, llamadas identicas pueden ser limitadas en los nodos frontera.
    """
    def nonce_transform(request: LogicalRequest) -> LogicalRequest:
        request.headers[header] = nonce_fn()
        return request

    return nonce_transform


def make_headers_transform(headers: Dict[str, str], priority: int = 0) -> TransformFn:
    """Fija cabeceras estaticas en cada llamada (reemplaza las existentes)."""
    def headers_transform(request: LogicalRequest) -> LogicalRequest:
        request.headers.update(headers)
        return request

    headers_transform.priority = priority  # type: ignore[attr-defined]
    return headers_transform
