"""Configuracion del cliente HTTP del snap.

Un solo dataclass con valores por defecto razonables. Se puede construir a
mano o desde variables de entorno con ``ClientConfig.from_env()``.
"""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ordsnap_client.core.models import Transport

__version__ = "0.1.0"

DEFAULT_RETRY_BUDGET = 3


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Credentials:
    """Par usuario/clave para Basic auth. La clave es opcional."""
    name: str
    password: Optional[str] = None

    def basic_token(self) -> str:
        raw = f"{self.name}:{self.password or ''}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def authorization(self) -> str:
        return "Basic " + self.basic_token()


@dataclass
class ClientConfig:
    """Config para el cliente.

    Campos:
    - host: origen absoluto o host sin esquema; si falta se usa el origen
      de la pagina (``ORDSNAP_PAGE_ORIGIN``)
    - credentials: Basic auth opcional
    - retry_budget: reintentos tras el primer intento; 0 = sin limite
    - retry_backoff_s: pausa fija entre reintentos (0 = reintento inmediato)
    - plain_options / call_options: campos extra para GET / POST
    - transport: reemplaza la primitiva de transporte por defecto
    """
    host: Optional[str] = None
    credentials: Optional[Credentials] = None
    retry_budget: int = DEFAULT_RETRY_BUDGET
    retry_backoff_s: float = 0.0
    plain_options: Dict[str, Any] = field(default_factory=dict)
    call_options: Dict[str, Any] = field(default_factory=dict)
    transport: Optional[Transport] = None

    def __post_init__(self) -> None:
        if self.retry_budget < 0:
            raise ValueError(f"retry_budget must be >= 0, got {self.retry_budget}")
        if self.retry_backoff_s < 0:
            raise ValueError(f"retry_backoff_s must be >= 0, got {self.retry_backoff_s}")

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Lee ORDSNAP_HOST, ORDSNAP_USER, ORDSNAP_PASSWORD y ORDSNAP_RETRY_BUDGET."""
        creds = None
        user = os.environ.get("ORDSNAP_USER")
        if user:
            creds = Credentials(name=user, password=os.environ.get("ORDSNAP_PASSWORD") or None)
        budget = _env_int("ORDSNAP_RETRY_BUDGET", DEFAULT_RETRY_BUDGET)
        if budget < 0:
            budget = DEFAULT_RETRY_BUDGET
        values: Dict[str, Any] = {
            "host": os.environ.get("ORDSNAP_HOST") or None,
            "credentials": creds,
            "retry_budget": budget,
        }
        values.update(overrides)
        return cls(**values)
