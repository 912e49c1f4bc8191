"""Jerarquia de errores del cliente.

Cada error lleva un ``kind`` (ErrorKind) para poder distinguirlos con
``match`` ademas de con ``except``. Se diferencian errores de configuracion,
falta de transporte, reintentos agotados y fallos de la propia llamada.
"""

from __future__ import annotations

import enum
from typing import Optional

from ordsnap_client.core.models import HttpResponse


class ErrorKind(enum.Enum):
    CONFIGURATION = "configuration"
    TRANSPORT_UNAVAILABLE = "transport_unavailable"
    RETRY_EXHAUSTED = "retry_exhausted"
    TRANSPORT_FAILURE = "transport_failure"


class ClientError(Exception):
    """Error base del cliente."""
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ClientError):
    """No se pudo determinar un host valido al construir el cliente."""
    kind = ErrorKind.CONFIGURATION


class TransportUnavailableError(ClientError):
    """No hay primitiva de red disponible en el entorno."""
    kind = ErrorKind.TRANSPORT_UNAVAILABLE


class RetryExhaustedError(ClientError):
    """Se agoto el presupuesto de reintentos con respuestas no-2xx."""
    kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(self, message: str, status: int, status_text: str, body: str) -> None:
        super().__init__(message)
        self.status = status
        self.status_text = status_text
        self.body = body
        self.attempts: list = []


class TransportFailure(ClientError):
    """La llamada de transporte no llego a completarse (DNS, conexion...)."""
    kind = ErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


def describe_response(response: HttpResponse) -> str:
    # Se lee de un clon para que el llamador aun pueda consumir el cuerpo.
    body = response.clone().text()
    return (
        "Server returned an error:\n"
        f"  Code: {response.status} ({response.status_text})\n"
        f"  Body: {body}\n"
    )


def retry_exhausted(response: HttpResponse, retry_budget: int) -> RetryExhaustedError:
    """Construye el error terminal a partir de la ultima respuesta."""
    message = (
        describe_response(response)
        + f"Exceeded configured limit of {retry_budget} retry attempts. "
        "Please check your network connection or try again in a few moments"
    )
    return RetryExhaustedError(
        message,
        status=response.status,
        status_text=response.status_text,
        body=response.clone().text(),
    )
