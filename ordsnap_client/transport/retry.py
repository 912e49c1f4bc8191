"""Bucle de reintentos sobre la primitiva de transporte.

Solo se reintentan las respuestas completadas con status no-2xx. Si la
llamada en si falla (conexion, DNS...) el error sube sin reintentar.

Logger: ``ordsnap_client.transport.retry`` (avisos en WARNING).
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from ordsnap_client.core.errors import ClientError, TransportFailure, describe_response, retry_exhausted
from ordsnap_client.core.models import Attempt, HttpResponse

_logger = logging.getLogger("ordsnap_client.transport.retry")


class RetryExecutor:
    """Ejecuta una peticion con hasta ``retry_budget`` reintentos.

    Un presupuesto ``n`` permite ``n + 1`` llamadas en total; 0 no tiene limite.
    """

    def __init__(
        self,
        retry_budget: int,
        backoff_s: float = 0.0,
        sleep: Optional[Callable[[float], object]] = None,
    ) -> None:
        if retry_budget < 0:
            raise ValueError(f"retry_budget must be >= 0, got {retry_budget}")
        self.retry_budget = retry_budget
        self.backoff_s = backoff_s
        self._sleep = sleep or time.sleep
        self._local = threading.local()

    @property
    def last_attempts(self) -> List[Attempt]:
        """Intentos de la ultima llamada hecha desde el hilo actual."""
        return list(getattr(self._local, "attempts", ()))

    def _may_retry(self, attempt: int) -> bool:
        return self.retry_budget == 0 or attempt < self.retry_budget

    def run(self, request: Callable[[], HttpResponse]) -> HttpResponse:
        attempts: List[Attempt] = []
        self._local.attempts = attempts
        attempt = 0
        while True:
            try:
                response = request()
            except ClientError as exc:
                attempts.append(Attempt(ordinal=attempt, error=exc))
                raise
            except Exception as exc:
                attempts.append(Attempt(ordinal=attempt, error=exc))
                raise TransportFailure(f"Request failed before a response was received: {exc}", cause=exc) from exc
            attempts.append(Attempt(ordinal=attempt, response=response))
            if response.ok:
                return response

            if not self._may_retry(attempt):
                err = retry_exhausted(response, self.retry_budget)
                err.attempts = list(attempts)
                raise err
            _logger.warning("%s  Retrying request (attempt %d).", describe_response(response), attempt + 1)
            attempt += 1
            if self.backoff_s > 0:
                self._sleep(self.backoff_s)
