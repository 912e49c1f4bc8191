from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Tuple

from ordsnap_client.core.models import HttpResponse, Transport
from ordsnap_client.transport.defaults import Probe, get_default_transport
from ordsnap_client.transport.host import is_local, resolve_host
from ordsnap_client.transport.http_client import RequestBuilder
from ordsnap_client.transport.pipeline import TransformFn, TransformPipeline
from ordsnap_client.transport.retry import RetryExecutor
from ordsnap_client.config import ClientConfig


class OrdSnapHttpClient:
    """Cliente HTTP del snap hacia los servicios de backend/indexador.

    Los GET van directos; los POST pasan antes por el pipeline de
    transformaciones. Ambos se envian a traves del bucle de reintentos.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        page_origin: Optional[str] = None,
        probes: Optional[Sequence[Tuple[str, Probe]]] = None,
    ) -> None:
        self._cfg = config or ClientConfig()
        self._transport: Transport = self._cfg.transport if self._cfg.transport is not None else get_default_transport(probes)
        self._host = resolve_host(self._cfg.host, page_origin)
        self._pipeline = TransformPipeline()
        self._builder = RequestBuilder(
            self._host,
            self._pipeline,
            credentials=self._cfg.credentials,
            plain_options=self._cfg.plain_options,
            call_options=self._cfg.call_options,
        )
        self._executor = RetryExecutor(self._cfg.retry_budget, backoff_s=self._cfg.retry_backoff_s)

    @property
    def host(self) -> str:
        return self._host

    @property
    def retry_budget(self) -> int:
        return self._executor.retry_budget

    @property
    def pipeline(self) -> TransformPipeline:
        return self._pipeline

    @property
    def last_attempts(self):
        """Historial de la ultima llamada del hilo actual (no se comparte entre hilos)."""
        return list(self._executor.last_attempts)

    def is_local(self) -> bool:
        return is_local(self._host)

    def add_transform(self, transform: TransformFn, priority: Optional[int] = None) -> None:
        self._pipeline.add(transform, priority)

    def http_get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> HttpResponse:
        request = self._builder.build_get(endpoint, params)
        return self._executor.run(lambda: self._transport(request))

    def http_post(self, endpoint: str, body: Any) -> HttpResponse:
        request = self._builder.build_call(endpoint, body)
        return self._executor.run(lambda: self._transport(request))
