"""
mock_indexer.py
=================

Servidor Flask que simula el backend/indexador al que habla el snap. Sirve
para probar el cliente (reintentos, credenciales, transformaciones) sin red
real.

Contratos soportados:
- GET /health -> {"ok": true, "version": str}
- GET /api/status?... -> {"ok": true, "query": {...}, "auth": str|null}
- POST /api/call {...} -> {"ok": true, "echo": {...}, "headers": {...}}
- POST /api/flaky/reset {"fail_times": int} -> {"ok": true}

Las rutas /api/* fallan con 503 las primeras FAIL_TIMES peticiones (contador
global, se reinicia con /api/flaky/reset).

Configuracion por variables de entorno (opcionales):
- FAIL_TIMES (por defecto 0)
- PORT (por defecto 5001)
"""

from __future__ import annotations

import os
from threading import Lock
from typing import Any, Optional

from flask import Flask, jsonify, request, Response

from ordsnap_client.config import __version__


app = Flask(__name__)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


class FlakyState:
    """Contador de fallos pendientes antes de empezar a responder 2xx."""

    def __init__(self, fail_times: int = 0) -> None:
        self._lock = Lock()
        self.fail_times = max(0, fail_times)
        self.calls = 0

    def reset(self, fail_times: int) -> None:
        with self._lock:
            self.fail_times = max(0, fail_times)
            self.calls = 0

    def should_fail(self) -> bool:
        with self._lock:
            self.calls += 1
            if self.fail_times > 0:
                self.fail_times -= 1
                return True
            return False


STATE = FlakyState(_env_int("FAIL_TIMES", 0))


def _unavailable() -> Optional[Any]:
    if STATE.should_fail():
        return jsonify({"error": "indexer temporalmente no disponible"}), 503
    return None


@app.get("/health")
def health() -> Response:
    return jsonify({"ok": True, "version": __version__})


@app.get("/api/status")
def api_status() -> Response:
    """Devuelve la query recibida (en orden) y la cabecera Authorization."""
    failed = _unavailable()
    if failed is not None:
        return failed
    query = {k: v for k, v in request.args.items()}
    return jsonify({
        "ok": True,
        "query": query,
        "raw_query": request.query_string.decode("utf-8"),
        "auth": request.headers.get("Authorization"),
    })


@app.post("/api/call")
def api_call() -> Response:
    """Eco del cuerpo JSON y de las cabeceras relevantes."""
    failed = _unavailable()
    if failed is not None:
        return failed
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "cuerpo JSON requerido"}), 400
    headers = {k: v for k, v in request.headers.items() if k.lower().startswith("x-") or k == "Authorization"}
    return jsonify({"ok": True, "echo": payload, "headers": headers})


@app.post("/api/flaky/reset")
def api_flaky_reset() -> Response:
    payload = request.get_json(silent=True) or {}
    try:
        fail_times = int(payload.get("fail_times", 0))
    except (TypeError, ValueError):
        return jsonify({"error": "fail_times debe ser entero"}), 400
    STATE.reset(fail_times)
    return jsonify({"ok": True})


def main() -> None:
    """Punto de entrada: arranca el indexador simulado en el puerto indicado."""
    port = _env_int("PORT", 5001)
    app.run(host="127.0.0.1", port=port, debug=False)


if __name__ == "__main__":
    main()
