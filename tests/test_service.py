import json
import unittest
from unittest import mock

from fakes import FailingTransport, ScriptedTransport, response
from ordsnap_client.config import ClientConfig, Credentials
from ordsnap_client.core.errors import (
    ConfigurationError,
    ErrorKind,
    RetryExhaustedError,
    TransportFailure,
    TransportUnavailableError,
)
from ordsnap_client.core.service import OrdSnapHttpClient
from ordsnap_client.transport.defaults import XhrTransport, get_default_transport
from ordsnap_client.transport.http_client import UrllibTransport
from ordsnap_client.transport.pipeline import make_nonce_transform

NO_PROBES = [("browser", lambda: None), ("server", lambda: None), ("worker", lambda: None)]


def make_client(transport, **cfg):
    cfg.setdefault("host", "https://indexer.example.com")
    return OrdSnapHttpClient(ClientConfig(transport=transport, **cfg))


class ClientGetTests(unittest.TestCase):
    def test_get_builds_ordered_query(self):
        t = ScriptedTransport([response(200, b"{}")])
        client = make_client(t)
        resp = client.http_get("/status", {"a": 1, "b": 2})
        self.assertTrue(resp.ok)
        self.assertEqual(t.requests[0].url, "https://indexer.example.com/status?a=1&b=2")
        self.assertEqual(t.requests[0].method, "GET")

    def test_get_with_credentials(self):
        t = ScriptedTransport([response(200)])
        client = make_client(t, credentials=Credentials("alice", "pw"))
        client.http_get("/status")
        self.assertEqual(t.requests[0].headers["Authorization"], "Basic YWxpY2U6cHc=")

    def test_get_against_canonical_host(self):
        t = ScriptedTransport([response(200)])
        client = make_client(t, host="https://x.astrox.app")
        client.http_get("/status", {"a": 1})
        self.assertEqual(t.requests[0].url, "https://astrox.app/status?a=1")


class ClientPostTests(unittest.TestCase):
    def test_post_runs_pipeline_in_priority_order(self):
        order = []

        def step(name):
            def fn(request):
                order.append(name)
            return fn

        t = ScriptedTransport([response(200)])
        client = make_client(t)
        client.add_transform(step("five"), 5)
        client.add_transform(step("ten"), 10)
        client.add_transform(step("one"), 1)
        client.http_post("/api/call", {"x": 1})
        self.assertEqual(order, ["ten", "five", "one"])
        self.assertEqual(json.loads(t.requests[0].data), {"x": 1})

    def test_post_with_nonce(self):
        t = ScriptedTransport([response(200)])
        client = make_client(t)
        client.add_transform(make_nonce_transform(lambda: "abc"))
        client.http_post("/api/call", {"x": 1})
        self.assertEqual(t.requests[0].headers["X-Request-Nonce"], "abc")
        self.assertEqual(t.requests[0].headers["Content-Type"], "application/json")

    def test_post_retry_exhausted(self):
        t = ScriptedTransport([response(503, b"down")])
        client = make_client(t, retry_budget=2)
        with self.assertLogs("ordsnap_client.transport.retry", level="WARNING"):
            with self.assertRaises(RetryExhaustedError) as ctx:
                client.http_post("/api/call", {"x": 1})
        self.assertEqual(t.calls, 3)
        self.assertIs(ctx.exception.kind, ErrorKind.RETRY_EXHAUSTED)
        self.assertEqual(len(client.last_attempts), 3)

    def test_backoff_from_config(self):
        t = ScriptedTransport([response(503), response(503), response(200)])
        with mock.patch("ordsnap_client.transport.retry.time.sleep") as sleep:
            client = make_client(t, retry_budget=3, retry_backoff_s=0.5)
            with self.assertLogs("ordsnap_client.transport.retry", level="WARNING"):
                client.http_get("/status")
        self.assertEqual(sleep.call_args_list, [mock.call(0.5), mock.call(0.5)])

    def test_transport_failure_propagates_without_retry(self):
        t = FailingTransport(OSError("connection reset"))
        client = make_client(t, retry_budget=5)
        with self.assertRaises(TransportFailure):
            client.http_post("/api/call", {})
        self.assertEqual(t.calls, 1)


class ClientConstructionTests(unittest.TestCase):
    def test_defaults(self):
        client = make_client(ScriptedTransport([response(200)]))
        self.assertEqual(client.retry_budget, 3)
        self.assertEqual(client.host, "https://indexer.example.com/")
        self.assertFalse(client.is_local())

    def test_is_local(self):
        self.assertTrue(make_client(ScriptedTransport([]), host="http://127.0.0.1:4943").is_local())
        self.assertTrue(make_client(ScriptedTransport([]), host="http://localhost:8000").is_local())

    def test_no_host(self):
        with self.assertRaises(ConfigurationError):
            OrdSnapHttpClient(ClientConfig(transport=ScriptedTransport([])), page_origin="")

    def test_page_origin_fallback(self):
        client = OrdSnapHttpClient(ClientConfig(transport=ScriptedTransport([])), page_origin="https://wallet.example")
        self.assertEqual(client.host, "https://wallet.example/")

    def test_no_transport_available(self):
        with self.assertRaises(TransportUnavailableError) as ctx:
            OrdSnapHttpClient(ClientConfig(host="https://indexer.example.com"), probes=NO_PROBES)
        message = str(ctx.exception)
        for name in ("browser", "server", "worker"):
            self.assertIn(name, message)

    def test_injected_transport_skips_discovery(self):
        def boom():
            raise AssertionError("probe should not run")

        client = OrdSnapHttpClient(
            ClientConfig(host="https://indexer.example.com", transport=ScriptedTransport([])),
            probes=[("browser", boom)],
        )
        self.assertEqual(client.host, "https://indexer.example.com/")


class DiscoveryTests(unittest.TestCase):
    def test_probe_order(self):
        picked = object()
        probes = [("browser", lambda: None), ("server", lambda: picked), ("worker", lambda: self.fail("late"))]
        self.assertIs(get_default_transport(probes), picked)

    def test_default_probes_pick_urllib_on_cpython(self):
        self.assertIsInstance(get_default_transport(), UrllibTransport)

    def test_xhr_transport(self):
        class FakeXhr:
            status = 404
            statusText = "Not Found"
            responseText = "missing"

            def __init__(self):
                self.sent = []
                self.headers = {}

            def open(self, method, url, is_async):
                self.opened = (method, url, is_async)

            def setRequestHeader(self, key, value):
                self.headers[key] = value

            def send(self, *args):
                self.sent.append(args)

            def getAllResponseHeaders(self):
                return "content-type: text/plain\r\n"

        created = []

        def factory():
            created.append(FakeXhr())
            return created[-1]

        from ordsnap_client.core.models import HttpRequest

        resp = XhrTransport(factory)(HttpRequest(method="POST", url="https://a/b", headers={"X": "1"}, data=b"{}"))
        self.assertEqual(resp.status, 404)
        self.assertEqual(resp.status_text, "Not Found")
        self.assertEqual(resp.text(), "missing")
        self.assertEqual(resp.headers, {"content-type": "text/plain"})
        self.assertEqual(created[0].opened, ("POST", "https://a/b", False))
        self.assertEqual(created[0].sent, [("{}",)])


if __name__ == "__main__":
    unittest.main()
