"""Tests for the HTTP(S) backend."""

import json
import threading
import time
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

import requests
from urllib3.util import SKIP_HEADER

from fakes import StubAdapter, stub_session
from pydatasource import Datasources, SourceDefinition
from pydatasource.context import RenderContext
from pydatasource.exceptions import Cancelled, HTTPStatusError, NetworkError
from pydatasource.handlers import FetchRequest, HTTPHandler
from pydatasource.options import ResolverOptions


def _request(uri, headers=None):
    return FetchRequest(uri=uri, parsed=urlsplit(uri), headers=headers or {})


class SlowBody:
    """Raw stream that runs ``on_read`` before serving the n-th chunk."""

    def __init__(self, chunks, on_read):
        self.chunks = list(chunks)
        self.reads = 0
        self.on_read = on_read
        self.closed = False

    def read(self, amt=None):
        self.reads += 1
        self.on_read(self.reads)
        return self.chunks.pop(0) if self.chunks else b""

    def close(self):
        self.closed = True


class HTTPHandlerTest(unittest.TestCase):
    def setUp(self):
        self.handler = HTTPHandler(ResolverOptions(user_agent="test-agent/1.0"))

    def tearDown(self):
        self.handler.close()

    def test_default_user_agent(self):
        self.assertEqual(self.handler.default_headers, {"User-Agent": ["test-agent/1.0"]})

    def test_get_with_exact_headers(self):
        adapter = StubAdapter(200, "application/json; charset=utf-8", "")
        ctx = RenderContext(client=stub_session(adapter))
        result = self.handler.fetch(
            _request("http://example.com/foo", {"Foo": ["bar", "baz"]}), ctx
        )
        self.assertEqual(result.content_type, "application/json; charset=utf-8")
        sent = adapter.requests[0]
        self.assertEqual(sent.method, "GET")
        self.assertEqual(sent.url, "http://example.com/foo")
        # the session's own defaults are not sent; urllib3's are marked as skipped
        self.assertEqual(
            dict(sent.headers),
            {"Foo": "bar, baz", "User-Agent": SKIP_HEADER, "Accept-Encoding": SKIP_HEADER},
        )

    def test_non_2xx_raises_with_bounded_excerpt(self):
        handler = HTTPHandler(ResolverOptions(body_excerpt_limit=9))
        self.addCleanup(handler.close)
        adapter = StubAdapter(404, "text/plain", "not found: no such document")
        ctx = RenderContext(client=stub_session(adapter))
        with self.assertRaises(HTTPStatusError) as cm:
            handler.fetch(_request("http://example.com/missing"), ctx)
        self.assertEqual(cm.exception.code, 404)
        self.assertEqual(cm.exception.body_excerpt, "not found")

    def test_excerpt_with_unknown_charset_falls_back_to_utf8(self):
        adapter = StubAdapter(502, "text/plain; charset=no-such-codec", "bad gateway")
        ctx = RenderContext(client=stub_session(adapter))
        with self.assertRaises(HTTPStatusError) as cm:
            self.handler.fetch(_request("http://example.com/"), ctx)
        self.assertEqual(cm.exception.code, 502)
        self.assertEqual(cm.exception.body_excerpt, "bad gateway")

    def test_deadline_becomes_request_timeout(self):
        adapter = StubAdapter(200, "text/plain", "ok")
        ctx = RenderContext(client=stub_session(adapter))
        self.handler.fetch(_request("http://example.com/"), ctx)
        self.assertIsNone(adapter.send_kwargs[0].get("timeout"))

        ctx.cancel.cancel_after(30)
        self.addCleanup(ctx.cancel.cancel)
        self.handler.fetch(_request("http://example.com/"), ctx)
        timeout = adapter.send_kwargs[1]["timeout"]
        self.assertGreater(timeout, 0)
        self.assertLessEqual(timeout, 30)

    def test_transport_error_becomes_network_error(self):
        adapter = StubAdapter()
        adapter.error = requests.ConnectionError("connection refused")
        ctx = RenderContext(client=stub_session(adapter))
        with self.assertRaises(NetworkError) as cm:
            self.handler.fetch(_request("http://example.com/"), ctx)
        self.assertIsInstance(cm.exception.__cause__, requests.ConnectionError)

    def test_missing_content_type_is_guessed_from_path(self):
        adapter = StubAdapter(200, None, '{"a": 1}')
        ctx = RenderContext(client=stub_session(adapter))
        result = self.handler.fetch(_request("http://example.com/data.json"), ctx)
        self.assertEqual(result.content_type, "application/json")
        result = self.handler.fetch(_request("http://example.com/data"), ctx)
        self.assertEqual(result.content_type, "text/plain")

    def test_cancelled_before_request_does_no_io(self):
        adapter = StubAdapter(200, "application/json", "{}")
        ctx = RenderContext(client=stub_session(adapter))
        ctx.cancel.cancel()
        with self.assertRaises(Cancelled):
            self.handler.fetch(_request("http://example.com/"), ctx)
        self.assertEqual(adapter.calls, 0)

    def test_cancel_while_waiting_releases_caller(self):
        gate = threading.Event()
        adapter = StubAdapter(200, "application/json", "{}", gate=gate)
        ctx = RenderContext(client=stub_session(adapter))
        threading.Timer(0.1, ctx.cancel.cancel, args=("stop",)).start()

        started = time.monotonic()
        with self.assertRaises(Cancelled):
            self.handler.fetch(_request("http://example.com/slow"), ctx)
        self.assertLess(time.monotonic() - started, 3)

        gate.set()
        deadline = time.monotonic() + 3
        while time.monotonic() < deadline and not (
            adapter.responses and adapter.responses[0].raw.closed
        ):
            time.sleep(0.02)
        self.assertTrue(adapter.responses[0].raw.closed)

    def test_cancel_while_reading_body(self):
        handler = HTTPHandler(ResolverOptions(chunk_size=4))
        self.addCleanup(handler.close)
        ctx = RenderContext()

        def on_read(n):
            if n == 2:
                ctx.cancel.cancel("abort")

        body = SlowBody([b"abcd", b"efgh", b"ijkl"], on_read)
        adapter = StubAdapter(200, "text/plain", "ignored")
        original_send = adapter.send

        def send(request, **kwargs):
            resp = original_send(request, **kwargs)
            resp.raw = body
            return resp

        adapter.send = send
        ctx.client = stub_session(adapter)
        with self.assertRaises(Cancelled):
            handler.fetch(_request("http://example.com/big"), ctx)
        self.assertTrue(body.closed)

    def test_completed_result_survives_later_cancel(self):
        adapter = StubAdapter(200, "text/plain", "done")
        ctx = RenderContext(client=stub_session(adapter))
        result = self.handler.fetch(_request("http://example.com/"), ctx)
        ctx.cancel.cancel()
        self.assertEqual(result.body, b"done\n")

class EchoHandler(BaseHTTPRequestHandler):
    """Replies with the request headers exactly as they arrived."""

    def do_GET(self):
        seen = {}
        for name, value in self.headers.items():
            seen.setdefault(name, []).append(value)
        body = json.dumps(seen).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class WireHeadersTest(unittest.TestCase):
    """Headers as seen by a real server, through requests and urllib3."""

    @classmethod
    def setUpClass(cls):
        cls.server = ThreadingHTTPServer(("127.0.0.1", 0), EchoHandler)
        cls.thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.thread.start()
        cls.url = "http://127.0.0.1:%d/echo" % cls.server.server_address[1]

    @classmethod
    def tearDownClass(cls):
        cls.server.shutdown()
        cls.server.server_close()
        cls.thread.join(5)

    def resolve(self, headers=None):
        session = requests.Session()
        session.trust_env = False
        self.addCleanup(session.close)
        ds = Datasources(
            RenderContext(client=session),
            [SourceDefinition(alias="foo", uri=self.url, headers=headers or {})],
            options=ResolverOptions(user_agent="pydatasource-test/1.0"),
        )
        self.addCleanup(ds.close)
        seen = ds.datasource("foo")
        seen.pop("Host", None)
        return seen

    def test_suppressed_user_agent_is_not_sent(self):
        seen = self.resolve(
            {
                "Foo": ["bar"],
                "foo": ["baz"],
                "User-Agent": [],
                "Accept-Encoding": ["test"],
            }
        )
        self.assertEqual(seen, {"Accept-Encoding": ["test"], "Foo": ["bar, baz"]})

    def test_only_merged_headers_reach_the_server(self):
        seen = self.resolve()
        self.assertEqual(seen, {"User-Agent": ["pydatasource-test/1.0"]})



if __name__ == "__main__":
    unittest.main()
