import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from xmr_pool_rpc.config.models import UpstreamConfig
from xmr_pool_rpc.rpc.client import RPCClient


def make_response(body=None, status=200, reason="OK", raw=None):
    """Build a real requests.Response carrying ``body`` encoded as JSON (or raw bytes)."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.encoding = "utf-8"
    if raw is None:
        raw = json.dumps(body).encode("utf-8")
    response._content = raw
    response._content_consumed = True
    return response


class FakeSession:
    """Stands in for requests.Session; replays queued responses or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.default = None
        self.calls = []
        self._lock = threading.Lock()

    def queue(self, *outcomes):
        self.outcomes.extend(outcomes)

    def post(self, url, **kwargs):
        with self._lock:
            self.calls.append((url, kwargs))
            outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if callable(outcome):
            outcome = outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def ok(result):
    return lambda: make_response({"id": 0, "jsonrpc": "2.0", "result": result})


def rpc_error(message, code=-1):
    return lambda: make_response({"id": 0, "jsonrpc": "2.0", "error": {"code": code, "message": message}})


def refused():
    return requests.exceptions.ConnectionError("Connection refused")


@pytest.fixture
def upstream_config():
    return UpstreamConfig(name="main", host="127.0.0.1", port=18081, timeout="5s")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(upstream_config, session):
    return RPCClient(upstream_config, session=session)


class _DaemonHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        request = json.loads(self.rfile.read(length))
        self.server.requests.append((self.path, dict(self.headers), request))
        status, body = self.server.responder(request)
        payload = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def daemon():
    """A local HTTP server speaking JSON-RPC; set ``daemon.responder`` per test."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _DaemonHandler)
    server.requests = []
    server.responder = lambda request: (200, {"id": 0, "jsonrpc": "2.0", "result": None})
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def daemon_client(daemon):
    host, port = daemon.server_address[:2]
    return RPCClient(UpstreamConfig(name="local", host=host, port=port, timeout="5s"))
