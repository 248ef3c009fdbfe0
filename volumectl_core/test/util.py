import json
import os
import shutil
import socketserver
import tempfile
import threading
from http.server import BaseHTTPRequestHandler

import pytest

from volumectl_core import constants


class _UnixHTTPServer(socketserver.ThreadingMixIn, socketserver.UnixStreamServer):
    daemon_threads = True


class _Handler(BaseHTTPRequestHandler):
    service = None

    def log_message(self, format, *args):
        pass

    def _respond(self):
        length = int(self.headers.get('Content-Length') or 0)
        body = self.rfile.read(length) if length else b""
        path = self.path.split('?', 1)[0]
        self.service.requests.append({
            'method': self.command,
            'path': self.path,
            'body': json.loads(body) if body else None,
            'headers': dict(self.headers),
        })

        status, payload = self.service.routes.get((self.command, path), (404, {"error": "not found"}))
        if payload is None or status == 304:
            data = b""
        elif isinstance(payload, bytes):
            data = payload
        else:
            data = json.dumps(payload).encode()

        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(data)))
        self.end_headers()
        if data:
            self.wfile.write(data)

    do_GET = _respond
    do_POST = _respond
    do_PUT = _respond
    do_DELETE = _respond


class FakeVolumeService:
    """volumed stand-in answering canned responses on a Unix socket."""

    def __init__(self):
        self.directory = tempfile.mkdtemp(prefix="volumed")
        self.socket_path = os.path.join(self.directory, constants.SOCKET_FILENAME)
        self.routes = {}
        self.requests = []
        self.server = None
        self.thread = None

    @property
    def pattern(self):
        return self.directory

    @property
    def api_requests(self):
        return [r for r in self.requests if r['path'] != constants.PROBE_PATH]

    def add(self, method, path, status=200, payload=None):
        self.routes[(method, path)] = (status, payload)

    def start(self):
        handler = type('Handler', (_Handler,), {'service': self})
        self.server = _UnixHTTPServer(self.socket_path, handler)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        return self

    def stop(self):
        if self.server is not None:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
        shutil.rmtree(self.directory, ignore_errors=True)


@pytest.fixture
def volumed(monkeypatch):
    service = FakeVolumeService().start()
    monkeypatch.setenv(constants.ENV_SOCKET_PATTERNS, service.pattern)
    yield service
    service.stop()


@pytest.fixture
def no_volumed(monkeypatch, tmp_path):
    pattern = str(tmp_path / "volumed*")
    monkeypatch.setenv(constants.ENV_SOCKET_PATTERNS, pattern)
    return pattern
