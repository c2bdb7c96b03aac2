"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, Iterator, List, Tuple

import pytest

Route = Tuple[int, Dict[str, str], bytes]


class ReleaseServer:
    """Local stand-in for the GitHub release download endpoints."""

    def __init__(self, server: ThreadingHTTPServer) -> None:
        self._server = server
        self.routes: Dict[str, Route] = {}
        self.requests: List[Tuple[str, str]] = []

    @property
    def base_url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}"

    def add(self, path: str, body: bytes, status: int = 200) -> None:
        self.routes[path] = (status, {"Content-Length": str(len(body))}, body)

    def redirect(self, path: str, location: str, status: int = 302) -> None:
        self.routes[path] = (status, {"Location": location, "Content-Length": "0"}, b"")


def _make_handler(release: ReleaseServer) -> type:
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            release.requests.append((self.path, self.headers.get("User-Agent", "")))
            status, headers, body = release.routes.get(
                self.path, (404, {"Content-Length": "9"}, b"not found")
            )
            self.send_response(status)
            for name, value in headers.items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:
            pass

    return Handler


@pytest.fixture
def release_server() -> Iterator[ReleaseServer]:
    """Serve release files from 127.0.0.1 on a free port."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), BaseHTTPRequestHandler)
    release = ReleaseServer(server)
    server.RequestHandlerClass = _make_handler(release)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield release
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
