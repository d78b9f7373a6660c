"""Pytest configuration and fixtures."""

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import parse_qs, urlparse

import pytest

from healthsutra.graph.model import Graph, Link, Node


@pytest.fixture
def clinic_graph() -> Graph:
    """Two patients seeing one doctor, plus a prescription."""
    return Graph.of(
        [
            Node("p1", "Patient", {"name": "Asha"}),
            Node("p2", "Patient", {"name": "Ravi", "age": 42}),
            Node("d1", "Doctor", {"specialty": "cardiology"}),
            Node("m1", "Medication", {}),
        ],
        [
            Link("l1", "p1", "d1", "sees", {"since": "2024"}),
            Link("l2", "p2", "d1", "sees", {}),
            Link("l3", "d1", "m1", "prescribes", {"dose": "5mg"}),
        ],
    )


@pytest.fixture
def graph_file(tmp_path: Path, clinic_graph: Graph) -> Path:
    """Temporary graph file in the persistence shape."""
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(clinic_graph.to_dict()), encoding="utf-8")
    return path


class FakeBackend:
    """Route table: (method, path) -> (status, body, headers); records requests."""

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url
        self.routes: dict[tuple[str, str], tuple[int, Any, dict[str, str]]] = {}
        self.requests: list[dict[str, Any]] = []

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.routes[(method, path)] = (status, body, headers or {})


def _handler(backend: FakeBackend):
    class Handler(BaseHTTPRequestHandler):
        def _serve(self, method: str) -> None:
            parsed = urlparse(self.path)
            length = int(self.headers.get("Content-Length") or 0)
            raw = self.rfile.read(length) if length else b""
            backend.requests.append(
                {
                    "method": method,
                    "path": parsed.path,
                    "query": {k: v[0] for k, v in parse_qs(parsed.query).items()},
                    "body": json.loads(raw) if raw else None,
                }
            )
            status, body, headers = backend.routes.get((method, parsed.path), (404, {"error": "not found"}, {}))
            payload = b"" if body is None else json.dumps(body).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            for k, v in headers.items():
                self.send_header(k, v)
            self.end_headers()
            self.wfile.write(payload)

        def do_GET(self) -> None:
            self._serve("GET")

        def do_POST(self) -> None:
            self._serve("POST")

        def do_DELETE(self) -> None:
            self._serve("DELETE")

        def log_message(self, format: str, *args: Any) -> None:
            pass

    return Handler


@pytest.fixture
def backend() -> Iterator[FakeBackend]:
    """Local HTTP server standing in for the Express backend."""
    state = FakeBackend()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _handler(state))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    state.base_url = f"http://{host}:{port}"
    try:
        yield state
    finally:
        server.shutdown()
        server.server_close()
