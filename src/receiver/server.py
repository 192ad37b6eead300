import json
import threading
import time
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler
from typing import Self


class _EndpointHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    request_queue_size = 128


class _ScriptedHandler(BaseHTTPRequestHandler):
    """Answers every request with the next scripted status."""

    def do_GET(self):
        self._handle()

    def do_POST(self):
        self._handle()

    def do_PUT(self):
        self._handle()

    def _handle(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length) if content_length else b""

        server_config = self.server.config  # type: ignore[attr-defined]

        # Simulate slow response
        if server_config["response_delay"] > 0:
            time.sleep(server_config["response_delay"])

        with server_config["lock"]:
            code = _next_code(server_config, self.path)
            server_config["hits"].append({
                "method": self.command,
                "path": self.path,
                "headers": dict(self.headers),
                "body": body,
                "status": code,
            })
            server_config["path_hits"][self.path] = server_config["path_hits"].get(self.path, 0) + 1

        payload = server_config["response_body"]
        if payload is None:
            status = "ok" if 200 <= code < 300 else "error"
            payload = json.dumps({"status": status, "code": code})
        data = payload.encode("utf-8")

        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        for path, name, value in server_config["response_headers"]:
            if path is None or path == self.path:
                self.send_header(name, value)
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


def _next_code(server_config: dict, path: str) -> int:
    """Pick the status for this hit. Caller holds the lock."""
    fail_first = server_config["fail_first_per_path"]
    if fail_first:
        seen = server_config["path_hits"].get(path, 0)
        return server_config["failure_code"] if seen < fail_first else 200

    sequence = server_config["response_codes"]
    index = min(len(server_config["hits"]), len(sequence) - 1)
    return sequence[index]


class ScriptedEndpointServer:
    """Local HTTP server whose answers follow a script, for exercising retries."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0):
        self._host = host
        self._port = port
        self._config = {
            "response_codes": [200],
            "fail_first_per_path": 0,
            "failure_code": 503,
            "response_body": None,
            "response_headers": [],
            "response_delay": 0,
            "hits": [],
            "path_hits": {},
            "lock": threading.Lock(),
        }
        self._server: _EndpointHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def set_response_code(self, code: int) -> Self:
        return self.set_response_sequence([code])

    def set_response_sequence(self, codes: list[int]) -> Self:
        """Answer the n-th hit with ``codes[n]``; the last code repeats."""
        if not codes:
            raise ValueError("at least one status code is required")
        with self._config["lock"]:
            self._config["response_codes"] = list(codes)
            self._config["fail_first_per_path"] = 0
        return self

    def fail_first_per_path(self, count: int, code: int = 503) -> Self:
        """Answer the first ``count`` hits on each path with ``code``, then 200."""
        with self._config["lock"]:
            self._config["fail_first_per_path"] = count
            self._config["failure_code"] = code
        return self

    def set_response_body(self, body: str | None) -> Self:
        self._config["response_body"] = body
        return self

    def add_response_header(self, name: str, value: str, path: str | None = None) -> Self:
        """Send an extra header on every response, or only on responses for ``path``."""
        self._config["response_headers"].append((path, name, value))
        return self

    def set_response_delay(self, seconds: float) -> Self:
        self._config["response_delay"] = seconds
        return self

    def start(self) -> None:
        self._server = _EndpointHTTPServer((self._host, self._port), _ScriptedHandler)
        self._server.config = self._config  # type: ignore[attr-defined]
        # Get the actual port (useful when port=0)
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def port(self) -> int:
        return self._port

    def url_for(self, path: str) -> str:
        return f"{self.url}/{path.lstrip('/')}"

    def get_hits(self, path: str | None = None) -> list[dict]:
        with self._config["lock"]:
            if path is None:
                return list(self._config["hits"])
            return [h for h in self._config["hits"] if h["path"] == path]

    def get_hit_count(self, path: str | None = None) -> int:
        return len(self.get_hits(path))

    def clear_hits(self) -> None:
        with self._config["lock"]:
            self._config["hits"].clear()
            self._config["path_hits"].clear()
