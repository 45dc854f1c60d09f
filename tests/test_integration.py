"""
Integration tests for the Detectify client against a local verifying server.
"""

import base64
import hashlib
import hmac
import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

import pytest
import requests

from detectify_client import DetectifyClient, TransportError

API_KEY = "integration-key"
SECRET = base64.b64encode(b"integration-secret").decode()


class VerifyingHandler(BaseHTTPRequestHandler):
    """Checks Detectify authentication headers the way the API does."""

    # where /rest/redirect/external/ sends clients
    external_url = None

    def log_message(self, format, *args):
        pass

    def _verify(self, body: bytes):
        if self.headers.get("X-Detectify-Key") != API_KEY:
            return 401, {"error": "invalid key"}

        signature = self.headers.get("X-Detectify-Signature")
        timestamp = self.headers.get("X-Detectify-Timestamp")
        if signature is None and timestamp is None:
            return 200, {"signed": False}

        path = unquote(urlsplit(self.path).path)
        message = f"{self.command};{path};{API_KEY};{timestamp};".encode() + body
        expected = base64.b64encode(
            hmac.new(b"integration-secret", message, hashlib.sha256).digest()
        ).decode()
        if not hmac.compare_digest(expected, signature or ""):
            return 401, {"error": "invalid signature"}
        return 200, {"signed": True, "body": body.decode()}

    def _redirect(self, location):
        self.send_response(302)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _handle(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length) if length else b""

        path = urlsplit(self.path).path
        if path == "/rest/redirect/external/":
            return self._redirect(self.external_url)
        if path == "/rest/redirect/internal/":
            return self._redirect("/rest/v2/assets/")

        status, payload = self._verify(body)

        data = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle
    do_DELETE = _handle


class RecordingHandler(BaseHTTPRequestHandler):
    """Third-party host that records the headers it receives."""

    seen = []

    def log_message(self, format, *args):
        pass

    def do_GET(self):
        self.seen.append(dict(self.headers))
        self.send_response(200)
        self.send_header("Content-Length", "0")
        self.end_headers()


class TestIntegration:
    """Integration tests with a local HTTP server."""

    @pytest.fixture(scope="class")
    def server_url(self):
        """Start a verifying server for the test class."""
        server = ThreadingHTTPServer(("127.0.0.1", 0), VerifyingHandler)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()

        yield f"http://127.0.0.1:{server.server_address[1]}/rest"

        server.shutdown()
        server.server_close()

    @pytest.fixture(scope="class")
    def external_server(self):
        """Start a second, unrelated server that redirects can point at."""
        server = ThreadingHTTPServer(("127.0.0.1", 0), RecordingHandler)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()

        VerifyingHandler.external_url = f"http://127.0.0.1:{server.server_address[1]}/landing"
        yield RecordingHandler.seen

        VerifyingHandler.external_url = None
        server.shutdown()
        server.server_close()

    @pytest.fixture(autouse=True)
    def no_proxy(self, monkeypatch):
        """Keep requests to the local server away from any configured proxy."""
        monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
        monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")

    @pytest.fixture
    def client(self, server_url):
        with DetectifyClient(API_KEY, SECRET, base_url=server_url) as client:
            yield client

    def test_unauthenticated_request_rejected(self, server_url):
        response = requests.get(f"{server_url}/v2/assets/")

        assert response.status_code == 401

    def test_signed_get(self, client):
        response = client.get("/v2/assets/", params={"marker": "next"})

        assert response.status_code == 200
        assert response.json()["signed"] is True

    def test_signed_post(self, client):
        response = client.post("/v2/assets/", json={"name": "example.com"})

        assert response.status_code == 200
        assert response.json()["body"] == '{"name":"example.com"}'

    def test_signed_stream_body(self, client, tmp_path):
        upload = tmp_path / "asset.json"
        upload.write_bytes(b'{"name":"stream.example.com"}')

        with upload.open("rb") as stream:
            response = client.put("/v2/assets/stream/", data=stream)

        assert response.status_code == 200
        assert response.json()["body"] == '{"name":"stream.example.com"}'

    def test_unsigned_client(self, server_url):
        with DetectifyClient(API_KEY, base_url=server_url) as client:
            response = client.delete("/v2/assets/token/")

        assert response.status_code == 200
        assert response.json()["signed"] is False

    def test_wrong_secret_rejected(self, server_url):
        other = base64.b64encode(b"other-secret").decode()
        with DetectifyClient(API_KEY, other, base_url=server_url) as client:
            response = client.get("/v2/assets/")

        assert response.status_code == 401

    def test_concurrent_requests(self, client):
        results = [None] * 20

        def worker(index):
            results[index] = client.post(f"/v2/assets/{index}/", json={"index": index})

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(response.status_code == 200 for response in results)

    def test_connection_error(self):
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        with DetectifyClient(API_KEY, SECRET, base_url=f"http://127.0.0.1:{port}/rest", timeout=2) as client:
            with pytest.raises(TransportError):
                client.get("/v2/assets/")

    def test_redirect_to_other_host_drops_credentials(self, client, external_server):
        external_server.clear()
        response = client.get("/redirect/external/")

        assert response.status_code == 200
        assert len(external_server) == 1
        received = {name.lower() for name in external_server[0]}
        assert "x-detectify-key" not in received
        assert "x-detectify-timestamp" not in received
        assert "x-detectify-signature" not in received

    def test_redirect_within_api_is_signed_again(self, client):
        response = client.get("/redirect/internal/")

        assert response.status_code == 200
        assert response.json()["signed"] is True
