"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import json
import logging
import socket
import time

from config import (
    HOST,
    KEEPALIVE_TIMEOUT_SECS,
    LOG_FORMAT,
    MAX_KEEPALIVE_REQUESTS,
    PORT,
    SOCKET_TIMEOUT_SECS,
    SiteConfig,
)
from connection_threads import ConnectionThreads
from handlers.static_files import Handler, build_site_handler
from request import HTTPRequest, HTTPRequestParseError
from response import HTTPResponse
from socket_handler import HTTPReadError, discard_request_body, read_request_head, send_response

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD")


class HTTPServer:
    def __init__(
        self,
        host: str = HOST,
        port: int = PORT,
        site: SiteConfig | None = None,
        handler: Handler | None = None,
        *,
        keepalive_timeout_secs: int = KEEPALIVE_TIMEOUT_SECS,
        log_format: str = LOG_FORMAT,
    ) -> None:
        self.host = host
        self.port = port
        self.site = site or SiteConfig()
        self.handler = handler or build_site_handler(self.site)
        self.keepalive_timeout_secs = keepalive_timeout_secs
        self.log_format = log_format

        self._server_socket: socket.socket | None = None
        self._connections: ConnectionThreads | None = None
        self._running = False

    def start(self) -> None:
        """Bind, listen and run each accepted connection on its own thread."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            self._server_socket = server_socket
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(128)
            server_socket.settimeout(0.2)
            self.port = server_socket.getsockname()[1]
            self._connections = ConnectionThreads(self._handle_client)

            self._running = True
            try:
                while self._running:
                    try:
                        client_socket, address = server_socket.accept()
                    except socket.timeout:
                        continue
                    except OSError:
                        break

                    if not self._connections.submit(client_socket, address):
                        client_socket.close()
            finally:
                self._connections.shutdown(graceful=True)

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(min(SOCKET_TIMEOUT_SECS, self.keepalive_timeout_secs))
            carry = b""
            for request_number in range(1, MAX_KEEPALIVE_REQUESTS + 1):
                started_at = time.perf_counter()
                try:
                    split = read_request_head(client_socket, carry)
                    if split is None:
                        return
                    head, carry = split
                    request = HTTPRequest.from_head(head)
                    carry = discard_request_body(client_socket, carry, request.content_length)
                except (HTTPReadError, HTTPRequestParseError) as exc:
                    logger.debug("Rejected request from %s: %s", address[0], exc)
                    response = HTTPResponse.plain_text(exc.status_code, should_close=True)
                    self._send(client_socket, address, None, response, started_at)
                    return
                except OSError:
                    return

                response = self._dispatch(request)
                if not request.keep_alive or request_number == MAX_KEEPALIVE_REQUESTS:
                    response.should_close = True
                if not response.should_close:
                    response.headers["Connection"] = "keep-alive"
                    response.headers["Keep-Alive"] = (
                        f"timeout={self.keepalive_timeout_secs}, "
                        f"max={MAX_KEEPALIVE_REQUESTS - request_number}"
                    )

                if not self._send(client_socket, address, request, response, started_at):
                    return
                if response.should_close:
                    return

    def _send(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        request: HTTPRequest | None,
        response: HTTPResponse,
        started_at: float,
    ) -> bool:
        try:
            bytes_out = send_response(client_socket, response)
        except OSError:
            return False
        self._log_access(address, request, response, bytes_out, started_at)
        return True

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        if request.method not in ALLOWED_METHODS:
            response = HTTPResponse.plain_text(405, "405 Method Not Allowed")
            response.headers["Allow"] = ", ".join(ALLOWED_METHODS)
            return response

        try:
            response = self.handler(request)
        except Exception:
            logger.exception("Unhandled error serving %s", request.path)
            response = HTTPResponse.plain_text(500, "500 Internal Server Error")

        if request.method == "HEAD":
            return response.without_body()
        return response

    def _log_access(
        self,
        address: tuple[str, int],
        request: HTTPRequest | None,
        response: HTTPResponse,
        bytes_out: int,
        started_at: float,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": request.method if request else "-",
            "path": request.path if request else "-",
            "status": response.status_code,
            "bytes_out": bytes_out,
            "latency_ms": round(duration_ms, 3),
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "client=%s method=%s path=%s status=%s bytes_out=%s duration_ms=%.2f",
            event["client"],
            event["method"],
            event["path"],
            event["status"],
            event["bytes_out"],
            duration_ms,
        )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    site = SiteConfig()
    server = HTTPServer(site=site)
    print(f"Server running at http://localhost:{server.port}/")
    print(f"Serving files from: {site.root_dir}")
    print("No-cache headers enabled for all responses")
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()


if __name__ == "__main__":
    main()
