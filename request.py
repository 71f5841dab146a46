"""Parsing of request heads for a GET/HEAD file server."""

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from config import MAX_BODY_BYTES, MAX_TARGET_LENGTH

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
KNOWN_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "TRACE", "CONNECT"}
)


class HTTPRequestParseError(ValueError):
    """The request head is unusable; ``status_code`` is what to answer with."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class HTTPRequest:
    """A parsed request head. Any body the client sent is never kept."""

    method: str
    path: str
    http_version: str = "HTTP/1.1"
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def keep_alive(self) -> bool:
        connection = self.headers.get("connection", "").lower()
        if self.http_version == "HTTP/1.0":
            return "keep-alive" in connection
        return "close" not in connection

    @property
    def content_length(self) -> int:
        return int(self.headers.get("content-length", "0"))

    @classmethod
    def from_head(cls, head: bytes) -> "HTTPRequest":
        """Build a request from the bytes before the blank line."""
        request_line, *header_lines = head.decode("iso-8859-1").split("\r\n")

        parts = request_line.split(" ")
        if len(parts) != 3 or not all(parts):
            raise HTTPRequestParseError("Invalid request line")
        method, target, version = parts[0].upper(), parts[1], parts[2]

        if method not in KNOWN_METHODS:
            raise HTTPRequestParseError("Method not implemented", status_code=501)
        if version not in SUPPORTED_VERSIONS:
            raise HTTPRequestParseError("Unsupported HTTP version", status_code=505)
        if len(target) > MAX_TARGET_LENGTH:
            raise HTTPRequestParseError("Request target too long", status_code=414)

        # Absolute-form targets ("http://host/x") keep only their path.
        path = urlsplit(target).path or "/"
        if not path.startswith("/"):
            raise HTTPRequestParseError("Request target must be an absolute path")

        request = cls(method=method, path=path, http_version=version)
        for line in header_lines:
            name, sep, value = line.partition(":")
            if not sep or not name.strip():
                raise HTTPRequestParseError("Malformed header line")
            request.headers[name.strip().lower()] = value.strip()

        request._check_headers()
        return request

    def _check_headers(self) -> None:
        if self.http_version == "HTTP/1.1" and "host" not in self.headers:
            raise HTTPRequestParseError("Host header required for HTTP/1.1")
        if "transfer-encoding" in self.headers:
            raise HTTPRequestParseError(
                "Transfer-Encoding request bodies are not supported",
                status_code=501,
            )
        try:
            length = self.content_length
        except ValueError as exc:
            raise HTTPRequestParseError("Invalid Content-Length") from exc
        if length < 0:
            raise HTTPRequestParseError("Invalid Content-Length")
        if length > MAX_BODY_BYTES:
            raise HTTPRequestParseError("Request body too large", status_code=413)
