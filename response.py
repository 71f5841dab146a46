"""Responses and their HTTP/1.1 wire encoding."""

from dataclasses import dataclass, field, replace
from email.utils import formatdate
from http import HTTPStatus

from config import SERVER_NAME


@dataclass(slots=True)
class HTTPResponse:
    """A fully buffered response.

    ``send_body`` is False for HEAD: ``Content-Length`` still describes
    ``body`` but the bytes are not written.
    """

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    send_body: bool = True
    should_close: bool = False

    @classmethod
    def plain_text(
        cls, status_code: int, message: str | None = None, *, should_close: bool = False
    ) -> "HTTPResponse":
        """A ``text/plain`` status page, by default "<code> <reason>"."""
        response = cls(status_code=status_code, should_close=should_close)
        response.headers["Content-Type"] = "text/plain"
        response.body = (message or f"{status_code} {response.reason}").encode("utf-8")
        return response

    @property
    def reason(self) -> str:
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return "Unknown"

    def without_body(self) -> "HTTPResponse":
        return replace(self, headers=dict(self.headers), send_body=False)

    def encode_head(self) -> bytes:
        headers = {
            "Date": formatdate(usegmt=True),
            "Server": SERVER_NAME,
            "Content-Type": "application/octet-stream",
        }
        headers.update(self.headers)
        headers["Content-Length"] = str(len(self.body))
        if self.should_close:
            headers["Connection"] = "close"

        lines = [f"HTTP/1.1 {self.status_code} {self.reason}"]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        return ("\r\n".join(lines) + "\r\n\r\n").encode("iso-8859-1")

    def to_bytes(self) -> bytes:
        if self.send_body:
            return self.encode_head() + self.body
        return self.encode_head()
