"""Reading request heads from, and writing responses to, client sockets."""

from __future__ import annotations

import socket

from config import MAX_HEADER_BYTES, READ_CHUNK_SIZE
from response import HTTPResponse

HEAD_TERMINATOR = b"\r\n\r\n"


class HTTPReadError(Exception):
    """The connection cannot yield a request; answer ``status_code`` and close."""

    status_code = 400


class MalformedRequestError(HTTPReadError):
    pass


class HeaderTooLargeError(HTTPReadError):
    status_code = 431


class SocketTimeoutError(HTTPReadError):
    status_code = 408


def split_request_head(buffer: bytes) -> tuple[bytes, bytes] | None:
    """Return (head, rest) once ``buffer`` holds a whole request head."""
    end = buffer.find(HEAD_TERMINATOR)
    if end == -1:
        if len(buffer) > MAX_HEADER_BYTES:
            raise HeaderTooLargeError("Request head exceeded MAX_HEADER_BYTES")
        return None
    if end + len(HEAD_TERMINATOR) > MAX_HEADER_BYTES:
        raise HeaderTooLargeError("Request head exceeded MAX_HEADER_BYTES")
    return buffer[:end], buffer[end + len(HEAD_TERMINATOR) :]


def _recv(client_socket: socket.socket) -> bytes:
    try:
        chunk = client_socket.recv(READ_CHUNK_SIZE)
    except socket.timeout as exc:
        raise SocketTimeoutError("Timed out waiting for request bytes") from exc
    if not chunk:
        raise MalformedRequestError("Connection closed mid-request")
    return chunk


def read_request_head(
    client_socket: socket.socket, carry: bytes = b""
) -> tuple[bytes, bytes] | None:
    """Read until a request head is complete and return (head, leftover).

    None means the connection went idle: it closed or timed out before
    sending a single byte of a new request.
    """
    buffer = carry
    while True:
        split = split_request_head(buffer)
        if split is not None:
            return split
        try:
            buffer += _recv(client_socket)
        except HTTPReadError:
            if not buffer:
                return None
            raise


def discard_request_body(client_socket: socket.socket, carry: bytes, length: int) -> bytes:
    """Consume a ``length``-byte body nobody reads; return what follows it."""
    while len(carry) < length:
        carry += _recv(client_socket)
    return carry[length:]


def send_response(client_socket: socket.socket, response: HTTPResponse) -> int:
    payload = response.to_bytes()
    client_socket.sendall(payload)
    return len(payload)
