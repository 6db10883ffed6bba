"""Serialization of HTTP request objects into raw bytes."""

from io import BytesIO

from .connection import Connection
from .request import Request

__all__ = ("encode_request", "write_request")

#: HTTP protocol version spoken by the client
HTTP_VERSION = "HTTP/1.1"

CRLF = b"\r\n"


def encode_request(request: Request) -> bytes:
    """Encodes the given request into the bytes to be sent over the wire.

    The request line comes first, followed by the headers in insertion
    order, a blank line, the body (if any) and a trailing CRLF. The
    ``Content-Length`` header is not added here; the caller must set it
    when the request has a body.

    Parameters:
        request: the request to encode

    Returns:
        the encoded request
    """
    result = BytesIO()
    result.write(
        "{0} {1} {2}".format(request.method.value, request.target, HTTP_VERSION).encode(
            "ascii"
        )
    )
    result.write(CRLF)
    for line in request.headers.to_lines():
        result.write(line.encode("latin-1"))
        result.write(CRLF)
    result.write(CRLF)
    if request.body:
        result.write(request.body)
    result.write(CRLF)
    return result.getvalue()


def write_request(connection: Connection, request: Request) -> None:
    """Writes the given request to the given connection in one go."""
    connection.send_all(encode_request(request))
