"""Simple HTTP response object for the low-level HTTP library, and the
reader that parses responses off the wire.
"""

from __future__ import annotations

import json
import logging
import re

from typing import Any, Optional

from surfer.errors import ConnectionError, ProtocolError

from .connection import StreamReader
from .dechunkers import (
    BodyDecoder,
    ChunkedBodyDecoder,
    ChunkObserver,
    ContentLengthBodyDecoder,
    NullBodyDecoder,
)
from .headers import Headers
from .request import Method

__all__ = ("Response", "ResponseReader")

log = logging.getLogger(__name__)

_status_code_re = re.compile(r"[0-9]+")


class Response:
    """HTTP response object."""

    protocol: str
    """The protocol string found in the status line; typically
    ``HTTP/1.1``.
    """

    status_code: int
    """The numeric status code of the response."""

    reason: str
    """The reason phrase of the response; may be empty."""

    headers: Headers
    """The headers of the response."""

    body: bytes
    """The body of the response. Empty if the body was delivered to a chunk
    observer or if the response belongs to a HEAD request.
    """

    truncated: bool
    """Whether the connection ended before the whole body was received."""

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        headers: Optional[Headers] = None,
        body: bytes = b"",
        protocol: str = "HTTP/1.1",
    ):
        self.status_code = status_code
        self.reason = reason
        self.headers = headers if headers is not None else Headers()
        self.body = body
        self.protocol = protocol
        self.truncated = False

    def __repr__(self) -> str:
        return "<{0} [{1}]>".format(self.__class__.__name__, self.status_code)

    def __str__(self) -> str:
        lines = [self.status_line]
        lines.extend(self.headers.to_lines())
        lines.append("")
        if self.body:
            lines.append(self.text)
        return "\r\n".join(lines)

    @classmethod
    def from_head(cls, head: str) -> Response:
        """Creates a response object from the raw text of the status line
        and the header block.

        Raises:
            ProtocolError: if the status line or one of the header lines is
                malformed
        """
        lines = head.split("\r\n")
        status_line = lines[0].strip()

        parts = status_line.split(None, 2)
        if len(parts) < 2 or not _status_code_re.fullmatch(parts[1]):
            raise ProtocolError("invalid status line: {0!r}".format(status_line))

        protocol, code = parts[0], int(parts[1])
        reason = parts[2] if len(parts) > 2 else ""

        headers = Headers()
        for line in lines[1:]:
            line = line.strip()
            if not line:
                continue

            key, sep, value = line.partition(":")
            if not sep:
                raise ProtocolError("found invalid HTTP header line: {0!r}".format(line))

            headers[key.strip()] = value.strip()

        return cls(code, reason, headers, protocol=protocol)

    def get_header(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Returns the value of the given header or the given default value."""
        return self.headers.get(key, default)

    def json(self) -> Any:
        """Parses the body of the response as JSON.

        Raises:
            ValueError: if the body is not valid JSON
        """
        return json.loads(self.body.decode("utf-8"))

    @property
    def is_chunked(self) -> bool:
        """Returns whether the response declares chunked transfer encoding."""
        value = self.headers.get("Transfer-Encoding")
        return value is not None and value.strip().lower() == "chunked"

    @property
    def status_line(self) -> str:
        return "{0} {1} {2}".format(self.protocol, self.status_code, self.reason).rstrip()

    @property
    def text(self) -> str:
        """The body of the response decoded as UTF-8 text."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def wants_close(self) -> bool:
        """Returns whether the server asked to close the connection after
        this response.
        """
        value = self.headers.get("Connection")
        return value is not None and value.strip().lower() == "close"


class ResponseReader:
    """Reads the status line, the headers and the body of HTTP responses
    from a stream.
    """

    reader: StreamReader

    def __init__(self, reader: StreamReader):
        """Constructor.

        Parameters:
            reader: the buffered reader to read the responses from
        """
        self.reader = reader

    def read(
        self, method: Method = Method.GET, on_chunk: Optional[ChunkObserver] = None
    ) -> Response:
        """Reads a complete response from the stream.

        Parameters:
            method: the method of the request that the response belongs to
            on_chunk: optional function to call with each decoded chunk of a
                chunked response instead of accumulating the body

        Returns:
            the response, with its body filled in
        """
        response = self.read_head()

        decoder = self.select_body_decoder(response, method)
        decoded = decoder.decode(self.reader, on_chunk)

        response.body = decoded.data
        response.truncated = decoded.truncated
        if decoded.truncated:
            log.warning(
                "Connection closed before the body of the response was "
                "received completely; got %d bytes",
                len(decoded.data),
            )

        return response

    def read_head(self) -> Response:
        """Reads the status line and the headers of a response, leaving the
        stream positioned at the first byte of the body.

        Raises:
            ConnectionError: if the stream ended before the status line
            ProtocolError: if the status line or a header line is malformed
        """
        lines = []
        while True:
            line = self.reader.readline()
            if not line:
                break

            lines.append(line)
            if line == b"\r\n":
                break

        if not lines:
            raise ConnectionError("connection closed unexpectedly by the remote server")

        head = b"".join(lines).decode("latin-1")
        response = Response.from_head(head)
        log.debug("Received response: %s", response.status_line)
        return response

    @staticmethod
    def select_body_decoder(response: Response, method: Method) -> BodyDecoder:
        """Returns the body decoder that should be used for the given response
        to a request with the given method.
        """
        if not method.allows_response_body:
            return NullBodyDecoder()
        elif response.is_chunked:
            return ChunkedBodyDecoder()
        else:
            return ContentLengthBodyDecoder.from_header(
                response.headers.get("Content-Length")
            )
