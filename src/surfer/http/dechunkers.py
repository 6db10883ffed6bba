"""Body decoder objects that drain the entity body of an HTTP response
from a stream, either bounded by the ``Content-Length`` header or framed
with chunked transfer encoding.
"""

from __future__ import annotations

import re

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from surfer.errors import ProtocolError

from .connection import StreamReader

__all__ = (
    "BodyDecoder",
    "ChunkedBodyDecoder",
    "ChunkObserver",
    "ContentLengthBodyDecoder",
    "DecodedBody",
    "NullBodyDecoder",
)

ChunkObserver = Callable[[bytes], None]
"""Type alias for functions that receive the decoded chunks of a chunked
response as they arrive.
"""

_chunk_size_re = re.compile(rb"^[0-9A-Fa-f]+$")
_content_length_re = re.compile(r"[0-9]+")


@dataclass
class DecodedBody:
    """The result of draining the body of a response."""

    data: bytes = b""
    """The accumulated body. Empty if the chunks were delivered to an
    observer instead.
    """

    truncated: bool = False
    """Whether the stream ended before the whole body was received."""


class BodyDecoder(metaclass=ABCMeta):
    """Base class for body decoders."""

    @abstractmethod
    def decode(
        self, reader: StreamReader, on_chunk: Optional[ChunkObserver] = None
    ) -> DecodedBody:
        """Drains the body of a response from the given reader.

        Parameters:
            reader: the reader to read the body from
            on_chunk: optional function to call with each decoded chunk
                instead of accumulating the body in memory

        Returns:
            the decoded body
        """
        raise NotImplementedError


class NullBodyDecoder(BodyDecoder):
    """Null decoder for responses that have no body at all, such as
    responses to HEAD requests.
    """

    def decode(
        self, reader: StreamReader, on_chunk: Optional[ChunkObserver] = None
    ) -> DecodedBody:
        return DecodedBody()


class ContentLengthBodyDecoder(BodyDecoder):
    """Decoder that reads a body whose length is given up-front in the
    ``Content-Length`` header.
    """

    def __init__(self, length: int):
        """Constructor.

        Parameters:
            length: the number of bytes in the body
        """
        self.length = max(length, 0)

    @classmethod
    def from_header(cls, value: Optional[str]) -> ContentLengthBodyDecoder:
        """Creates a decoder from the value of a ``Content-Length`` header.
        Missing or non-numeric values are treated as zero.
        """
        value = value.strip() if value else ""
        return cls(int(value) if _content_length_re.fullmatch(value) else 0)

    def decode(
        self, reader: StreamReader, on_chunk: Optional[ChunkObserver] = None
    ) -> DecodedBody:
        if self.length == 0:
            return DecodedBody()

        data = reader.read_exactly(self.length)
        return DecodedBody(data, truncated=len(data) < self.length)


class ChunkedBodyDecoder(BodyDecoder):
    """Decoder that merges the chunks of an HTTP response that is streamed
    using chunked transfer encoding.

    Ending the stream in the middle of a chunk is not treated as an error;
    the bytes received so far are delivered and the result is flagged as
    truncated.
    """

    def decode(
        self, reader: StreamReader, on_chunk: Optional[ChunkObserver] = None
    ) -> DecodedBody:
        parts: list[bytes] = []
        truncated = True

        while True:
            line = reader.readline()
            if not line:
                break

            # Chunk data is followed by CRLF, which shows up here as a
            # separator line
            if line == b"\r\n":
                continue

            size = self._parse_chunk_size(line)
            if size == 0:
                self._skip_trailers(reader)
                truncated = False
                break

            chunk = reader.read_exactly(size)
            if chunk:
                if on_chunk is None:
                    parts.append(chunk)
                else:
                    on_chunk(chunk)

            if len(chunk) < size:
                break

        return DecodedBody(b"".join(parts), truncated=truncated)

    @staticmethod
    def _parse_chunk_size(line: bytes) -> int:
        # chunk extensions are ignored
        size, _, _ = line.partition(b";")
        size = size.strip()
        if not _chunk_size_re.match(size):
            raise ProtocolError(
                "response is not chunk encoded; invalid chunk size line: "
                "{0!r}".format(line)
            )
        return int(size, 16)

    @staticmethod
    def _skip_trailers(reader: StreamReader) -> None:
        while True:
            line = reader.readline()
            if not line or line == b"\r\n" or line == b"\n":
                break
