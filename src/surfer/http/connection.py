"""Connection objects that own the socket used to talk to a single HTTP
server.
"""

from __future__ import annotations

import logging
import socket

from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import urlparse

from surfer.config import ClientDefaults
from surfer.errors import ConnectionError, ProtocolError, TimeoutError

__all__ = ("Connection", "ConnectionInfo", "StreamReader")

log = logging.getLogger(__name__)

#: Schemes that the connection knows how to open
SUPPORTED_SCHEMES = ("tcp",)


@dataclass(frozen=True)
class ConnectionInfo:
    """Dataclass that holds the parameters required to connect to an HTTP
    server. Instances are hashable so they can be used to identify a
    persistent connection.
    """

    host: str
    port: int = 80
    scheme: str = "tcp"
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @classmethod
    def create_from_uri(cls, uri: str) -> ConnectionInfo:
        """Creates a connection info object from a URI representation of the
        form::

            [tcp://][<username>[:<password>]@]<host>[:<port>]

        Raises:
            ValueError: if the URI uses an unsupported scheme or does not
                contain a hostname
        """
        if "://" in uri:
            scheme, _, rest = uri.partition("://")
            scheme = scheme.lower()
        else:
            scheme, rest = "tcp", uri

        if scheme not in SUPPORTED_SCHEMES:
            raise ValueError("unsupported scheme: {0!r}".format(scheme))

        fake_uri = "http://" + rest
        parts = urlparse(fake_uri, scheme="http")
        if not parts.hostname:
            raise ValueError("no hostname in URI: {0!r}".format(uri))

        return cls(
            host=parts.hostname,
            port=parts.port or 80,
            scheme=scheme,
            username=parts.username,
            password=parts.password,
        )

    @property
    def address(self) -> tuple[str, int]:
        return self.host, self.port

    @property
    def host_header(self) -> str:
        """Value of the ``Host`` header for requests sent to this server."""
        return "{0}:{1}".format(self.host, self.port)


class StreamReader:
    """Helper object that takes a function that receives bytes from a
    stream and parses lines or fixed-size blocks out of it.

    Bytes that were received but not consumed yet are kept in an internal
    buffer so they are available for the next read, even across multiple
    HTTP exchanges on the same connection.
    """

    _buffer: bytearray
    _receive: Callable[[int], bytes]

    def __init__(
        self,
        receive: Callable[[int], bytes],
        buffer_size: int = 8192,
        max_line_length: int = 16384,
    ):
        """Constructor.

        Parameters:
            receive: function that receives at most the given number of bytes
                from the underlying stream and returns an empty bytes object
                at the end of the stream
            buffer_size: the number of bytes to request from the stream in
                one go
            max_line_length: maximum length of a single line
        """
        self._receive = receive
        self._buffer = bytearray()

        self.buffer_size = buffer_size
        self.max_line_length = max_line_length

    def clear(self) -> None:
        """Drops all the bytes that were received but not consumed yet."""
        self._buffer.clear()

    def read(self, max_bytes: int) -> bytes:
        """Reads at most the given number of bytes from the stream. Returns
        an empty bytes object at the end of the stream.
        """
        if self._buffer:
            result = bytes(self._buffer[:max_bytes])
            del self._buffer[:max_bytes]
            return result
        return self._receive(max_bytes)

    def read_exactly(self, num_bytes: int) -> bytes:
        """Reads the given number of bytes from the stream in increments of
        at most ``buffer_size`` bytes, as the stream may return fewer bytes
        than requested in a single call.

        Returns fewer bytes than requested only if the stream ended.
        """
        parts = []
        remaining = num_bytes
        while remaining > 0:
            data = self.read(min(self.buffer_size, remaining))
            if not data:
                break
            parts.append(data)
            remaining -= len(data)
        return b"".join(parts)

    def readline(self) -> bytes:
        """Reads a single line from the stream, including the terminating
        newline. Returns whatever was left in the stream if it ended before
        the newline, or an empty bytes object if the stream has ended.

        Raises:
            ProtocolError: if the line is longer than the maximum allowed
                line length
        """
        buf = self._buffer
        find_start = 0
        while True:
            newline_idx = buf.find(b"\n", find_start)
            if newline_idx >= 0:
                line = bytes(buf[: newline_idx + 1])
                del buf[: newline_idx + 1]
                return line

            if len(buf) > self.max_line_length:
                raise ProtocolError("line too long")

            # next time, start the search where this one left off
            find_start = len(buf)
            more_data = self._receive(self.buffer_size)
            if not more_data:
                line = bytes(buf)
                buf.clear()
                return line

            buf += more_data


class Connection:
    """Connection to a single HTTP server over a TCP socket.

    Persistent connections keep the socket open across multiple exchanges
    until `close()` is called; ephemeral connections are expected to be
    closed by their owner after every exchange and are reopened on demand.
    """

    info: ConnectionInfo
    persistent: bool
    timeout: float

    _reader: StreamReader
    _socket: Optional[socket.socket]

    def __init__(
        self,
        info: ConnectionInfo,
        persistent: bool = True,
        defaults: Optional[ClientDefaults] = None,
    ):
        """Constructor.

        Parameters:
            info: the parameters of the server to connect to
            persistent: whether the connection should be kept open across
                multiple exchanges
            defaults: the defaults to use for the timeout and buffer sizes
        """
        defaults = defaults or ClientDefaults()

        self.info = info
        self.persistent = persistent
        self.timeout = defaults.timeout

        self._socket = None
        self._reader = StreamReader(
            self.receive,
            buffer_size=defaults.buffer_size,
            max_line_length=defaults.max_line_length,
        )

    def __repr__(self) -> str:
        return "<{0} {1}:{2} persistent={3} open={4}>".format(
            self.__class__.__name__,
            self.info.host,
            self.info.port,
            self.persistent,
            self.is_open,
        )

    @property
    def is_open(self) -> bool:
        """Returns whether the socket of the connection is open."""
        return self._socket is not None

    @property
    def reader(self) -> StreamReader:
        """The buffered reader that reads the responses from the socket."""
        return self._reader

    def close(self) -> None:
        """Closes the socket of the connection if it is open. Unconsumed
        bytes in the read buffer are dropped.
        """
        sock, self._socket = self._socket, None
        self._reader.clear()
        if sock is not None:
            log.debug("Closing connection to %s:%d", self.info.host, self.info.port)
            try:
                sock.close()
            except OSError:
                log.warning("Error while closing socket", exc_info=True)

    def ensure_open(self) -> None:
        """Opens the socket of the connection unless it is open already."""
        if self._socket is None:
            self.open()

    def open(self) -> None:
        """Opens the socket of the connection.

        Raises:
            ConnectionError: if the socket cannot be established
        """
        if self._socket is not None:
            return

        log.debug("Connecting to %s:%d", self.info.host, self.info.port)
        try:
            sock = socket.create_connection(self.info.address, timeout=self.timeout)
        except socket.timeout as ex:
            raise ConnectionError(
                "timed out while connecting to {0}:{1}".format(*self.info.address)
            ) from ex
        except OSError as ex:
            raise ConnectionError(ex.strerror or str(ex), ex.errno) from ex

        self._socket = sock

    def receive(self, max_bytes: int) -> bytes:
        """Receives at most the given number of bytes from the socket.
        Returns an empty bytes object when the remote side closed the
        connection.

        Raises:
            TimeoutError: if no data arrived within the timeout
            ConnectionError: if the socket is not open or failed
        """
        sock = self._get_socket()
        try:
            return sock.recv(max_bytes)
        except socket.timeout as ex:
            raise TimeoutError(
                "no data received within {0} seconds".format(self.timeout)
            ) from ex
        except OSError as ex:
            raise ConnectionError(ex.strerror or str(ex), ex.errno) from ex

    def send_all(self, data: bytes) -> None:
        """Sends all the given bytes over the socket.

        Raises:
            TimeoutError: if the data could not be sent within the timeout
            ConnectionError: if the socket is not open or failed
        """
        sock = self._get_socket()
        try:
            sock.sendall(data)
        except socket.timeout as ex:
            raise TimeoutError(
                "could not send data within {0} seconds".format(self.timeout)
            ) from ex
        except OSError as ex:
            raise ConnectionError(ex.strerror or str(ex), ex.errno) from ex

    def set_timeout(self, seconds: float) -> None:
        """Sets the timeout of blocking socket operations on this connection.

        Parameters:
            seconds: the new timeout, in seconds
        """
        if seconds <= 0:
            raise ValueError("timeout must be positive")

        self.timeout = seconds
        if self._socket is not None:
            self._socket.settimeout(seconds)

    def _get_socket(self) -> socket.socket:
        if self._socket is None:
            raise ConnectionError("connection is not open")
        return self._socket
