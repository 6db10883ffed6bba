"""Client adapters that carry HTTP requests to a server and return the
responses.
"""

from __future__ import annotations

import logging

from abc import ABCMeta, abstractmethod
from dataclasses import replace
from typing import Optional

from surfer.config import ClientDefaults

from .connection import Connection, ConnectionInfo
from .dechunkers import ChunkObserver
from .errors import check_status
from .request import Request
from .response import Response, ResponseReader
from .writer import write_request

__all__ = ("ClientAdapter", "SocketAdapter")

log = logging.getLogger(__name__)


class ClientAdapter(metaclass=ABCMeta):
    """Base class for objects that know how to send an HTTP request and
    return the corresponding response.
    """

    @abstractmethod
    def send(
        self, request: Request, on_chunk: Optional[ChunkObserver] = None
    ) -> Response:
        """Sends the given request and returns the response.

        Parameters:
            request: the request to send
            on_chunk: optional function to call with each chunk of a chunked
                response instead of accumulating the body in memory

        Returns:
            the response of the server

        Raises:
            ResponseError: if the status code of the response signals an
                error
        """
        raise NotImplementedError


class SocketAdapter(ClientAdapter):
    """HTTP/1.1 client adapter that talks to a single server over a raw TCP
    socket.

    The socket is opened when the adapter is constructed. Persistent
    adapters keep it open across requests until `close()` is called;
    non-persistent adapters close it after every exchange and reopen it for
    the next one. An adapter must not be used from multiple threads at the
    same time.
    """

    connection: Connection
    """The connection that the adapter uses to talk to the server."""

    info: ConnectionInfo
    """The parameters of the server, including the credentials."""

    def __init__(
        self,
        server: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        persistent: bool = True,
        defaults: Optional[ClientDefaults] = None,
    ):
        """Constructor.

        Parameters:
            server: the address of the server, in ``host:port`` format,
                optionally prefixed with ``tcp://``. ``None`` means the
                default server from the defaults object.
            username: the username to use for HTTP basic authentication;
                ``None`` or an empty string disables authentication
            password: the password to use for HTTP basic authentication
            persistent: whether to keep the connection open across
                requests
            defaults: the defaults to use for the connection

        Raises:
            ConnectionError: if the connection cannot be established
        """
        defaults = defaults or ClientDefaults()
        info = ConnectionInfo.create_from_uri(server or defaults.default_server)

        if username:
            info = replace(info, username=username, password=password)

        self.info = info
        self.connection = Connection(info, persistent=persistent, defaults=defaults)
        self.connection.open()

    def __enter__(self) -> SocketAdapter:
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self.close()

    @property
    def persistent(self) -> bool:
        return self.connection.persistent

    @property
    def timeout(self) -> float:
        return self.connection.timeout

    def close(self) -> None:
        """Closes the connection of the adapter."""
        self.connection.close()

    def send(
        self, request: Request, on_chunk: Optional[ChunkObserver] = None
    ) -> Response:
        """Sends the given request to the server and returns the response.

        The ``Host`` header, the ``Authorization`` header (when a username
        was given) and the ``Content-Length`` header (when the request has
        a body) are filled in before the request is written.

        Parameters:
            request: the request to send
            on_chunk: optional function to call with each chunk of a chunked
                response instead of accumulating the body in memory

        Returns:
            the response of the server

        Raises:
            ConnectionError: if the connection cannot be established or the
                server closed it before responding
            TimeoutError: if the server did not respond within the timeout
            ProtocolError: if the response is malformed
            ResponseError: if the status code of the response signals an
                error
        """
        self._prepare(request)

        connection = self.connection
        connection.ensure_open()

        log.debug("Sending request: %s %s", request.method.value, request.target)

        try:
            write_request(connection, request)
            response = ResponseReader(connection.reader).read(request.method, on_chunk)
        except Exception:
            connection.close()
            raise

        if not connection.persistent or response.wants_close or response.truncated:
            connection.close()

        return check_status(request, response)

    def set_timeout(self, seconds: float) -> None:
        """Sets the timeout of blocking socket operations, in seconds."""
        self.connection.set_timeout(seconds)

    def _prepare(self, request: Request) -> None:
        request.add_header("Host", self.info.host_header)

        if self.info.username:
            request.set_basic_auth(self.info.username, self.info.password)

        if request.has_body():
            assert request.body is not None
            request.add_header("Content-Length", str(len(request.body)))

        if not self.connection.persistent and not request.has_header("Connection"):
            request.add_header("Connection", "close")
