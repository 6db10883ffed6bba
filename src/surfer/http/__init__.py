"""Low-level HTTP/1.1 client that talks to a single server over a raw
socket.
"""

from .adapter import ClientAdapter, SocketAdapter
from .connection import Connection, ConnectionInfo
from .dechunkers import ChunkObserver
from .errors import ErrorCategory, ResponseError, check_status
from .headers import Headers
from .request import Method, Request
from .response import Response

__all__ = (
    "check_status",
    "ChunkObserver",
    "ClientAdapter",
    "Connection",
    "ConnectionInfo",
    "ErrorCategory",
    "Headers",
    "Method",
    "Request",
    "Response",
    "ResponseError",
    "SocketAdapter",
)
