"""Base classes for all the exceptions that are thrown from the Surfer
package.
"""

from typing import Optional

__all__ = ("Error", "ConnectionError", "ProtocolError", "TimeoutError")


class Error(RuntimeError):
    """Base class for all exceptions that are thrown from the Surfer package."""

    pass


class ConnectionError(Error):
    """Error thrown when the connection to the remote server cannot be
    established or was lost unexpectedly.
    """

    errno: Optional[int]
    """The OS-level error code, if known."""

    strerror: str
    """The human-readable error message."""

    def __init__(self, strerror: str, errno: Optional[int] = None):
        super().__init__(strerror)
        self.errno = errno
        self.strerror = strerror

    def __str__(self) -> str:
        if self.errno is not None:
            return "[Errno {0}] {1}".format(self.errno, self.strerror)
        return self.strerror


class ProtocolError(Error):
    """Error thrown when the remote server violates the HTTP wire format in
    a way that prevents us from reading the response.
    """

    pass


class TimeoutError(Error):
    """Error thrown when a blocking read or write on the socket did not
    complete within the configured timeout.
    """

    pass
