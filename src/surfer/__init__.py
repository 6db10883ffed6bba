"""Main package for the Surfer HTTP client."""

from .errors import ConnectionError, Error, ProtocolError, TimeoutError
from .version import __version__, __version_info__

__all__ = (
    "__version__",
    "__version_info__",
    "ConnectionError",
    "Error",
    "ProtocolError",
    "TimeoutError",
)
