"""Configuration objects that hold the defaults used when constructing
connections and clients.
"""

from __future__ import annotations

import os

from dataclasses import dataclass, replace
from typing import Mapping, Optional

__all__ = ("ClientDefaults",)


@dataclass(frozen=True)
class ClientDefaults:
    """Dataclass that holds the defaults that are threaded into every
    connection created by a client.

    Create one instance when your application starts (typically with
    `from_environment()`) and pass it to the clients you construct.
    """

    timeout: float = 60.0
    """Timeout of blocking socket operations, in seconds."""

    buffer_size: int = 8192
    """Maximum number of bytes to request from the socket in a single read."""

    max_line_length: int = 16384
    """Maximum length of a status, header or chunk size line."""

    default_server: str = "127.0.0.1:5984"
    """Server to connect to when the client is not given one explicitly."""

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.buffer_size <= 0:
            raise ValueError("buffer size must be positive")
        if self.max_line_length <= 0:
            raise ValueError("maximum line length must be positive")

    @classmethod
    def from_environment(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> ClientDefaults:
        """Creates a defaults object from the ``SURFER_TIMEOUT``,
        ``SURFER_BUFFER_SIZE`` and ``SURFER_SERVER`` environment variables.
        Variables that are not set keep their built-in defaults.

        Parameters:
            environ: the mapping to read the variables from; defaults to
                ``os.environ``

        Raises:
            ValueError: if one of the variables holds an invalid value
        """
        env = os.environ if environ is None else environ
        result = cls()

        updates = {}
        if env.get("SURFER_TIMEOUT"):
            updates["timeout"] = float(env["SURFER_TIMEOUT"])
        if env.get("SURFER_BUFFER_SIZE"):
            updates["buffer_size"] = int(env["SURFER_BUFFER_SIZE"])
        if env.get("SURFER_SERVER"):
            updates["default_server"] = env["SURFER_SERVER"]

        return replace(result, **updates) if updates else result
