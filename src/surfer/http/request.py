"""Simple HTTP request object for the low-level HTTP library."""

from __future__ import annotations

from base64 import b64encode
from enum import Enum
from typing import Iterable, Mapping, Optional, Union
from urllib.parse import quote, urlencode

from .headers import Headers

__all__ = ("Method", "Request")


class Method(Enum):
    """Enum representing the HTTP request methods supported by the client."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    COPY = "COPY"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @property
    def allows_response_body(self) -> bool:
        """Returns whether a response to a request with this method may
        carry an entity body.
        """
        return self is not Method.HEAD


class Request:
    """HTTP request object."""

    method: Method
    """The method of the request."""

    path: str
    """The path of the resource to request, without the query string."""

    query: dict[str, str]
    """The query parameters of the request."""

    headers: Headers
    """The headers to send with the HTTP request."""

    body: Optional[bytes]
    """The data to send in the body of the HTTP request."""

    def __init__(
        self,
        method: Union[Method, str] = Method.GET,
        path: str = "/",
        query: Optional[Mapping[str, object]] = None,
        headers: Union[Mapping[str, str], Iterable[tuple[str, str]], None] = None,
        body: Union[bytes, str, None] = None,
    ):
        """Constructs a new HTTP request object.

        Parameters:
            method: the HTTP method of the request; strings are converted
                into Method_ instances
            path: the path of the resource to request
            query: the query parameters of the request
            headers: additional headers of the request
            body: the data to send in the body of the request or ``None``
                if the request has no body. Strings are encoded in UTF-8.
        """
        self.method = method if isinstance(method, Method) else Method(method.upper())
        self.path = path or "/"
        self.query = {}
        self.headers = Headers(headers)
        self.body = None

        for key, value in (query or {}).items():
            self.set_query_param(key, value)

        if body is not None:
            self.set_body(body)

    def __str__(self) -> str:
        lines = ["{0} {1} HTTP/1.1".format(self.method.value, self.target)]
        for name, value in self.headers.items():
            if name.lower() == "authorization":
                # keep the scheme only
                scheme, _, _ = value.partition(" ")
                value = scheme + " ********"
            lines.append("{0}: {1}".format(name, value))
        lines.append("")
        if self.body:
            lines.append(self.body.decode("utf-8", errors="replace"))
        return "\r\n".join(lines)

    def add_header(self, key: str, value: str) -> None:
        """Adds an HTTP header to the request, replacing any existing header
        with the same (case-insensitive) name.

        Parameters:
            key: the name of the header to add
            value: the value of the header to add
        """
        self.headers[key] = value

    def get_header(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Returns the value of the given header or the given default value."""
        return self.headers.get(key, default)

    def has_body(self) -> bool:
        """Returns whether the request carries a non-empty body."""
        return bool(self.body)

    def has_header(self, key: str) -> bool:
        """Checks whether the request contains the given HTTP header.

        Parameters:
            key: the name of the header to check; case-insensitive
        """
        return key in self.headers

    def set_basic_auth(self, username: str, password: Optional[str]) -> None:
        """Adds an ``Authorization`` header to the request that uses HTTP
        basic authentication with the given credentials.
        """
        credentials = b64encode(
            "{0}:{1}".format(username, password or "").encode("utf-8")
        )
        self.add_header("Authorization", "Basic " + credentials.decode("ascii"))

    def set_body(self, body: Union[bytes, str, None]) -> None:
        """Sets the body of the request. Strings are encoded in UTF-8."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.body = body

    def set_query_param(self, key: str, value: object) -> None:
        """Sets a query parameter of the request. Booleans are converted to
        ``true`` or ``false`` to match what JSON-speaking servers expect.
        """
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.query[key] = str(value)

    @property
    def query_string(self) -> str:
        """The query string of the request, including the leading question
        mark, or an empty string if the request has no query parameters.
        """
        return "?" + urlencode(self.query) if self.query else ""

    @property
    def target(self) -> str:
        """The request target as it appears in the request line."""
        return quote(self.path, safe="/%:@!$&'()*+,;=") + self.query_string
