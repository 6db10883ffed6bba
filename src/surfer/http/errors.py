"""Error classes for the low-level HTTP module, and the classification of
HTTP status codes into errors.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from surfer.errors import Error

if TYPE_CHECKING:
    from .request import Request
    from .response import Response

__all__ = ("ErrorCategory", "ResponseError", "check_status")


class ErrorCategory(Enum):
    """Enum representing the categories of errors signalled by HTTP
    status codes.
    """

    CLIENT_ERROR = "Client Error"
    SERVER_ERROR = "Server Error"
    UNKNOWN_ERROR = "Unknown Error"

    @classmethod
    def from_status_code(cls, code: int) -> ErrorCategory:
        if 400 <= code < 500:
            return cls.CLIENT_ERROR
        elif code >= 500:
            return cls.SERVER_ERROR
        else:
            return cls.UNKNOWN_ERROR


class ResponseError(Error):
    """Error thrown when the server responds with an HTTP status code that
    signals an error condition.

    The category of the error is derived from the status code of the
    response when the error is constructed.
    """

    category: ErrorCategory
    request: Request
    response: Response

    def __init__(self, request: Request, response: Response):
        """Constructor.

        Parameters:
            request: the request that triggered the error
            response: the response that signalled the error
        """
        super().__init__(request, response)
        self.request = request
        self.response = response
        self.category = ErrorCategory.from_status_code(response.status_code)

    def __str__(self) -> str:
        if self.response.reason:
            return "{0} {1} ({2})".format(
                self.status_code, self.response.reason, self.category.value
            )
        return "{0} ({1})".format(self.status_code, self.category.value)

    @property
    def is_client_error(self) -> bool:
        return self.category is ErrorCategory.CLIENT_ERROR

    @property
    def is_server_error(self) -> bool:
        return self.category is ErrorCategory.SERVER_ERROR

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def report(self) -> str:
        """Returns a human-readable diagnostic report about the error,
        including the application-level error code and reason when the
        response body is a JSON object with ``error`` and ``reason`` keys.
        """
        info = []

        try:
            body = self.response.json() if self.response.body else None
        except ValueError:
            body = None

        if isinstance(body, dict):
            if "error" in body:
                info.append("[Error Code] {0}".format(body["error"]))
            if "reason" in body:
                info.append("[Error Reason] {0}".format(body["reason"]))

        info.append("[Error Type] {0}".format(self.category.value))
        info.append("[Status Code] {0}".format(self.status_code))
        info.append("[Status Message] {0}".format(self.response.reason))
        info.append("[Request]")
        info.append(str(self.request))
        info.append("[Response]")
        info.append(str(self.response))

        return "\n".join(info)


def check_status(request: Request, response: Response) -> Response:
    """Inspects the status code of the given response and raises an
    appropriate error if it signals an error condition.

    Informational, successful and redirection responses are returned
    unchanged; redirections are never followed.

    Returns:
        the response itself

    Raises:
        ResponseError: if the status code signals a client error, a server
            error or is not a valid HTTP status code
    """
    if not 100 <= response.status_code < 400:
        raise ResponseError(request, response)
    return response
