"""High-level HTTP client and the command line interface built on top of
it.
"""

from __future__ import annotations

import click
import sys

from typing import Callable, Optional
from urllib.parse import parse_qsl, urlparse

from surfer.config import ClientDefaults
from surfer.errors import Error
from surfer.http import (
    ChunkObserver,
    ClientAdapter,
    Method,
    Request,
    Response,
    ResponseError,
    SocketAdapter,
)

__all__ = ("Surfer",)


class Surfer:
    """The Surfer HTTP client.

    Wraps a client adapter and fills in the headers that every request
    sent by Surfer should carry.
    """

    USER_AGENT = "Surfer"
    """The value of the ``User-Agent`` header sent with every request."""

    ACCEPT = "application/json"
    """The value of the ``Accept`` header sent with every request."""

    adapter: ClientAdapter

    @classmethod
    def create(
        cls,
        server: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        persistent: bool = True,
        defaults: Optional[ClientDefaults] = None,
    ) -> Surfer:
        """Convenience constructor that creates a client talking to the
        given server over a raw socket.

        Parameters:
            server: the address of the server, in ``host:port`` format
            username: the username to use for HTTP basic authentication
            password: the password to use for HTTP basic authentication
            persistent: whether to keep the connection open across requests
            defaults: the defaults to use for the connection
        """
        adapter = SocketAdapter(
            server,
            username=username,
            password=password,
            persistent=persistent,
            defaults=defaults,
        )
        return cls(adapter)

    def __init__(self, adapter: ClientAdapter):
        """Constructor.

        In most cases, it is easier to use the ``create()`` class method.

        Parameters:
            adapter: the adapter that carries the requests to the server
        """
        self.adapter = adapter

    def send(
        self, request: Request, on_chunk: Optional[ChunkObserver] = None
    ) -> Response:
        """Sends the given request and returns the response.

        Parameters:
            request: the request to send
            on_chunk: optional function to call with each chunk of a chunked
                response instead of accumulating the body in memory

        Raises:
            ResponseError: if the status code of the response signals an
                error
        """
        request.add_header("User-Agent", self.USER_AGENT)
        request.add_header("Accept", self.ACCEPT)
        return self.adapter.send(request, on_chunk)


def _create_output_writer(format: str) -> Callable[[bytes], None]:
    hexdump_table = bytes([i if i >= 32 and i < 127 else 46 for i in range(256)])
    offset = 0

    def write_raw(data: bytes) -> None:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()

    def write_hex(data: bytes) -> None:
        nonlocal offset

        for start in range(0, len(data), 16):
            parts = [
                f"{offset + start:08x}  ",
                data[start : start + 8].hex(" "),
                "  ",
                data[start + 8 : start + 16].hex(" "),
            ]

            sys.stdout.write("".join(parts).ljust(60))
            sys.stdout.write("|")
            sys.stdout.write(
                data[start : start + 16].translate(hexdump_table).decode("ascii")
            )
            sys.stdout.write("|\n")

        offset += len(data)
        sys.stdout.flush()

    return write_hex if format == "hex" else write_raw


@click.command()
@click.argument("url")
@click.option(
    "-X",
    "--method",
    default="GET",
    type=click.Choice([method.value for method in Method], case_sensitive=False),
    help="the HTTP method to use",
)
@click.option(
    "-u",
    "--username",
    metavar="USERNAME",
    default=None,
    help="the username to use for HTTP basic authentication",
)
@click.option(
    "-p",
    "--password",
    metavar="PASSWORD",
    default=None,
    help="the password to use for HTTP basic authentication",
)
@click.option(
    "-H",
    "--header",
    "headers",
    metavar="NAME:VALUE",
    multiple=True,
    help="extra header to send with the request; may be repeated",
)
@click.option(
    "-d", "--data", default=None, help="the data to send in the request body"
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="timeout of socket operations, in seconds",
)
@click.option(
    "-i",
    "--include",
    is_flag=True,
    default=False,
    help=(
        "print the status line and the response headers to the standard error "
        "before the body; chunked bodies are buffered instead of streamed"
    ),
)
@click.option(
    "--format",
    default="raw",
    type=click.Choice(["raw", "hex"]),
    help=(
        "the output format. 'raw' prints the body of the response as is. "
        "'hex' prints a hex dump of the body."
    ),
)
def main(
    url: str,
    method: str = "GET",
    username: Optional[str] = None,
    password: Optional[str] = None,
    headers: tuple[str, ...] = (),
    data: Optional[str] = None,
    timeout: Optional[float] = None,
    include: bool = False,
    format: str = "raw",
):
    """Sends a single HTTP request to a server and prints the body of the
    response to the standard output.

    The given URL must adhere to the following format:

        [http://][username[:password]@]hostname[:port][/path][?query]

    Chunked responses are printed as the chunks arrive. Defaults are read
    from the SURFER_TIMEOUT, SURFER_BUFFER_SIZE and SURFER_SERVER
    environment variables.
    """
    defaults = ClientDefaults.from_environment()

    if "://" not in url:
        url = "http://" + url
    parts = urlparse(url)
    if parts.scheme != "http" or not parts.hostname:
        raise click.BadParameter(f"invalid URL: {url!r}", param_hint="URL")

    server = f"{parts.hostname}:{parts.port or 80}"
    request = Request(
        method,
        parts.path or "/",
        query=dict(parse_qsl(parts.query, keep_blank_values=True)),
        body=data,
    )
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep:
            raise click.BadParameter(f"invalid header: {header!r}", param_hint="-H")
        request.add_header(name.strip(), value.strip())

    write = _create_output_writer(format)

    try:
        adapter = SocketAdapter(
            server,
            username=username or parts.username,
            password=password or parts.password,
            persistent=False,
            defaults=defaults,
        )
        if timeout is not None:
            adapter.set_timeout(timeout)
        # the head must come first, so chunks cannot be streamed
        on_chunk = None if include else write
        response = Surfer(adapter).send(request, on_chunk=on_chunk)
    except ResponseError as ex:
        click.echo(ex.report(), err=True)
        sys.exit(1)
    except Error as ex:
        raise click.ClickException(str(ex)) from None

    if include:
        click.echo(response.status_line, err=True)
        for line in response.headers.to_lines():
            click.echo(line, err=True)
        click.echo("", err=True)

    if response.body:
        write(response.body)

    if response.truncated:
        click.echo("Response body was truncated.", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()  # type: ignore
