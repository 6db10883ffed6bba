import socket

from base64 import b64encode

from pytest import mark, raises

from surfer.config import ClientDefaults
from surfer.errors import ConnectionError, ProtocolError, TimeoutError
from surfer.http import (
    ClientAdapter,
    ErrorCategory,
    Method,
    Request,
    ResponseError,
    SocketAdapter,
)

HELLO = b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nhello"
CHUNKED = (
    b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
    b"4\r\nWiki\r\n5\r\npedia\r\n0\r\n\r\n"
)


def test_adapter_is_client_adapter(server):
    with SocketAdapter(server.address) as adapter:
        assert isinstance(adapter, ClientAdapter)
        assert adapter.persistent


def test_get_with_content_length(server):
    server.respond(HELLO)

    with SocketAdapter(server.address) as adapter:
        response = adapter.send(Request(Method.GET, "/greeting"))

    assert response.status_code == 200
    assert response.reason == "OK"
    assert response.body == b"hello"
    assert not response.truncated

    request = server.requests[0]
    assert request.startswith(b"GET /greeting HTTP/1.1\r\n")
    assert f"Host: 127.0.0.1:{server.port}\r\n".encode("ascii") in request
    assert b"Content-Length" not in request
    assert b"Authorization" not in request


def test_chunked_response(server):
    server.respond(CHUNKED)
    server.respond(CHUNKED)

    chunks = []
    with SocketAdapter(server.address) as adapter:
        buffered = adapter.send(Request())
        streamed = adapter.send(Request(), on_chunk=chunks.append)

    assert buffered.body == b"Wikipedia"
    assert streamed.body == b""
    assert b"".join(chunks) == buffered.body


def test_head_request_does_not_read_body(server):
    server.respond(b"HTTP/1.1 200 OK\r\nContent-Length: 1234\r\n\r\n")
    server.respond(HELLO)

    with SocketAdapter(server.address) as adapter:
        response = adapter.send(Request(Method.HEAD, "/db"))
        assert response.body == b""
        assert response.get_header("Content-Length") == "1234"

        # the connection is still in sync with the server
        response = adapter.send(Request())
        assert response.body == b"hello"

    assert server.requests[0].startswith(b"HEAD /db HTTP/1.1\r\n")


def test_request_with_body_gets_content_length(server):
    server.respond(b"HTTP/1.1 201 Created\r\nContent-Length: 11\r\n\r\n{\"ok\":true}")

    with SocketAdapter(server.address) as adapter:
        response = adapter.send(Request(Method.PUT, "/db/doc", body=b'{"a":1}'))

    assert response.status_code == 201
    assert response.json() == {"ok": True}

    request = server.requests[0]
    assert b"Content-Length: 7\r\n" in request
    assert request.endswith(b'\r\n\r\n{"a":1}')


def test_basic_auth(server):
    server.respond(HELLO)

    adapter = SocketAdapter(server.address, username="admin", password="secret")
    with adapter:
        adapter.send(Request())

    expected = b"Authorization: Basic " + b64encode(b"admin:secret") + b"\r\n"
    assert expected in server.requests[0]


def test_basic_auth_from_uri(server):
    server.respond(HELLO)

    with SocketAdapter(f"tcp://admin:secret@{server.address}") as adapter:
        adapter.send(Request())

    expected = b"Authorization: Basic " + b64encode(b"admin:secret") + b"\r\n"
    assert expected in server.requests[0]


@mark.parametrize("code", [400, 401, 404, 409, 499])
def test_client_errors(server, code):
    body = b'{"error":"x","r":"y"}'
    server.respond(
        b"HTTP/1.1 %d Oops\r\nContent-Length: %d\r\n\r\n%s" % (code, len(body), body)
    )

    with SocketAdapter(server.address) as adapter:
        with raises(ResponseError) as info:
            adapter.send(Request())

    assert info.value.category is ErrorCategory.CLIENT_ERROR
    assert info.value.status_code == code
    assert info.value.response.body == body


@mark.parametrize("code", [500, 503, 599])
def test_server_errors(server, code):
    server.respond(b"HTTP/1.1 %d Failure\r\nContent-Length: 0\r\n\r\n" % code)

    with SocketAdapter(server.address) as adapter:
        with raises(ResponseError) as info:
            adapter.send(Request())

    assert info.value.category is ErrorCategory.SERVER_ERROR


@mark.parametrize("code", [200, 201, 202, 204, 299])
def test_success_codes(server, code):
    server.respond(b"HTTP/1.1 %d Fine\r\nContent-Length: 0\r\n\r\n" % code)

    with SocketAdapter(server.address) as adapter:
        assert adapter.send(Request()).status_code == code


def test_redirection_is_not_followed(server):
    server.respond(
        b"HTTP/1.1 301 Moved Permanently\r\nLocation: /elsewhere\r\n"
        b"Content-Length: 0\r\n\r\n"
    )

    with SocketAdapter(server.address) as adapter:
        response = adapter.send(Request())

    assert response.status_code == 301
    assert response.get_header("Location") == "/elsewhere"
    assert len(server.requests) == 1


def test_persistent_connection_is_reused(server):
    for _ in range(3):
        server.respond(HELLO)

    with SocketAdapter(server.address, persistent=True) as adapter:
        for _ in range(3):
            assert adapter.send(Request()).body == b"hello"
        assert adapter.connection.is_open

    assert server.connection_count == 1
    assert b"Connection: close" not in server.requests[0]


def test_ephemeral_connection_is_reopened(server):
    for _ in range(3):
        server.respond(HELLO)

    with SocketAdapter(server.address, persistent=False) as adapter:
        for _ in range(3):
            assert adapter.send(Request()).body == b"hello"
            assert not adapter.connection.is_open

    assert server.connection_count == 3
    assert all(b"Connection: close\r\n" in request for request in server.requests)


def test_connection_close_from_server(server):
    server.respond(
        b"HTTP/1.1 200 OK\r\nConnection: close\r\nContent-Length: 5\r\n\r\nhello"
    )
    server.respond(HELLO)

    with SocketAdapter(server.address) as adapter:
        adapter.send(Request())
        assert not adapter.connection.is_open
        assert adapter.send(Request()).body == b"hello"

    assert server.connection_count == 2


def test_truncated_body(server):
    server.respond(b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\nhello", close=True)

    with SocketAdapter(server.address) as adapter:
        response = adapter.send(Request())
        assert not adapter.connection.is_open

    assert response.body == b"hello"
    assert response.truncated


def test_invalid_chunk_size(server):
    server.respond(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\nxyz\r\n")

    with SocketAdapter(server.address) as adapter:
        with raises(ProtocolError, match="not chunk encoded"):
            adapter.send(Request())
        assert not adapter.connection.is_open


def test_server_closes_without_response(server):
    with SocketAdapter(server.address) as adapter:
        with raises(ConnectionError):
            adapter.send(Request())


def test_timeout(server):
    server.respond_after(1.0, HELLO)

    with SocketAdapter(server.address, defaults=ClientDefaults(timeout=5)) as adapter:
        adapter.set_timeout(0.2)
        assert adapter.timeout == 0.2

        with raises(TimeoutError):
            adapter.send(Request())

        assert not adapter.connection.is_open


def test_connection_refused():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    with raises(ConnectionError):
        SocketAdapter(f"127.0.0.1:{port}")


def test_default_server_from_defaults(server):
    server.respond(HELLO)

    defaults = ClientDefaults(default_server=server.address)
    with SocketAdapter(defaults=defaults) as adapter:
        assert adapter.send(Request()).body == b"hello"
