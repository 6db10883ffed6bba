import socket
import threading
import time

from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from pytest import fixture

from surfer.http.connection import StreamReader


@dataclass
class CannedResponse:
    """Response that the loopback server sends for the next request."""

    data: bytes
    delay: float = 0.0
    close: bool = False


class LoopbackServer:
    """Minimal HTTP server on the loopback interface that answers each
    request with the next canned response and records the raw requests.
    """

    def __init__(self):
        self.requests: list[bytes] = []
        self.connection_count = 0

        self._responses: list[CannedResponse] = []
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))
        self._socket.listen(5)
        self._socket.settimeout(0.1)

    @property
    def address(self) -> str:
        host, port = self._socket.getsockname()
        return f"{host}:{port}"

    @property
    def port(self) -> int:
        return self._socket.getsockname()[1]

    def respond(self, data: bytes, close: bool = False) -> None:
        with self._lock:
            self._responses.append(CannedResponse(data, close=close))

    def respond_after(self, delay: float, data: bytes) -> None:
        with self._lock:
            self._responses.append(CannedResponse(data, delay=delay))

    def start(self) -> None:
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        self._socket.close()

    def _serve(self) -> None:
        while not self._stopped.is_set():
            try:
                conn, _ = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                break

            self.connection_count += 1
            with conn:
                conn.settimeout(5.0)
                try:
                    self._handle(conn)
                except OSError:
                    pass

    def _handle(self, conn: socket.socket) -> None:
        buf = b""
        while not self._stopped.is_set():
            while b"\r\n\r\n" not in buf:
                data = conn.recv(4096)
                if not data:
                    return
                buf += data

            head, _, rest = buf.partition(b"\r\n\r\n")
            length = 0
            for line in head.split(b"\r\n")[1:]:
                key, _, value = line.partition(b":")
                if key.strip().lower() == b"content-length":
                    length = int(value.strip())

            # body is followed by a trailing CRLF
            while len(rest) < length + 2:
                data = conn.recv(4096)
                if not data:
                    return
                rest += data

            self.requests.append(head + b"\r\n\r\n" + rest[:length])
            buf = rest[length + 2 :]

            with self._lock:
                response = self._responses.pop(0) if self._responses else None

            if response is None:
                return

            if response.delay:
                time.sleep(response.delay)
            conn.sendall(response.data)

            if response.close:
                return


@fixture
def server():
    srv = LoopbackServer()
    srv.start()
    yield srv
    srv.stop()


class TrickleStream:
    """In-memory stream that returns at most the given number of bytes per
    read, like a network socket under load.
    """

    def __init__(self, data: bytes, max_bytes_per_read: int = 1):
        self._stream = BytesIO(data)
        self.max_bytes_per_read = max_bytes_per_read

    def receive(self, max_bytes: int) -> bytes:
        return self._stream.read(min(max_bytes, self.max_bytes_per_read))


def make_reader(data: bytes, max_bytes_per_read: Optional[int] = None) -> StreamReader:
    if max_bytes_per_read is None:
        return StreamReader(BytesIO(data).read)
    return StreamReader(TrickleStream(data, max_bytes_per_read).receive)


@fixture
def reader_factory():
    return make_reader
