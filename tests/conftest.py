import socket
import ssl
import threading
from typing import Any, List, Optional

import pytest
import trustme

from logtcp.config import DestinationConfig


class RecordingReporter:
    def __init__(self) -> None:
        self.warnings: List[str] = []
        self.errors: List[str] = []

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeSocket:
    def __init__(self, net: "FakeNetwork", family: int, socktype: int, proto: int) -> None:
        self.net = net
        self.family = family
        self.connected_to: Optional[tuple] = None
        self.closed = False
        self.detached = False

    @property
    def released(self) -> bool:
        return self.closed or self.detached

    def connect(self, addr: tuple) -> None:
        if self.net.connect_errors:
            raise self.net.connect_errors.pop(0)
        self.connected_to = addr

    def sendall(self, data: bytes) -> None:
        if self.net.send_errors:
            raise self.net.send_errors.pop(0)
        self.net.wire += data

    def settimeout(self, value: Any) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class FakeTlsSocket(FakeSocket):
    def __init__(self, net: "FakeNetwork", raw: FakeSocket, server_hostname: str) -> None:
        super().__init__(net, raw.family, socket.SOCK_STREAM, 0)
        self.server_hostname = server_hostname
        self.handshaken = False
        self.unwrapped = False

    def do_handshake(self) -> None:
        if self.net.handshake_error is not None:
            raise self.net.handshake_error
        self.handshaken = True

    def getpeercert(self, binary_form: bool = False) -> Optional[bytes]:
        return self.net.peer_cert

    def unwrap(self) -> "FakeTlsSocket":
        self.unwrapped = True
        return self


class FakeContext:
    def __init__(self, net: "FakeNetwork") -> None:
        self.net = net

    def wrap_socket(self, sock: FakeSocket, server_hostname: str, do_handshake_on_connect: bool = True):
        if self.net.wrap_error is not None:
            raise self.net.wrap_error
        # the real ssl module detaches the plain socket into the TLS socket
        sock.detached = True
        tls_sock = FakeTlsSocket(self.net, sock, server_hostname)
        self.net.tls_sockets.append(tls_sock)
        return tls_sock


class FakeNetwork:
    """Stands in for getaddrinfo, socket.socket and the TLS context factory."""

    def __init__(self) -> None:
        self.resolve_error: Optional[BaseException] = None
        self.socket_error: Optional[BaseException] = None
        self.context_error: Optional[BaseException] = None
        self.wrap_error: Optional[BaseException] = None
        self.handshake_error: Optional[BaseException] = None
        self.connect_errors: List[BaseException] = []
        self.send_errors: List[BaseException] = []
        self.peer_cert: Optional[bytes] = b"0\x82\x01\x0a"
        self.sockets: List[FakeSocket] = []
        self.tls_sockets: List[FakeTlsSocket] = []
        self.context_args: List[tuple] = []
        self.wire = bytearray()

    def getaddrinfo(self, host, port, family=0, type=0, proto=0, flags=0):
        if self.resolve_error is not None:
            raise self.resolve_error
        return [(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, "", ("192.0.2.10", port))]

    def socket(self, family=-1, type=-1, proto=-1, fileno=None):
        if self.socket_error is not None:
            raise self.socket_error
        sock = FakeSocket(self, family, type, proto)
        self.sockets.append(sock)
        return sock

    def build_client_context(self, cert: str = "", check_hostname: bool = False) -> FakeContext:
        self.context_args.append((cert, check_hostname))
        if self.context_error is not None:
            raise self.context_error
        return FakeContext(self)

    @property
    def all_released(self) -> bool:
        return all(s.released for s in self.sockets) and all(t.closed for t in self.tls_sockets)


class TlsCollector:
    """Loopback TLS server that accepts one connection and keeps what it reads until close_notify."""

    def __init__(self, server_ctx: ssl.SSLContext) -> None:
        self._ctx = server_ctx
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(5)
        self.port = self._listener.getsockname()[1]
        self.received = b""
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
            conn.settimeout(5)
            with self._ctx.wrap_socket(conn, server_side=True) as tls_conn:
                self.received = recv_all(tls_conn)
                tls_conn.unwrap()
        except OSError as e:
            self.error = e

    def join(self) -> None:
        self._thread.join(5)

    def close(self) -> None:
        self._listener.close()


@pytest.fixture()
def reporter():
    return RecordingReporter()


@pytest.fixture()
def fake_net(monkeypatch):
    net = FakeNetwork()
    monkeypatch.setattr("logtcp.transport.connection.socket.getaddrinfo", net.getaddrinfo)
    monkeypatch.setattr("logtcp.transport.connection.socket.socket", net.socket)
    monkeypatch.setattr("logtcp.transport.connection.build_client_context", net.build_client_context)
    return net


@pytest.fixture()
def destination():
    def _make(**overrides) -> DestinationConfig:
        values = {"host": "collector.example.com", "tcpport": 5170}
        values.update(overrides)
        return DestinationConfig(**values)
    return _make


@pytest.fixture()
def collector():
    """Loopback listening socket standing in for the remote collector."""
    server = socket.create_server(("127.0.0.1", 0))
    server.settimeout(5)
    yield server
    server.close()


@pytest.fixture()
def closed_port():
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def recv_exactly(conn: socket.socket, size: int) -> bytes:
    conn.settimeout(5)
    data = b""
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def recv_all(conn: socket.socket) -> bytes:
    conn.settimeout(5)
    chunks = []
    while True:
        chunk = conn.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


@pytest.fixture()
def tls_ca():
    return trustme.CA()


@pytest.fixture()
def tls_collector(tls_ca):
    """TLS collector whose certificate names collector.test, signed by tls_ca."""
    server_ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    tls_ca.issue_cert("collector.test").configure_cert(server_ctx)
    server = TlsCollector(server_ctx)
    yield server
    server.close()
