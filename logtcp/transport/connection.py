# logtcp/transport/connection.py
from __future__ import annotations

import socket
import ssl
from contextlib import ExitStack
from typing import Optional, Tuple

from logtcp.config import DestinationConfig
from logtcp.diagnostics import DiagnosticsReporter
from logtcp.exceptions import (
    CertificateVerificationError,
    ConnectError,
    KeyTransmissionError,
    LogTcpError,
    PeerCertificateError,
    ResolutionError,
    SocketCreationError,
    TlsHandshakeError,
    TlsSetupError,
    TransportWriteError,
    describe_os_error,
)
from logtcp.transport.tls import build_client_context, ensure_tls_initialized
from logtcp.utils.app_logging import logtcp_logging

# close_notify exchange on teardown must not hang on a silent peer
_TLS_SHUTDOWN_TIMEOUT = 2.0

AddrInfo = Tuple[int, int, int, str, tuple]


class ConnectionManager:
    """
    Owns the socket (and TLS session) to the collector.

    establish() runs resolve -> connect -> TLS handshake -> key announcement and either leaves
    a fully usable transport behind or none at all. teardown() releases whatever is held and
    can be called any number of times.
    """

    def __init__(self, destination: DestinationConfig, reporter: DiagnosticsReporter) -> None:
        self._dest = destination
        self._reporter = reporter
        self._sock: Optional[socket.socket] = None
        self._ctx: Optional[ssl.SSLContext] = None

    @property
    def destination(self) -> DestinationConfig:
        return self._dest

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def tls_context(self) -> Optional[ssl.SSLContext]:
        return self._ctx

    def establish(self, is_retry: bool = False) -> bool:
        """
        Open the connection to the destination.

        Returns True when the connection is up, and also when a connect failure is tolerated
        because retry is enabled (the transport then stays absent until the next attempt).
        Returns False after reporting an error for every other failure.
        """
        if self._sock is not None:
            logtcp_logging.debug(f"Connection to {self._dest.address} already established")
            return True

        try:
            self._sock, self._ctx = self._open()
        except LogTcpError as e:
            if e.retryable and self._dest.retry:
                if not is_retry:
                    self._reporter.warning(str(e))
                logtcp_logging.debug(f"{e}, will retry on next write")
                return True
            self._reporter.error(str(e))
            return False

        logtcp_logging.debug(f"Connected to {self._dest.address} (tls={self._dest.tls})")
        return True

    def teardown(self) -> bool:
        sock, self._sock = self._sock, None
        ctx, self._ctx = self._ctx, None
        if sock is None:
            return True

        if ctx is not None:
            self._shutdown_tls(sock)
        sock.close()
        logtcp_logging.debug(f"Connection to {self._dest.address} closed")
        return True

    def write(self, payload: bytes) -> None:
        """Write the whole payload to the active transport, raising TransportWriteError on failure."""
        if self._sock is None:
            raise TransportWriteError("Error sending data: not connected")
        try:
            self._sock.sendall(payload)
        except OSError as e:
            raise TransportWriteError(f"{self._send_error_prefix()}: {describe_os_error(e)}") from e

    def _open(self) -> Tuple[socket.socket, Optional[ssl.SSLContext]]:
        addr = self._resolve()
        with ExitStack() as stack:
            sock = self._create_socket(addr)
            stack.callback(sock.close)
            self._connect(sock, addr)

            ctx = None
            if self._dest.tls:
                ctx, sock = self._start_tls(sock, stack)

            if self._dest.key:
                self._send_key(sock)

            # everything acquired is now owned by the connection
            stack.pop_all()
        return sock, ctx

    def _resolve(self) -> AddrInfo:
        host, port = self._dest.host, self._dest.tcpport
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM, flags=socket.AI_ADDRCONFIG)
        except (OSError, UnicodeError) as e:
            raise ResolutionError(f"Error resolving {host}: {describe_os_error(e)}") from e
        if not infos:
            raise ResolutionError(f"Error resolving {host}: no addresses found")
        return infos[0]

    @staticmethod
    def _create_socket(addr: AddrInfo) -> socket.socket:
        family, socktype, proto, _, _ = addr
        try:
            return socket.socket(family, socktype, proto)
        except OSError as e:
            raise SocketCreationError(f"Error opening socket: {describe_os_error(e)}") from e

    @staticmethod
    def _connect(sock: socket.socket, addr: AddrInfo) -> None:
        sockaddr = addr[4]
        try:
            sock.connect(sockaddr)
        except OSError as e:
            raise ConnectError(f"Error connecting to {sockaddr[0]}: {describe_os_error(e)}", sockaddr[0]) from e

    def _start_tls(self, sock: socket.socket, stack: ExitStack) -> Tuple[ssl.SSLContext, ssl.SSLSocket]:
        ensure_tls_initialized()
        ctx = build_client_context(self._dest.cert, check_hostname=self._dest.tls_check_hostname)

        try:
            tls_sock = ctx.wrap_socket(sock, server_hostname=self._dest.host, do_handshake_on_connect=False)
        except (ssl.SSLError, ValueError, OSError) as e:
            raise TlsSetupError(f"Error setting up TLS structure: {describe_os_error(e)}") from e
        stack.callback(tls_sock.close)

        try:
            tls_sock.do_handshake()
        except ssl.SSLCertVerificationError as e:
            raise CertificateVerificationError(
                f"Error verifying TLS certificate: {describe_os_error(e)}",
                verify_message=describe_os_error(e),
                verify_code=getattr(e, "verify_code", None),
            ) from e
        except OSError as e:
            raise TlsHandshakeError(f"Error completing TLS handshake: {describe_os_error(e)}") from e
        stack.callback(self._shutdown_tls, tls_sock)

        if not tls_sock.getpeercert(binary_form=True):
            raise PeerCertificateError("Error getting TLS certificate")

        return ctx, tls_sock

    def _send_key(self, sock: socket.socket) -> None:
        try:
            sock.sendall((self._dest.key + "\n").encode("utf-8"))
        except OSError as e:
            raise KeyTransmissionError(f"{self._send_error_prefix()}: {describe_os_error(e)}") from e

    def _send_error_prefix(self) -> str:
        return "Error sending TLS data" if self._dest.tls else "Error sending data"

    @staticmethod
    def _shutdown_tls(tls_sock: ssl.SSLSocket) -> None:
        try:
            tls_sock.settimeout(_TLS_SHUTDOWN_TIMEOUT)
            tls_sock.unwrap()
        except (OSError, ValueError) as e:
            logtcp_logging.debug(f"TLS shutdown incomplete: {describe_os_error(e)}")
