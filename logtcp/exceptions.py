from __future__ import annotations

import errno
import ssl
from typing import Optional


class LogTcpError(Exception):
    """Base exception for logtcp errors."""

    #: Whether a retry-enabled sink treats this failure as transient.
    retryable: bool = False


class ConfigurationError(LogTcpError):
    """Raised when a writer config value cannot be parsed."""


class ResolutionError(LogTcpError):
    """Raised when the destination host cannot be resolved."""


class SocketCreationError(LogTcpError):
    """Raised when a stream socket cannot be opened."""


class ConnectError(LogTcpError):
    """Raised when the TCP connect to the collector fails."""

    retryable = True

    def __init__(self, message: str, address: str) -> None:
        super().__init__(message)
        self.address = address


class TlsSetupError(LogTcpError):
    """Raised when the TLS context or session cannot be built."""


class TlsHandshakeError(TlsSetupError):
    """Raised when the TLS handshake fails for reasons other than verification."""


class PeerCertificateError(TlsSetupError):
    """Raised when the collector presents no certificate."""


class CertificateVerificationError(TlsSetupError):
    """Raised when the collector certificate chain does not verify."""

    def __init__(self, message: str, verify_message: str, verify_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.verify_message = verify_message
        self.verify_code = verify_code


class KeyTransmissionError(LogTcpError):
    """Raised when the pre-shared key cannot be sent."""


class TransportWriteError(LogTcpError):
    """Raised when a record cannot be written to an established transport."""

    retryable = True


def describe_os_error(exc: BaseException) -> str:
    """Render an OS, socket or TLS error as a short human readable string."""
    if isinstance(exc, ssl.SSLCertVerificationError):
        return getattr(exc, "verify_message", None) or getattr(exc, "reason", None) or str(exc)
    if isinstance(exc, ssl.SSLError):
        return getattr(exc, "reason", None) or exc.strerror or str(exc)
    if isinstance(exc, OSError):
        if exc.strerror:
            return exc.strerror
        if exc.errno:
            return errno.errorcode.get(exc.errno, str(exc.errno))
    return str(exc) or exc.__class__.__name__
