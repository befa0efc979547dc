"""
Streaming log shipper: one TCP (optionally TLS) connection to a collector, newline-delimited records.
"""

from .config import DestinationConfig, get_config
from .diagnostics import DiagnosticsReporter, LoggingReporter
from .exceptions import (
    LogTcpError,
    ConfigurationError,
    ResolutionError,
    SocketCreationError,
    ConnectError,
    TlsSetupError,
    TlsHandshakeError,
    PeerCertificateError,
    CertificateVerificationError,
    KeyTransmissionError,
    TransportWriteError,
)
from .formatters import JSONFormatter, LogFormatter, TimestampFormat
from .records import FieldType, LogField, LogRecord
from .transport import ConnectionManager, SendOutcome, WriteSession
from .version import LOGTCP_VERSION
from .writer import TcpLogWriter

__all__ = [
    "DestinationConfig",
    "get_config",
    "DiagnosticsReporter",
    "LoggingReporter",
    "LogTcpError",
    "ConfigurationError",
    "ResolutionError",
    "SocketCreationError",
    "ConnectError",
    "TlsSetupError",
    "TlsHandshakeError",
    "PeerCertificateError",
    "CertificateVerificationError",
    "KeyTransmissionError",
    "TransportWriteError",
    "JSONFormatter",
    "LogFormatter",
    "TimestampFormat",
    "FieldType",
    "LogField",
    "LogRecord",
    "ConnectionManager",
    "SendOutcome",
    "WriteSession",
    "TcpLogWriter",
]

__version__ = LOGTCP_VERSION
