from .connection import ConnectionManager
from .session import SendOutcome, WriteSession
from .tls import build_client_context, ensure_tls_initialized

__all__ = [
    "ConnectionManager",
    "SendOutcome",
    "WriteSession",
    "build_client_context",
    "ensure_tls_initialized",
]
