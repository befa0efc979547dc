# logtcp/transport/tls.py
from __future__ import annotations

import ssl
import threading

from logtcp.exceptions import TlsSetupError, describe_os_error
from logtcp.utils.app_logging import logtcp_logging


class TlsRuntime:
    """
    Process-wide TLS initialization guard.

    The first TLS-enabled connection calls ensure_initialized(); later calls are no-ops.
    Initialization checks that the interpreter's OpenSSL build supports TLS clients and
    logs which library is in use.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            if not hasattr(ssl, "PROTOCOL_TLS_CLIENT"):
                raise TlsSetupError("TLS client support is not available in this Python build")
            logtcp_logging.debug(f"TLS initialized using {ssl.OPENSSL_VERSION}")
            self._initialized = True

    def reset(self) -> None:
        with self._lock:
            self._initialized = False


_runtime = TlsRuntime()


def tls_runtime() -> TlsRuntime:
    return _runtime


def ensure_tls_initialized() -> None:
    _runtime.ensure_initialized()


def build_client_context(cert: str = "", check_hostname: bool = False) -> ssl.SSLContext:
    """
    Build a TLS client context that requires a verified peer certificate.

    Args:
        cert: Path to a CA bundle; empty loads the system default trust paths
        check_hostname: Also match the certificate against the requested server name; off by
            default, so only the chain is verified

    Raises:
        TlsSetupError: the context cannot be created or the trust store cannot be loaded
    """
    try:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    except ssl.SSLError as e:
        raise TlsSetupError(f"Error setting up TLS context: {describe_os_error(e)}") from e

    ctx.check_hostname = check_hostname
    ctx.verify_mode = ssl.CERT_REQUIRED

    if not cert:
        try:
            ctx.set_default_verify_paths()
        except ssl.SSLError as e:
            raise TlsSetupError(f"Error loading default certificate paths: {describe_os_error(e)}") from e
    else:
        try:
            ctx.load_verify_locations(cafile=cert)
        except (ssl.SSLError, OSError) as e:
            raise TlsSetupError(f"Error using TLS certificate: {describe_os_error(e)}") from e

    return ctx
