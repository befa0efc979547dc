# logtcp/diagnostics.py
from __future__ import annotations

import logging
from typing import Optional, Protocol

from logtcp.utils.app_logging import logtcp_logging


class DiagnosticsReporter(Protocol):
    """
    Receives the warnings and errors raised by the connection core.

    An error means the sink is no longer usable; a warning is informational only.
    """

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingReporter:
    """Reporter that writes to the logtcp logger and remembers whether the sink has failed."""

    def __init__(self, name: str = "logtcp", logger: Optional[logging.Logger] = None) -> None:
        self.name = name
        self._logger = logger or logtcp_logging
        self.failed = False
        self.last_error: Optional[str] = None

    def warning(self, message: str) -> None:
        self._logger.warning(f"[{self.name}] {message}")

    def error(self, message: str) -> None:
        self.failed = True
        self.last_error = message
        self._logger.error(f"[{self.name}] {message}")
