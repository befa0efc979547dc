# logtcp/utils/app_logging.py
import os
import logging
import colorlog

_LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red,bg_white",
}

_DEFAULT_FMT = "%(log_color)s%(asctime)s %(levelname)-8s %(filename)-20s: %(message)s"
_ERROR_FMT = "%(log_color)s%(asctime)s %(levelname)-8s %(filename)-20s:%(lineno)d: %(message)s"


class _LevelSwitchingHandler(logging.StreamHandler):
    def __init__(self):
        super().__init__()
        self._default = colorlog.ColoredFormatter(_DEFAULT_FMT, log_colors=_LOG_COLORS)
        self._error = colorlog.ColoredFormatter(_ERROR_FMT, log_colors=_LOG_COLORS)

    def emit(self, record: logging.LogRecord) -> None:
        # Pick format dynamically
        self.setFormatter(self._error if record.levelno >= logging.ERROR else self._default)
        super().emit(record)


def configure_logging(name: str = "logtcp", env_var: str = "LOG_LEVEL") -> logging.Logger:
    """
    Configure the stdlib logger used for logtcp diagnostics.
    - Color console output, errors include the line number
    - Level taken from LOG_LEVEL (default INFO)
    """
    level = os.getenv(env_var, "INFO").upper()
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False

    if not any(isinstance(h, _LevelSwitchingHandler) for h in logger.handlers):
        logger.addHandler(_LevelSwitchingHandler())

    logger.debug(f"Log level set to {level}")
    return logger


# Convenience singleton for quick imports:
logtcp_logging = configure_logging()
