"""Logging for Fractal.

Generation and streaming requests log through the ``conversation`` logger
inside ``ConversationLogger.correlation_context``; every record emitted there
is tagged with the request id and printed with a short ``[gen_1712]`` prefix.
"""

import logging
import secrets
import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# httpx logs every request at INFO
NOISY_HTTP_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
)

QUIET_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

_correlation_id: ContextVar[str | None] = ContextVar("fractal_correlation_id", default=None)


def set_noisy_http_logger_levels(current_log_level: str) -> None:
    """Keep HTTP client loggers at WARNING unless the app itself runs at DEBUG."""
    level = logging.DEBUG if current_log_level == "DEBUG" else logging.WARNING
    for name in NOISY_HTTP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def new_request_id(prefix: str) -> str:
    """Build a request id such as ``gen_1712345678901_k3j9x2m1a``."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


class ConversationLogger:
    @staticmethod
    def get_logger() -> logging.Logger:
        return logging.getLogger("conversation")

    @staticmethod
    @contextmanager
    def correlation_context(request_id: str) -> Generator[None, None, None]:
        """Tag every record logged inside the block with ``request_id``.

        Backed by a ContextVar, so concurrent tasks never see each other's ids.
        Async generators must enter it only between yields: a block held open
        across a yield leaks the id into the consumer's context.
        """
        token = _correlation_id.set(request_id)
        try:
            yield
        finally:
            try:
                _correlation_id.reset(token)
            except ValueError:
                # Async generator closed from a different context
                _correlation_id.set(None)


class CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        active = _correlation_id.get()
        if active is not None and getattr(record, "correlation_id", None) is None:
            record.correlation_id = active
        return True


class CorrelationFormatter(logging.Formatter):
    """Prefix the message with the first 8 chars of the correlation id."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None)
        if not correlation_id:
            return super().format(record)
        tagged = logging.makeLogRecord(record.__dict__)
        tagged.msg = f"[{correlation_id[:8]}] {record.msg}"
        return super().format(tagged)


class HttpRequestLogDowngradeFilter(logging.Filter):
    """Re-label INFO records from the given logger prefixes as DEBUG."""

    def __init__(self, *prefixes: str) -> None:
        super().__init__()
        self.prefixes = tuple(prefixes)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.INFO and record.name.startswith(self.prefixes):
            record.levelno = logging.DEBUG
            record.levelname = "DEBUG"
        return True


def _normalize_level(log_level: str) -> str:
    words = (log_level or "").split()
    level = words[0].upper() if words else "INFO"
    return level if level in VALID_LEVELS else "INFO"


def configure_root_logging(log_level: str = "INFO") -> None:
    """Install the Fractal handler on the root logger.

    Called once by a host shell (CLI or HTTP app factory); importing the
    package never touches global logging state.
    """
    level = _normalize_level(log_level)

    handler = logging.StreamHandler()
    for log_filter in (CorrelationFilter(), HttpRequestLogDowngradeFilter(*NOISY_HTTP_LOGGERS)):
        handler.addFilter(log_filter)
    handler.setFormatter(
        CorrelationFormatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in QUIET_SERVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    set_noisy_http_logger_levels(level)

    logging.getLogger(__name__).debug("Logging configured at %s", level)


conversation_logger = ConversationLogger.get_logger()
