"""Logging configuration.

Console logging is always on; rotating files (general, errors, access) are added when
a log directory is configured. Request-scoped context (request id, user id, client ip)
lives in contextvars and is copied onto every record by ``ContextEnricher``.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[Optional[int]] = ContextVar("user_id", default=None)
ip_ctx: ContextVar[Optional[str]] = ContextVar("ip_address", default=None)

_CONTEXT_VARS = {
    "request_id": request_id_ctx,
    "user_id": user_id_ctx,
    "ip_address": ip_ctx,
}

# Record attributes copied into JSON output when present.
_EXTRA_FIELDS = (
    "request_id",
    "user_id",
    "ip_address",
    "endpoint",
    "method",
    "status_code",
    "duration",
    "tweet_id",
    "recipient_count",
    "error_code",
)

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Emit one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                key = "duration_ms" if field == "duration" else field
                payload[key] = getattr(record, field)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """ANSI-colour the level name for console readability."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class ContextEnricher(logging.Filter):
    """Copy bound request context onto records that do not carry it already."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, var in _CONTEXT_VARS.items():
            value = var.get()
            if value is not None and not hasattr(record, name):
                setattr(record, name, value)
        return True


def bind_request_context(
    *,
    request_id: Optional[str] = None,
    user_id: Optional[int] = None,
    ip_address: Optional[str] = None,
):
    """Bind request context into contextvars; returns tokens for reset."""
    values = {"request_id": request_id, "user_id": user_id, "ip_address": ip_address}
    return [
        (name, _CONTEXT_VARS[name].set(value))
        for name, value in values.items()
        if value is not None
    ]


def reset_request_context(tokens) -> None:
    for name, token in reversed(tokens):
        _CONTEXT_VARS[name].reset(token)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        try:
            handler.flush()
        finally:
            handler.close()
            logger.removeHandler(handler)


def _rotating_handler(
    path: Path, level: int, formatter: logging.Formatter, max_bytes: int, backup_count: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    app_name: str = "twitter_clone",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    use_json: bool = False,
    use_colors: bool = True,
) -> None:
    """Configure the root logger and the dedicated ``access`` logger.

    Args:
        log_level: Minimum level for the console and root logger.
        log_dir: Directory for rotating log files; console only when None.
        app_name: Prefix for log file names.
        max_bytes: Rotation threshold per file.
        backup_count: Rotated files kept per log.
        use_json: Write files as JSON lines instead of plain text.
        use_colors: Colour the console level names.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    context_filter = ContextEnricher()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _reset_handlers(root_logger)
    root_logger.addFilter(context_filter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_cls = ColoredFormatter if use_colors else logging.Formatter
    console_handler.setFormatter(console_cls(TEXT_FORMAT, datefmt=DATE_FORMAT))
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        def _file_formatter(fmt: str = TEXT_FORMAT) -> logging.Formatter:
            return JSONFormatter() if use_json else logging.Formatter(fmt, datefmt=DATE_FORMAT)

        root_logger.addHandler(
            _rotating_handler(
                log_path / f"{app_name}.log",
                logging.DEBUG,
                _file_formatter(),
                max_bytes,
                backup_count,
            )
        )
        root_logger.addHandler(
            _rotating_handler(
                log_path / f"{app_name}_error.log",
                logging.ERROR,
                _file_formatter(),
                max_bytes,
                backup_count,
            )
        )

        access_logger = logging.getLogger("access")
        _reset_handlers(access_logger)
        access_logger.addHandler(
            _rotating_handler(
                log_path / f"{app_name}_access.log",
                logging.INFO,
                _file_formatter(
                    "%(asctime)s | %(method)s %(endpoint)s | Status: %(status_code)s"
                    " | Duration: %(duration)sms | IP: %(ip_address)s"
                ),
                max_bytes,
                backup_count,
            )
        )
        access_logger.setLevel(logging.INFO)
        access_logger.propagate = False
        access_logger.addFilter(context_filter)

    for noisy in ("urllib3", "asyncio", "multipart", "apscheduler"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.info(
        "Logging configured. Level: %s, Directory: %s", log_level, log_dir or "console only"
    )


def log_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_ms: float,
    ip_address: str,
    user_id: Optional[int] = None,
    request_id: Optional[str] = None,
) -> None:
    """Write one structured line to the ``access`` logger."""
    extra = {
        "method": method,
        "endpoint": endpoint,
        "status_code": status_code,
        "duration": f"{duration_ms:.2f}",
        "ip_address": ip_address,
    }
    if user_id:
        extra["user_id"] = user_id
    if request_id:
        extra["request_id"] = request_id

    logging.getLogger("access").info(
        f"{method} {endpoint} - {status_code} - {duration_ms:.2f}ms", extra=extra
    )
