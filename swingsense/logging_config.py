"""
Structured Logging Configuration for SwingSense
JSON lines for aggregation, colored lines for development, and a run id
that ties every record of one analysis run together.
"""

import logging
import json
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from contextvars import ContextVar, Token

# Run id of the analysis currently executing in this context
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

# LogRecord attributes that are not user-supplied extras
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "run_id"}

SLOW_OPERATION_MS = 5000


def get_run_id() -> str:
    """Return the current run id, creating one if none is set"""
    rid = run_id_var.get()
    if not rid:
        rid = uuid.uuid4().hex[:8]
        run_id_var.set(rid)
    return rid


def set_run_id(run_id: str) -> Token:
    return run_id_var.set(run_id)


def reset_run_id(token: Token) -> None:
    run_id_var.reset(token)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v for k, v in record.__dict__.items()
        if k not in _STANDARD_ATTRS and not k.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", ""),
        }

        if record.levelno >= logging.WARNING:
            payload["location"] = {"file": record.filename, "line": record.lineno,
                                   "function": record.funcName}

        # Extras json cannot encode fall back to str via default=str
        payload.update(_extras(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    """Human-readable colored lines for development."""

    COLORS = {"DEBUG": "\033[36m", "INFO": "\033[32m", "WARNING": "\033[33m",
              "ERROR": "\033[31m", "CRITICAL": "\033[35m"}
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        run_id = getattr(record, "run_id", "")
        prefix = f"[{run_id}] " if run_id else ""

        line = (
            f"{stamp} {color}{record.levelname:8}{self.RESET} "
            f"{prefix}{record.name}: {record.getMessage()}"
        )

        extras = _extras(record)
        if extras:
            line += " | " + ", ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class RunIdFilter(logging.Filter):
    """Stamp the current run id on every record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Optional[str] = None
) -> None:
    """Configure root logging for an application embedding the engine; file output is always JSON"""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handlers = [(logging.StreamHandler(sys.stdout), JSONFormatter() if json_format else PrettyFormatter())]
    if log_file:
        handlers.append((logging.FileHandler(log_file), JSONFormatter()))

    run_filter = RunIdFilter()
    for handler, formatter in handlers:
        handler.addFilter(run_filter)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)


def setup_logging_from_settings() -> None:
    """Configure logging from the SWINGSENSE_LOG_* environment settings"""
    from .config import get_settings

    s = get_settings()
    setup_logging(level=s.LOG_LEVEL, json_format=s.LOG_JSON, log_file=s.LOG_FILE)


class LogTimer:
    """Context manager that logs how long a block took"""

    def __init__(self, logger: logging.Logger, operation: str, **extra):
        self.logger = logger
        self.operation = operation
        self.extra = extra
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        extra = {**self.extra, "duration_ms": round(self.duration_ms, 2)}

        if exc_type:
            self.logger.error(
                f"{self.operation} failed after {self.duration_ms:.2f}ms",
                extra={**extra, "error": str(exc_val)}
            )
        else:
            level = logging.WARNING if self.duration_ms > SLOW_OPERATION_MS else logging.INFO
            self.logger.log(level, f"{self.operation} completed in {self.duration_ms:.2f}ms", extra=extra)

        return False
