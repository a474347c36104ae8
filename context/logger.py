# ─── Hierarchical Call Stack Tracking ─────────────────────────────────────────
import contextvars
import logging
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

from loguru import logger as _loguru

# A context variable holding the current call-stack as a list of phase names
_call_stack = contextvars.ContextVar("_call_stack", default=[])


@contextmanager
def log_func(name: str):
    """
    Context manager to push/pop a phase name onto the call stack.
    """
    stack = _call_stack.get()
    token = _call_stack.set(stack + [name])
    try:
        yield
    finally:
        _call_stack.reset(token)


def _enrich_record(record):
    """
    Loguru patch function: injects extra['func'] = dot-joined call stack.
    """
    stack = _call_stack.get()
    record["extra"]["func"] = ".".join(stack) if stack else ""
    return record


def _stderr_sink(message) -> None:
    sys.stderr.write(message)


class InterceptHandler(logging.Handler):
    """
    Forwards stdlib logging records (logging.getLogger(__name__)) to loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = Logger.get_loguru().level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        Logger.get_loguru().opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


# ─── Logger Utility ───────────────────────────────────────────────────────────

class Logger:
    """
    Logger utility using loguru with UUID-tagged session identity.
    Console output goes to stderr; stdout carries the JSON result only.
    """

    _configured = False
    _uuid = None
    _logger = None
    _log_path = None
    _handler_ids = SimpleNamespace(file=None, console=None)

    FORMAT = (
        "<green>{time:HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[func]}</cyan> | "
        "{message}"
    )

    @staticmethod
    def init_logger(
            log_dir: Optional[Path] = None,
            label: str = None,
            level: str = "INFO",
            console=None,
    ):
        """
        Initialize loguru with a console sink and, when log_dir is given, a file sink.
        Stdlib logging is routed into the same sinks.
        """
        if Logger._configured:
            return Logger._logger

        Logger._uuid = str(uuid.uuid4())
        Logger._configured = True

        _loguru.remove()
        logger = _loguru.patch(_enrich_record)

        Logger._handler_ids.console = logger.add(
            console or _stderr_sink,
            level=level,
            colorize=console is None and sys.stderr.isatty(),
            format=Logger.FORMAT,
        )

        if log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
            suffix = f"__{label}" if label else f"__{Logger._uuid}"
            Logger._log_path = log_dir / f"{timestamp}{suffix}.log"
            Logger._handler_ids.file = logger.add(
                str(Logger._log_path), level=level, format=Logger.FORMAT
            )

        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

        logger.debug("[Logger Init] UUID={} → {}", Logger._uuid, Logger._log_path)
        Logger._logger = logger
        return logger

    @staticmethod
    def get_loguru():
        return Logger._logger if Logger._configured else _loguru

    @staticmethod
    def reset():
        if Logger._logger:
            Logger._logger.remove()
        logging.getLogger().handlers.clear()
        Logger._configured = False
        Logger._uuid = None
        Logger._logger = None
        Logger._log_path = None
        Logger._handler_ids = SimpleNamespace(file=None, console=None)


log = Logger
