# =============================================================================
# cleantrack_core/logging/config.py
# Logging Configuration for CleanTrack
# =============================================================================

import logging
import os
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s | %(threadName)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")
LEVEL_ENV_VAR = "CLEANTRACK_LOG_LEVEL"

# Chatty HTTP stack underneath the Supabase and OpenAI clients
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "hpack", "supabase", "postgrest", "openai")


def _resolve_level(level: Union[int, str, None]) -> int:
    """Accept a logging constant or a name such as "debug"; env var wins when unset."""
    level = level if level is not None else os.environ.get(LEVEL_ENV_VAR, logging.INFO)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logging(
    level: Union[int, str, None] = None,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Configure logging for the app process.

    The thread name is part of every line so background propagation
    (``RemotePropagator_0``) can be told apart from the Streamlit script thread.

    Args:
        level: Level constant or name; defaults to $CLEANTRACK_LOG_LEVEL, then INFO
        log_to_file: Whether to also log to a file
        log_filename: Custom log filename (default: cleantrack_YYYY-MM-DD.log)
        log_dir: Directory for the log file (default: ./logs)
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        directory = Path(log_dir) if log_dir else LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)
        filename = log_filename or f"cleantrack_{datetime.now():%Y-%m-%d}.log"
        handlers.append(logging.FileHandler(directory / filename, encoding="utf-8"))

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("cleantrack_core").info("Logging initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Usage:
        from cleantrack_core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


class LogContext:
    """
    Logs start, outcome and duration of a sync or report step.

    Usage:
        with LogContext(logger, "Loading tasks") as step:
            tasks = service.load_tasks()
            step.summary = f"{len(tasks)} tasks"
        # Loading tasks... started
        # Loading tasks... completed (0.12s): 5 tasks

    A recoverable CleanTrackError (remote unreachable, bad snapshot) is
    expected while offline and is logged as a warning without traceback;
    anything else is logged as an error with one.
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.summary: Optional[str] = None
        self.start_time: Optional[float] = None

    @property
    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return time.monotonic() - self.start_time

    def __enter__(self) -> "LogContext":
        self.start_time = time.monotonic()
        self.logger.log(self.level, f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        timing = f"({self.elapsed:.2f}s)"
        if exc_type is None:
            suffix = f": {self.summary}" if self.summary else ""
            self.logger.log(self.level, f"{self.operation}... completed {timing}{suffix}")
        # CleanTrackError, matched by attribute: cleantrack_core.errors imports this module
        elif getattr(exc_val, "recoverable", False) and hasattr(exc_val, "code"):
            self.logger.warning(f"{self.operation}... failed {timing}: {exc_val}")
        else:
            self.logger.error(f"{self.operation}... failed {timing}: {exc_val}", exc_info=True)
        return False
