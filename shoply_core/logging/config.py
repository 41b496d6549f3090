# =============================================================================
# shoply_core/logging/config.py
# Logging Configuration for Shoply
# =============================================================================

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple, Type


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = (
    "urllib3",
    "httpx",
    "httpcore",
    "hpack",
    "supabase",
    "postgrest",
    "gotrue",
    "realtime",
    "watchdog",
)


def level_for_environment(environment: str, override: Optional[str] = None) -> int:
    """
    Pick the log level for a deployment environment.

    Development logs everything at DEBUG, production at INFO. An explicit
    level name (e.g. "WARNING") wins over both.
    """
    if override:
        level = logging.getLevelName(override.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if environment == "development" else logging.INFO


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_dir: Path = LOG_DIR,
) -> None:
    """
    Configure application-wide logging.

    Records go to stdout and, with log_to_file, to a dated file
    (shoply_YYYY-MM-DD.log) under log_dir. Calling it again replaces the
    previous configuration, which Streamlit reruns rely on.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        filename = f"shoply_{datetime.now().strftime('%Y-%m-%d')}.log"
        handlers.append(logging.FileHandler(log_dir / filename))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("shoply_core").info(
        f"Logging initialized at {logging.getLevelName(level)}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module; use with __name__.

        logger = get_logger(__name__)
        logger.info("Cache warmed")
    """
    return logging.getLogger(name)


class LogContext:
    """
    Times an operation and logs its outcome.

    Exceptions listed in ``expected`` are ordinary outcomes (a wrong password,
    an invalid form) and are logged at WARNING without a traceback. Anything
    else is logged at ERROR with one. Exceptions are never suppressed.

        with LogContext(logger, "Loading plans"):
            plans = await data.get_plans()
        # Loading plans... started
        # Loading plans... completed (0.12s)
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        expected: Tuple[Type[BaseException], ...] = (),
    ):
        self.logger = logger
        self.operation = operation
        self.expected = expected
        self.start_time: Optional[float] = None

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.start_time if self.start_time else 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({self.elapsed:.2f}s)")
        elif self.expected and issubclass(exc_type, self.expected):
            self.logger.warning(f"{self.operation}... rejected ({self.elapsed:.2f}s): {exc_val}")
        else:
            self.logger.error(
                f"{self.operation}... failed ({self.elapsed:.2f}s): {exc_val}",
                exc_info=True,
            )
        return False
