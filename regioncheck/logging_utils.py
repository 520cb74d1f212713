"""Centralized logging utilities for region-check runs.

Every run writes to its own file under ``logs/`` (``<app_name>-<run_id>.log``)
and, optionally, to the console. Console output goes to stderr because stdout
is reserved for the generated rule list.

Timing helpers emit one structured line per measured unit::

    event=perf name=<span> duration_ms=<float> success=<true|false> tags={...}

- ``perf_span``: context manager timing an arbitrary block.
- ``perf``: decorator wrapping a whole function call in a ``perf_span``.
"""

import functools
import logging
import re
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Callable, List, Mapping, Optional

from regioncheck.config import AppConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [run=%(run_id)s] %(message)s"
PERF_LINE = "event=perf name=%s duration_ms=%.3f success=%s tags=%s"

_UNSAFE_RUN_ID_CHARS = re.compile(r"[^0-9A-Za-z_-]")


class _RunContextFilter(logging.Filter):
    """Stamp ``run_id`` onto records so the formatter can reference it."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


def generate_run_id() -> str:
    """UTC timestamp identifier, e.g. ``20260102T030405Z``."""
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def log_path_for(config: AppConfig, run_id: str) -> Path:
    """Return the log file path used for ``run_id``."""
    safe_id = _UNSAFE_RUN_ID_CHARS.sub("-", run_id)
    return config.log_directory / f"{config.app_name}-{safe_id}.log"


def _build_handlers(log_path: Path, console: Optional[IO[str]]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if console is not None:
        handlers.append(logging.StreamHandler(console))
    return handlers


def configure_logging(
    config: AppConfig,
    run_id: Optional[str] = None,
    include_console: bool = True,
    fmt: str = DEFAULT_LOG_FORMAT,
) -> Path:
    """Route root logging to a run-scoped file, plus stderr when requested.

    Existing root handlers are removed first so repeated calls in one process
    never write a record twice.
    """
    run_id = run_id or generate_run_id()
    config.log_directory.mkdir(parents=True, exist_ok=True)
    log_path = log_path_for(config, run_id)

    root_logger = logging.getLogger()
    for stale in list(root_logger.handlers):
        root_logger.removeHandler(stale)
        stale.close()

    formatter = logging.Formatter(fmt)
    run_filter = _RunContextFilter(run_id)
    for handler in _build_handlers(log_path, sys.stderr if include_console else None):
        handler.setFormatter(formatter)
        handler.addFilter(run_filter)
        root_logger.addHandler(handler)

    root_logger.setLevel(logging.getLevelName(config.log_level.upper()))
    return log_path


def _format_tags(tags: Optional[Mapping[str, Any]]) -> str:
    """Render tags as a stable single-line ``{k='v'}`` string."""
    if not tags:
        return "{}"
    return "{" + ", ".join(f"{key}={tags[key]!r}" for key in sorted(tags)) + "}"


class perf_span:
    """Context manager to time a code block and log its duration.

    Exceptions raised inside the block are logged as ``success=false`` and
    propagate unchanged.

    Example:
        with perf_span("probe.batch", tags={"domains": 12}):
            coordinator.probe_batch(domains)
    """

    def __init__(
        self,
        name: str,
        *,
        tags: Optional[Mapping[str, Any]] = None,
        level: int = logging.INFO,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.name = name
        self.tags = dict(tags or {})
        self.level = level
        self.logger = logger or logging.getLogger(__name__)
        self.duration_ms: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self) -> "perf_span":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        started = self._started if self._started is not None else time.perf_counter()
        self.duration_ms = (time.perf_counter() - started) * 1000.0
        success = "true" if exc_type is None else "false"
        self.logger.log(self.level, PERF_LINE, self.name, self.duration_ms, success, _format_tags(self.tags))
        return False


def perf(
    name: Optional[str] = None,
    *,
    tags: Optional[Mapping[str, Any]] = None,
    level: int = logging.INFO,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator that logs the execution time of every call.

    Args:
        name: Span name; defaults to ``<module>.<qualname>``.
        tags: Extra metadata included in the log line.
        level: Logging level of the perf line.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        span_name = name or f"{func.__module__}.{func.__qualname__}"
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with perf_span(span_name, tags=tags, level=level, logger=logger):
                return func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "DEFAULT_LOG_FORMAT",
    "configure_logging",
    "generate_run_id",
    "log_path_for",
    "perf",
    "perf_span",
]
