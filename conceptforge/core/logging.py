"""
Structured Logging for ConceptForge.

Modules obtain loggers from here instead of calling ``logging.getLogger``:

    from conceptforge.core.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Extracted concepts", count=12, run_id="a1b2")
    # Extracted concepts | count=12 | run_id=a1b2

Console output goes through rich's RichHandler on stderr so that stdout
stays free for rendered maps. An optional plain-text file handler can be
added with configure_logging().

Stage timing for a single pipeline run lives in PipelineLogger:

    plog = PipelineLogger(run_id)
    plog.start_stage("organization")
    plog.start_stage("reasoning")      # closes "organization"
    timings = plog.finish(success=True, concepts=12)
    # {"organization": 1.73, "reasoning": 0.41}  (milliseconds)
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class LogConfig:
    """Where and how verbosely to log."""

    level: str = "INFO"
    file_path: Optional[Path] = None
    console: bool = True

    @property
    def level_number(self) -> int:
        return getattr(logging, self.level.upper(), logging.INFO)


_default_config = LogConfig()
_stderr_console: Optional[Console] = None


def _console() -> Console:
    global _stderr_console
    if _stderr_console is None:
        _stderr_console = Console(stderr=True)
    return _stderr_console


def _make_handlers(config: LogConfig) -> List[logging.Handler]:
    """Handlers for a config: rich console and/or plain file."""
    handlers: List[logging.Handler] = []

    if config.console:
        handlers.append(
            RichHandler(
                console=_console(),
                show_path=False,
                markup=False,
                rich_tracebacks=True,
            )
        )

    if config.file_path:
        config.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.file_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT)
        )
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(config.level_number)
    return handlers


class StructuredLogger:
    """Wraps a stdlib logger and appends key=value fields to messages.

    Fields passed with bind() are added to every later message; fields
    passed to a single call are added to that message only.
    """

    def __init__(self, name: str, config: Optional[LogConfig] = None) -> None:
        self.logger = logging.getLogger(name)
        self.logger.propagate = False
        self._context: Dict[str, Any] = {}
        self.apply_config(config or _default_config)

    def apply_config(self, config: LogConfig) -> None:
        """Replace handlers and level."""
        self.config = config
        for handler in self.logger.handlers:
            handler.close()
        self.logger.handlers = _make_handlers(config)
        self.logger.setLevel(config.level_number)

    def bind(self, **fields: Any) -> "StructuredLogger":
        self._context.update(fields)
        return self

    def unbind(self, *keys: str) -> "StructuredLogger":
        for key in keys:
            self._context.pop(key, None)
        return self

    def _format_message(self, message: str, **fields: Any) -> str:
        merged = {**self._context, **fields}
        if not merged:
            return message
        return " | ".join([message, *(f"{k}={v}" for k, v in merged.items())])

    def _emit(
        self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False
    ) -> None:
        if self.logger.isEnabledFor(level):
            text = self._format_message(message, **fields)
            self.logger.log(level, text, exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(logging.ERROR, message, fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR with the active traceback."""
        self._emit(logging.ERROR, message, fields, exc_info=True)


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str, config: Optional[LogConfig] = None) -> StructuredLogger:
    """
    Return the cached logger for a name, creating it on first use.

    Args:
        name: Logger name, normally ``__name__``
        config: Config for a newly created logger (current default otherwise)
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, config)
    return _loggers[name]


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: bool = True,
) -> None:
    """
    Set the default logging config and apply it to existing loggers.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Also write plain-text logs to this file
        console: Log to stderr through rich
    """
    global _default_config
    _default_config = LogConfig(level=level, file_path=log_file, console=console)
    for structured in _loggers.values():
        structured.apply_config(_default_config)


class PipelineLogger:
    """Logs stage transitions of one pipeline run and times them.

    Starting a stage closes the previous one; finish() closes the last
    stage and returns all durations in milliseconds.
    """

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self.logger = get_logger("conceptforge.pipeline")
        self._current: Optional[str] = None
        self._started_at = 0.0
        self._timings: Dict[str, float] = {}

    @property
    def timings(self) -> Dict[str, float]:
        return dict(self._timings)

    def start_stage(self, stage: str) -> None:
        self._close_stage()
        self._current = stage
        self._started_at = time.perf_counter()
        self.logger.debug("Stage started", run_id=self.run_id, stage=stage)

    def _close_stage(self) -> None:
        if self._current is None:
            return
        elapsed_ms = round((time.perf_counter() - self._started_at) * 1000.0, 3)
        self._timings[self._current] = elapsed_ms
        self.logger.debug(
            "Stage finished", run_id=self.run_id, stage=self._current, ms=elapsed_ms
        )
        self._current = None

    def finish(
        self, success: bool, concepts: int = 0, error: Optional[str] = None
    ) -> Dict[str, float]:
        """Close the running stage and log the outcome of the run."""
        self._close_stage()
        total_ms = round(sum(self._timings.values()), 3)
        if success:
            self.logger.info(
                "Concept map built", run_id=self.run_id, concepts=concepts, ms=total_ms
            )
        else:
            self.logger.error("Concept map failed", run_id=self.run_id, error=error)
        return self.timings
