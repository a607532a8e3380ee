import logging
import os
import sys
from typing import Any, Mapping

import structlog

_ENV_LEVEL = "BIRRT_LOG_LEVEL"
_DEFAULT_LEVEL = "WARNING"

# Fills in level, logger name and time for records that were not produced by
# our own processor chain (e.g. under an application's structlog config).
_FOREIGN_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _compact_console_processor(logger: Any, method_name: str, event_dict: Mapping[str, Any]) -> str:
    """Format log lines as: HH:MM:SS [lvl][logger] event key=value ..."""
    event_dict = dict(event_dict)
    timestamp = str(event_dict.pop("timestamp", ""))
    level = str(event_dict.pop("level", "???"))[:3].lower()
    name = event_dict.pop("logger", "")
    event = event_dict.pop("event", "")
    for key in ("_record", "_from_structlog"):
        event_dict.pop(key, None)
    line = f"{timestamp[11:19]} [{level}][{name}] {event}"
    if event_dict:
        line += " " + " ".join(f"{k}={v}" for k, v in sorted(event_dict.items()))
    return line


def _configure_structlog() -> None:
    # An application that configured structlog itself keeps its setup.
    if structlog.is_configured():
        return
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def resolve_level(level=None) -> int:
    if level is None:
        level = os.getenv(_ENV_LEVEL, _DEFAULT_LEVEL)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level {level!r}")
        return resolved
    return int(level)


def setup_logger(name: str, level=None) -> Any:
    """Return a structlog logger backed by a stdlib logger writing to stderr.

    The level comes from ``level`` or the ``BIRRT_LOG_LEVEL`` environment
    variable. Calling it again for the same name replaces the handler.
    """
    _configure_structlog()
    resolved = resolve_level(level)

    stdlib_logger = logging.getLogger(name)
    if stdlib_logger.hasHandlers():
        stdlib_logger.handlers.clear()
    stdlib_logger.setLevel(resolved)
    stdlib_logger.propagate = False

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_compact_console_processor,
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    stdlib_logger.addHandler(handler)

    return structlog.get_logger(name)


def set_level(name: str, level) -> None:
    resolved = resolve_level(level)
    stdlib_logger = logging.getLogger(name)
    stdlib_logger.setLevel(resolved)
    for handler in stdlib_logger.handlers:
        handler.setLevel(resolved)
