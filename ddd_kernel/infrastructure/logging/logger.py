"""
Structured logging implementation.

Every record is one JSON object: timestamp, level, component, message,
logger name, the keyword context of the call and, when present, the
formatted exception.
"""

import logging
import json
from datetime import datetime, timezone
from functools import partialmethod
from typing import Any, Dict, List, Optional
from pathlib import Path

from ddd_kernel.domain.interfaces.base import ILogger

ROOT_LOGGER_NAME = "ddd_kernel"


def _qualified(name: str) -> str:
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return name
    return f"{ROOT_LOGGER_NAME}.{name}"


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    formatter = StructuredFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


class StructuredLogger:
    """``ILogger`` backed by a stdlib logger that writes JSON records.

    The keyword arguments of a logging call become the record's context;
    ``component`` is lifted to a top-level field.
    """

    def __init__(self, name: str, level: str = "INFO", log_file: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level.upper())
        self.context = dict(context or {})

        # Re-creating a logger replaces the previous instance's handlers
        self.logger.handlers.clear()
        for handler in _build_handlers(log_file):
            self.logger.addHandler(handler)

    @classmethod
    def _sharing(cls, logger: logging.Logger, context: Dict[str, Any]) -> 'StructuredLogger':
        instance = cls.__new__(cls)
        instance.logger = logger
        instance.context = context
        return instance

    def bind(self, **context: Any) -> 'StructuredLogger':
        """Return a logger sharing this one's handlers that adds ``context`` to every record."""
        return self._sharing(self.logger, {**self.context, **context})

    def close(self) -> None:
        """Close and detach the handlers owned by this logger."""
        while self.logger.handlers:
            handler = self.logger.handlers[0]
            self.logger.removeHandler(handler)
            handler.close()

    def _log(self, level: int, message: str, **context: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return

        merged = {**self.context, **context}
        self.logger.log(level, message, extra={
            'context': merged,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'component': merged.get('component', 'unknown'),
        })

    debug = partialmethod(_log, logging.DEBUG)
    info = partialmethod(_log, logging.INFO)
    warning = partialmethod(_log, logging.WARNING)
    error = partialmethod(_log, logging.ERROR)
    critical = partialmethod(_log, logging.CRITICAL)


class StructuredFormatter(logging.Formatter):
    """Formats a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            'timestamp': getattr(record, 'timestamp', None)
            or datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'component': getattr(record, 'component', 'unknown'),
            'message': record.getMessage(),
            'logger': record.name,
        }

        context = getattr(record, 'context', {})
        extra = {key: value for key, value in context.items() if key != 'component'}
        if extra:
            data['context'] = extra

        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)

        # Event payloads and ids may hold non-JSON values
        return json.dumps(data, ensure_ascii=False, default=str)


class LoggerFactory:
    """Creates structured loggers under the ``ddd_kernel`` namespace."""

    @staticmethod
    def create_logger(name: str, level: str = "INFO", log_file: Optional[str] = None) -> ILogger:
        return StructuredLogger(_qualified(name), level, log_file)

    @staticmethod
    def create_component_logger(component_name: str, base_config: Dict[str, Any]) -> ILogger:
        """Create a logger bound to ``component_name``.

        A log file ``<log_dir>/<component_name>.log`` is written only when
        ``log_to_file`` is true and ``log_dir`` is set.
        """
        log_dir = base_config.get('log_dir')
        log_file = None
        if log_dir and base_config.get('log_to_file', False):
            log_file = str(Path(log_dir) / f"{component_name}.log")

        logger = StructuredLogger(_qualified(component_name), base_config.get('log_level', 'INFO'), log_file)
        return logger.bind(component=component_name)
