"""
Logging utilities for the link checker.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LoggingConfig

VERBOSITY_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'none': logging.CRITICAL + 10,
}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'link'):
            log_entry['link'] = record.link

        return json.dumps(log_entry, ensure_ascii=False)


class PerformanceFilter(logging.Filter):
    """Filter to suppress noisy third-party logs."""

    def __init__(self, suppress_modules: Optional[list] = None):
        super().__init__()
        self.suppress_modules = suppress_modules or [
            'aiohttp.access',
            'aiohttp.server',
        ]

    def filter(self, record: logging.LogRecord) -> bool:
        return not any(record.name.startswith(module) for module in self.suppress_modules)


class LinkLogAdapter(logging.LoggerAdapter):
    """Logger adapter that logs link results at a level matching their state."""

    STATE_LEVELS = {
        'BROKEN': logging.ERROR,
        'OK': logging.WARNING,
        'SKIPPED': logging.INFO,
    }

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs.setdefault('extra', {}).update(self.extra)
        return msg, kwargs

    def log_link(self, result, indent: str = ''):
        """Log a LinkResult: BROKEN as error, OK as warning, SKIPPED as info."""
        state = result.state.value
        label = 'SKP' if state == 'SKIPPED' else str(result.status)
        self.log(
            self.STATE_LEVELS[state],
            f"{indent}[{label}] {result.url}",
            extra={'link': result.to_dict()}
        )


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Setup logging for the link checker.

    Console output goes to stderr so that JSON and CSV reports on stdout stay
    machine readable. A rotating log file is added when ``config.file`` is set.

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    level = VERBOSITY_LEVELS.get(config.verbosity, logging.WARNING)
    root_logger.setLevel(min(level, logging.DEBUG) if config.file else level)
    root_logger.handlers.clear()

    if config.json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(PerformanceFilter())
    root_logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            JSONFormatter() if config.json
            else logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        file_handler.addFilter(PerformanceFilter())
        root_logger.addHandler(file_handler)

    third_party_loggers = {
        'aiohttp': logging.WARNING,
        'asyncio': logging.WARNING,
    }
    for logger_name, third_party_level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(third_party_level)

    return root_logger


def get_link_logger(name: str, **extra_context) -> LinkLogAdapter:
    """Get a link logger with additional context."""
    return LinkLogAdapter(logging.getLogger(name), extra_context)
