"""
Centralized Logging Configuration for the Sitnikov Toolkit

This module provides plain-text or structured (JSON) logging for the
command-line tool; library modules only create module loggers.
"""

import logging
import sys
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON

        Args:
            record: Log record

        Returns:
            JSON string
        """
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        if hasattr(record, 'service'):
            log_data['service'] = record.service

        if hasattr(record, 'component'):
            log_data['component'] = record.component

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False
) -> logging.Logger:
    """
    Set up logging for the tool

    The handlers are attached to the 'src' logger as well, so the module
    loggers of the integrators and the model report through them.

    Args:
        service_name: Name of the tool (e.g., 'sitnikov')
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path (None for stderr only)
        json_format: Use JSON formatting (True) or simple text (False)

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper())

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # Console handler; stdout stays free for results
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    # File handler (optional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logger = logging.getLogger(service_name)
    for name in dict.fromkeys((service_name, 'src')):
        target = logging.getLogger(name)
        target.setLevel(level)

        # Remove existing handlers
        target.handlers.clear()
        for handler in handlers:
            target.addHandler(handler)

    return logger


class ServiceLogger:
    """
    Wrapper for tool-specific logging with extra context
    """

    def __init__(self, service_name: str, component: Optional[str] = None):
        """
        Initialize service logger

        Args:
            service_name: Name of the tool
            component: Optional component name within the tool
        """
        self.logger = logging.getLogger(service_name)
        self.service_name = service_name
        self.component = component

    def _add_context(self, extra: Dict[str, Any] = None) -> Dict[str, Any]:
        """Add service context to log extra fields"""
        context = {'service': self.service_name}
        if self.component:
            context['component'] = self.component
        if extra:
            context.update(extra)
        return context

    def info(self, message: str, extra: Dict[str, Any] = None):
        """Log info message"""
        self.logger.info(message, extra=self._add_context(extra))

    def error(self, message: str, extra: Dict[str, Any] = None, exc_info: bool = False):
        """Log error message"""
        self.logger.error(message, extra=self._add_context(extra), exc_info=exc_info)
