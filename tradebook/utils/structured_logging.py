"""
Structured logging configuration for trade imports

Provides JSON-formatted logging with structured fields for:
- Import lifecycle tracking (started, completed, rejected rows)
- Ledger events (closed trades, unmatched positions)
- Import timing
"""

import json
import logging
import logging.config
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message',
}


@dataclass
class ImportContext:
    """Context attached to every event of one import"""
    session_id: str
    source: Optional[str] = None
    import_format: Optional[str] = None
    account_id: Optional[str] = None

    @classmethod
    def create(cls, **kwargs) -> 'ImportContext':
        """Create new import context"""
        session_id = kwargs.get(
            'session_id',
            f"import_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        )
        return cls(
            session_id=session_id,
            source=kwargs.get('source'),
            import_format=kwargs.get('import_format'),
            account_id=kwargs.get('account_id'),
        )


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def __init__(self, extra_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.thread and record.thread != threading.main_thread().ident:
            log_data['thread_id'] = record.thread

        log_data.update(self.extra_fields)

        extra_data = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                # Only include JSON-serializable values
                json.dumps(value)
                extra_data[key] = value
            except (TypeError, ValueError):
                extra_data[key] = str(value)

        if extra_data:
            log_data['extra'] = extra_data

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_data, default=str, separators=(',', ':'))


class ImportLogger:
    """
    Structured logger for import monitoring

    Provides methods for logging import events with consistent structure
    """

    def __init__(self, logger_name: str, context: Optional[ImportContext] = None):
        self.logger = logging.getLogger(logger_name)
        self.context = context or ImportContext.create()

    def _log_structured(self, level: int, event_type: str, message: str, **kwargs):
        """Log structured event with context"""
        log_data = {
            'event_type': event_type,
            'session_id': self.context.session_id,
            **kwargs
        }

        if self.context.source:
            log_data['source'] = self.context.source
        if self.context.import_format:
            log_data['import_format'] = self.context.import_format
        if self.context.account_id:
            log_data['account_id'] = self.context.account_id

        log_data['event_timestamp'] = datetime.now(timezone.utc).isoformat()

        self.logger.log(level, message, extra=log_data)

    def import_event(self, event_type: str, message: str, **kwargs):
        """Log import lifecycle event"""
        self._log_structured(
            level=logging.INFO,
            event_type=f"import.{event_type}",
            message=message,
            **kwargs
        )

    def row_rejected(self, row_number: int, error_count: int, message: str, **kwargs):
        """Log a data row excluded from matching"""
        self._log_structured(
            level=logging.DEBUG,
            event_type="import.row_rejected",
            message=message,
            row_number=row_number,
            error_count=error_count,
            **kwargs
        )

    def ledger_event(self, event_type: str, symbol: str, quantity: int, message: str, **kwargs):
        """Log position ledger event"""
        level = logging.WARNING if event_type == 'unmatched' else logging.DEBUG
        self._log_structured(
            level=level,
            event_type=f"ledger.{event_type}",
            message=message,
            symbol=symbol,
            quantity=quantity,
            **kwargs
        )

    def performance_event(self, metric_name: str, value: float, unit: str,
                          message: str, **kwargs):
        """Log performance metric"""
        self._log_structured(
            level=logging.INFO,
            event_type="performance.metric",
            message=message,
            metric_name=metric_name,
            metric_value=value,
            metric_unit=unit,
            **kwargs
        )

    def import_aborted(self, reasons: List[str], **kwargs):
        """Log an import stopped by structural errors before any row was matched"""
        self._log_structured(
            level=logging.WARNING,
            event_type="import.aborted",
            message=f"Import aborted: {'; '.join(reasons)}",
            reasons=reasons,
            **kwargs
        )


@contextmanager
def import_timer(logger: ImportLogger, operation: str, **context):
    """Context manager to time an import operation"""
    start_time = time.perf_counter()
    success = True
    error_msg = None

    try:
        yield
    except Exception as e:
        success = False
        error_msg = str(e)
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.performance_event(
            metric_name=f"{operation}_duration",
            value=duration_ms,
            unit="milliseconds",
            message=f"Completed {operation}",
            operation=operation,
            success=success,
            error_message=error_msg,
            **context
        )


def configure_structured_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    json_format: bool = True,
    extra_fields: Optional[Dict[str, Any]] = None
):
    """
    Configure structured logging for the application

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        console_output: Whether to output to console
        json_format: Whether to use JSON formatting
        extra_fields: Extra fields to include in all log messages
    """
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {},
        'handlers': {},
        'loggers': {
            'tradebook': {
                'level': log_level,
                'handlers': [],
                'propagate': False
            }
        }
    }

    if json_format:
        config['formatters']['structured'] = {
            '()': StructuredLogFormatter,
            'extra_fields': extra_fields or {}
        }
        formatter_name = 'structured'
    else:
        config['formatters']['standard'] = {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }
        formatter_name = 'standard'

    if console_output:
        config['handlers']['console'] = {
            'class': 'logging.StreamHandler',
            'level': log_level,
            'formatter': formatter_name,
            'stream': 'ext://sys.stderr'
        }
        config['loggers']['tradebook']['handlers'].append('console')

    if log_file:
        config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': log_level,
            'formatter': formatter_name,
            'filename': log_file,
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 5
        }
        config['loggers']['tradebook']['handlers'].append('file')

    logging.config.dictConfig(config)

    logging.getLogger("tradebook.logging").debug(
        "Structured logging configured",
        extra={'log_level': log_level, 'json_format': json_format, 'log_file': log_file}
    )


def get_import_logger(name: str, context: Optional[ImportContext] = None) -> ImportLogger:
    """Get an import logger with optional context"""
    return ImportLogger(name, context)
