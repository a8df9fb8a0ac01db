"""
Shared utilities: configuration and structured logging
"""

from .config import ConfigManager, DEFAULT_CONFIG, get_importer_config
from .structured_logging import (
    ImportContext,
    ImportLogger,
    StructuredLogFormatter,
    configure_structured_logging,
    get_import_logger,
    import_timer,
)

__all__ = [
    'ConfigManager',
    'DEFAULT_CONFIG',
    'get_importer_config',
    'ImportContext',
    'ImportLogger',
    'StructuredLogFormatter',
    'configure_structured_logging',
    'get_import_logger',
    'import_timer',
]
