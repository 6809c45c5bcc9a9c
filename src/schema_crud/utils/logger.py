"""
Logging setup: console output, an optional rotating file, text or JSON records
"""
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict, List

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Attributes passed with extra={...} that JSON records carry along
CONTEXT_FIELDS = ('sql', 'table')

QUIET_LOGGERS = ('mysql.connector',)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including statement context when present"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _build_handlers(config: Dict[str, Any]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.get('file'):
        path = Path(config['file'])
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            path,
            maxBytes=config.get('max_bytes', 10485760),
            backupCount=config.get('backup_count', 5)
        ))
    return handlers


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Replace the root logger's handlers according to ``config``

    Args:
        config: ``level`` name, ``format`` ('text' or 'json'), and an
            optional ``file`` rotated at ``max_bytes`` keeping ``backup_count``
    """
    level = getattr(logging, str(config.get('level', 'INFO')).upper())
    if config.get('format') == 'json':
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in _build_handlers(config):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured at {logging.getLevelName(level)}")
