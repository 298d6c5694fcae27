import logging
import logging.handlers
import os
import sys
import uuid
import json
from .settings import settings

class RequestIdFilter(logging.Filter):
    """Filter that adds request_id to log records."""
    def __init__(self, name=''):
        super().__init__(name)
        self.request_id = None

    def filter(self, record):
        record.request_id = getattr(record, 'request_id', self.request_id or '-')
        return True

class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""
    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'request_id': getattr(record, 'request_id', '-'),
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        for key in ('entity', 'duration_ms', 'status_code'):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        return json.dumps(log_record)

def _rotated_name(default_name):
    """Keep the .log suffix on rotated files: app.log.2025-11-02 -> app_2025-11-02.log"""
    base_filename = default_name.replace('.log', '')
    parts = base_filename.rsplit('.', 1)
    if len(parts) == 2:
        return f"{parts[0]}_{parts[1]}.log"
    return default_name

def setup_logging(log_dir=None, level=None):
    """Set up engine logging: rotating file handler plus console output."""
    log_dir = log_dir or settings.LOG_DIR
    level = level or settings.LOG_LEVEL

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_filename = os.path.join(log_dir, f"{settings.LOG_FILENAME_PREFIX}.log")

    standard_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(request_id)s] - %(name)s - %(message)s'
    )
    use_json = settings.LOG_FORMAT == 'json'

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    request_id_filter = RequestIdFilter()

    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_filename,
        when='midnight',
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(JsonFormatter() if use_json else standard_formatter)
    file_handler.addFilter(request_id_filter)
    file_handler.namer = _rotated_name

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - [%(request_id)s] - %(message)s'))
    console_handler.addFilter(request_id_filter)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging setup complete. Writing to {log_filename}", extra={"request_id": "startup"})

    return logger, request_id_filter

def get_request_id():
    """Generate a unique request ID."""
    return str(uuid.uuid4())
