"""
Link Validator Configuration & Logging Module
=============================================
Centralized configuration, structured logging, and error types.
"""

import os
import sys
import json
import logging
import uuid
import time
import functools
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
import threading

# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================
DEFAULT_HTTP_TIMEOUT = 10           # Seconds per external request
DEFAULT_HTTP_RETRIES = 2            # Retries for server errors
DEFAULT_MAX_WORKERS = 8             # Thread pool size for external checks
DEFAULT_USER_AGENT = 'Mozilla/5.0 (compatible; html-link-validator/1.0)'
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB max per log file
LOG_BACKUP_COUNT = 5                # Number of log backup files to keep


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================

@dataclass
class LinkValidatorConfig:
    """Runtime configuration for logging and the external resolver."""

    # HTTP settings for external link resolution
    http_timeout: int = DEFAULT_HTTP_TIMEOUT
    http_retries: int = DEFAULT_HTTP_RETRIES
    max_workers: int = DEFAULT_MAX_WORKERS
    user_agent: str = DEFAULT_USER_AGENT

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # Options: json, text
    log_to_file: bool = False
    log_to_console: bool = True
    log_dir: Path = field(default_factory=lambda: Path.cwd() / 'logs')

    # HTTP API: internal links resolve only inside this tree
    api_root: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> 'LinkValidatorConfig':
        """Load configuration from environment variables."""
        return cls(
            http_timeout=int(os.environ.get('LV_HTTP_TIMEOUT', str(DEFAULT_HTTP_TIMEOUT))),
            http_retries=int(os.environ.get('LV_HTTP_RETRIES', str(DEFAULT_HTTP_RETRIES))),
            max_workers=int(os.environ.get('LV_MAX_WORKERS', str(DEFAULT_MAX_WORKERS))),
            user_agent=os.environ.get('LV_USER_AGENT', DEFAULT_USER_AGENT),
            log_level=os.environ.get('LV_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('LV_LOG_FORMAT', 'text'),
            log_to_file=_env_flag('LV_LOG_TO_FILE'),
            log_dir=Path(os.environ.get('LV_LOG_DIR', str(Path.cwd() / 'logs'))),
            api_root=Path(os.environ.get('LV_API_ROOT', str(Path.cwd()))),
        )

    def validate(self) -> tuple:
        """Validate configuration and return (is_valid, errors)."""
        errors = []

        if self.http_timeout <= 0:
            errors.append("HTTP timeout must be positive")

        if self.http_retries < 0:
            errors.append("HTTP retries cannot be negative")

        if self.max_workers < 1:
            errors.append("At least one worker is required")

        if self.log_format not in ('json', 'text'):
            errors.append(f"Invalid log_format: {self.log_format}. Must be 'json' or 'text'")

        if not hasattr(logging, self.log_level.upper()):
            errors.append(f"Invalid log_level: {self.log_level}")

        return (len(errors) == 0, errors)


# Global config instance
_config: Optional[LinkValidatorConfig] = None


def get_config() -> LinkValidatorConfig:
    """Get or create the global configuration."""
    global _config
    if _config is None:
        _config = LinkValidatorConfig.from_env()
    return _config


def reset_config():
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

class StructuredLogger:
    """Thread-safe structured logger with correlation IDs."""

    _local = threading.local()

    def __init__(self, name: str, config: Optional[LinkValidatorConfig] = None):
        self.name = name
        self.config = config or get_config()
        self._setup_logger()

    def _setup_logger(self):
        """Configure the underlying Python logger."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))
        self.logger.handlers.clear()

        if self.config.log_format == 'json':
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
            )

        if self.config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # File handler with rotation
        if self.config.log_to_file:
            from logging.handlers import RotatingFileHandler
            log_file = self.config.log_dir / f"{self.name.lower()}.log"
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def set_correlation_id(cls, correlation_id: str):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> str:
        """Get correlation ID for current thread."""
        return getattr(cls._local, 'correlation_id', None) or str(uuid.uuid4())[:8]

    @classmethod
    def new_correlation_id(cls) -> str:
        """Generate and set a new correlation ID."""
        correlation_id = str(uuid.uuid4())[:12]
        cls.set_correlation_id(correlation_id)
        return correlation_id

    def _build_log_record(self, level: str, message: str, **kwargs) -> Dict[str, Any]:
        return {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level,
            'logger': self.name,
            'correlation_id': self.get_correlation_id(),
            'message': message,
            **kwargs
        }

    def _emit(self, level: int, level_name: str, message: str, exc_info: bool = False, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        if self.config.log_format == 'json':
            record = self._build_log_record(level_name, message, **kwargs)
            self.logger.log(level, json.dumps(record, default=str), exc_info=exc_info)
        else:
            self.logger.log(level, message, exc_info=exc_info)

    def debug(self, message: str, **kwargs):
        self._emit(logging.DEBUG, 'DEBUG', message, **kwargs)

    def info(self, message: str, **kwargs):
        self._emit(logging.INFO, 'INFO', message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._emit(logging.WARNING, 'WARNING', message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log error message with optional exception info."""
        self._emit(logging.ERROR, 'ERROR', message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.error(message, exc_info=True, **kwargs)

    @contextmanager
    def log_operation(self, operation: str, **context):
        """Context manager for logging operation start/end with timing."""
        start_time = time.time()
        self.debug(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
            duration_ms = (time.time() - start_time) * 1000
            self.info(f"{operation} completed", operation=operation, status='completed',
                      duration_ms=round(duration_ms, 2), **context)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), **context)
            raise


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        try:
            log_data = json.loads(message)
        except ValueError:
            log_data = None
        if not isinstance(log_data, dict):
            log_data = {
                'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
                'level': record.levelname,
                'logger': record.name,
                'message': message,
            }

        if record.exc_info:
            log_data['traceback'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, get_config())


# =============================================================================
# ERROR HANDLING
# =============================================================================

class LinkCheckError(Exception):
    """Base exception for the link validator."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 status_code: int = 500, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response dict."""
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class ValidationError(LinkCheckError):
    """Invalid input or options."""
    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400,
                         details={'field': field, **kwargs})


class DocumentSourceError(LinkCheckError):
    """A document could not be read or parsed."""
    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, code="DOCUMENT_ERROR", status_code=400,
                         details={'path': path, **kwargs})


class CollaboratorError(LinkCheckError):
    """A filesystem or document-tree lookup failed."""
    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, code="COLLABORATOR_ERROR", status_code=500,
                         details={'path': path, **kwargs})


class ProcessingError(LinkCheckError):
    """Unexpected failure while checking."""
    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        super().__init__(message, code="PROCESSING_ERROR", status_code=500,
                         details={'stage': stage, **kwargs})


def handle_errors(logger: Optional[StructuredLogger] = None):
    """Decorator translating OS and value errors into LinkCheckError types."""
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            try:
                return func(*args, **kwargs)
            except LinkCheckError:
                raise
            except FileNotFoundError as e:
                _logger.error(f"File not found: {e}")
                raise DocumentSourceError(f"File not found: {e}", path=e.filename) from e
            except PermissionError as e:
                _logger.error(f"Permission denied: {e}")
                raise DocumentSourceError(f"Permission denied: {e}", path=e.filename) from e
            except ValueError as e:
                _logger.error(f"Validation error: {e}")
                raise ValidationError(str(e)) from e
        return wrapper
    return decorator
