import logging
import json
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional

# Configure logging directory
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "1").lower() not in ("0", "false", "no")

# Log format for file output
FILE_LOG_FORMAT = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Configure console formatter
CONSOLE_LOG_FORMAT = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Log levels map
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class StructuredLogger(logging.Logger):
    def _log(self, level, msg, args, exc_info=None, extra=None, stack_info=False, stacklevel=1):
        if extra is not None and "structured" in extra:
            extra = dict(extra)
            extra["structured_data"] = extra.pop("structured")

        super()._log(level, msg, args, exc_info, extra, stack_info, stacklevel)

    def structured(
        self,
        level: int,
        msg: str,
        structured_data: Dict[str, Any],
        *args,
        **kwargs
    ):
        """Log with structured data that can be easily parsed"""
        if isinstance(level, str):
            level = LOG_LEVELS.get(level.upper(), logging.INFO)
        if self.isEnabledFor(level):
            kwargs.setdefault("extra", {})
            kwargs["extra"]["structured"] = structured_data
            self._log(level, msg, args, **kwargs)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for better parsing"""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        # Add structured data if available
        if getattr(record, "structured_data", None):
            log_data["data"] = record.structured_data

        # Add exception info if available
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logger(
    name: str,
    log_level: str = "INFO",
    log_to_file: bool = LOG_TO_FILE,
    log_to_console: bool = True,
    json_format: bool = False
) -> StructuredLogger:
    """
    Set up a structured logger with file and console handlers

    Args:
        name: Logger name
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to file
        log_to_console: Whether to log to console
        json_format: Whether to format logs as JSON

    Returns:
        Configured logger
    """
    # Register the logger class
    logging.setLoggerClass(StructuredLogger)

    # Create logger
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVELS.get(log_level.upper(), logging.INFO))
    logger.handlers = []  # Clear existing handlers
    logger.propagate = False

    # Add file handler if requested
    if log_to_file:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, f"{name}.log"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )

        if json_format:
            file_handler.setFormatter(JsonFormatter())
        else:
            file_handler.setFormatter(FILE_LOG_FORMAT)

        logger.addHandler(file_handler)

    # Add console handler if requested
    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(JsonFormatter() if json_format else CONSOLE_LOG_FORMAT)
        logger.addHandler(console_handler)

    return logger


def configure_logger() -> StructuredLogger:
    """Application-level logger used by the app factory."""
    return setup_logger("carbonledger", log_level=os.getenv("API_LOG_LEVEL", "INFO"))


# Create application loggers
api_logger = setup_logger("api", log_level=os.getenv("API_LOG_LEVEL", "INFO"))
auth_logger = setup_logger("auth", log_level=os.getenv("AUTH_LOG_LEVEL", "INFO"))
db_logger = setup_logger("db", log_level=os.getenv("DB_LOG_LEVEL", "INFO"))
report_logger = setup_logger("reports", log_level=os.getenv("REPORT_LOG_LEVEL", "INFO"), json_format=True)


# Helper function to log API requests
def log_api_request(
    request_id: str,
    method: str,
    path: str,
    status_code: int,
    processing_time: float,
    user_id: Optional[int] = None,
    error: Optional[str] = None
):
    """Log an API request with structured data"""
    data = {
        "request_id": request_id,
        "method": method,
        "path": path,
        "status_code": status_code,
        "processing_time_ms": round(processing_time * 1000, 2),
        "user_id": user_id
    }

    if error:
        data["error"] = error
        api_logger.structured(
            logging.ERROR,
            f"API Request: {method} {path} - Status: {status_code}",
            data
        )
    else:
        api_logger.structured(
            logging.INFO,
            f"API Request: {method} {path} - Status: {status_code}",
            data
        )


# Helper function to log authentication events
def log_auth_event(
    event_type: str,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
    success: bool = True,
    error: Optional[str] = None,
    ip_address: Optional[str] = None
):
    """Log an authentication event with structured data"""
    data = {
        "event_type": event_type,
        "user_id": user_id,
        "username": username,
        "success": success,
        "ip_address": ip_address
    }

    if error:
        data["error"] = error
        auth_logger.structured(
            logging.WARNING,
            f"Auth {event_type}: {'Success' if success else 'Failed'}",
            data
        )
    else:
        auth_logger.structured(
            logging.INFO,
            f"Auth {event_type}: {'Success' if success else 'Failed'}",
            data
        )


# Helper function to log report job lifecycle events
def log_report_event(
    job_id: int,
    event: str,
    user_id: Optional[int] = None,
    processing_time: Optional[float] = None,
    data_points: Optional[int] = None,
    error: Optional[str] = None
):
    """Log a report job lifecycle event with structured data"""
    data = {
        "job_id": job_id,
        "event": event,
        "user_id": user_id,
    }
    if processing_time is not None:
        data["processing_time_ms"] = round(processing_time * 1000, 2)
    if data_points is not None:
        data["data_points"] = data_points

    if error:
        data["error"] = error
        report_logger.structured(
            logging.ERROR,
            f"Report {job_id}: {event}",
            data
        )
    else:
        report_logger.structured(
            logging.INFO,
            f"Report {job_id}: {event}",
            data
        )
