"""
Logger configuration for the Gokaku naming backend using Loguru.

This module provides:
- Colored console output
- Rotating file handlers for application, error, request and performance logs
- Request/response logging helpers used by the HTTP middleware
"""

import sys
from datetime import datetime
from pathlib import Path

from fastapi import Request
from loguru import logger

from gokaku.config.settings import settings


CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
TAGGED_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"

# file name, level, rotation, retention, message tag ("" = every record)
FILE_SINKS = (
    ("app.log", "DEBUG", "10 MB", "7 days", ""),
    ("errors.log", "ERROR", "5 MB", "30 days", ""),
    ("requests.log", "INFO", "20 MB", "14 days", "REQUEST"),
    ("performance.log", "INFO", "10 MB", "7 days", "PERFORMANCE"),
)


def _tag_filter(tag: str):
    return lambda record: tag in record["message"]


class LoguruConfig:
    """Loguru configuration class for the application."""

    def __init__(self, app_name: str = "gokaku-backend", logs_dir: str | Path = "logs"):
        self.app_name = app_name
        self.logs_dir = Path(logs_dir)

    def setup_logger(self, log_level: str = "INFO", to_file: bool = True) -> None:
        """Configure Loguru: colored stdout, plus the rotating files in FILE_SINKS when ``to_file``."""
        logger.remove()
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

        if not to_file:
            return

        self.logs_dir.mkdir(parents=True, exist_ok=True)
        for filename, level, rotation, retention, tag in FILE_SINKS:
            logger.add(
                self.logs_dir / filename,
                format=TAGGED_FORMAT if tag else FILE_FORMAT,
                level=level,
                rotation=rotation,
                retention=retention,
                compression="zip",
                encoding="utf-8",
                filter=_tag_filter(tag) if tag else None,
                backtrace=not tag,
                diagnose=not tag,
            )


def log_request_start(request: Request) -> None:
    """Log the start of a request."""
    logger.info(
        "REQUEST START: {method} {path}",
        method=request.method,
        path=request.url.path,
        extra={
            "query_params": str(request.query_params),
            "client_ip": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent"),
            "timestamp": datetime.now().isoformat(),
        }
    )


def log_request_end(request: Request, status_code: int, process_time: float) -> None:
    """Log the completion of a request."""
    logger.info(
        "REQUEST END: {method} {path} - {status_code} ({process_time:.4f}s)",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        process_time=round(process_time, 4),
        extra={
            "client_ip": request.client.host if request.client else None,
            "timestamp": datetime.now().isoformat(),
        }
    )


def log_request_error(request: Request, error: Exception, process_time: float) -> None:
    """Log a request error."""
    logger.error(
        "REQUEST ERROR: {method} {path} - {error} ({process_time:.4f}s)",
        method=request.method,
        path=request.url.path,
        error=str(error),
        process_time=round(process_time, 4),
        extra={
            "error_type": type(error).__name__,
            "client_ip": request.client.host if request.client else None,
            "timestamp": datetime.now().isoformat(),
        }
    )


def log_performance(operation: str, duration: float, **kwargs) -> None:
    """Log performance metrics."""
    logger.info(
        "PERFORMANCE: {operation} completed in {duration:.4f}s",
        operation=operation,
        duration=duration,
        **kwargs
    )


loguru_config = LoguruConfig(logs_dir=settings.LOGS_DIR)
loguru_config.setup_logger(log_level=settings.LOG_LEVEL, to_file=settings.LOG_TO_FILE)

app_logger = logger
