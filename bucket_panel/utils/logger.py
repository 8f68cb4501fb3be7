"""Structured logging setup using structlog"""

import logging
import os
import sys
from typing import Any

import structlog

from bucket_panel.config import settings


def configure_third_party_loggers(log_level: int):
    """Configure third-party library loggers to reduce verbosity - ERROR only in production"""

    error_level = logging.ERROR

    # Uvicorn - ERROR only
    logging.getLogger("uvicorn.access").setLevel(error_level)
    logging.getLogger("uvicorn.error").setLevel(error_level)

    # SQLAlchemy - ERROR only
    logging.getLogger("sqlalchemy").setLevel(error_level)
    logging.getLogger("sqlalchemy.engine").setLevel(error_level)
    logging.getLogger("sqlalchemy.pool").setLevel(error_level)

    # AWS SDK - ERROR only (botocore logs every request at DEBUG)
    logging.getLogger("botocore").setLevel(error_level)
    logging.getLogger("boto3").setLevel(error_level)
    logging.getLogger("s3transfer").setLevel(error_level)

    # Aiohttp - ERROR only
    logging.getLogger("aiohttp").setLevel(error_level)
    logging.getLogger("aiohttp.client").setLevel(error_level)

    # HTTP libraries - ERROR only
    logging.getLogger("urllib3").setLevel(error_level)
    logging.getLogger("httpx").setLevel(error_level)
    logging.getLogger("httpcore").setLevel(error_level)

    logging.getLogger("asyncio").setLevel(error_level)
    logging.getLogger("multipart").setLevel(error_level)


def configure_logging():
    """Configure structured logging with environment-aware settings - ERROR only in production"""

    if settings.environment == "production" and not os.getenv("LOG_LEVEL"):
        # Force ERROR in production unless explicitly set
        log_level = logging.ERROR
    else:
        log_level = getattr(logging, settings.log_level.upper(), logging.ERROR)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    configure_third_party_loggers(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a logger instance"""
    return structlog.get_logger(name)


def mask_secret(value: str, visible: int = 4) -> str:
    """
    Mask a credential so only its last characters are shown.

    Args:
        value: Secret value (access key, token...)
        visible: Number of trailing characters to keep

    Returns:
        Masked value (e.g., "AKIAXXXXWXYZ" -> "********WXYZ")
    """
    if not value:
        return "[NOT_SET]"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def log_storage_config(logger: Any, credentials: Any) -> None:
    """
    Log storage configuration safely without exposing credentials.

    Args:
        logger: Logger instance
        credentials: StorageCredentials or None when setup is pending
    """
    if credentials is None:
        logger.info("storage_config_loaded", configured=False)
        return

    logger.info(
        "storage_config_loaded",
        configured=True,
        bucket=credentials.bucket_name,
        region=credentials.region,
        cdn_host=credentials.cdn_host or "[NOT_SET]",
        access_key=mask_secret(credentials.access_key),
        secret_key="[REDACTED]" if credentials.secret_key else "[NOT_SET]",
    )


# Configure logging on import
configure_logging()
