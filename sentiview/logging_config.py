"""
Logging configuration for SentiView.

Console-only: the service keeps no files on disk, so every log record goes to
stdout where the process supervisor collects it.
"""

import logging
import sys

NOISY_LOGGERS = ["urllib3", "httpx", "httpcore", "asyncio", "websockets"]

LIBRARY_LOGGERS = [
    "google",
    "google.genai",
    "google.auth",
    "elevenlabs",
    "openai",
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
]


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the SentiView application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance for the application
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    for logger_name in LIBRARY_LOGGERS:
        lib_logger = logging.getLogger(logger_name)
        lib_logger.setLevel(numeric_level)
        lib_logger.propagate = True

    logger = logging.getLogger("sentiview")
    logger.setLevel(numeric_level)
    logger.info("Logging initialized at level %s", logging.getLevelName(numeric_level))
    return logger


def get_logger(name: str = "sentiview") -> logging.Logger:
    return logging.getLogger(name)
