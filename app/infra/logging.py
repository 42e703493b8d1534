"""Structured logging configuration."""

import logging
import sys
from pythonjsonlogger import jsonlogger
from app.infra.config import config


def setup_logging():
    """Setup structured JSON logging for the app logger hierarchy."""
    logger = logging.getLogger("app")
    logger.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)

    # Remove existing handlers so repeated setup does not duplicate output
    logger.handlers = []

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Agent calls are logged by the gateway; keep the HTTP client quiet
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    return logger


app_logger = setup_logging()
