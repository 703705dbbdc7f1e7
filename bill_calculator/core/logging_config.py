"""Logging setup for the application entry points."""

import logging

from bill_calculator.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # Access logs are noisy for a single-user tool
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
