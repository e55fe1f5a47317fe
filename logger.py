"""Application logger setup."""

import logging
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "resale_tax"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach console (and optional file) handlers to the app logger once.

    Args:
        level: Log level name such as "INFO" or "DEBUG".
        log_dir: Directory for resale_tax.log; console only when None.

    Returns:
        logging.Logger: The configured application logger.
    """
    global _configured
    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _configured:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"{APP_LOGGER_NAME}.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _configured = True
    return logger


def get_app_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the application logger or one of its children."""
    if name:
        return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
    return logging.getLogger(APP_LOGGER_NAME)


def reset_logging() -> None:
    """Drop handlers added by configure_logging."""
    global _configured
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    _configured = False
