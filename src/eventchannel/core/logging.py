import sys
import os
from typing import Optional
from loguru import logger

from .config import LoggingSettings

def setup_logging(settings: Optional[LoggingSettings] = None):
    """
    Configures Loguru logger for applications embedding the channel.
    """
    settings = settings or LoggingSettings()

    # Remove default handler
    logger.remove()

    # Console Handler
    logger.add(sys.stderr, level=settings.level, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")

    # File Handler
    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        logger.add(os.path.join(settings.log_dir, "eventchannel_{time}.log"), rotation=settings.rotation, retention=settings.retention, level="DEBUG")

    logger.debug("Logging initialized.")
