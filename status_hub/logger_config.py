import sys
from loguru import logger
from status_hub.config import settings

def setup_logger():
    # Remove default handler
    logger.remove()

    # Console
    logger.add(sys.stderr, level="DEBUG" if settings.DEBUG else "INFO")

    # File
    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="10 MB",
            compression="zip",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"
        )

    logger.info("Logging initialized.")
