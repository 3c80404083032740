import logging
import sys

from applymail.core.config import Settings, settings

__version__ = "1.0.0"


def configure_logging(config: Settings) -> None:
    """Configure root logging from settings (stdout + LOG_FILE)"""
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),  # Ensure logs go to stdout
            logging.FileHandler(config.LOG_FILE, mode='a')  # Also log to file
        ],
        force=True
    )

    # Set specific loggers to the configured level
    level = logging.DEBUG if config.DEBUG else logging.INFO
    logging.getLogger('applymail').setLevel(level)
    logging.getLogger('applymail.api').setLevel(level)
    logging.getLogger('applymail.services').setLevel(level)

    # Reduce noise from other libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('multipart').setLevel(logging.WARNING)
    logging.getLogger('python_multipart').setLevel(logging.WARNING)


# Configure logging early in the import process
# This ensures startup logs from the mail client and lifespan are captured
configure_logging(settings)

# Create a logger for this module
logger = logging.getLogger(__name__)
logger.info("Logging configuration initialized")
