import logging
import sys


def configure_logging(level: str = 'INFO') -> None:
    """Send vanityurls logs to stdout at `level`."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger('vanityurls')
    logger.setLevel(log_level)

    # Prevent duplicate handlers when called again (e.g. on reload)
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    ))
    logger.addHandler(handler)
