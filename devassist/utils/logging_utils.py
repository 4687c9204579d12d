"""
The shared devassist logger.
"""
import logging
import os


def _log_level() -> str:
    return os.environ.get('DEVASSIST_LOG_LEVEL', 'INFO').upper()


def get_logger():
    logger = logging.getLogger("devassist")

    # Re-importing must not stack handlers
    logger.handlers.clear()
    # Our handler is the only one; the root logger would print everything twice
    logger.propagate = False

    formatter = logging.Formatter("\033[36mDEVASSIST\033[0m: %(levelname)-8s %(message)s")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.setLevel(_log_level())
    return logger


def configure_third_party_logging():
    """Quiet the libraries that log every request."""
    logging.getLogger('asyncio').setLevel(logging.CRITICAL)

    if _log_level() != 'DEBUG':
        logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
        logging.getLogger('uvicorn.error').setLevel(logging.WARNING)

    # google-genai goes through httpx for each call
    for name in ('google_genai', 'httpx', 'httpcore'):
        logging.getLogger(name).setLevel(logging.WARNING)


logger = get_logger()
configure_third_party_logging()
