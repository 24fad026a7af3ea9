"""
Logging for the fast spectrum scripts.

The console gets short ``[stage] message`` lines that sit between the CLI's
banner prints; the optional log file keeps full timestamps and logger names
so a long run can be timed stage by stage afterwards.
"""
import logging
import sys
from typing import Optional

PACKAGE_NAMESPACE = "src"

CONSOLE_FORMAT = "  [%(module)s] %(message)s"
FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO,
                  log_file: Optional[str] = None,
                  namespace: str = PACKAGE_NAMESPACE) -> logging.Logger:
    """
    Route the pipeline's stage messages to stdout (and optionally a file).

    Handlers are attached to the ``namespace`` logger only and propagation to
    the root logger is switched off, so embedding applications keep control
    of their own logging. Calling it again replaces the handlers it installed.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path; the file is truncated on every call
        namespace: Logger whose subtree is configured

    Returns:
        the configured logger
    """
    logger = logging.getLogger(namespace)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%H:%M:%S'))
        logger.addHandler(file_handler)

    logger.debug("Logging initialized for '%s' at %s.", namespace, logging.getLevelName(level))
    return logger
