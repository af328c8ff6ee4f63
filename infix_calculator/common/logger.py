"""Package logger shared by the evaluator, the batch runner and the CLI."""
import logging
import sys

LOGGER_NAME = "infix_calculator"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

logger = logging.getLogger(LOGGER_NAME)


def configure_logging(level: str = "ERROR") -> None:
    """
    Attach a stderr handler to the package logger and set its level.

    A handler attached by an earlier call is replaced, so it always writes to the current ``sys.stderr``.

    :param str level: Logging level name (e.g. ``"INFO"``)

    :return: None
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(level.upper())
