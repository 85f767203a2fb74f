"""JSON logging configuration for the edge gate."""

import logging
import sys

from pythonjsonlogger import jsonlogger

# LogRecord attributes that add noise to CloudWatch entries
_DROPPED_FIELDS = {
    "name",
    "module",
    "pathname",
    "filename",
    "process",
    "processName",
    "thread",
    "threadName",
    "taskName",
    "levelno",
    "created",
    "msecs",
    "relativeCreated",
    "args",
    "msg",
    "stack_info",
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with a focused field set.

    Emits timestamp, level, message, exc_info, funcName and lineno, plus
    anything passed through ``extra=``.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key in _DROPPED_FIELDS]:
            log_record.pop(key)


def _setup_logger() -> logging.Logger:
    """Initialize and configure singleton logger.

    Returns:
        Configured logger with CustomJsonFormatter writing to stdout
    """
    logger = logging.getLogger("oidc_gate")

    # Prevent duplicate handlers on warm starts
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
        timestamp=True,
    )
    handler.setFormatter(formatter)

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


LOGGER = _setup_logger()
