import logging
import re
import sys
from typing import TextIO

LOGGER_NAME = "docassembly"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_BEARER_TOKEN = re.compile(r"(Bearer\s+)\S+")


class RedactCredentials(logging.Filter):
    """Masks bearer tokens that end up in a formatted log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BEARER_TOKEN.sub(r"\1[redacted]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class Log:
    """Client-wide logging facade over the ``docassembly`` logger.

    Keyword arguments are attached to the record as ``record.fields`` so they
    can never collide with the standard LogRecord attributes.
    """

    _logger: logging.Logger = logging.getLogger(LOGGER_NAME)
    _redactor = RedactCredentials()

    @classmethod
    def configure(cls, log_level: str, stream: TextIO | None = None) -> None:
        """Set the level and attach a single stream handler (stdout by default)."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(stream or sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, /, **fields: object) -> None:
        cls._log(logging.INFO, message, fields)

    @classmethod
    def error(cls, message: str, /, **fields: object) -> None:
        cls._log(logging.ERROR, message, fields)

    @classmethod
    def warning(cls, message: str, /, **fields: object) -> None:
        cls._log(logging.WARNING, message, fields)

    @classmethod
    def debug(cls, message: str, /, **fields: object) -> None:
        cls._log(logging.DEBUG, message, fields)

    @classmethod
    def _log(cls, level: int, message: str, fields: dict[str, object]) -> None:
        if cls._redactor not in cls._logger.filters:
            cls._logger.addFilter(cls._redactor)
        cls._logger.log(level, message, extra={"fields": fields})
