import logging
import sys

_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Appends structured fields passed through ``extra`` as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not fields:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{base} | {rendered}"


class Log:
    """Centralized logging with structured format."""

    _logger: logging.Logger = logging.getLogger("intake")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                StructuredFormatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **fields: object) -> None:
        cls._logger.info(message, extra=fields)

    @classmethod
    def error(cls, message: str, **fields: object) -> None:
        cls._logger.error(message, extra=fields)

    @classmethod
    def warning(cls, message: str, **fields: object) -> None:
        cls._logger.warning(message, extra=fields)

    @classmethod
    def debug(cls, message: str, **fields: object) -> None:
        cls._logger.debug(message, extra=fields)
