"""Logging setup for the toolkit."""

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

TRACE = 5

LOG_LEVELS: dict[str, int] = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"

logging.addLevelName(TRACE, "TRACE")


def configure_logging(level: str = "info") -> None:
    """Configure root logging for a CLI run.

    Args:
        level: One of the names in ``LOG_LEVELS``.

    Raises:
        ValueError: If the level name is unknown.
    """
    try:
        numeric_level = LOG_LEVELS[level.lower()]
    except KeyError as exc:
        raise ValueError(
            f"Invalid logging level '{level}'. Use one of: {', '.join(LOG_LEVELS)}."
        ) from exc

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, force=True)
    # AWS SDK debug output is only useful when tracing.
    sdk_level = logging.DEBUG if numeric_level <= TRACE else logging.WARNING
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(sdk_level)

    logging.getLogger(__name__).debug(f"log level set to {level}")


class ContextLoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that appends structured fields to every message."""

    def __init__(self, logger: logging.Logger, fields: Mapping[str, str]) -> None:
        super().__init__(logger, dict(fields))

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        fields = self.extra or {}
        if not fields:
            return msg, kwargs
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{msg} [{rendered}]", kwargs
