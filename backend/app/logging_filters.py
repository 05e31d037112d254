"""Custom logging filters for the Uptimely project."""

import logging


class MaxLevelFilter(logging.Filter):
    """Pass records at or below ``level``; errors are routed to error.log instead."""

    def __init__(self, level: str | int) -> None:
        super().__init__()
        if isinstance(level, int):
            self.levelno = level
            return
        levels = logging.getLevelNamesMapping()
        try:
            self.levelno = levels[level.upper()]
        except KeyError:
            raise ValueError(f"Unknown logging level: {level}") from None

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.levelno
