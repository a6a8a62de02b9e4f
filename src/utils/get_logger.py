import logging
from datetime import UTC, datetime

import pytz

# Operators read run logs in Eastern time
TIMEZONE = pytz.timezone("America/New_York")

"""
Console logger setup for the enrichment jobs.
One cached logger per module name, fixed-width columns.
"""

Logger_Cache: dict[str, logging.Logger] = {}
Default_Level = logging.INFO


def set_level(level):
    """Change the level for new loggers and every logger already handed out."""
    global Default_Level
    Default_Level = level
    for logger in Logger_Cache.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


class LocalTimeFormatter(logging.Formatter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.local_tz = TIMEZONE

    def format(self, record):
        utc_dt = datetime.fromtimestamp(record.created, UTC)
        local_time = utc_dt.astimezone(self.local_tz)

        record.local_time = local_time.strftime("%I:%M:%S %p")
        record.name = record.name[0:24]
        if record.levelno == logging.WARNING:
            self._style._fmt = "%(local_time)-10s %(name)-24s:%(levelname)-8s =====> %(message)s"

        elif record.levelno >= logging.ERROR:
            self._style._fmt = "\n%(local_time)-10s %(name)-24s =====> ERROR \n%(message)s\n---END ERROR ---\n"

        else:
            self._style._fmt = "%(local_time)-10s %(name)-24s:%(levelname)-8s %(message)s"

        return super().format(record)


def get_logger(name: str, level=None) -> logging.Logger:
    """Return a logger with the specified name."""
    if name in Logger_Cache:
        return Logger_Cache[name]

    if level is None:
        level = Default_Level
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler):
            logger.removeHandler(handler)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(LocalTimeFormatter())
    logger.addHandler(ch)

    logger.propagate = False

    Logger_Cache[name] = logger

    return logger


if __name__ == "__main__":
    a = get_logger("test")
    a.info("this is a test")
    a.error("this is an error test")
