import logging
import sys

from treasury_yield.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(settings: Settings) -> None:
    """Root stdout handler at ``LOG_LEVEL``; ``LOG_QUIET_LOGGERS`` only speak up at WARNING unless in DEBUG."""
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)
    # Avoid duplicate handlers if reload
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)

    quiet_level = logging.DEBUG if settings.LOG_LEVEL == "DEBUG" else logging.WARNING
    for name in settings.LOG_QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
