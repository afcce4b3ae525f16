"""
Application logging configuration.

All Drive API loggers hang below one "drive" logger. Only that logger gets a
handler; component loggers such as "drive.hierarchy" propagate to it, so a
record names the component it came from.

Log messages carry ids (user_id, folder_id, blob refs) but never passwords,
tokens or file contents.
"""
import logging
import sys

from app.config import settings

LOGGER_NAME = "drive"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(component: str | None = None) -> logging.Logger:
    """
    Return the application logger, or the child logger of a component.

    The stdout handler is attached on first use; later calls reuse it.
    The level comes from the LOG_LEVEL setting.
    """
    root = logging.getLogger(LOGGER_NAME)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())

    if component:
        return root.getChild(component)
    return root
