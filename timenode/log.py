"""
Console logging with colorama colours.
"""
import logging

from colorama import Fore, Style, init

LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.MAGENTA,
}

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class ColorFormatter(logging.Formatter):
    def format(self, record):
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if color is None:
            return message
        return f"{color}{message}{Style.RESET_ALL}"


def setup_logging(level="INFO", color: bool = True):
    """Install a single console handler on the root logger."""
    if color:
        init(autoreset=True)

    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter(LOG_FORMAT) if color else logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    # web3 and urllib3 are chatty at DEBUG
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return handler
