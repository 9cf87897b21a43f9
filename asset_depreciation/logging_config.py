"""
Logging setup.

Library modules log through ``logging.getLogger(__name__)``; the CLI
calls ``configure_logging`` once to attach a rich handler.
"""

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "asset_depreciation"


def configure_logging(level: Union[int, str] = logging.INFO, console: Console = None) -> logging.Logger:
    """Attach a RichHandler to the package logger.

    Calling this again replaces the previous handler instead of stacking.

    Args:
        level: Logging level name or number
        console: Console to write to; stderr when omitted

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
