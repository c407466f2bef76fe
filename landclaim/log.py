"""
Logging setup for processes embedding the pipeline.

Modules only ever call ``logging.getLogger(__name__)``; the host process
calls ``configure_logging`` once at startup.
"""

import logging
import sys
from typing import Optional, Union

from landclaim.config import LogLevel, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[Union[LogLevel, str]] = None) -> None:
    """
    Configure root logging to stdout.

    Args:
        level: Log level to apply. Defaults to ``Settings.log_level``.
    """
    if level is None:
        level = get_settings().log_level
    if isinstance(level, LogLevel):
        level = level.value

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(level)
