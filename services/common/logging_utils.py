"""
Shared logging setup for the service, the API and the CLI.
"""

import logging

import config

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once, using config.LOG_LEVEL unless a level is given.
    Calling it again after handlers exist is a no-op.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    level_name = str(level or config.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
