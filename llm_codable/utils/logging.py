"""
Logging configuration.

All modules log through ``logging.getLogger(__name__)``; nothing is printed
until an application (or the CLI) calls :func:`setup_logging`, which attaches
a Rich console handler to the ``llm_codable`` package logger.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "llm_codable"


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level name or number
        log_file: Optional path of a file that receives the same records
        console: Rich console to write to (defaults to stderr)

    Returns:
        logging.Logger: The configured package logger

    Example:
        ```python
        from llm_codable.utils import setup_logging

        setup_logging(level="DEBUG", log_file="llm_codable.log")
        ```
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    if isinstance(level, str):
        level_name = level.upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {level_name}")

    logger.setLevel(level)

    # Replace handlers from a previous call instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    rich_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(rich_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
