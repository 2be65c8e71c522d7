import os
import sys
from typing import Optional

from loguru import logger

from src.core.config import GeneralSettings

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[component]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | {name}:{line} - {message}"


def setup_logging(debug_mode: Optional[bool] = None, log_dir: Optional[str] = None,
                  settings: Optional[GeneralSettings] = None):
    """
    Configures the loguru sinks for a hosting process.

    Every record carries a ``component`` extra, ``-`` unless the record
    comes from a logger made by component_logger().
    """
    settings = settings or GeneralSettings()
    debug_mode = settings.debug_mode if debug_mode is None else debug_mode
    log_dir = log_dir or settings.log_dir

    logger.remove()
    logger.configure(extra={"component": "-"})

    level = "DEBUG" if debug_mode else "INFO"
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    os.makedirs(log_dir, exist_ok=True)
    logger.add(os.path.join(log_dir, "albums_{time}.log"), format=FILE_FORMAT,
               rotation="10 MB", retention="1 week", level="DEBUG")

    logger.debug(f"Logging initialized, level {level}, files in {log_dir}")


def component_logger(component: str):
    """Logger bound to a component name, injected into album components."""
    return logger.bind(component=component)
