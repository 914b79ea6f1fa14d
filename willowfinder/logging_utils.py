import inspect
import logging
import time
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "willowfinder"


def configure_logging(
    debug: bool = False,
    verbose: bool = False,
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure unified logging with rich-colored console output and an optional log file.

    Handlers are attached once to the package root logger; every module logger
    obtained through ``get_logger`` propagates into them.

    Args:
        debug (bool): Whether to enable debug logging.
        verbose (bool): Whether to enable verbose output.
        log_dir (Optional[Union[str, Path]]): Directory for a timestamped log file. No file is written when None.

    Returns:
        logging.Logger: The configured package root logger.
    """
    log_level = logging.DEBUG if debug or verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    if logger.handlers:
        return logger

    console = Console(stderr=True)
    rich_handler = RichHandler(rich_tracebacks=True, markup=False, console=console)
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)

    logger.info("Logging initialized at level %s", logging.getLevelName(log_level))

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = time.strftime("%Y%m%d-%H%M%S")
        log_file = log_path / f"willowfinder_{timestamp}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
        )
        logger.addHandler(file_handler)
        logger.info("Log file: %s", log_file)

    return logger


def get_logger(logger_name: Optional[str] = None) -> logging.Logger:
    """
    Return a logger below the package root.

    Args:
        logger_name (Optional[str]): The name for the logger. If None, it is inferred from the caller's module.

    Returns:
        logging.Logger: The requested logger.
    """
    if logger_name is None:
        caller_frame = inspect.stack()[1]
        logger_name = caller_frame.frame.f_globals.get("__name__", ROOT_LOGGER_NAME)

    if logger_name != ROOT_LOGGER_NAME and not logger_name.startswith(ROOT_LOGGER_NAME + "."):
        logger_name = f"{ROOT_LOGGER_NAME}.{logger_name}"

    return logging.getLogger(logger_name)
