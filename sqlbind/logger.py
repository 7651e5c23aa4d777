"""Handler factories for the query loggers of sqlbind connections.

Every connection logs to `logging.getLogger('mysql_<database>')`. Executed
queries go out at DEBUG level, failed queries and rolled back transactions at
WARNING level and above.
"""
import logging
import os

QUERY_FORMAT = "%(asctime)s - %(name)s - %(levelname)s\n%(message)s\n"
ERROR_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

RED_COLOR = "\x1b[31;20m"
RESET_COLOR = "\x1b[0m"


def create_file_handler(path: str) -> logging.FileHandler:
    """Setup a Filehandler with a default configuration.

    Returns:
        logging.FileHandler: The default FileHandler.
    """
    return logging.FileHandler(
        path,
        encoding="utf-8",
    )


def setup_query_logger(path: str) -> logging.FileHandler:
    """Setup formatting and loglevel for the query file logger

    Args:
        path (str): Full path to the logfile including extension.
    Returns:
        logging.FileHandler: The filehandler for this logger
    """
    fh = create_file_handler(path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(QUERY_FORMAT))
    return fh


def setup_debug_stream_logger() -> logging.StreamHandler:
    """Setup formatting for the debug stream logger

    Returns:
        logging.StreamHandler: The streamhandler for this logger
    """
    debug_stream = logging.StreamHandler()
    debug_stream.setLevel(logging.DEBUG)
    debug_format = logging.Formatter(f"{RED_COLOR}{QUERY_FORMAT}{RESET_COLOR}")
    debug_stream.setFormatter(debug_format)
    return debug_stream


def setup_error_logger(path: str) -> logging.FileHandler:
    """Setup formatting and loglevel for the error logger
    Args:
        path (str): Full path to the logfile including extension.
    Returns:
        logging.FileHandler: The filehandler for this logger
    """
    fh = create_file_handler(path)
    fh.setLevel(logging.ERROR)
    fh.setFormatter(logging.Formatter(ERROR_FORMAT))
    return fh


def has_file_handler(logger: logging.Logger, path: str) -> bool:
    """Returns whether the logger already writes to the given file."""
    location = os.path.abspath(path)
    return any(
        getattr(handler, "baseFilename", None) == location
        for handler in logger.handlers
    )


def has_stream_handler(logger: logging.Logger) -> bool:
    """Returns whether the logger already prints to a stream."""
    return any(
        type(handler) is logging.StreamHandler for handler in logger.handlers
    )
