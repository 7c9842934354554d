"""Process-wide logging setup.

stdout carries the MCP protocol, so log records go to stderr and, when a log
file is configured, to a file mirror as well.
"""

from __future__ import annotations

__all__ = [
    'PACKAGE_LOGGER',
    'configure_logging',
    'set_package_level',
]

import logging
import pathlib
import sys

PACKAGE_LOGGER = 'browser_devtools'

_LOG_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s'
_LOG_DATEFMT = '%H:%M:%S'
_FILE_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Chatty third-party loggers
_NOISY_LOGGERS = ('asyncio', 'mcp', 'mcp.server.lowlevel.server')


def configure_logging(log_file: pathlib.Path | None = None, level: int = logging.INFO) -> None:
    """Install stderr logging, plus a file mirror when ``log_file`` is given.

    Safe to call more than once; previous root handlers are replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT))
    root.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)

    root.setLevel(logging.WARNING)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_package_level(level: int | str) -> None:
    """Apply a client-requested level to this package's loggers."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
